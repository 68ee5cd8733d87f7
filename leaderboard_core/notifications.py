"""User-visible notifications (success/error/info) owned by one controller."""
from __future__ import annotations

import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Literal

logger = logging.getLogger(__name__)

NotificationKind = Literal["success", "error", "info"]


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    kind: NotificationKind


class Notifier:
    """Issues notifications with per-instance monotonic ids."""

    def __init__(self, history: int = 50) -> None:
        self._ids = itertools.count()
        self._recent: deque[Notification] = deque(maxlen=history)
        self._listeners: list[Callable[[Notification], None]] = []

    def notify(self, message: str, kind: NotificationKind = "info") -> Notification:
        note = Notification(id=next(self._ids), message=message, kind=kind)
        self._recent.append(note)
        for listener in list(self._listeners):
            try:
                listener(note)
            except Exception:
                logger.exception(f"Notification listener failed for #{note.id}")
        return note

    def dismiss(self, note_id: int) -> bool:
        for note in self._recent:
            if note.id == note_id:
                self._recent.remove(note)
                return True
        return False

    def recent(self, kind: NotificationKind | None = None) -> list[Notification]:
        if kind is None:
            return list(self._recent)
        return [n for n in self._recent if n.kind == kind]

    def add_listener(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove


__all__ = ["Notification", "NotificationKind", "Notifier"]
