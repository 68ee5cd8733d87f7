"""Scoreboard synchronization controller (asyncio, single process, no locks).

Owns the authoritative in-memory scoreboard and mediates between:
- full snapshot refreshes from the hosted store (single-flight),
- row-level change notifications from the realtime feed,
- local administrative edits (tasks, teams, contest phase, key uploads).

Every published snapshot goes through ``rank_teams`` first; observers only
ever see a fully ranked tuple. Failed fetches keep the previous snapshot.
Change notifications are treated as refresh triggers, not as deltas, so
duplicates, reordering and drops are tolerated.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Protocol, Sequence

from .config import DEFAULT_CONFIG, ContestConfig, default_tasks
from .errors import LeaderboardError, PreconditionFailed, SyncFailure, UploadFailure
from .key_rows import key_object_path, parse_task_key
from .notifications import Notifier
from .ranking import ContestStats, compute_contest_stats, rank_teams
from .submission import SubmissionFlow
from .types import CONTEST_STATUSES, SessionUser, Task, Team
from .validation import (
    ValidatedChangeEvent,
    ValidatedTask,
    validate_scoreboard,
    validate_uploaded_key_ids,
)

logger = logging.getLogger(__name__)

ScoreboardListener = Callable[[tuple[Team, ...]], None]


class ScoreboardBackend(Protocol):
    """Hosted row store, remote procedures and object storage."""

    async def fetch_scoreboard(self) -> List[Dict[str, Any]]:
        ...

    async def fetch_uploaded_task_keys(self) -> List[Dict[str, Any]]:
        ...

    async def submit_solution(
        self, actor_id: str, task_id: str, rows: List[List[str]]
    ) -> float:
        ...

    async def upload_key_object(
        self, bucket: str, path: str, content: str, *, upsert: bool = True
    ) -> None:
        ...

    async def remove_key_object(self, bucket: str, path: str) -> None:
        ...

    async def delete_task_key(self, task_id: str) -> None:
        ...

    async def delete_team(self, team_id: str) -> None:
        ...


class SingleFlight:
    """At most one run in flight; concurrent callers join the running one."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def run(self, factory: Callable[[], Awaitable[bool]]) -> bool:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._guarded(factory))
        else:
            logger.debug(f"{self.name} already in flight; joining it")
        # A cancelled caller must not cancel the shared run.
        return await asyncio.shield(self._task)

    async def _guarded(self, factory: Callable[[], Awaitable[bool]]) -> bool:
        try:
            return await factory()
        finally:
            self._task = None


class ScoreboardSync:
    def __init__(
        self,
        backend: ScoreboardBackend,
        *,
        user: SessionUser | None = None,
        notifier: Notifier | None = None,
        config: ContestConfig | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or DEFAULT_CONFIG
        self._user = user
        self.notifier = notifier or Notifier(self._config.notification_history)
        self._flow = SubmissionFlow(backend, config=self._config)

        self._teams: tuple[Team, ...] = ()
        self._tasks: tuple[Task, ...] = tuple(default_tasks(self._config))
        self._status: str = self._config.initial_status
        self._uploading: set[str] = set()
        self._tentative_deletions: dict[str, tuple[int, Task]] = {}
        self._listeners: list[ScoreboardListener] = []
        self.is_loading = False

        self._scoreboard_flight = SingleFlight("scoreboard refresh")
        self._task_status_flight = SingleFlight("task key status refresh")

        self._dispatch: dict[str, Callable[[str, Dict[str, Any]], Awaitable[None]]] = {
            "submissions": self._on_submission_change,
            "users": self._on_user_change,
            "task_keys": self._on_task_key_change,
        }

    # ==================== READ-ONLY VIEWS ====================

    @property
    def user(self) -> SessionUser | None:
        return self._user

    @property
    def teams(self) -> tuple[Team, ...]:
        return self._teams

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def contest_status(self) -> str:
        return self._status

    @property
    def uploading_tasks(self) -> frozenset[str]:
        return frozenset(self._uploading)

    @property
    def contest_stats(self) -> ContestStats:
        return compute_contest_stats(self._teams)

    @property
    def is_admin(self) -> bool:
        return self._user is not None and self._user.role == "admin"

    def subscribe(self, listener: ScoreboardListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ==================== SESSION ====================

    async def start(self) -> None:
        """Initial load for the current session user."""
        if self._user is None:
            self.is_loading = False
            self._publish(())
            return
        await asyncio.gather(self.refresh_scoreboard(), self.refresh_task_key_status())

    async def set_user(self, user: SessionUser | None) -> None:
        self._user = user
        await self.start()

    # ==================== REFRESH ====================

    def _publish(self, teams: Sequence[Team]) -> None:
        self._teams = tuple(teams)
        for listener in list(self._listeners):
            try:
                listener(self._teams)
            except Exception:
                logger.exception("Scoreboard listener failed")

    async def refresh_scoreboard(self) -> bool:
        """Fetch, rank and publish the full snapshot (single-flight).

        Returns True when a new snapshot was published.
        """
        return await self._scoreboard_flight.run(self._fetch_scoreboard)

    async def _fetch_scoreboard(self) -> bool:
        self.is_loading = True
        try:
            try:
                records = await self._backend.fetch_scoreboard()
                ranked = rank_teams(validate_scoreboard(records))
            except Exception as e:
                failure = SyncFailure(f"Failed to load scoreboard data: {e}")
                logger.warning(str(failure))
                self.notifier.notify("Failed to load scoreboard data.", "error")
                return False
            self._publish(ranked)
            logger.info(f"Published scoreboard snapshot with {len(ranked)} teams")
            return True
        finally:
            self.is_loading = False

    async def refresh_task_key_status(self) -> bool:
        """Sync every task's key_uploaded flag with the store (admins only)."""
        if not self.is_admin:
            logger.debug("Skipping task key status refresh for non-admin")
            return False
        return await self._task_status_flight.run(self._fetch_task_key_status)

    async def _fetch_task_key_status(self) -> bool:
        try:
            uploaded = validate_uploaded_key_ids(
                await self._backend.fetch_uploaded_task_keys()
            )
        except Exception as e:
            failure = SyncFailure(f"Failed to fetch task key status: {e}")
            logger.warning(str(failure))
            self.notifier.notify("Failed to fetch task key status.", "error")
            return False
        if any(task.key_uploaded != (task.id in uploaded) for task in self._tasks):
            self._tasks = tuple(
                replace(task, key_uploaded=task.id in uploaded) for task in self._tasks
            )
        return True

    # ==================== CHANGE FEED ====================

    async def handle_event(self, event: Dict[str, Any]) -> None:
        """Validate a raw feed event and dispatch it."""
        try:
            parsed = ValidatedChangeEvent.model_validate(event)
        except Exception as e:
            logger.warning(f"Ignoring malformed change event: {e}")
            return
        await self.on_change_notification(parsed.table, parsed.eventType, parsed.record)

    async def on_change_notification(
        self, table: str, change_kind: str, record: Dict[str, Any] | None = None
    ) -> None:
        handler = self._dispatch.get(table)
        if handler is None:
            logger.debug(f"No handler for {change_kind} on {table}")
            return
        await handler(change_kind, record or {})

    async def _on_submission_change(self, change_kind: str, record: Dict[str, Any]) -> None:
        logger.debug(f"Submission {change_kind} received")
        self.notifier.notify("Scoreboard updated", "info")
        await self.refresh_scoreboard()

    async def _on_user_change(self, change_kind: str, record: Dict[str, Any]) -> None:
        role = record.get("role")
        if role is not None and role != "contestant":
            logger.debug(f"Ignoring {change_kind} for non-contestant user")
            return
        await self.refresh_scoreboard()

    async def _on_task_key_change(self, change_kind: str, record: Dict[str, Any]) -> None:
        if not self.is_admin:
            return
        task_id = record.get("task_id")
        if not isinstance(task_id, str):
            logger.debug(f"Task key {change_kind} without task_id")
            return
        self._set_key_uploaded(task_id, change_kind != "DELETE")

    def _set_key_uploaded(self, task_id: str, uploaded: bool) -> None:
        self._tasks = tuple(
            replace(task, key_uploaded=uploaded) if task.id == task_id else task
            for task in self._tasks
        )

    # ==================== ANSWER KEYS ====================

    def begin_key_upload(self, task_id: str) -> bool:
        if task_id in self._uploading:
            return False
        self._uploading.add(task_id)
        return True

    def end_key_upload(self, task_id: str) -> None:
        self._uploading.discard(task_id)

    async def upload_task_key(self, task_id: str, content: str) -> bool:
        """
        Upload an answer key for ``task_id``.

        The content is validated first (MalformedInput/EmptyInput propagate
        before any transfer). The uploaded flag is left for the change feed.
        """
        if not self._require_admin():
            return False
        parse_task_key(content, self._config)
        if not self.begin_key_upload(task_id):
            logger.debug(f"Key upload for {task_id} already in progress")
            return False
        try:
            await self._backend.upload_key_object(
                self._config.key_bucket, key_object_path(task_id), content, upsert=True
            )
        except Exception as e:
            failure = UploadFailure(task_id, f"Error uploading key: {e}")
            logger.warning(f"{failure} (task {task_id})")
            self.notifier.notify(str(failure), "error")
            return False
        finally:
            self.end_key_upload(task_id)
        self.notifier.notify(f"Answer key for {task_id} uploaded.", "success")
        return True

    # ==================== SUBMISSIONS ====================

    async def submit_solution(self, task_id: str, content: str) -> float:
        try:
            score = await self._flow.submit(self._user, self._status, task_id, content)
        except LeaderboardError as e:
            self.notifier.notify(str(e), "error")
            raise
        self.notifier.notify(f"Submission for {task_id} received! Score: {score:.1f}", "success")
        return score

    # ==================== ADMIN ====================

    def _require_admin(self) -> bool:
        if self.is_admin:
            return True
        err = PreconditionFailed("admin_only", "This action is for administrators only.")
        logger.warning(f"Rejected admin action: {err.reason}")
        self.notifier.notify(str(err), "error")
        return False

    def update_contest_status(self, status: str) -> bool:
        if not self._require_admin():
            return False
        if status not in CONTEST_STATUSES:
            raise ValueError(f"status must be one of {CONTEST_STATUSES}, got {status}")
        self._status = status
        self.notifier.notify(f"Contest status updated to {status}.", "info")
        return True

    def _next_task_id(self) -> str:
        """T<n> one past the highest numbered id in use or pending deletion."""
        taken = {t.id for t in self._tasks} | set(self._tentative_deletions)
        numbers = [int(i[1:]) for i in taken if i[:1] == "T" and i[1:].isdigit()]
        return f"T{max(numbers, default=0) + 1}"

    def add_task(self, name: str) -> Task:
        task = ValidatedTask(id=self._next_task_id(), name=name).to_task()
        self._tasks = self._tasks + (task,)
        return task

    def update_task(self, task: Task) -> None:
        self._tasks = tuple(task if t.id == task.id else t for t in self._tasks)

    async def delete_task(self, task_id: str) -> bool:
        """Remove a task now, then delete its key; restore it if that fails."""
        if not self._require_admin():
            return False
        position = next((i for i, t in enumerate(self._tasks) if t.id == task_id), None)
        if position is None:
            return False
        self._tentative_deletions[task_id] = (position, self._tasks[position])
        self._tasks = tuple(t for t in self._tasks if t.id != task_id)

        try:
            await self._backend.delete_task_key(task_id)
        except Exception as e:
            logger.warning(f"Error deleting task assets for {task_id}: {e}")
            self._rollback_deletion(task_id)
            self.notifier.notify("Failed to delete task assets from server.", "error")
            return False

        try:
            await self._backend.remove_key_object(
                self._config.key_bucket, key_object_path(task_id)
            )
        except Exception as e:
            logger.warning(f"Could not delete {task_id} key from storage: {e}")
        self._tentative_deletions.pop(task_id, None)
        return True

    def _rollback_deletion(self, task_id: str) -> None:
        entry = self._tentative_deletions.pop(task_id, None)
        if entry is None or any(t.id == task_id for t in self._tasks):
            return
        position, task = entry
        tasks = list(self._tasks)
        tasks.insert(min(position, len(tasks)), task)
        self._tasks = tuple(tasks)

    def update_team(self, team: Team) -> None:
        """Local edit; the next refreshed snapshot supersedes it."""
        self._publish(rank_teams([team if t.id == team.id else t for t in self._teams]))

    async def delete_team(self, team_id: str) -> bool:
        if not self._require_admin():
            return False
        team = next((t for t in self._teams if t.id == team_id), None)
        if team is None:
            self.notifier.notify("Could not find the team to delete.", "error")
            return False
        try:
            await self._backend.delete_team(team.id)
        except Exception as e:
            logger.warning(f"Error deleting team {team_id}: {e}")
            self.notifier.notify("Failed to delete team.", "error")
            return False
        self.notifier.notify(f"Team {team.name} deleted.", "success")
        return True

    async def reset_contest(self) -> bool:
        if not self._require_admin():
            return False
        self._tasks = tuple(default_tasks(self._config))
        self._status = "Live"
        self.notifier.notify("Contest has been reset.", "info")
        await self.refresh_scoreboard()
        return True


__all__ = ["ScoreboardBackend", "ScoreboardSync", "SingleFlight"]
