"""Submission flow: role/phase/selection checks, parse, then external scoring.

No score is computed here and attempts/history are never touched; the
scoreboard learns the outcome from the change feed or the next refresh.
"""
from __future__ import annotations

import logging
from typing import List, Protocol

from .config import DEFAULT_CONFIG, ContestConfig
from .errors import PreconditionFailed, ScoringFailure
from .key_rows import parse_submission
from .types import SessionUser

logger = logging.getLogger(__name__)


class Scorer(Protocol):
    async def submit_solution(
        self, actor_id: str, task_id: str, rows: List[List[str]]
    ) -> float:
        ...


def check_preconditions(
    actor: SessionUser | None,
    status: str,
    task_id: str | None,
    content: str | None,
) -> None:
    """Raise ``PreconditionFailed`` for the first unmet condition.

    Order: contestant with a team, contest is Live, task and file selected.
    """
    if actor is None or actor.role != "contestant" or not actor.id or not actor.team_name:
        raise PreconditionFailed(
            "not_contestant", "You must be logged in as a contestant to submit."
        )
    if status != "Live":
        raise PreconditionFailed(
            "contest_not_live", f"Submissions are not open. Contest is {status}."
        )
    if not task_id or not content or not content.strip():
        raise PreconditionFailed(
            "missing_selection", "Please select a task and a file to submit."
        )


class SubmissionFlow:
    def __init__(self, scorer: Scorer, *, config: ContestConfig | None = None) -> None:
        self._scorer = scorer
        self._config = config or DEFAULT_CONFIG

    async def submit(
        self,
        actor: SessionUser | None,
        status: str,
        task_id: str | None,
        content: str | None,
    ) -> float:
        """
        Validate, parse and hand a solution file to the external scorer.

        Returns:
          The score reported by the scorer.

        Raises:
          PreconditionFailed: before any parsing.
          MalformedInput / EmptyInput: before any network call.
          ScoringFailure: the scorer failed.
        """
        check_preconditions(actor, status, task_id, content)
        rows = parse_submission(content, self._config)
        logger.debug(f"Submitting {len(rows)} rows for task {task_id} by {actor.id}")
        try:
            score = await self._scorer.submit_solution(actor.id, task_id, rows)
        except Exception as e:
            logger.warning(f"Scoring failed for task {task_id} by {actor.id}: {e}")
            raise ScoringFailure(str(e)) from e
        logger.info(f"Task {task_id} by {actor.id} scored {score}")
        return float(score)


__all__ = ["Scorer", "SubmissionFlow", "check_preconditions"]
