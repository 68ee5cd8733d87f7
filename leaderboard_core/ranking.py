"""Scoreboard ranking engine.

Single source of truth for rank and best-score markers:
- Task scope comes from the submissions themselves, not the task registry.
- Best score per task = max non-null score; every exact match is marked.
- Order: total score desc, then last solve time asc (missing sorts last),
  then input order. Ranks are 1..N with no shared positions.

The function is pure and idempotent; it runs on every published snapshot.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import replace
from typing import Sequence

from .types import Submission, Team


@dataclass(frozen=True)
class ContestStats:
    total_submissions: int
    highest_score: float
    avg_attempts: float


def _collect_task_ids(teams: Sequence[Team]) -> list[str]:
    seen: dict[str, None] = {}
    for team in teams:
        for sub in team.submissions:
            seen.setdefault(sub.task_id, None)
    return list(seen)


def best_scores_by_task(teams: Sequence[Team]) -> dict[str, float]:
    """Max non-null score per task; tasks nobody scored on are absent."""
    best: dict[str, float] = {}
    for task_id in _collect_task_ids(teams):
        scores = [
            sub.score
            for team in teams
            if (sub := team.submission_for(task_id)) is not None and sub.score is not None
        ]
        if scores:
            best[task_id] = max(scores)
    return best


def _mark_best(sub: Submission, best: dict[str, float]) -> Submission:
    # Exact equality: scores arrive with fixed precision from the scorer.
    is_best = sub.score is not None and sub.task_id in best and sub.score == best[sub.task_id]
    if sub.is_best_score == is_best:
        return sub
    return replace(sub, is_best_score=is_best)


def _team_sort_key(team: Team) -> tuple[float, float]:
    ts = team.last_solve_timestamp
    return (-float(team.total_score), math.inf if ts is None else float(ts))


def rank_teams(teams: Sequence[Team]) -> tuple[Team, ...]:
    """
    Recompute best-score markers and ranks for a full snapshot.

    Args:
      teams: every team with its submissions, in store order.

    Returns:
      New ``Team`` values sorted by rank (1-based, dense, unique).
    """
    best = best_scores_by_task(teams)
    marked = [
        replace(team, submissions=tuple(_mark_best(sub, best) for sub in team.submissions))
        for team in teams
    ]
    # list.sort is stable: full ties keep their input order.
    marked.sort(key=_team_sort_key)
    return tuple(replace(team, rank=pos + 1) for pos, team in enumerate(marked))


def compute_contest_stats(teams: Sequence[Team]) -> ContestStats:
    """Aggregate header numbers: attempts, top score, attempts per solved task."""
    total_submissions = 0
    highest_score = 0.0
    solved_count = 0
    solved_attempts = 0
    for team in teams:
        for sub in team.submissions:
            total_submissions += sub.attempts
            if sub.score is None:
                continue
            if sub.score > highest_score:
                highest_score = float(sub.score)
            if sub.score > 0:
                solved_count += 1
                solved_attempts += sub.attempts
    avg_attempts = solved_attempts / solved_count if solved_count > 0 else 0.0
    return ContestStats(
        total_submissions=total_submissions,
        highest_score=highest_score,
        avg_attempts=avg_attempts,
    )


__all__ = [
    "ContestStats",
    "best_scores_by_task",
    "compute_contest_stats",
    "rank_teams",
]
