"""Type definitions for teams, tasks, submissions and change-feed records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Optional, TypedDict


ContestStatus = Literal["Not Started", "Live", "Finished"]
ChangeKind = Literal["INSERT", "UPDATE", "DELETE"]
KeyVisibility = Literal["public", "private"]
Role = Literal["admin", "contestant"]

CONTEST_STATUSES: tuple[str, ...] = ("Not Started", "Live", "Finished")
CHANGE_KINDS: tuple[str, ...] = ("INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class SubmissionAttempt:
    score: float
    timestamp: int


@dataclass(frozen=True)
class Submission:
    task_id: str
    score: float | None = None
    attempts: int = 0
    # Derived by the ranking engine; any incoming value is overwritten.
    is_best_score: bool = False
    history: tuple[SubmissionAttempt, ...] = ()


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    solved: int = 0
    total_score: float = 0.0
    rank: int = 0
    submissions: tuple[Submission, ...] = ()
    last_solve_timestamp: int | None = None
    api_user_id: str | None = None

    def submission_for(self, task_id: str) -> Submission | None:
        for sub in self.submissions:
            if sub.task_id == task_id:
                return sub
        return None


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    key_visibility: KeyVisibility = "private"
    key_uploaded: bool = False


@dataclass(frozen=True)
class SessionUser:
    id: str
    username: str
    role: Role
    team_name: str = ""


class SubmissionAttemptRecord(TypedDict):
    score: float
    timestamp: int


class SubmissionRecord(TypedDict, total=False):
    """A submission as returned by the hosted scoreboard procedure."""
    taskId: str
    score: Optional[float]
    attempts: int
    isBestScore: bool
    history: List[SubmissionAttemptRecord]


class ScoreboardRecord(TypedDict, total=False):
    """
    One team row of the full scoreboard snapshot.

    The store names the display field ``teamName``; ``rank`` and
    ``isBestScore`` are ignored and recomputed locally.
    """
    id: str
    teamName: str
    solved: int
    totalScore: float
    rank: int
    submissions: List[SubmissionRecord]
    lastSolveTimestamp: Optional[int]
    apiUserId: Optional[str]


class TaskKeyRecord(TypedDict, total=False):
    task_id: str


class ChangeEvent(TypedDict, total=False):
    """Row-level change delivered by the realtime feed."""
    table: str
    eventType: str
    new: dict[str, Any]
    old: dict[str, Any]
