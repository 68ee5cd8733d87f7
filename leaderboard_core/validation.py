"""
Record validation schemas using Pydantic v2
Validates scoreboard snapshots, change-feed events and session users
"""

import logging
import math
from typing import Any, Dict, List, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import (
    CHANGE_KINDS,
    SessionUser,
    Submission,
    SubmissionAttempt,
    Task,
    Team,
)

logger = logging.getLogger(__name__)


class RecordSanitizer:
    """Utility class for display-name sanitization"""

    @staticmethod
    def clean_name(value: Any, limit: int) -> str:
        """Display name without NULs or outer whitespace, at most ``limit`` chars"""
        text = value if isinstance(value, str) else str(value)
        return text.replace("\0", "").strip()[:limit]

    @staticmethod
    def sanitize_team_name(name: Any) -> str:
        return RecordSanitizer.clean_name(name, 255)

    @staticmethod
    def sanitize_task_name(name: Any) -> str:
        return RecordSanitizer.clean_name(name, 100)


class ValidatedAttempt(BaseModel):
    score: float
    timestamp: int = Field(..., ge=0)

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("attempt score must be finite")
        return v


class ValidatedSubmission(BaseModel):
    """One (team, task) submission row from the scoreboard snapshot"""

    taskId: str = Field(..., min_length=1, max_length=64)
    score: Optional[float] = None
    attempts: int = Field(0, ge=0)
    # Accepted for compatibility, always recomputed by the ranking engine.
    isBestScore: bool = False
    history: List[ValidatedAttempt] = Field(default_factory=list)

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not math.isfinite(v):
            raise ValueError("score must be finite")
        return v

    @model_validator(mode="after")
    def validate_attempts(self) -> Self:
        if self.score is not None and self.attempts < 1:
            raise ValueError(f"task {self.taskId}: a scored submission needs attempts >= 1")
        stamps = [a.timestamp for a in self.history]
        if stamps != sorted(stamps):
            raise ValueError(f"task {self.taskId}: history must be ordered by timestamp")
        return self

    def to_submission(self) -> Submission:
        return Submission(
            task_id=self.taskId,
            score=self.score,
            attempts=self.attempts,
            is_best_score=False,
            history=tuple(
                SubmissionAttempt(score=a.score, timestamp=a.timestamp) for a in self.history
            ),
        )


class ValidatedTeamRecord(BaseModel):
    """A team row of the full snapshot (store field ``teamName`` maps to ``name``)"""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., alias="teamName", max_length=255)
    solved: int = Field(0, ge=0)
    totalScore: float = 0.0
    rank: Optional[int] = None
    submissions: List[ValidatedSubmission] = Field(default_factory=list)
    lastSolveTimestamp: Optional[int] = None
    apiUserId: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Store ids may be numeric or uuid.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v: Any) -> str:
        return RecordSanitizer.sanitize_team_name("" if v is None else v)

    @field_validator("totalScore")
    @classmethod
    def validate_total(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("totalScore must be finite")
        return v

    @model_validator(mode="after")
    def validate_unique_tasks(self) -> Self:
        seen: set[str] = set()
        for sub in self.submissions:
            if sub.taskId in seen:
                raise ValueError(f"team {self.id}: duplicate submission for task {sub.taskId}")
            seen.add(sub.taskId)
        return self

    def to_team(self) -> Team:
        return Team(
            id=self.id,
            name=self.name,
            solved=self.solved,
            total_score=self.totalScore,
            rank=0,
            submissions=tuple(s.to_submission() for s in self.submissions),
            last_solve_timestamp=self.lastSolveTimestamp,
            api_user_id=self.apiUserId,
        )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ValidatedTask(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=100)
    keyVisibility: str = Field("private", pattern="^(public|private)$")
    keyUploaded: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v: Any) -> str:
        v = RecordSanitizer.sanitize_task_name("" if v is None else v)
        if not v:
            raise ValueError("task name cannot be empty")
        return v

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            name=self.name,
            key_visibility=self.keyVisibility,  # type: ignore[arg-type]
            key_uploaded=self.keyUploaded,
        )


class ValidatedSessionUser(BaseModel):
    """Identity supplied by the session provider"""

    id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., pattern="^(admin|contestant)$")
    teamName: str = Field("", max_length=255)

    def to_user(self) -> SessionUser:
        return SessionUser(
            id=self.id,
            username=self.username,
            role=self.role,  # type: ignore[arg-type]
            team_name=RecordSanitizer.sanitize_team_name(self.teamName),
        )

    model_config = ConfigDict(extra="ignore")


class ValidatedChangeEvent(BaseModel):
    """Realtime row-change notification"""

    table: str = Field(..., min_length=1, max_length=64)
    eventType: str
    new: Dict[str, Any] = Field(default_factory=dict)
    old: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("eventType")
    @classmethod
    def validate_event_type(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in CHANGE_KINDS:
            raise ValueError(f"eventType must be one of {CHANGE_KINDS}, got {v}")
        return v

    @property
    def record(self) -> Dict[str, Any]:
        return self.old if self.eventType == "DELETE" else self.new

    model_config = ConfigDict(extra="ignore")


def validate_scoreboard(records: Any) -> List[Team]:
    """
    Validate a full scoreboard snapshot

    Returns:
        List[Team]: unranked teams in store order

    Raises:
        ValueError: If the snapshot is not a list or any record is invalid
    """
    if not isinstance(records, list):
        raise ValueError(f"scoreboard snapshot must be a list, got {type(records).__name__}")
    teams: List[Team] = []
    seen: set[str] = set()
    for i, record in enumerate(records):
        try:
            team = ValidatedTeamRecord.model_validate(record).to_team()
        except Exception as e:
            logger.warning(f"Scoreboard record {i} rejected: {e}")
            raise ValueError(f"Invalid scoreboard record {i}: {str(e)}")
        if team.id in seen:
            raise ValueError(f"Invalid scoreboard record {i}: duplicate team id {team.id}")
        seen.add(team.id)
        teams.append(team)
    return teams


def validate_uploaded_key_ids(records: Any) -> set[str]:
    """Extract task ids from the uploaded-keys snapshot"""
    if not isinstance(records, list):
        raise ValueError(f"task key snapshot must be a list, got {type(records).__name__}")
    ids: set[str] = set()
    for record in records:
        if isinstance(record, dict) and isinstance(record.get("task_id"), str):
            ids.add(record["task_id"])
        elif isinstance(record, str):
            ids.add(record)
        else:
            raise ValueError(f"invalid task key record: {record!r}")
    return ids


def validate_session_user(data: Dict[str, Any]) -> SessionUser:
    try:
        return ValidatedSessionUser.model_validate(data).to_user()
    except Exception as e:
        logger.warning(f"Session user validation failed: {e}")
        raise ValueError(f"Invalid session user: {str(e)}")


# ==================== EXPORT ====================

__all__ = [
    "RecordSanitizer",
    "ValidatedAttempt",
    "ValidatedSubmission",
    "ValidatedTeamRecord",
    "ValidatedTask",
    "ValidatedSessionUser",
    "ValidatedChangeEvent",
    "validate_scoreboard",
    "validate_uploaded_key_ids",
    "validate_session_user",
]
