"""
Contest configuration using Pydantic v2
Covers CSV dialect, key storage and controller defaults
"""

import logging
from typing import List, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import CONTEST_STATUSES, Task

logger = logging.getLogger(__name__)


class ContestConfig(BaseModel):
    """Settings shared by the parser, the row validator and the controllers"""

    delimiter: str = Field(",", min_length=1, max_length=1, description="Field separator")
    quote: str = Field('"', min_length=1, max_length=1, description="Quote character")
    header_token: str = Field(
        "category_id",
        min_length=1,
        max_length=100,
        description="First column of an optional header row (case-insensitive)",
    )
    min_columns: int = Field(3, ge=1, le=100, description="Minimum columns per data row")
    key_bucket: str = Field(
        "task-keys", min_length=1, max_length=63, description="Object storage bucket"
    )
    default_task_count: int = Field(8, ge=1, le=26, description="Tasks after a reset")
    initial_status: str = Field("Live", description="Contest phase on start")
    notification_history: int = Field(
        50, ge=1, le=1000, description="Notifications kept in memory"
    )

    @field_validator("delimiter", "quote")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Newlines are record separators and cannot be reused"""
        if v in ("\n", "\r"):
            raise ValueError("newline characters cannot be used as delimiter or quote")
        return v

    @field_validator("header_token")
    @classmethod
    def validate_header_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("header_token cannot be empty")
        return v

    @field_validator("initial_status")
    @classmethod
    def validate_initial_status(cls, v: str) -> str:
        if v not in CONTEST_STATUSES:
            raise ValueError(f"initial_status must be one of {CONTEST_STATUSES}, got {v}")
        return v

    @model_validator(mode="after")
    def validate_dialect(self) -> Self:
        if self.delimiter == self.quote:
            raise ValueError("delimiter and quote must differ")
        return self

    model_config = ConfigDict(frozen=True, extra="forbid")


DEFAULT_CONFIG = ContestConfig()


def default_tasks(config: ContestConfig | None = None) -> List[Task]:
    """Build the initial task list: T1..Tn named "Task A".."Task H" etc.

    Every task starts private with no answer key uploaded.
    """
    count = (config or DEFAULT_CONFIG).default_task_count
    tasks = [
        Task(id=f"T{i + 1}", name=f"Task {chr(65 + i)}", key_visibility="private")
        for i in range(count)
    ]
    logger.debug(f"Built {len(tasks)} default tasks")
    return tasks


__all__ = [
    "ContestConfig",
    "DEFAULT_CONFIG",
    "default_tasks",
]
