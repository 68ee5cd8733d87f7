"""Failure taxonomy for parsing, submission and scoreboard synchronization."""
from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for every failure raised by leaderboard_core."""


class MalformedInput(LeaderboardError, ValueError):
    """A parsed row has fewer columns than required."""

    def __init__(self, min_columns: int, row_index: int | None = None) -> None:
        self.min_columns = min_columns
        self.row_index = row_index
        where = f" (row {row_index})" if row_index is not None else ""
        super().__init__(
            f"Some rows are malformed{where}. Expected at least {min_columns} columns."
        )


class EmptyInput(LeaderboardError, ValueError):
    """No data rows remain after the header row is stripped."""

    def __init__(self, message: str = "File is empty or has no data rows.") -> None:
        super().__init__(message)


class PreconditionFailed(LeaderboardError):
    """Wrong role, wrong contest phase or missing selection."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or reason)


class SyncFailure(LeaderboardError):
    """A full scoreboard refresh or a task-key status fetch failed."""


class UploadFailure(LeaderboardError):
    """An answer-key file could not be transported to object storage."""

    def __init__(self, task_id: str, message: str | None = None) -> None:
        self.task_id = task_id
        super().__init__(message or f"Error uploading key for {task_id}")


class ScoringFailure(LeaderboardError):
    """The external scoring procedure rejected or failed a submission."""


__all__ = [
    "LeaderboardError",
    "MalformedInput",
    "EmptyInput",
    "PreconditionFailed",
    "SyncFailure",
    "UploadFailure",
    "ScoringFailure",
]
