from .config import ContestConfig, DEFAULT_CONFIG, default_tasks
from .csv_parser import format_csv, parse_csv
from .errors import (
    EmptyInput,
    LeaderboardError,
    MalformedInput,
    PreconditionFailed,
    ScoringFailure,
    SyncFailure,
    UploadFailure,
)
from .key_rows import (
    key_object_path,
    parse_submission,
    parse_task_key,
    task_id_from_key_path,
    validate_rows,
)
from .notifications import Notification, Notifier
from .ranking import ContestStats, best_scores_by_task, compute_contest_stats, rank_teams
from .submission import Scorer, SubmissionFlow, check_preconditions
from .sync import ScoreboardBackend, ScoreboardSync, SingleFlight
from .types import (
    ChangeEvent,
    ContestStatus,
    ScoreboardRecord,
    SessionUser,
    Submission,
    SubmissionAttempt,
    SubmissionRecord,
    Task,
    TaskKeyRecord,
    Team,
)
from .validation import RecordSanitizer, validate_scoreboard, validate_session_user

__all__ = [
    "ContestConfig",
    "DEFAULT_CONFIG",
    "default_tasks",
    "format_csv",
    "parse_csv",
    "EmptyInput",
    "LeaderboardError",
    "MalformedInput",
    "PreconditionFailed",
    "ScoringFailure",
    "SyncFailure",
    "UploadFailure",
    "key_object_path",
    "parse_submission",
    "parse_task_key",
    "task_id_from_key_path",
    "validate_rows",
    "Notification",
    "Notifier",
    "ContestStats",
    "best_scores_by_task",
    "compute_contest_stats",
    "rank_teams",
    "Scorer",
    "SubmissionFlow",
    "check_preconditions",
    "ScoreboardBackend",
    "ScoreboardSync",
    "SingleFlight",
    "ChangeEvent",
    "ContestStatus",
    "ScoreboardRecord",
    "SessionUser",
    "Submission",
    "SubmissionAttempt",
    "SubmissionRecord",
    "Task",
    "TaskKeyRecord",
    "Team",
    "RecordSanitizer",
    "validate_scoreboard",
    "validate_session_user",
]
