"""Row rules for answer keys and submissions (header strip + column minimum)."""
from __future__ import annotations

import logging
from typing import List, Sequence

from .config import DEFAULT_CONFIG, ContestConfig
from .csv_parser import parse_csv
from .errors import EmptyInput, MalformedInput

logger = logging.getLogger(__name__)


def _is_header(row: Sequence[str], header_token: str) -> bool:
    return bool(row) and row[0].lower() == header_token.lower()


def validate_rows(
    rows: Sequence[Sequence[str]],
    *,
    header_token: str = DEFAULT_CONFIG.header_token,
    min_columns: int = DEFAULT_CONFIG.min_columns,
) -> List[List[str]]:
    """
    Strip an optional header row and enforce the column minimum.

    Args:
      rows: output of ``parse_csv``.
      header_token: first-column value identifying a header row.
      min_columns: minimum number of fields per data row.

    Returns:
      The data rows (header removed) as new lists.

    Raises:
      EmptyInput: no data rows remain.
      MalformedInput: a data row has fewer than ``min_columns`` fields.
    """
    data = [list(row) for row in rows]
    if data and _is_header(data[0], header_token):
        data = data[1:]
    if not data:
        raise EmptyInput()
    for idx, row in enumerate(data):
        if len(row) < min_columns:
            logger.debug(f"Row {idx} has {len(row)} columns, expected {min_columns}")
            raise MalformedInput(min_columns, row_index=idx)
    return data


def _parse_and_validate(text: str | None, config: ContestConfig) -> List[List[str]]:
    rows = parse_csv(text, delimiter=config.delimiter, quote=config.quote)
    return validate_rows(
        rows, header_token=config.header_token, min_columns=config.min_columns
    )


def parse_task_key(text: str | None, config: ContestConfig | None = None) -> List[List[str]]:
    """Parse an answer-key file (category_id,content,overall_band_score)."""
    return _parse_and_validate(text, config or DEFAULT_CONFIG)


def parse_submission(text: str | None, config: ContestConfig | None = None) -> List[List[str]]:
    """Parse a contestant's solution file. Same rules as answer keys."""
    return _parse_and_validate(text, config or DEFAULT_CONFIG)


def key_object_path(task_id: str) -> str:
    return f"{task_id}.csv"


def task_id_from_key_path(path: str | None) -> str | None:
    """Map a stored key object name back to its task id.

    Examples:
        - "T3.csv" -> "T3"
        - "keys/T3.csv" -> "T3"
        - ".emptyFolderPlaceholder" -> None
        - "" -> None
    """
    if not path:
        return None
    name = path.rsplit("/", 1)[-1]
    if name.startswith("."):
        return None
    task_id = name.split(".", 1)[0].strip()
    return task_id or None


__all__ = [
    "validate_rows",
    "parse_task_key",
    "parse_submission",
    "key_object_path",
    "task_id_from_key_path",
]
