"""Lenient CSV tokenizer shared by submission and answer-key ingestion.

The parser is a character-level state machine:
- CRLF and bare CR are normalized to LF, then the whole input is stripped.
- A quote at the start of a field opens a quoted section; inside it the
  delimiter and newlines are literal and a doubled quote is one quote.
- A quote after unquoted content is kept verbatim (malformed input is
  accepted, never rejected here; the row validator decides what is usable).
- The last row is flushed even without a trailing newline.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def parse_csv(text: str | None, delimiter: str = ",", quote: str = '"') -> List[List[str]]:
    """
    Parse delimited text into rows of fields.

    Args:
      text: raw file content; ``None`` and ``""`` yield no rows.
      delimiter: single-character field separator.
      quote: single-character quote.

    Returns:
      A list of rows, each a list of field strings. Never raises.

    Examples:
      - 'a,"b,c",d' -> [["a", "b,c", "d"]]
      - a quoted field with doubled quotes inside, such as he said ""hi"",
        yields one field with single quotes: he said "hi"
    """
    if not text:
        return []

    source = _normalize(text)
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False
    # An opened quote marks a field even when it closes empty.
    quoted = False

    i = 0
    n = len(source)
    while i < n:
        char = source[i]
        if in_quotes:
            if char == quote:
                if i + 1 < n and source[i + 1] == quote:
                    field.append(quote)
                    i += 1
                else:
                    in_quotes = False
            else:
                field.append(char)
        elif char == delimiter:
            row.append("".join(field))
            field = []
            quoted = False
        elif char == "\n":
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
            quoted = False
        elif char == quote:
            if not field:
                in_quotes = True
                quoted = True
            else:
                field.append(char)
        else:
            field.append(char)
        i += 1

    if row or field or quoted:
        row.append("".join(field))
        rows.append(row)

    return rows


def _needs_quoting(value: str, delimiter: str, quote: str) -> bool:
    if not value:
        return False
    if delimiter in value or quote in value or "\n" in value or "\r" in value:
        return True
    return value != value.strip()


def format_csv(
    rows: Iterable[Sequence[str]], delimiter: str = ",", quote: str = '"'
) -> str:
    """Serialize rows so that ``parse_csv`` reads them back unchanged.

    A row holding one empty field is written as a pair of quotes, otherwise
    the line would be blank and vanish when leading or trailing. A row with
    no fields at all has no text form and is written the same way.
    """
    lines: List[str] = []
    for row in rows:
        cells = []
        for value in row:
            value = "" if value is None else str(value)
            if _needs_quoting(value, delimiter, quote):
                value = quote + value.replace(quote, quote * 2) + quote
            cells.append(value)
        if cells in ([], [""]):
            cells = [quote * 2]
        lines.append(delimiter.join(cells))
    return "\n".join(lines)


__all__ = ["parse_csv", "format_csv"]
