"""A1-notation helpers for addressing sheet ranges."""
import re
from typing import NamedTuple, Optional

_SIMPLE_TITLE_RE = re.compile(r"^[A-Za-z0-9_]+$")
_RANGE_RE = re.compile(r"^([A-Za-z]*)(\d*)(?::([A-Za-z]*)(\d*))?$")


class A1Range(NamedTuple):
    sheet: str
    start_col: Optional[int]
    start_row: Optional[int]
    end_col: Optional[int]
    end_row: Optional[int]


def column_letter(index: int) -> str:
    """0-based column index -> letters (0 -> A, 26 -> AA)."""
    index += 1
    label = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(65 + remainder) + label
    return label


def column_index(letters: str) -> int:
    """Column letters -> 0-based index (A -> 0, AA -> 26)."""
    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - 64)
    return index - 1


def quote_sheet(title: str) -> str:
    """Return a worksheet title safely formatted for A1 notation."""
    normalised = (title or "").strip()
    if _SIMPLE_TITLE_RE.fullmatch(normalised):
        return normalised
    escaped = normalised.replace("'", "''")
    return f"'{escaped}'"


def sheet_range(sheet: str, spec: str) -> str:
    return f"{quote_sheet(sheet)}!{spec}"


def column_span(sheet: str, last_column: str, first_column: str = "A") -> str:
    """Whole-column range, e.g. ``'公司總表'!A:M``."""
    return sheet_range(sheet, f"{first_column}:{last_column}")


def row_span(sheet: str, row_index: int, last_column: str, first_column: str = "A") -> str:
    """Single-row range, e.g. ``'公司總表'!A5:M5``."""
    return sheet_range(sheet, f"{first_column}{row_index}:{last_column}{row_index}")


def cell(sheet: str, column: str, row_index: int) -> str:
    return sheet_range(sheet, f"{column}{row_index}")


def parse_range(a1: str) -> A1Range:
    """Split an A1 range into sheet title and 0-based column / 1-based row bounds.

    Open bounds (``A:M`` has no rows, ``Sheet`` alone has nothing) are None.
    A single cell such as ``Y7`` comes back with equal start and end.
    """
    if "!" in a1:
        sheet_part, _, spec = a1.rpartition("!")
    else:
        sheet_part, spec = a1, ""
    sheet_part = sheet_part.strip()
    if len(sheet_part) >= 2 and sheet_part[0] == "'" and sheet_part[-1] == "'":
        sheet_part = sheet_part[1:-1].replace("''", "'")

    if not spec:
        return A1Range(sheet_part, None, None, None, None)

    match = _RANGE_RE.match(spec.strip())
    if not match:
        raise ValueError(f"Unsupported A1 range: {a1}")
    start_letters, start_digits, end_letters, end_digits = match.groups()

    start_col = column_index(start_letters) if start_letters else None
    start_row = int(start_digits) if start_digits else None
    if end_letters is None and end_digits is None:
        return A1Range(sheet_part, start_col, start_row, start_col, start_row)
    end_col = column_index(end_letters) if end_letters else None
    end_row = int(end_digits) if end_digits else None
    return A1Range(sheet_part, start_col, start_row, end_col, end_row)


def first_row_of(a1: Optional[str]) -> Optional[int]:
    """Starting row of an ``updatedRange`` returned by an append, if any."""
    if not a1:
        return None
    try:
        return parse_range(a1).start_row
    except ValueError:
        return None
