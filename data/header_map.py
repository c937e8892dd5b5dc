"""Header-driven column addressing for tables whose layout drifts.

Columns of the opportunity table get added and reordered by hand, so writes
address cells by header title instead of fixed offsets. The map is rebuilt
from row 1 on every write call.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from data.a1 import sheet_range

logger = logging.getLogger(__name__)


class HeaderMap:
    def __init__(self, offsets: Dict[str, int], width: int):
        self.offsets = offsets
        self.width = width

    @classmethod
    def from_header_row(cls, header_row: Iterable[Any]) -> "HeaderMap":
        """Index trimmed, non-empty titles; a repeated title keeps its first column."""
        offsets: Dict[str, int] = {}
        width = 0
        for index, title in enumerate(header_row):
            width = index + 1
            name = str(title).strip() if title is not None else ""
            if name and name not in offsets:
                offsets[name] = index
        return cls(offsets, width)

    @classmethod
    async def load(cls, sheets, spreadsheet_id: str, sheet_name: str, last_column: str = "ZZ") -> "HeaderMap":
        rows = await sheets.get(spreadsheet_id, sheet_range(sheet_name, f"A1:{last_column}1"))
        return cls.from_header_row(rows[0] if rows else [])

    def __contains__(self, name: str) -> bool:
        return name in self.offsets

    def offset(self, name: str) -> Optional[int]:
        return self.offsets.get(name)

    def pad(self, row: Optional[List[Any]]) -> List[Any]:
        """Copy of ``row`` extended with blanks to the header width."""
        padded = list(row or [])
        if len(padded) < self.width:
            padded.extend([""] * (self.width - len(padded)))
        return padded

    def set(self, row: List[Any], name: str, value: Any) -> bool:
        """Write ``value`` under header ``name``. Unknown headers are logged and skipped."""
        index = self.offsets.get(name)
        if index is None:
            logger.warning("Header '%s' not found; value not written", name)
            return False
        if index >= len(row):
            row.extend([""] * (index + 1 - len(row)))
        row[index] = "" if value is None else value
        return True

    def apply(self, row: List[Any], values: Mapping[str, Any]) -> List[str]:
        """Set every ``header -> value`` pair; returns the headers that were skipped."""
        return [name for name, value in values.items() if not self.set(row, name, value)]

    def read(self, row: List[Any], name: str) -> str:
        index = self.offsets.get(name)
        if index is None or index >= len(row):
            return ""
        value = row[index]
        return "" if value is None else str(value).strip()
