"""
Row-value source backed by a worksheet grid.

``ExcelSheet`` is what readers resolve columns against: it knows the column
headings, turns a column name or index into a column index, and renders the
raw value of any data cell as text.  Workbooks are read with ``openpyxl``;
any other grid (lists of lists) works the same way.
"""

from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

import openpyxl
from openpyxl.worksheet.worksheet import Worksheet
from rapidfuzz import fuzz, process

from sheet_mapper.config import SheetConfig
from sheet_mapper.errors import RowNotFoundError
from sheet_mapper.logging_setup import get_logger

logger = get_logger("sheet")

ColumnKey = Union[str, int]


class RowValueSource(Protocol):
    """What readers need from a sheet."""

    @property
    def headings(self) -> Sequence[str]: ...

    def resolve_column(self, key: ColumnKey) -> Optional[int]: ...

    def column_name(self, column_index: int) -> Optional[str]: ...

    def cell_text(self, row_index: int, column_index: int) -> Optional[str]:
        """Text of a cell; raises ``RowNotFoundError`` for a row past the sheet."""


def cell_to_text(value: Any) -> Optional[str]:
    """Render a raw cell value the way a reader sees it."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class ExcelSheet:
    """A sheet of rows, optionally topped by a heading row.

    Parameters
    ----------
    name:
        Sheet name, used in log messages.
    rows:
        The full grid of raw cell values, heading row included.
    config:
        Heading detection settings.
    """

    def __init__(
        self,
        name: str,
        rows: Sequence[Sequence[Any]],
        config: Optional[SheetConfig] = None,
    ) -> None:
        self.name = name
        self._config = config or SheetConfig()

        grid = [list(r) for r in rows]
        self._headings: List[str] = []
        if self._config.has_heading:
            idx = self._config.heading_index
            if idx < len(grid):
                self._headings = [
                    (cell_to_text(v) or "").strip() for v in grid[idx]
                ]
            self._rows = grid[idx + 1:]
        else:
            self._rows = grid

        self._name_index: Dict[str, int] = {}
        for i, heading in enumerate(self._headings):
            # First occurrence wins for duplicated headings.
            if heading and heading not in self._name_index:
                self._name_index[heading] = i

        widths = [len(r) for r in self._rows] + [len(self._headings)]
        self._column_count = max(widths) if widths else 0

    # ------------------------------------------------------------------ #
    # Construction from openpyxl
    # ------------------------------------------------------------------ #

    @classmethod
    def from_worksheet(
        cls, ws: Worksheet, config: Optional[SheetConfig] = None
    ) -> "ExcelSheet":
        """Snapshot an openpyxl worksheet into an ``ExcelSheet``."""
        rows = [
            list(row)
            for row in ws.iter_rows(
                min_row=1, max_row=ws.max_row, max_col=ws.max_column,
                values_only=True,
            )
        ]
        return cls(ws.title, rows, config)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        sheet_name: Optional[str] = None,
        config: Optional[SheetConfig] = None,
    ) -> "ExcelSheet":
        """Read one sheet (the active one by default) from an .xlsx file."""
        wb = openpyxl.load_workbook(Path(path), data_only=True)
        try:
            ws = wb[sheet_name] if sheet_name is not None else wb.active
            sheet = cls.from_worksheet(ws, config)
        finally:
            wb.close()
        logger.info(
            "Loaded sheet '%s' from %s (%d data rows x %d cols)",
            sheet.name, path, sheet.row_count, sheet.column_count,
        )
        return sheet

    # ------------------------------------------------------------------ #
    # Row-value source API
    # ------------------------------------------------------------------ #

    @property
    def headings(self) -> List[str]:
        return list(self._headings)

    @property
    def has_heading(self) -> bool:
        return self._config.has_heading

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return self._column_count

    def resolve_column(self, key: ColumnKey) -> Optional[int]:
        """Return the column index for a heading name or index, or ``None``."""
        if isinstance(key, bool):
            return None
        if isinstance(key, int):
            return key if 0 <= key < self._column_count else None
        return self._name_index.get(key.strip())

    def column_name(self, column_index: int) -> Optional[str]:
        if 0 <= column_index < len(self._headings):
            return self._headings[column_index] or None
        return None

    def cell_text(self, row_index: int, column_index: int) -> Optional[str]:
        """Text of a data cell; ``None`` for an empty cell or a short row."""
        if not 0 <= row_index < len(self._rows):
            raise RowNotFoundError(row_index, len(self._rows))
        row = self._rows[row_index]
        if not 0 <= column_index < len(row):
            return None
        return cell_to_text(row[column_index])

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #

    def suggest_columns(
        self, name: str, threshold: float = 80.0, limit: int = 3
    ) -> List[str]:
        """Headings that closely resemble *name*, best match first."""
        choices = [h for h in self._headings if h]
        if not choices or not name:
            return []
        matches = process.extract(
            name.strip().lower(),
            {h: h.lower() for h in choices},
            scorer=fuzz.ratio,
            limit=limit,
        )
        suggestions = [key for _, score, key in matches if score >= threshold]
        logger.debug("Column suggestions for %r: %s", name, suggestions)
        return suggestions

    def __repr__(self) -> str:
        return (
            f"ExcelSheet(name={self.name!r}, rows={self.row_count}, "
            f"columns={self.column_count})"
        )
