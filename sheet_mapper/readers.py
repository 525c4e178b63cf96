"""
Cell Value Readers.

Readers locate the raw cells a field is built from.  There are three
strategies, each tagged with a ``ReaderKind``:

* **single column**: one cell, by heading name or by column index;
* **multi column**: one cell per listed column, in the listed order;
* **split cell**: one cell, whose text is split on a set of separators
  into several values that share the cell's row and column.

A reader that cannot resolve one of its columns returns ``None``; turning
that into an error that names the field is the caller's job.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sheet_mapper.config import MapperConfig
from sheet_mapper.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    NullConfigurationError,
)
from sheet_mapper.logging_setup import get_logger
from sheet_mapper.schema import RawCell, ReaderKind, SplitOptions
from sheet_mapper.sheet import RowValueSource

logger = get_logger("readers")

ColumnKey = Union[str, int]


def _read_cell(
    sheet: RowValueSource, row_index: int, key: ColumnKey
) -> Optional[RawCell]:
    column_index = sheet.resolve_column(key)
    if column_index is None:
        return None
    return RawCell(
        row_index=row_index,
        column_index=column_index,
        column_name=sheet.column_name(column_index),
        text=sheet.cell_text(row_index, column_index),
    )


def _check_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise ConfigurationError(f"Column index must be an int, got {index!r}")
    if index < 0:
        raise ConfigurationError(f"Column index must be >= 0, got {index}")
    return index


# ---------------------------------------------------------------------------
# Single cell readers
# ---------------------------------------------------------------------------

class CellValueReader(ABC):
    """Locates exactly one cell in a row."""

    kind = ReaderKind.SINGLE_COLUMN

    @property
    @abstractmethod
    def key(self) -> ColumnKey:
        """The column name or index this reader looks up."""

    def try_get_value(
        self, sheet: RowValueSource, row_index: int
    ) -> Optional[RawCell]:
        """Return the located cell, or ``None`` if the column does not exist."""
        return _read_cell(sheet, row_index, self.key)

    def missing_columns(self, sheet: RowValueSource) -> List[ColumnKey]:
        return [] if sheet.resolve_column(self.key) is not None else [self.key]


class ColumnNameValueReader(CellValueReader):
    """Reads the cell under the heading *column_name*."""

    def __init__(self, column_name: str) -> None:
        if column_name is None:
            raise NullConfigurationError("column_name must not be None")
        if not column_name.strip():
            raise NullConfigurationError("column_name must not be empty")
        self.column_name = column_name

    @property
    def key(self) -> str:
        return self.column_name

    def __repr__(self) -> str:
        return f"ColumnNameValueReader({self.column_name!r})"


class ColumnIndexValueReader(CellValueReader):
    """Reads the cell at zero-based *column_index*."""

    def __init__(self, column_index: int) -> None:
        self.column_index = _check_index(column_index)

    @property
    def key(self) -> int:
        return self.column_index

    def __repr__(self) -> str:
        return f"ColumnIndexValueReader({self.column_index})"


# ---------------------------------------------------------------------------
# Multiple cell readers
# ---------------------------------------------------------------------------

class MultipleCellValuesReader(ABC):
    """Locates an ordered list of cells in a row."""

    kind: ReaderKind

    @abstractmethod
    def try_get_values(
        self, sheet: RowValueSource, row_index: int
    ) -> Optional[List[RawCell]]:
        """Return the located cells, or ``None`` if a column does not exist."""

    @abstractmethod
    def missing_columns(self, sheet: RowValueSource) -> List[ColumnKey]:
        """The configured columns that do not resolve on *sheet*."""


class _MultipleColumnsValueReader(MultipleCellValuesReader):
    kind = ReaderKind.MULTI_COLUMN

    def __init__(self, keys: Sequence[ColumnKey]) -> None:
        self._keys: Tuple[ColumnKey, ...] = tuple(keys)

    def try_get_values(
        self, sheet: RowValueSource, row_index: int
    ) -> Optional[List[RawCell]]:
        cells: List[RawCell] = []
        for key in self._keys:
            cell = _read_cell(sheet, row_index, key)
            if cell is None:
                logger.debug("Column %r not found on row %d", key, row_index)
                return None
            cells.append(cell)
        return cells

    def missing_columns(self, sheet: RowValueSource) -> List[ColumnKey]:
        return [k for k in self._keys if sheet.resolve_column(k) is None]


class MultipleColumnNamesValueReader(_MultipleColumnsValueReader):
    """Reads one cell from each named column."""

    def __init__(self, column_names: Iterable[str]) -> None:
        if column_names is None:
            raise NullConfigurationError("column_names must not be None")
        names = list(column_names)
        if not names:
            raise NullConfigurationError("column_names must not be empty")
        for name in names:
            if name is None:
                raise NullConfigurationError(
                    "column_names must not contain None"
                )
        super().__init__(names)

    @property
    def column_names(self) -> List[str]:
        return list(self._keys)

    def __repr__(self) -> str:
        return f"MultipleColumnNamesValueReader({list(self._keys)!r})"


class MultipleColumnIndicesValueReader(_MultipleColumnsValueReader):
    """Reads one cell from each indexed column."""

    def __init__(self, column_indices: Iterable[int]) -> None:
        if column_indices is None:
            raise NullConfigurationError("column_indices must not be None")
        indices = [_check_index(i) for i in column_indices]
        if not indices:
            raise NullConfigurationError("column_indices must not be empty")
        super().__init__(indices)

    @property
    def column_indices(self) -> List[int]:
        return list(self._keys)

    def __repr__(self) -> str:
        return f"MultipleColumnIndicesValueReader({list(self._keys)!r})"


# ---------------------------------------------------------------------------
# Split cell readers
# ---------------------------------------------------------------------------

class SplitCellValueReader(MultipleCellValuesReader):
    """Splits the text of a single cell into several values.

    Parameters
    ----------
    cell_reader:
        Locates the cell to split.
    separators:
        Any of these separates two values.
    options:
        Trimming / empty-segment handling applied to the segments.
    """

    kind = ReaderKind.SPLIT_CELL

    def __init__(
        self,
        cell_reader: CellValueReader,
        separators: Sequence[str],
        options: SplitOptions = SplitOptions.NONE,
    ) -> None:
        self.cell_reader = cell_reader
        self.separators = separators
        self.options = options

    @property
    def cell_reader(self) -> CellValueReader:
        return self._cell_reader

    @cell_reader.setter
    def cell_reader(self, value: CellValueReader) -> None:
        if value is None:
            raise NullConfigurationError("cell_reader must not be None")
        self._cell_reader = value

    @property
    def separators(self) -> Tuple[str, ...]:
        return self._separators

    @separators.setter
    def separators(self, value: Sequence[str]) -> None:
        if value is None:
            raise NullConfigurationError("separators must not be None")
        seps = tuple(value)
        if not seps:
            raise NullConfigurationError("separators must not be empty")
        for sep in seps:
            if not sep:
                raise NullConfigurationError(
                    "separators must not contain None or empty strings"
                )
        self._validate_separators(seps)
        self._separators = seps
        self._pattern = self._compile(seps)

    @property
    def options(self) -> SplitOptions:
        return self._options

    @options.setter
    def options(self, value: SplitOptions) -> None:
        if value is None:
            raise NullConfigurationError("options must not be None")
        self._options = SplitOptions(value)

    def try_get_values(
        self, sheet: RowValueSource, row_index: int
    ) -> Optional[List[RawCell]]:
        cell = self._cell_reader.try_get_value(sheet, row_index)
        if cell is None:
            return None
        if cell.text is None:
            return []
        return [cell.with_text(part) for part in self.split(cell.text)]

    def missing_columns(self, sheet: RowValueSource) -> List[ColumnKey]:
        return self._cell_reader.missing_columns(sheet)

    def split(self, text: str) -> List[str]:
        """Split *text* on the separators, honouring the split options."""
        parts = self._pattern.split(text)
        if self._options & SplitOptions.TRIM_ENTRIES:
            parts = [p.strip() for p in parts]
        if self._options & SplitOptions.REMOVE_EMPTY_ENTRIES:
            parts = [p for p in parts if p]
        return parts

    def _validate_separators(self, separators: Tuple[str, ...]) -> None:
        pass

    @staticmethod
    @abstractmethod
    def _compile(separators: Tuple[str, ...]) -> "re.Pattern[str]":
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._cell_reader!r}, "
            f"separators={list(self._separators)!r}, options={self._options!r})"
        )


class CharSplitCellValueReader(SplitCellValueReader):
    """Splits on any of a set of single characters."""

    def __init__(
        self,
        cell_reader: CellValueReader,
        separators: Sequence[str] = (",",),
        options: SplitOptions = SplitOptions.NONE,
    ) -> None:
        super().__init__(cell_reader, separators, options)

    def _validate_separators(self, separators: Tuple[str, ...]) -> None:
        for sep in separators:
            if len(sep) != 1:
                raise ConfigurationError(
                    f"Character separators must be single characters, got {sep!r}"
                )

    @staticmethod
    def _compile(separators: Tuple[str, ...]) -> "re.Pattern[str]":
        return re.compile("[" + "".join(re.escape(s) for s in separators) + "]")


class StringSplitCellValueReader(SplitCellValueReader):
    """Splits on any of a set of strings; longer separators win."""

    @staticmethod
    def _compile(separators: Tuple[str, ...]) -> "re.Pattern[str]":
        ordered = sorted(set(separators), key=len, reverse=True)
        return re.compile("|".join(re.escape(s) for s in ordered))


# ---------------------------------------------------------------------------
# Failure reporting
# ---------------------------------------------------------------------------

def column_not_found_error(
    field_name: str,
    row_index: int,
    reader: Union[CellValueReader, MultipleCellValuesReader],
    sheet: RowValueSource,
    config: Optional[MapperConfig] = None,
) -> ColumnNotFoundError:
    """Build the error for a reader that failed to resolve on *sheet*."""
    config = config or MapperConfig()
    missing = reader.missing_columns(sheet)
    suggestions: Dict[str, List[str]] = {}
    suggest = getattr(sheet, "suggest_columns", None)
    if config.suggest_columns and suggest is not None:
        for key in missing:
            if isinstance(key, str):
                suggestions[key] = suggest(key, config.suggestion_threshold)
    logger.debug(
        "Field %r: columns %s missing on row %d", field_name, missing, row_index
    )
    return ColumnNotFoundError(field_name, row_index, missing, suggestions)
