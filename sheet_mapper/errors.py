"""
Exception hierarchy.

Configuration problems raise as soon as the offending call is made.  Per-row
problems raise from ``execute`` / ``set_property_value`` and always name the
field and the row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Union

if TYPE_CHECKING:
    from sheet_mapper.schema import PipelineResult


class MappingError(RuntimeError):
    """Base class for every error raised while configuring or mapping."""


class ConfigurationError(MappingError):
    """A map or pipeline was configured with something it cannot use."""


class SplitReaderMisuseError(ConfigurationError):
    """A split-only operation was applied to a reader that does not split."""


class NullConfigurationError(ConfigurationError, ValueError):
    """A required configuration argument was missing or empty."""


class ColumnNotFoundError(MappingError):
    """A column referenced by a reader is not present on the sheet.

    Parameters
    ----------
    field_name:
        The field whose value could not be read.
    row_index:
        Zero-based data row being mapped.
    columns:
        The names / indices that failed to resolve.
    suggestions:
        Close heading matches per missing column name.
    """

    def __init__(
        self,
        field_name: str,
        row_index: int,
        columns: Sequence[Union[str, int]],
        suggestions: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.field_name = field_name
        self.row_index = row_index
        self.columns = list(columns)
        self.suggestions = suggestions or {}

        missing = ", ".join(repr(c) for c in self.columns) or "<unknown>"
        msg = (
            f'Could not read value for "{field_name}" on row {row_index}: '
            f"column {missing} does not exist. Check your mapping or "
            f"consider using make_optional()."
        )
        hints = [
            f"{name!r} -> did you mean {', '.join(repr(s) for s in matches)}?"
            for name, matches in self.suggestions.items()
            if matches
        ]
        if hints:
            msg += " " + " ".join(hints)
        super().__init__(msg)


class _UnresolvedValueError(MappingError):
    reason = "unresolved"

    def __init__(self, field_name: str, result: "PipelineResult") -> None:
        self.field_name = field_name
        self.result = result
        cell = result.context
        super().__init__(
            f'Could not map "{field_name}" on row {cell.row_index} '
            f"(column {cell.column_name or cell.column_index!r}): "
            f"{self.reason} value {cell.text!r} and no fallback configured."
        )

    @property
    def row_index(self) -> int:
        return self.result.context.row_index


class InvalidValueError(_UnresolvedValueError):
    """A cell could not be converted and no invalid fallback resolved it."""

    reason = "invalid"


class EmptyValueError(_UnresolvedValueError):
    """A cell was empty and no empty fallback resolved it."""

    reason = "empty"


class RowNotFoundError(MappingError, IndexError):
    """A data row index is outside the sheet."""

    def __init__(self, row_index: int, row_count: int) -> None:
        self.row_index = row_index
        self.row_count = row_count
        super().__init__(
            f"Row {row_index} does not exist: the sheet has {row_count} "
            f"data rows."
        )
