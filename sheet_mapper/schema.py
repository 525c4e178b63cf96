"""
Core data models.

Defines the immutable values threaded through a value pipeline (raw cells
and pipeline results), the explicit fallback marker, and the small enums the
readers and property maps are configured with.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from typing import Any, Callable, Optional

from sheet_mapper.errors import NullConfigurationError


# ---------------------------------------------------------------------------
# Configuration enums
# ---------------------------------------------------------------------------

class SplitOptions(IntFlag):
    """How the text of a split cell is broken into segments.

    Mirrors the usual string-split flags: segments are trimmed first, then
    empty segments are dropped.
    """

    NONE = 0
    REMOVE_EMPTY_ENTRIES = 1
    TRIM_ENTRIES = 2


class ElementPolicy(str, Enum):
    """What an enumerable map does with an element it could not resolve."""

    RAISE = "raise"
    SKIP = "skip"


class ReaderKind(str, Enum):
    """Tag identifying which locating strategy a reader implements."""

    SINGLE_COLUMN = "single_column"
    MULTI_COLUMN = "multi_column"
    SPLIT_CELL = "split_cell"


class PipelineOutcome(str, Enum):
    """Classification of a cell as it moves through a pipeline.

    ``PENDING`` is the seed state: no item has classified the cell yet.
    """

    PENDING = "pending"
    EMPTY = "empty"
    INVALID = "invalid"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Pipeline data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawCell:
    """One located cell: where it came from and its text."""

    row_index: int
    column_index: int
    column_name: Optional[str]
    text: Optional[str]

    def with_text(self, text: Optional[str]) -> "RawCell":
        return replace(self, text=text)


@dataclass(frozen=True)
class PipelineResult:
    """The state of one cell after zero or more pipeline items.

    Results are never mutated; every ``make_*`` call returns a new result
    sharing the originating ``context``.  ``value`` is ``None`` unless the
    outcome is ``COMPLETED``.
    """

    outcome: PipelineOutcome
    context: RawCell
    value: Any = None

    @classmethod
    def begin(cls, cell: RawCell) -> "PipelineResult":
        """Seed an unclassified result from a located cell."""
        return cls(PipelineOutcome.PENDING, cell)

    @property
    def text(self) -> Optional[str]:
        return self.context.text

    @property
    def is_pending(self) -> bool:
        return self.outcome is PipelineOutcome.PENDING

    @property
    def is_empty(self) -> bool:
        return self.outcome is PipelineOutcome.EMPTY

    @property
    def is_invalid(self) -> bool:
        return self.outcome is PipelineOutcome.INVALID

    @property
    def is_completed(self) -> bool:
        return self.outcome is PipelineOutcome.COMPLETED

    def make_empty(self) -> "PipelineResult":
        return PipelineResult(PipelineOutcome.EMPTY, self.context)

    def make_invalid(self) -> "PipelineResult":
        return PipelineResult(PipelineOutcome.INVALID, self.context)

    def make_completed(self, value: Any) -> "PipelineResult":
        return PipelineResult(PipelineOutcome.COMPLETED, self.context, value)

    def with_text(self, text: Optional[str]) -> "PipelineResult":
        """Return a result with the same outcome but rewritten cell text."""
        return replace(self, context=self.context.with_text(text))


class Fallback:
    """A configured replacement value for an Empty or Invalid outcome.

    A pipeline with no fallback holds ``None``; a ``Fallback`` that supplies
    ``None`` is a real, configured fallback.

    Parameters
    ----------
    supplier:
        Called with the terminal ``PipelineResult``; its return value
        replaces the missing value.
    """

    __slots__ = ("_supplier",)

    def __init__(self, supplier: Callable[[PipelineResult], Any]) -> None:
        if supplier is None:
            raise NullConfigurationError("Fallback supplier must not be None")
        self._supplier = supplier

    @classmethod
    def fixed(cls, value: Any) -> "Fallback":
        return cls(lambda _result: value)

    def supply(self, result: PipelineResult) -> Any:
        return self._supplier(result)

    def __repr__(self) -> str:
        return f"Fallback({self._supplier!r})"


# ---------------------------------------------------------------------------
# Target members
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Member:
    """The field or attribute a property map assigns to."""

    name: str
    annotation: Any = str

    @classmethod
    def of(cls, owner: type, name: str) -> "Member":
        """Describe attribute *name* of *owner* using its type hint."""
        hints = typing.get_type_hints(owner)
        if name not in hints:
            raise AttributeError(
                f"{owner.__name__} has no annotated attribute {name!r}"
            )
        return cls(name=name, annotation=hints[name])
