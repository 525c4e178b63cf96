"""
Unit tests for the pipeline data models.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import List, Optional

import pytest

from sheet_mapper.errors import NullConfigurationError
from sheet_mapper.schema import (
    Fallback,
    Member,
    PipelineOutcome,
    PipelineResult,
    RawCell,
)


@pytest.fixture
def cell() -> RawCell:
    return RawCell(row_index=3, column_index=1, column_name="Age", text="42")


# ======================================================================
# PipelineResult
# ======================================================================

class TestPipelineResult:
    def test_begin_is_pending(self, cell: RawCell) -> None:
        result = PipelineResult.begin(cell)
        assert result.outcome is PipelineOutcome.PENDING
        assert result.is_pending
        assert result.value is None
        assert result.text == "42"

    def test_make_completed(self, cell: RawCell) -> None:
        result = PipelineResult.begin(cell).make_completed(42)
        assert result.is_completed
        assert result.value == 42
        assert result.context is cell

    def test_make_empty_drops_value(self, cell: RawCell) -> None:
        result = PipelineResult.begin(cell).make_completed(42).make_empty()
        assert result.is_empty
        assert result.value is None

    def test_make_invalid_drops_value(self, cell: RawCell) -> None:
        result = PipelineResult.begin(cell).make_completed(42).make_invalid()
        assert result.is_invalid
        assert result.value is None

    def test_steps_do_not_mutate(self, cell: RawCell) -> None:
        seed = PipelineResult.begin(cell)
        seed.make_completed(1)
        assert seed.is_pending
        with pytest.raises(dataclasses.FrozenInstanceError):
            seed.value = 5  # type: ignore[misc]

    def test_with_text(self, cell: RawCell) -> None:
        result = PipelineResult.begin(cell).with_text("7")
        assert result.text == "7"
        assert result.context.column_name == "Age"
        assert cell.text == "42"


# ======================================================================
# Fallback
# ======================================================================

class TestFallback:
    def test_fixed(self, cell: RawCell) -> None:
        assert Fallback.fixed(0).supply(PipelineResult.begin(cell)) == 0

    def test_fixed_none_is_still_a_fallback(self, cell: RawCell) -> None:
        fallback = Fallback.fixed(None)
        assert fallback is not None
        assert fallback.supply(PipelineResult.begin(cell)) is None

    def test_supplier_sees_result(self, cell: RawCell) -> None:
        fallback = Fallback(lambda r: f"row {r.context.row_index}")
        assert fallback.supply(PipelineResult.begin(cell)) == "row 3"

    def test_none_supplier_rejected(self) -> None:
        with pytest.raises(NullConfigurationError):
            Fallback(None)  # type: ignore[arg-type]


# ======================================================================
# Member
# ======================================================================

@dataclass
class Record:
    name: str
    scores: List[int]
    age: Optional[int] = None


class TestMember:
    def test_of_reads_annotation(self) -> None:
        assert Member.of(Record, "scores") == Member("scores", List[int])
        assert Member.of(Record, "age").annotation == Optional[int]

    def test_of_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="missing"):
            Member.of(Record, "missing")
