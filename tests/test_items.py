"""
Unit tests for the pipeline items.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pytest

from sheet_mapper.converters import ConverterRegistry
from sheet_mapper.errors import ConfigurationError, NullConfigurationError
from sheet_mapper.items import (
    ChangeTypePipelineItem,
    ConvertUsingPipelineItem,
    FuzzyMapPipelineItem,
    MapDictionaryPipelineItem,
    ParseFormatsPipelineItem,
    TrimPipelineItem,
    ValidatePipelineItem,
)
from sheet_mapper.schema import PipelineOutcome, PipelineResult, RawCell


def _seed(text: Optional[str]) -> PipelineResult:
    return PipelineResult.begin(
        RawCell(row_index=0, column_index=0, column_name="Value", text=text)
    )


# ======================================================================
# ChangeTypePipelineItem
# ======================================================================

class TestChangeType:
    @pytest.mark.parametrize(
        "target, text, expected",
        [
            (int, "42", 42),
            (float, "1.5", 1.5),
            (str, "hello", "hello"),
            (bool, "true", True),
            (date, "2024-05-06", date(2024, 5, 6)),
        ],
    )
    def test_convertible_text_completes(self, target, text, expected) -> None:  # noqa: ANN001
        result = ChangeTypePipelineItem(target).try_map(_seed(text))
        assert result.outcome is PipelineOutcome.COMPLETED
        assert result.value == expected

    @pytest.mark.parametrize("target", [int, str, bool, date])
    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_text_is_empty(self, target, text) -> None:  # noqa: ANN001
        result = ChangeTypePipelineItem(target).try_map(_seed(text))
        assert result.is_empty
        assert result.value is None

    @pytest.mark.parametrize(
        "target, text",
        [(int, "abc"), (int, "1.5"), (float, "x"), (bool, "maybe"), (date, "nope")],
    )
    def test_unparseable_text_is_invalid(self, target, text) -> None:  # noqa: ANN001
        result = ChangeTypePipelineItem(target).try_map(_seed(text))
        assert result.is_invalid
        assert result.value is None

    def test_failing_custom_converter_is_invalid(self) -> None:
        registry = ConverterRegistry()

        def explode(text: str) -> int:
            raise RuntimeError("boom")

        registry.register(int, explode)
        result = ChangeTypePipelineItem(int, registry).try_map(_seed("1"))
        assert result.is_invalid

    def test_unsupported_type_fails_at_configuration(self) -> None:
        with pytest.raises(ConfigurationError):
            ChangeTypePipelineItem(complex)

    def test_completed_seed_is_converted_from_text(self) -> None:
        result = ChangeTypePipelineItem(int).try_map(_seed("42").make_completed("42"))
        assert result.is_completed
        assert result.value == 42

    @pytest.mark.parametrize("text", [None, ""])
    def test_completed_seed_over_empty_text_is_empty(self, text) -> None:  # noqa: ANN001
        result = ChangeTypePipelineItem(int).try_map(_seed(text).make_completed("x"))
        assert result.is_empty
        assert result.value is None

    def test_classified_results_are_reclassified(self) -> None:
        item = ChangeTypePipelineItem(int)
        assert item.try_map(_seed("7").make_invalid()).value == 7
        assert item.try_map(_seed("7").make_empty()).value == 7
        assert item.try_map(_seed("x").make_completed(1)).is_invalid

    def test_whitespace_is_not_empty_without_trim(self) -> None:
        assert ChangeTypePipelineItem(int).try_map(_seed("  ")).is_invalid


# ======================================================================
# TrimPipelineItem
# ======================================================================

class TestTrim:
    def test_strips_text(self) -> None:
        assert TrimPipelineItem().try_map(_seed("  7 ")).text == "7"

    def test_whitespace_becomes_empty_downstream(self) -> None:
        result = TrimPipelineItem().try_map(_seed("   "))
        assert ChangeTypePipelineItem(int).try_map(result).is_empty

    def test_none_passes_through(self) -> None:
        seed = _seed(None)
        assert TrimPipelineItem().try_map(seed) is seed


# ======================================================================
# Mapping items
# ======================================================================

class TestMapDictionary:
    def test_hit(self) -> None:
        item = MapDictionaryPipelineItem({"Y": True, "N": False})
        assert item.try_map(_seed("N")).value is False

    def test_miss_passes_through(self) -> None:
        seed = _seed("maybe")
        assert MapDictionaryPipelineItem({"Y": True}).try_map(seed) is seed

    def test_ignore_case(self) -> None:
        item = MapDictionaryPipelineItem({"Yes": 1}, ignore_case=True)
        assert item.try_map(_seed("YES")).value == 1

    def test_hit_replaces_invalid_conversion(self) -> None:
        converted = ChangeTypePipelineItem(int).try_map(_seed("none"))
        assert converted.is_invalid
        assert MapDictionaryPipelineItem({"none": 0}).try_map(converted).value == 0

    def test_hit_replaces_completed_conversion(self) -> None:
        converted = ChangeTypePipelineItem(int).try_map(_seed("99"))
        assert MapDictionaryPipelineItem({"99": 100}).try_map(converted).value == 100

    def test_none_mapping(self) -> None:
        with pytest.raises(NullConfigurationError):
            MapDictionaryPipelineItem(None)  # type: ignore[arg-type]


class TestFuzzyMap:
    def test_close_key(self) -> None:
        item = FuzzyMapPipelineItem({"Completed": "done", "Pending": "todo"})
        result = item.try_map(_seed("complete"))
        assert result.is_completed
        assert result.value == "done"

    def test_nothing_close(self) -> None:
        seed = _seed("xyz")
        item = FuzzyMapPipelineItem({"Completed": "done", "Pending": "todo"})
        assert item.try_map(seed) is seed

    def test_close_key_replaces_invalid_conversion(self) -> None:
        converted = ChangeTypePipelineItem(bool).try_map(_seed("Completed!"))
        assert converted.is_invalid
        item = FuzzyMapPipelineItem({"Completed": True, "Pending": False})
        assert item.try_map(converted).value is True

    def test_empty_mapping_rejected(self) -> None:
        with pytest.raises(NullConfigurationError):
            FuzzyMapPipelineItem({})


# ======================================================================
# Conversion with explicit functions / formats
# ======================================================================

class TestConvertUsing:
    def test_converts(self) -> None:
        item = ConvertUsingPipelineItem(lambda s: s.upper())
        assert item.try_map(_seed("abc")).value == "ABC"

    def test_failure_is_invalid(self) -> None:
        item = ConvertUsingPipelineItem(int)
        assert item.try_map(_seed("abc")).is_invalid

    def test_empty(self) -> None:
        assert ConvertUsingPipelineItem(int).try_map(_seed("")).is_empty


class TestParseFormats:
    def test_first_matching_format(self) -> None:
        item = ParseFormatsPipelineItem(["%Y/%m/%d", "%d.%m.%Y"])
        assert item.try_map(_seed("02.01.2024")).value == datetime(2024, 1, 2)

    def test_as_date(self) -> None:
        item = ParseFormatsPipelineItem(["%d.%m.%Y"], as_date=True)
        assert item.try_map(_seed("02.01.2024")).value == date(2024, 1, 2)

    def test_no_format_matches(self) -> None:
        item = ParseFormatsPipelineItem(["%d.%m.%Y"])
        assert item.try_map(_seed("2024-01-02")).is_invalid

    def test_formats_required(self) -> None:
        with pytest.raises(NullConfigurationError):
            ParseFormatsPipelineItem([])


# ======================================================================
# ValidatePipelineItem
# ======================================================================

class TestValidate:
    def test_accepts(self) -> None:
        completed = _seed("5").make_completed(5)
        assert ValidatePipelineItem(lambda v: v > 0).try_map(completed) is completed

    def test_rejects(self) -> None:
        completed = _seed("-1").make_completed(-1)
        assert ValidatePipelineItem(lambda v: v > 0).try_map(completed).is_invalid

    def test_raising_predicate_rejects(self) -> None:
        completed = _seed("x").make_completed("x")
        assert ValidatePipelineItem(lambda v: v > 0).try_map(completed).is_invalid

    def test_unclassified_passes_through(self) -> None:
        seed = _seed("5")
        assert ValidatePipelineItem(lambda v: False).try_map(seed) is seed
