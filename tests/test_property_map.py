"""
Tests for SinglePropertyMap and the shared ExcelPropertyMap behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest

from sheet_mapper.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    InvalidValueError,
    NullConfigurationError,
    RowNotFoundError,
)
from sheet_mapper.items import ChangeTypePipelineItem
from sheet_mapper.pipeline import ColumnPipeline, IndexPipeline
from sheet_mapper.property_map import SinglePropertyMap
from sheet_mapper.schema import Member
from sheet_mapper.sheet import ExcelSheet


@dataclass
class Person:
    name: str = "?"
    age: int = -1
    nickname: Optional[str] = None


# ======================================================================
# SinglePropertyMap
# ======================================================================

class TestSinglePropertyMap:
    def test_assigns_converted_value(self, sheet: ExcelSheet) -> None:
        person = Person()
        SinglePropertyMap(Member("Age", int)).set_property_value(sheet, 0, person)
        # The member is named after the column; the dataclass gets a new attribute.
        assert person.Age == 30  # type: ignore[attr-defined]

    def test_member_from_annotation(self, sheet: ExcelSheet) -> None:
        person = Person()
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        prop.set_property_value(sheet, 0, person)
        assert person.age == 30

    def test_get_property_value(self, sheet: ExcelSheet) -> None:
        prop = SinglePropertyMap(Member.of(Person, "name")).with_column_name("Name")
        assert prop.get_property_value(sheet, 1) == "Bob"

    def test_empty_cell_leaves_field(self, sheet: ExcelSheet) -> None:
        person = Person()
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        prop.set_property_value(sheet, 2, person)
        assert person.age == -1

    def test_invalid_cell_raises(self, sheet: ExcelSheet) -> None:
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        with pytest.raises(InvalidValueError) as excinfo:
            prop.set_property_value(sheet, 1, Person())
        assert excinfo.value.field_name == "age"

    def test_invalid_fallback_on_active_pipeline(self, sheet: ExcelSheet) -> None:
        person = Person()
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        prop.pipeline.with_invalid_fallback(0)
        prop.set_property_value(sheet, 1, person)
        assert person.age == 0

    def test_optional_annotation_assigns_none(self, sheet: ExcelSheet) -> None:
        person = Person(nickname="x")
        prop = SinglePropertyMap(Member.of(Person, "nickname")).with_column_name("Name")
        prop.set_property_value(sheet, 2, person)
        assert person.nickname is None

    def test_with_index(self, sheet: ExcelSheet) -> None:
        prop = SinglePropertyMap(Member.of(Person, "age")).with_index(4)
        assert isinstance(prop.pipeline, IndexPipeline)
        assert prop.get_property_value(sheet, 0) == 7

    def test_explicit_pipeline(self, sheet: ExcelSheet) -> None:
        pipeline = ColumnPipeline("Y").add_item(ChangeTypePipelineItem(int))
        prop = SinglePropertyMap(Member.of(Person, "age"), pipeline=pipeline)
        assert prop.pipeline is pipeline
        assert prop.get_property_value(sheet, 1) == 9
        with pytest.raises(ConfigurationError):
            prop.with_column_name("X")

    def test_member_required(self) -> None:
        with pytest.raises(NullConfigurationError):
            SinglePropertyMap(None)  # type: ignore[arg-type]


# ======================================================================
# Missing columns and make_optional
# ======================================================================

class TestMissingColumns:
    def test_missing_column_raises(self, sheet: ExcelSheet) -> None:
        prop = SinglePropertyMap(Member.of(Person, "age"))
        with pytest.raises(ColumnNotFoundError) as excinfo:
            prop.set_property_value(sheet, 0, Person())
        assert excinfo.value.field_name == "age"
        # "age" is close to the "Age" heading.
        assert excinfo.value.suggestions == {"age": ["Age"]}

    def test_optional_map_skips_missing_column(self, sheet: ExcelSheet) -> None:
        person = Person()
        prop = SinglePropertyMap(Member.of(Person, "age")).make_optional()
        assert prop.optional
        prop.set_property_value(sheet, 0, person)
        assert person.age == -1

    def test_optional_map_still_raises_invalid(self, sheet: ExcelSheet) -> None:
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        prop.make_optional()
        with pytest.raises(InvalidValueError):
            prop.set_property_value(sheet, 1, Person())

    def test_row_past_the_sheet_raises(self, sheet: ExcelSheet) -> None:
        person = Person()
        prop = SinglePropertyMap(Member.of(Person, "age")).with_column_name("Age")
        prop.make_optional()
        with pytest.raises(RowNotFoundError):
            prop.set_property_value(sheet, 5, person)
        assert person.age == -1
