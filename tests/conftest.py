"""
Shared fixtures: a small in-memory sheet used across the test modules.
"""

from __future__ import annotations

import pytest

from sheet_mapper.sheet import ExcelSheet

PEOPLE_ROWS = [
    ["Name", "Age", "Nums", "Tags", "X", "Y"],
    ["Alice", 30, "1;2;3", "a,b,c", 7, 8],
    ["Bob", "abc", "4;x;6", "a,,b", "", "9"],
    [None, None, None, "  ", "1", None],
]


@pytest.fixture
def sheet() -> ExcelSheet:
    return ExcelSheet("People", PEOPLE_ROWS)
