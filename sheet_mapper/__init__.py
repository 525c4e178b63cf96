"""
Sheet Mapper — typed field mapping for spreadsheet rows.

Each field of a target object is described by a property map: a reader that
locates one or more cells in a row, and a value pipeline that turns the raw
cell text into a typed value, with explicit Empty / Invalid outcomes and
configurable fallbacks.  Collection fields run the pipeline once per located
cell and fold the results into the field's collection type.

Configuration errors raise as soon as they are made; a row that cannot be
mapped raises a ``MappingError`` naming the field and the row.
"""

__version__ = "1.0.0"
__author__ = "Sheet Mapper Team"

from sheet_mapper.config import MapperConfig  # noqa: F401
from sheet_mapper.enumerable import EnumerablePropertyMap  # noqa: F401
from sheet_mapper.errors import (  # noqa: F401
    ColumnNotFoundError,
    ConfigurationError,
    EmptyValueError,
    InvalidValueError,
    MappingError,
    RowNotFoundError,
)
from sheet_mapper.pipeline import (  # noqa: F401
    ColumnPipeline,
    DefaultPipeline,
    IndexPipeline,
    ValuePipeline,
)
from sheet_mapper.property_map import SinglePropertyMap  # noqa: F401
from sheet_mapper.schema import ElementPolicy, Member, SplitOptions  # noqa: F401
from sheet_mapper.sheet import ExcelSheet  # noqa: F401
