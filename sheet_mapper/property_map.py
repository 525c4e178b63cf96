"""
Property maps: one field of the target object and how to fill it.

A property map reads a row, produces the field's value, and assigns it to
the instance being built.  ``SinglePropertyMap`` fills a scalar field from a
single column; collection fields use ``EnumerablePropertyMap``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from sheet_mapper.config import MapperConfig
from sheet_mapper.converters import ConverterRegistry
from sheet_mapper.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    EmptyValueError,
    NullConfigurationError,
)
from sheet_mapper.logging_setup import configure_logging, get_logger
from sheet_mapper.pipeline import DefaultPipeline, SingleColumnPipeline
from sheet_mapper.schema import Member
from sheet_mapper.sheet import RowValueSource

logger = get_logger("property_map")


class ExcelPropertyMap(ABC):
    """Base class for maps that assign one field of the target object.

    Parameters
    ----------
    member:
        The field being assigned.
    config:
        Mapping defaults.  A ``config.log_level`` is applied to the
        ``sheet_mapper`` loggers; the first map also bootstraps logging.
    """

    def __init__(self, member: Member, config: Optional[MapperConfig] = None) -> None:
        if member is None:
            raise NullConfigurationError("member must not be None")
        self.member = member
        self._config = config or MapperConfig()
        self.optional = False
        configure_logging(level=self._config.log_level)

    @property
    def config(self) -> MapperConfig:
        return self._config

    def make_optional(self) -> "ExcelPropertyMap":
        """Leave the field untouched when its column is not on the sheet."""
        self.optional = True
        return self

    @abstractmethod
    def get_property_value(self, sheet: RowValueSource, row_index: int) -> Any:
        """Return the value this map produces for *row_index*."""

    def set_property_value(
        self, sheet: RowValueSource, row_index: int, instance: Any
    ) -> None:
        """Compute the field value for *row_index* and assign it to *instance*."""
        try:
            value = self.get_property_value(sheet, row_index)
        except ColumnNotFoundError:
            if not self.optional:
                raise
            logger.debug(
                "Optional field %r has no column on row %d; skipped",
                self.member.name, row_index,
            )
            return
        setattr(instance, self.member.name, value)


class SinglePropertyMap(ExcelPropertyMap):
    """Maps one column to one scalar field.

    An empty cell with no empty fallback leaves the field at its current
    value; an invalid cell with no invalid fallback raises.
    """

    def __init__(
        self,
        member: Member,
        pipeline: Optional[SingleColumnPipeline] = None,
        config: Optional[MapperConfig] = None,
        registry: Optional[ConverterRegistry] = None,
    ) -> None:
        super().__init__(member, config)
        self._root: SingleColumnPipeline = pipeline or DefaultPipeline(
            member, registry=registry, config=self._config
        )

    @property
    def pipeline(self) -> SingleColumnPipeline:
        """The pipeline that runs for this field."""
        if isinstance(self._root, DefaultPipeline):
            return self._root.active
        return self._root

    def with_column_name(self, column_name: str) -> "SinglePropertyMap":
        self._default().with_column_name(column_name)
        return self

    def with_index(self, index: int) -> "SinglePropertyMap":
        self._default().with_index(index)
        return self

    def _default(self) -> DefaultPipeline:
        if not isinstance(self._root, DefaultPipeline):
            raise ConfigurationError(
                f"Field {self.member.name!r} was given an explicit pipeline; "
                f"configure its column on that pipeline instead"
            )
        return self._root

    def get_property_value(self, sheet: RowValueSource, row_index: int) -> Any:
        return self._root.execute(sheet, row_index)

    def set_property_value(
        self, sheet: RowValueSource, row_index: int, instance: Any
    ) -> None:
        try:
            super().set_property_value(sheet, row_index, instance)
        except EmptyValueError as exc:
            logger.warning("%s Field left at its current value.", exc)
