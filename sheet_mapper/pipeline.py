"""
Column Pipelines.

A pipeline turns a located cell into a field value:

    locate cell  →  items (in order)  →  terminal outcome
                 →  fallback (Empty / Invalid)  →  value or MappingError

``ValuePipeline`` carries the items and fallbacks and works on a cell that
has already been located; it is what collection fields run once per
element.  ``ColumnPipeline`` and ``IndexPipeline`` add a single-column
locator.  ``DefaultPipeline`` is configured from a field's annotation and can
be redirected to another column with ``with_column_name`` / ``with_index``.

Pipelines are configured once, then sealed on first execution; after that
they are read-only and can be shared across rows.

Usage
-----
>>> pipe = ColumnPipeline("Age").add_item(ChangeTypePipelineItem(int))
>>> pipe.with_empty_fallback(0)
>>> pipe.execute(sheet, row_index=0)
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from sheet_mapper.automap import auto_configure
from sheet_mapper.config import MapperConfig
from sheet_mapper.converters import ConverterRegistry
from sheet_mapper.errors import (
    ConfigurationError,
    EmptyValueError,
    InvalidValueError,
    NullConfigurationError,
)
from sheet_mapper.items import (
    ConvertingPipelineItem,
    ConvertUsingPipelineItem,
    FuzzyMapPipelineItem,
    MapDictionaryPipelineItem,
    ParseFormatsPipelineItem,
    PipelineItem,
    TrimPipelineItem,
    ValidatePipelineItem,
)
from sheet_mapper.logging_setup import get_logger
from sheet_mapper.readers import (
    CellValueReader,
    ColumnIndexValueReader,
    ColumnNameValueReader,
    column_not_found_error,
)
from sheet_mapper.schema import Fallback, Member, PipelineResult, RawCell
from sheet_mapper.sheet import RowValueSource

logger = get_logger("pipeline")


class ValuePipeline:
    """Items and fallbacks applied to one already-located cell.

    Parameters
    ----------
    items:
        Pipeline items, applied in order.
    empty_fallback:
        Resolves a terminal Empty outcome.  ``None`` means no fallback.
    invalid_fallback:
        Resolves a terminal Invalid outcome.  ``None`` means no fallback.
    """

    def __init__(
        self,
        items: Optional[Iterable[PipelineItem]] = None,
        empty_fallback: Optional[Fallback] = None,
        invalid_fallback: Optional[Fallback] = None,
    ) -> None:
        self._items: List[PipelineItem] = list(items or [])
        self._empty_fallback = empty_fallback
        self._invalid_fallback = invalid_fallback
        self._sealed = False

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def items(self) -> Sequence[PipelineItem]:
        return tuple(self._items)

    @property
    def empty_fallback(self) -> Optional[Fallback]:
        return self._empty_fallback

    @property
    def invalid_fallback(self) -> Optional[Fallback]:
        return self._invalid_fallback

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Freeze the configuration; later ``with_*`` calls raise."""
        self._sealed = True

    def _ensure_configurable(self) -> None:
        if self._sealed:
            raise ConfigurationError(
                f"{type(self).__name__} cannot be reconfigured once mapping "
                f"has started"
            )

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def add_item(self, item: PipelineItem) -> "ValuePipeline":
        self._ensure_configurable()
        if item is None:
            raise NullConfigurationError("item must not be None")
        self._items.append(item)
        return self

    def with_items(self, *items: PipelineItem) -> "ValuePipeline":
        """Replace every configured item with *items*."""
        self._ensure_configurable()
        if any(item is None for item in items):
            raise NullConfigurationError("items must not contain None")
        self._items = list(items)
        return self

    def with_empty_fallback(self, value: Any) -> "ValuePipeline":
        return self.with_empty_fallback_supplier(lambda _result: value)

    def with_empty_fallback_supplier(
        self, supplier: Callable[[PipelineResult], Any]
    ) -> "ValuePipeline":
        self._ensure_configurable()
        self._empty_fallback = Fallback(supplier)
        return self

    def with_invalid_fallback(self, value: Any) -> "ValuePipeline":
        return self.with_invalid_fallback_supplier(lambda _result: value)

    def with_invalid_fallback_supplier(
        self, supplier: Callable[[PipelineResult], Any]
    ) -> "ValuePipeline":
        self._ensure_configurable()
        self._invalid_fallback = Fallback(supplier)
        return self

    def with_trim(self) -> "ValuePipeline":
        """Strip whitespace before anything else sees the text."""
        self._ensure_configurable()
        self._items.insert(0, TrimPipelineItem())
        return self

    def with_mapping(
        self, mapping: Mapping[str, Any], ignore_case: bool = False
    ) -> "ValuePipeline":
        """Map known text straight to values.

        Runs after type conversion, so a key hit replaces both a converted
        value and an Invalid outcome.
        """
        return self._add_after_conversion(
            MapDictionaryPipelineItem(mapping, ignore_case=ignore_case)
        )

    def with_fuzzy_mapping(
        self, mapping: Mapping[str, Any], threshold: float = 80.0
    ) -> "ValuePipeline":
        """Map text to the value of the closest known key, after type conversion."""
        return self._add_after_conversion(
            FuzzyMapPipelineItem(mapping, threshold=threshold)
        )

    def with_formats(self, *formats: str, as_date: bool = False) -> "ValuePipeline":
        """Parse dates with explicit ``strptime`` formats instead of the type conversion."""
        return self._replace_conversion(
            ParseFormatsPipelineItem(formats, as_date=as_date)
        )

    def with_converter(self, converter: Callable[[str], Any]) -> "ValuePipeline":
        """Convert text with *converter* instead of the type conversion."""
        return self._replace_conversion(ConvertUsingPipelineItem(converter))

    def with_validation(self, predicate: Callable[[Any], bool]) -> "ValuePipeline":
        """Reject converted values for which *predicate* is false."""
        return self.add_item(ValidatePipelineItem(predicate))

    def _conversion_positions(self) -> List[int]:
        return [
            i for i, existing in enumerate(self._items)
            if isinstance(existing, ConvertingPipelineItem)
        ]

    def _add_after_conversion(self, item: PipelineItem) -> "ValuePipeline":
        self._ensure_configurable()
        positions = self._conversion_positions()
        if positions:
            self._items.insert(positions[-1] + 1, item)
        else:
            self._items.append(item)
        return self

    def _replace_conversion(self, item: ConvertingPipelineItem) -> "ValuePipeline":
        # Conversion items reclassify from the text, so only one may run.
        self._ensure_configurable()
        positions = self._conversion_positions()
        if not positions:
            self._items.append(item)
            return self
        first = positions[0]
        self._items = [
            existing for i, existing in enumerate(self._items)
            if i not in positions[1:]
        ]
        self._items[first] = item
        return self

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def run(self, cell: RawCell) -> PipelineResult:
        """Run the items on *cell* and apply the fallbacks.

        Returns the terminal result: Completed (possibly via a fallback), or
        the unresolved Empty / Invalid outcome.
        """
        result = PipelineResult.begin(cell)
        for item in self._items:
            result = item.try_map(result)

        if result.is_pending:
            result = result.make_empty() if not result.text else result.make_invalid()

        if result.is_empty and self._empty_fallback is not None:
            logger.debug("Empty fallback applied on row %d", cell.row_index)
            return result.make_completed(self._empty_fallback.supply(result))
        if result.is_invalid and self._invalid_fallback is not None:
            logger.debug(
                "Invalid fallback applied to %r on row %d", cell.text, cell.row_index
            )
            return result.make_completed(self._invalid_fallback.supply(result))
        return result

    def get_value(self, cell: RawCell, field_name: str) -> Any:
        """Return the value for *cell* or raise for an unresolved outcome."""
        result = self.run(cell)
        if result.is_completed:
            return result.value
        if result.is_empty:
            raise EmptyValueError(field_name, result)
        raise InvalidValueError(field_name, result)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(items={list(self._items)!r})"


class SingleColumnPipeline(ValuePipeline):
    """A value pipeline bound to one column of the sheet."""

    def __init__(
        self,
        reader: CellValueReader,
        member: Optional[Member] = None,
        items: Optional[Iterable[PipelineItem]] = None,
        empty_fallback: Optional[Fallback] = None,
        invalid_fallback: Optional[Fallback] = None,
        config: Optional[MapperConfig] = None,
    ) -> None:
        super().__init__(items, empty_fallback, invalid_fallback)
        self._reader = reader
        self.member = member
        self._config = config or MapperConfig()

    @property
    def reader(self) -> CellValueReader:
        return self._reader

    @property
    def field_name(self) -> str:
        return self.member.name if self.member is not None else str(self._reader.key)

    def _locate(self, sheet: RowValueSource, row_index: int) -> RawCell:
        self.seal()
        cell = self._reader.try_get_value(sheet, row_index)
        if cell is None:
            raise column_not_found_error(
                self.field_name, row_index, self._reader, sheet, self._config
            )
        return cell

    def resolve(self, sheet: RowValueSource, row_index: int) -> PipelineResult:
        """Locate the cell on *row_index* and return its terminal result.

        Raises ``ColumnNotFoundError`` when the column is not on the sheet.
        """
        return self.run(self._locate(sheet, row_index))

    def execute(self, sheet: RowValueSource, row_index: int) -> Any:
        """Return the value for this field on *row_index*.

        Raises
        ------
        ColumnNotFoundError
            The column is not on the sheet.
        EmptyValueError
            The cell is empty and no empty fallback is configured.
        InvalidValueError
            The cell could not be converted and no invalid fallback is
            configured.
        """
        return self.get_value(self._locate(sheet, row_index), self.field_name)


class ColumnPipeline(SingleColumnPipeline):
    """Reads the column with heading *column_name*."""

    def __init__(self, column_name: str, member: Optional[Member] = None, **kwargs: Any) -> None:
        super().__init__(ColumnNameValueReader(column_name), member, **kwargs)

    @property
    def column_name(self) -> str:
        return self._reader.key


class IndexPipeline(SingleColumnPipeline):
    """Reads the column at zero-based *index*."""

    def __init__(self, index: int, member: Optional[Member] = None, **kwargs: Any) -> None:
        super().__init__(ColumnIndexValueReader(index), member, **kwargs)

    @property
    def index(self) -> int:
        return self._reader.key


class DefaultPipeline(ColumnPipeline):
    """Pipeline auto-configured for *member*, read from the column named after it.

    ``with_column_name`` and ``with_index`` install an override pipeline that
    starts with this pipeline's items and fallbacks; once installed, every
    execution is delegated to it and the member's own name is no longer
    looked up.

    Parameters
    ----------
    member:
        The field being mapped; its annotation selects the conversion.
    registry:
        Converters available to the auto-configuration.
    config:
        Column suggestion settings used when reporting missing columns.
    """

    def __init__(
        self,
        member: Member,
        registry: Optional[ConverterRegistry] = None,
        config: Optional[MapperConfig] = None,
    ) -> None:
        if member is None:
            raise NullConfigurationError("member must not be None")
        super().__init__(member.name, member=member, config=config)
        self._override: Optional[SingleColumnPipeline] = None
        auto_configure(self, member.annotation, registry)

    @property
    def override(self) -> Optional[SingleColumnPipeline]:
        return self._override

    @property
    def active(self) -> SingleColumnPipeline:
        """The pipeline that actually runs: the override if one is set."""
        return self._override if self._override is not None else self

    def with_column_name(self, column_name: str) -> ColumnPipeline:
        self._ensure_configurable()
        pipeline = ColumnPipeline(column_name, **self._seed())
        self._install(pipeline)
        return pipeline

    def with_index(self, index: int) -> IndexPipeline:
        self._ensure_configurable()
        pipeline = IndexPipeline(index, **self._seed())
        self._install(pipeline)
        return pipeline

    def _seed(self) -> dict:
        # The current override holds the most recent item / fallback setup.
        source = self.active
        return {
            "member": self.member,
            "items": source.items,
            "empty_fallback": source.empty_fallback,
            "invalid_fallback": source.invalid_fallback,
            "config": self._config,
        }

    def _install(self, pipeline: SingleColumnPipeline) -> None:
        logger.debug(
            "Field %r now read from %r", self.field_name, pipeline.reader
        )
        self._override = pipeline

    def seal(self) -> None:
        super().seal()
        if self._override is not None:
            self._override.seal()

    def resolve(self, sheet: RowValueSource, row_index: int) -> PipelineResult:
        if self._override is not None:
            self.seal()
            return self._override.resolve(sheet, row_index)
        return super().resolve(sheet, row_index)

    def execute(self, sheet: RowValueSource, row_index: int) -> Any:
        if self._override is not None:
            self.seal()
            return self._override.execute(sheet, row_index)
        return super().execute(sheet, row_index)
