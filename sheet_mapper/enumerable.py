"""
Enumerable Property Map.

Fills a collection-typed field from one or more cells:

    reader  →  N raw cells  →  element pipeline (once per cell)
            →  ordered element list  →  collection factory  →  field

By default the field reads the column named after it and splits the cell's
text on ``","``.  The reader can be pointed at another column, given other
separators, or replaced by a multi-column reader.  Split-only settings are
rejected while a multi-column reader is active.
"""

from __future__ import annotations

import collections
import collections.abc
import typing
from typing import Any, Callable, List, Optional, Sequence, Tuple

from sheet_mapper.automap import auto_configure, unwrap_optional
from sheet_mapper.config import MapperConfig
from sheet_mapper.converters import ConverterRegistry
from sheet_mapper.errors import (
    ConfigurationError,
    EmptyValueError,
    InvalidValueError,
    NullConfigurationError,
    SplitReaderMisuseError,
)
from sheet_mapper.logging_setup import get_logger
from sheet_mapper.pipeline import ValuePipeline
from sheet_mapper.property_map import ExcelPropertyMap
from sheet_mapper.readers import (
    CellValueReader,
    CharSplitCellValueReader,
    ColumnIndexValueReader,
    ColumnNameValueReader,
    MultipleCellValuesReader,
    MultipleColumnIndicesValueReader,
    MultipleColumnNamesValueReader,
    SplitCellValueReader,
    StringSplitCellValueReader,
    column_not_found_error,
)
from sheet_mapper.schema import ElementPolicy, Member, SplitOptions
from sheet_mapper.sheet import RowValueSource

logger = get_logger("enumerable")

CollectionFactory = Callable[[List[Any]], Any]

# Annotation origin -> how to build it from the element list.
_FACTORIES = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.deque: collections.deque,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}


# ---------------------------------------------------------------------------
# Annotation helpers
# ---------------------------------------------------------------------------

def _collection_parts(annotation: Any) -> Tuple[Any, Tuple[Any, ...]]:
    target, _ = unwrap_optional(annotation)
    origin = typing.get_origin(target) or target
    return origin, typing.get_args(target)


def collection_factory_for(annotation: Any) -> CollectionFactory:
    """How to build a value of the collection type *annotation*."""
    origin, _ = _collection_parts(annotation)
    try:
        return _FACTORIES[origin]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Cannot build a collection for annotation {annotation!r}; "
            f"pass collection_factory explicitly"
        ) from None


def element_type_of(annotation: Any) -> Any:
    """The element type of a collection annotation; ``str`` when unparameterised."""
    _, args = _collection_parts(annotation)
    if not args:
        return str
    return args[0]


def _split_reader(
    cell_reader: CellValueReader,
    separators: Sequence[str],
    options: SplitOptions,
) -> SplitCellValueReader:
    if all(sep is not None and len(sep) == 1 for sep in separators):
        return CharSplitCellValueReader(cell_reader, separators, options)
    return StringSplitCellValueReader(cell_reader, separators, options)


def _flatten(args: Tuple[Any, ...], name: str) -> List[Any]:
    """Accept ``f(a, b)`` as well as ``f([a, b])``."""
    if len(args) == 1 and not isinstance(args[0], (str, int)):
        if args[0] is None:
            raise NullConfigurationError(f"{name} must not be None")
        return list(args[0])
    return list(args)


class EnumerablePropertyMap(ExcelPropertyMap):
    """Maps one or more cells to the elements of a collection field.

    Parameters
    ----------
    member:
        The collection field, e.g. ``Member("scores", list[int])``.
    element_pipeline:
        Pipeline run once per located cell.  Defaults to a pipeline
        auto-configured for the annotation's element type.
    collection_factory:
        Builds the field value from the ordered element list.  Defaults to
        the annotation's collection type.
    config:
        Default separators, split options and element policies.
    registry:
        Converters used by the default element pipeline.
    """

    def __init__(
        self,
        member: Member,
        element_pipeline: Optional[ValuePipeline] = None,
        collection_factory: Optional[CollectionFactory] = None,
        config: Optional[MapperConfig] = None,
        registry: Optional[ConverterRegistry] = None,
    ) -> None:
        super().__init__(member, config)

        if element_pipeline is None:
            element_pipeline = ValuePipeline()
            auto_configure(
                element_pipeline, element_type_of(member.annotation), registry
            )
        self._element_pipeline = element_pipeline
        self._collection_factory = (
            collection_factory or collection_factory_for(member.annotation)
        )

        split = self._config.split
        self._reader: MultipleCellValuesReader = _split_reader(
            ColumnNameValueReader(member.name), split.separators, split.options
        )
        self._empty_policy = self._config.enumerable.empty_element_policy
        self._invalid_policy = self._config.enumerable.invalid_element_policy
        self._sealed = False

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def element_pipeline(self) -> ValuePipeline:
        return self._element_pipeline

    @property
    def columns_reader(self) -> MultipleCellValuesReader:
        return self._reader

    @property
    def empty_element_policy(self) -> ElementPolicy:
        return self._empty_policy

    @property
    def invalid_element_policy(self) -> ElementPolicy:
        return self._invalid_policy

    def _ensure_configurable(self) -> None:
        if self._sealed:
            raise ConfigurationError(
                f"Map for {self.member.name!r} cannot be reconfigured once "
                f"mapping has started"
            )

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def with_element_map(
        self, element_map: Callable[[ValuePipeline], ValuePipeline]
    ) -> "EnumerablePropertyMap":
        """Replace the element pipeline with ``element_map(current_pipeline)``."""
        self._ensure_configurable()
        if element_map is None:
            raise NullConfigurationError("element_map must not be None")
        pipeline = element_map(self._element_pipeline)
        if pipeline is None:
            raise NullConfigurationError("element_map must return a pipeline")
        self._element_pipeline = pipeline
        return self

    def with_column_name(self, column_name: str) -> "EnumerablePropertyMap":
        """Split the cell in the column with heading *column_name*."""
        return self._with_cell_reader(ColumnNameValueReader(column_name))

    def with_column_index(self, column_index: int) -> "EnumerablePropertyMap":
        """Split the cell at zero-based *column_index*."""
        return self._with_cell_reader(ColumnIndexValueReader(column_index))

    def _with_cell_reader(self, cell_reader: CellValueReader) -> "EnumerablePropertyMap":
        self._ensure_configurable()
        if isinstance(self._reader, SplitCellValueReader):
            self._reader.cell_reader = cell_reader
        else:
            split = self._config.split
            self._reader = _split_reader(cell_reader, split.separators, split.options)
        logger.debug("%r now reads %r", self.member.name, self._reader)
        return self

    def with_separators(self, *separators: str) -> "EnumerablePropertyMap":
        """Split the cell on any of *separators*.

        Single characters give a character split; anything longer a string
        split.  Only valid while the map reads a single split cell.
        """
        self._ensure_configurable()
        seps = _flatten(separators, "separators")
        if not seps:
            raise NullConfigurationError("separators must not be empty")
        if not isinstance(self._reader, SplitCellValueReader):
            raise SplitReaderMisuseError(
                f"The mapping for {self.member.name!r} comes from multiple "
                f"columns, so cannot be split."
            )
        self._reader = _split_reader(
            self._reader.cell_reader, seps, self._reader.options
        )
        return self

    def with_split_options(self, options: SplitOptions) -> "EnumerablePropertyMap":
        """Set trimming / empty-segment handling on the split cell reader."""
        self._ensure_configurable()
        if not isinstance(self._reader, SplitCellValueReader):
            raise SplitReaderMisuseError(
                f"The mapping for {self.member.name!r} comes from multiple "
                f"columns, so has no split options."
            )
        self._reader.options = options
        return self

    def with_column_names(self, *column_names: str) -> "EnumerablePropertyMap":
        """Read one element from each named column, in order."""
        self._ensure_configurable()
        self._reader = MultipleColumnNamesValueReader(
            _flatten(column_names, "column_names")
        )
        return self

    def with_column_indices(self, *column_indices: int) -> "EnumerablePropertyMap":
        """Read one element from each indexed column, in order."""
        self._ensure_configurable()
        self._reader = MultipleColumnIndicesValueReader(
            _flatten(column_indices, "column_indices")
        )
        return self

    def with_element_policies(
        self,
        empty: Optional[ElementPolicy] = None,
        invalid: Optional[ElementPolicy] = None,
    ) -> "EnumerablePropertyMap":
        """Override what happens to elements no fallback resolved."""
        self._ensure_configurable()
        if empty is not None:
            self._empty_policy = ElementPolicy(empty)
        if invalid is not None:
            self._invalid_policy = ElementPolicy(invalid)
        return self

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def get_property_value(self, sheet: RowValueSource, row_index: int) -> Any:
        """Build the collection for *row_index*.

        Raises
        ------
        ColumnNotFoundError
            A column the reader needs is not on the sheet.
        EmptyValueError / InvalidValueError
            An element did not resolve and its policy is ``RAISE``.
        """
        self._sealed = True
        self._element_pipeline.seal()

        cells = self._reader.try_get_values(sheet, row_index)
        if cells is None:
            raise column_not_found_error(
                self.member.name, row_index, self._reader, sheet, self._config
            )

        elements: List[Any] = []
        for cell in cells:
            result = self._element_pipeline.run(cell)
            if result.is_completed:
                elements.append(result.value)
                continue

            if result.is_empty:
                if self._empty_policy is ElementPolicy.SKIP:
                    logger.debug(
                        "Skipped empty element of %r on row %d",
                        self.member.name, row_index,
                    )
                    continue
                raise EmptyValueError(self.member.name, result)

            if self._invalid_policy is ElementPolicy.SKIP:
                logger.warning(
                    "Skipped invalid element %r of %r on row %d",
                    cell.text, self.member.name, row_index,
                )
                continue
            raise InvalidValueError(self.member.name, result)

        return self._collection_factory(elements)

