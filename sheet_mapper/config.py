"""
Configuration module for Sheet Mapper.

Every tuneable default used by sheets, readers, and property maps lives
here.  Nothing is hard-coded in the mapping modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from sheet_mapper.schema import ElementPolicy, SplitOptions


@dataclass(frozen=True)
class SheetConfig:
    """Controls how a grid of cells is turned into a row-value source."""

    # When False, columns can only be located by index.
    has_heading: bool = True

    # Zero-based row holding the column names; data rows follow it.
    heading_index: int = 0


@dataclass(frozen=True)
class SplitConfig:
    """Defaults for a freshly constructed split-cell reader."""

    separators: Tuple[str, ...] = (",",)
    options: SplitOptions = SplitOptions.NONE


@dataclass(frozen=True)
class EnumerableConfig:
    """How a collection-typed field treats elements that did not resolve."""

    # Element was empty and the element pipeline has no empty fallback.
    empty_element_policy: ElementPolicy = ElementPolicy.SKIP

    # Element was invalid and the element pipeline has no invalid fallback.
    invalid_element_policy: ElementPolicy = ElementPolicy.RAISE


@dataclass(frozen=True)
class MapperConfig:
    """Top-level configuration aggregating all sub-configs."""

    sheet: SheetConfig = field(default_factory=SheetConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    enumerable: EnumerableConfig = field(default_factory=EnumerableConfig)

    # Offer close heading names when a column name cannot be resolved.
    suggest_columns: bool = True

    # Minimum rapidfuzz similarity (0-100) for a heading to be suggested.
    suggestion_threshold: float = 80.0

    # Explicit namespace log level; None keeps whatever is configured.
    log_level: Optional[int] = None
