"""
Text-to-type converters.

A ``ConverterRegistry`` maps a target type to a callable turning cell text
into a value of that type.  The converter is looked up once, when a pipeline
item is configured, so an unsupported target type fails at configuration
time rather than on the first row.

Converters signal failure by raising (``ConversionError`` for the built-in
ones); the pipeline items that call them turn any failure into an Invalid
outcome.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sheet_mapper.errors import ConfigurationError
from sheet_mapper.logging_setup import get_logger

logger = get_logger("converters")

Converter = Callable[[str], Any]


class ConversionError(ValueError):
    """Cell text could not be converted to the requested type."""


_TRUE_WORDS = frozenset({"true", "yes", "y", "1"})
_FALSE_WORDS = frozenset({"false", "no", "n", "0"})


def _to_str(text: str) -> str:
    return text


def _to_bool(text: str) -> bool:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConversionError(f"Cannot parse boolean from {text!r}")


def _to_decimal(text: str) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation as exc:
        raise ConversionError(f"Cannot parse decimal from {text!r}") from exc


def _to_datetime(text: str) -> datetime:
    return datetime.fromisoformat(text.strip())


def _to_date(text: str) -> date:
    stripped = text.strip()
    try:
        return date.fromisoformat(stripped)
    except ValueError:
        # Date cells come back from openpyxl as datetimes.
        return datetime.fromisoformat(stripped).date()


def _to_time(text: str) -> time:
    return time.fromisoformat(text.strip())


def enum_converter(enum_type: type) -> Converter:
    """Build a converter matching an enum member by name, then by value."""

    def convert(text: str) -> Enum:
        key = text.strip()
        if key in enum_type.__members__:
            return enum_type[key]
        for member in enum_type:
            if str(member.value) == key:
                return member
        raise ConversionError(
            f"{text!r} is not a member of {enum_type.__name__}"
        )

    return convert


class ConverterRegistry:
    """Lookup table of converters keyed by target type.

    Parameters
    ----------
    include_defaults:
        Start with converters for ``str``, ``int``, ``float``, ``Decimal``,
        ``bool``, ``date``, ``datetime`` and ``time``.
    """

    def __init__(self, include_defaults: bool = True) -> None:
        self._converters: Dict[type, Converter] = {}
        if include_defaults:
            self._converters.update({
                str: _to_str,
                int: int,
                float: float,
                Decimal: _to_decimal,
                bool: _to_bool,
                date: _to_date,
                datetime: _to_datetime,
                time: _to_time,
            })

    def register(self, target_type: type, converter: Converter) -> None:
        """Add or replace the converter for *target_type*."""
        if converter is None:
            raise ConfigurationError(
                f"Converter for {target_type!r} must not be None"
            )
        self._converters[target_type] = converter
        logger.debug("Registered converter for %r", target_type)

    def supports(self, target_type: Any) -> bool:
        return self._find(target_type) is not None

    def converter_for(self, target_type: Any) -> Converter:
        """Return the converter for *target_type* or raise ``ConfigurationError``."""
        converter = self._find(target_type)
        if converter is None:
            raise ConfigurationError(
                f"No converter registered for target type {target_type!r}"
            )
        return converter

    def convert(self, text: str, target_type: Any) -> Any:
        return self.converter_for(target_type)(text)

    def copy(self) -> "ConverterRegistry":
        clone = ConverterRegistry(include_defaults=False)
        clone._converters.update(self._converters)
        return clone

    def _find(self, target_type: Any) -> Optional[Converter]:
        converter = self._converters.get(target_type)
        if converter is not None:
            return converter
        if isinstance(target_type, type) and issubclass(target_type, Enum):
            return enum_converter(target_type)
        return None


DEFAULT_REGISTRY = ConverterRegistry()
