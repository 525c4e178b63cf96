"""
Pipeline Items.

Each item is one step of a value pipeline: it receives a ``PipelineResult``
and returns a new one.

Conversion items classify the result from the cell text, whatever outcome
an earlier item left behind:

* empty or missing text           →  Empty
* text converted successfully     →  Completed(value)
* conversion raised anything      →  Invalid

Conversion failures never escape an item.  Mapping items run after
conversion and complete any result whose text they recognise; the other
items only act on the outcomes they handle and pass every other result
through unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from rapidfuzz import fuzz, process

from sheet_mapper.converters import DEFAULT_REGISTRY, Converter, ConverterRegistry
from sheet_mapper.errors import NullConfigurationError
from sheet_mapper.logging_setup import get_logger
from sheet_mapper.schema import PipelineResult

logger = get_logger("items")


class PipelineItem(ABC):
    """One transformation step of a value pipeline."""

    @abstractmethod
    def try_map(self, result: PipelineResult) -> PipelineResult:
        """Return the result of applying this step to *result*."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ConvertingPipelineItem(PipelineItem):
    """Shared Empty / Completed / Invalid classification around a converter.

    The incoming outcome is ignored: the result is always reclassified from
    the text of its cell.
    """

    def try_map(self, result: PipelineResult) -> PipelineResult:
        text = result.text
        if text is None or text == "":
            return result.make_empty()

        try:
            value = self._convert(text)
        except Exception as exc:  # noqa: BLE001 - any failure is an Invalid outcome
            logger.debug(
                "%r could not convert %r on row %d: %s",
                self, text, result.context.row_index, exc,
            )
            return result.make_invalid()
        return result.make_completed(value)

    @abstractmethod
    def _convert(self, text: str) -> Any:
        ...


class ChangeTypePipelineItem(ConvertingPipelineItem):
    """Converts cell text to *target_type* using a converter registry.

    Parameters
    ----------
    target_type:
        Type the text is converted to.  Must be supported by *registry*.
    registry:
        Where the converter is looked up; ``DEFAULT_REGISTRY`` when omitted.
    """

    def __init__(
        self,
        target_type: Any,
        registry: Optional[ConverterRegistry] = None,
    ) -> None:
        self.target_type = target_type
        self._converter: Converter = (registry or DEFAULT_REGISTRY).converter_for(
            target_type
        )

    def _convert(self, text: str) -> Any:
        return self._converter(text)

    def __repr__(self) -> str:
        name = getattr(self.target_type, "__name__", repr(self.target_type))
        return f"ChangeTypePipelineItem({name})"


class ConvertUsingPipelineItem(ConvertingPipelineItem):
    """Converts cell text with a caller-supplied function."""

    def __init__(self, converter: Callable[[str], Any]) -> None:
        if converter is None:
            raise NullConfigurationError("converter must not be None")
        self._converter = converter

    def _convert(self, text: str) -> Any:
        return self._converter(text)


class ParseFormatsPipelineItem(ConvertingPipelineItem):
    """Parses dates and times with ``strptime``, trying each format in turn.

    Parameters
    ----------
    formats:
        ``strptime`` format strings; the first that parses wins.
    as_date:
        Return ``datetime.date`` instead of ``datetime.datetime``.
    """

    def __init__(self, formats: Sequence[str], as_date: bool = False) -> None:
        if not formats:
            raise NullConfigurationError("formats must not be empty")
        self.formats = tuple(formats)
        self.as_date = as_date

    def _convert(self, text: str) -> Any:
        stripped = text.strip()
        for fmt in self.formats:
            try:
                parsed = datetime.strptime(stripped, fmt)
            except ValueError:
                continue
            return parsed.date() if self.as_date else parsed
        raise ValueError(f"{text!r} matches none of {list(self.formats)}")


class TrimPipelineItem(PipelineItem):
    """Strips surrounding whitespace from text that is still unclassified."""

    def try_map(self, result: PipelineResult) -> PipelineResult:
        if not result.is_pending or result.text is None:
            return result
        return result.with_text(result.text.strip())


class MapDictionaryPipelineItem(PipelineItem):
    """Completes a result whose text is a key of *mapping*.

    Recognised text wins over whatever outcome a conversion produced;
    unknown text is passed through unchanged.
    """

    def __init__(
        self, mapping: Mapping[str, Any], ignore_case: bool = False
    ) -> None:
        if mapping is None:
            raise NullConfigurationError("mapping must not be None")
        self.ignore_case = ignore_case
        self._mapping: Dict[str, Any] = {
            (k.casefold() if ignore_case else k): v for k, v in mapping.items()
        }

    def try_map(self, result: PipelineResult) -> PipelineResult:
        if result.text is None:
            return result
        key = result.text.casefold() if self.ignore_case else result.text
        if key in self._mapping:
            return result.make_completed(self._mapping[key])
        return result


class FuzzyMapPipelineItem(PipelineItem):
    """Completes a result with the value of the closest key in *mapping*.

    Keys are compared case-insensitively with ``rapidfuzz``; the best key
    must score at least *threshold* (0-100) for its value to replace the
    current outcome.  Below it, the result is passed through.
    """

    def __init__(self, mapping: Mapping[str, Any], threshold: float = 80.0) -> None:
        if not mapping:
            raise NullConfigurationError("mapping must not be empty")
        self.threshold = threshold
        self._values: Dict[str, Any] = {k.lower(): v for k, v in mapping.items()}
        self._keys = list(self._values)

    def try_map(self, result: PipelineResult) -> PipelineResult:
        if not result.text:
            return result
        query = result.text.strip().lower()
        best = process.extractOne(query, self._keys, scorer=fuzz.WRatio)
        if best is None or best[1] < self.threshold:
            return result
        key, score, _ = best
        logger.debug("Fuzzy mapped %r -> %r (score=%.1f)", result.text, key, score)
        return result.make_completed(self._values[key])


class ValidatePipelineItem(PipelineItem):
    """Downgrades a Completed result to Invalid when *predicate* rejects it."""

    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        if predicate is None:
            raise NullConfigurationError("predicate must not be None")
        self._predicate = predicate

    def try_map(self, result: PipelineResult) -> PipelineResult:
        if not result.is_completed:
            return result
        try:
            accepted = bool(self._predicate(result.value))
        except Exception as exc:  # noqa: BLE001 - a failing check rejects the value
            logger.debug("Validation of %r raised: %s", result.value, exc)
            accepted = False
        return result if accepted else result.make_invalid()
