"""
Default pipeline configuration derived from a field's type annotation.
"""

from __future__ import annotations

import types
import typing
from typing import TYPE_CHECKING, Any, Optional, Tuple

from sheet_mapper.converters import DEFAULT_REGISTRY, ConverterRegistry
from sheet_mapper.errors import ConfigurationError
from sheet_mapper.items import ChangeTypePipelineItem
from sheet_mapper.logging_setup import get_logger

if TYPE_CHECKING:
    from sheet_mapper.pipeline import ValuePipeline

logger = get_logger("automap")

_UNION_TYPES: Tuple[Any, ...] = (typing.Union,)
if hasattr(types, "UnionType"):
    _UNION_TYPES += (types.UnionType,)


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split ``Optional[X]`` into ``(X, True)``; anything else is ``(annotation, False)``."""
    if typing.get_origin(annotation) in _UNION_TYPES:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) < len(typing.get_args(annotation)):
            return args[0], True
    return annotation, False


def auto_configure(
    pipeline: "ValuePipeline",
    annotation: Any,
    registry: Optional[ConverterRegistry] = None,
) -> None:
    """Install the conversion for *annotation* on *pipeline*.

    ``Optional[X]`` gets an empty fallback of ``None`` so that blank cells map
    to ``None``; ``Any`` and ``object`` keep the cell text as a string.

    Raises ``ConfigurationError`` when *registry* cannot convert to the
    annotated type.
    """
    registry = registry or DEFAULT_REGISTRY
    target, optional = unwrap_optional(annotation)
    if target is Any or target is object:
        target = str
    if not registry.supports(target):
        raise ConfigurationError(
            f"Cannot map annotation {annotation!r} automatically: no converter "
            f"for {target!r}. Register one or configure the pipeline explicitly."
        )
    if optional and pipeline.empty_fallback is None:
        pipeline.with_empty_fallback(None)
    pipeline.add_item(ChangeTypePipelineItem(target, registry))
    logger.debug("Auto-configured %r for %r", pipeline, annotation)
