"""High-level API for ExaminerLib.

This module provides simple, functional interfaces for the three things the
library does: dump an object graph, compare two graphs, and map a component
hierarchy. These functions wrap the Walker, Comparer and HierarchyMapper
classes for ease of use in simple cases.
"""

import logging
from typing import Any, Callable, List, Optional, Union

from .config import OutputFormat, Settings
from .core.differ import Comparer, Difference
from .core.document import DocumentBuilder
from .core.mapper import HierarchyAdapter, HierarchyMap, HierarchyMapper
from .core.members import MemberCache
from .core.reporting import report_logger
from .core.scalars import type_name
from .core.sink import ConsoleSink, Sink
from .core.walker import Walker
from .errors import InvalidSettingsError, InvalidTargetError

logger = logging.getLogger(__name__)


def _resolve_settings(settings: Optional[Settings],
                      default: Callable[[], Settings]) -> Settings:
    if settings is None:
        settings = default()
    errors = settings.validate()
    if errors:
        raise InvalidSettingsError(f"Invalid settings: {'; '.join(errors)}")
    return settings


def _default_dump_settings() -> Settings:
    return Settings.blacklist().for_dump()


def _default_compare_settings() -> Settings:
    return Settings.blacklist().for_compare()


def _default_map_settings() -> Settings:
    return Settings.blacklist().for_map()


def qualified_name(cls: type) -> str:
    """``module.QualName`` for a type; builtins are left unqualified."""
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def display_name(obj: Any) -> str:
    """A string ``name`` attribute if the object has one, else its type name."""
    name = getattr(obj, "name", None)
    return name if isinstance(name, str) and name else type_name(type(obj))


def _walk_root(obj: Any, settings: Settings, sink: Sink,
               member_cache: Optional[MemberCache]) -> None:
    """Send one whole graph to a sink."""
    Walker(settings, sink, member_cache).dump(obj)


def dump(obj: Any,
         settings: Optional[Settings] = None,
         *,
         sink: Optional[Sink] = None,
         member_cache: Optional[MemberCache] = None) -> Union[List[str], str, Sink]:
    """Dump an object graph.

    Args:
        obj: Root of the graph
        settings: Filters and limits (default: all blacklists, dump reporting)
        sink: Receive the traversal events here instead of rendering them
        member_cache: Member descriptor cache (default: the shared one)

    Returns:
        The sink when one is given; otherwise the rendered report lines for
        console output, or the JSON text for JSON output

    Raises:
        InvalidTargetError: If obj is None
        InvalidSettingsError: If settings fail validation

    Example:
        >>> lines = dump(player, Settings.blacklist().for_dump().with_max_depth(2))
    """
    if obj is None:
        raise InvalidTargetError("Cannot dump None")
    settings = _resolve_settings(settings, _default_dump_settings)

    if sink is not None:
        _walk_root(obj, settings, sink, member_cache)
        return sink

    if settings.output_format is OutputFormat.JSON:
        text = dump_to_json(obj, settings, member_cache=member_cache)
        report_logger.info(text)
        return text

    console = ConsoleSink(settings)
    console.header(f"Dump of {display_name(obj)} ({qualified_name(type(obj))})",
                   settings.description)
    _walk_root(obj, settings, console, member_cache)
    return console.lines


def dump_to_document(obj: Any,
                     settings: Optional[Settings] = None,
                     *,
                     member_cache: Optional[MemberCache] = None) -> dict:
    """Build the structured document for an object graph.

    The document has one key, the root's type name.

    Raises:
        InvalidTargetError: If obj is None
    """
    if obj is None:
        raise InvalidTargetError("Cannot dump None")
    settings = _resolve_settings(settings, _default_dump_settings)

    builder = DocumentBuilder()
    _walk_root(obj, settings, builder, member_cache)
    return builder.finish()


def dump_to_json(obj: Any,
                 settings: Optional[Settings] = None,
                 *,
                 indent: Optional[int] = 2,
                 member_cache: Optional[MemberCache] = None) -> str:
    """Serialize an object graph's structured document to JSON.

    ``None`` serializes to the literal ``null``.
    """
    if obj is None:
        return "null"
    settings = _resolve_settings(settings, _default_dump_settings)

    builder = DocumentBuilder()
    _walk_root(obj, settings, builder, member_cache)
    builder.finish()
    return builder.to_json(indent=indent)


def compare(a: Any,
            b: Any,
            settings: Optional[Settings] = None,
            *,
            member_cache: Optional[MemberCache] = None) -> List[Difference]:
    """Compare two object graphs of the same type.

    Every classification enabled in ``settings.report_flags`` is logged to
    the ``examinerlib.report`` logger and returned.

    Raises:
        InvalidTargetError: If either side is None or their types differ
        InvalidSettingsError: If settings fail validation
    """
    if a is None or b is None:
        side = "both" if a is None and b is None else ("left" if a is None else "right")
        raise InvalidTargetError(f"Cannot compare None ({side} side)")
    if type(a) is not type(b):
        raise InvalidTargetError(
            f"Cannot compare {qualified_name(type(a))} with {qualified_name(type(b))}"
        )
    settings = _resolve_settings(settings, _default_compare_settings)

    logger.debug("Comparing two %s graphs", type_name(type(a)))
    return Comparer(settings, member_cache).compare(a, b)


def map_hierarchy(root: Any,
                  settings: Optional[Settings] = None,
                  *,
                  adapter: Optional[HierarchyAdapter] = None,
                  member_cache: Optional[MemberCache] = None) -> HierarchyMap:
    """Map a component hierarchy to a type legend and a tree.

    Args:
        root: Root node of the hierarchy
        settings: Filters and tree limits (default: all blacklists, map preset)
        adapter: How to navigate nodes (default: ``name``/``components``/``children``
            attributes)
        member_cache: Member descriptor cache used for the legend

    Raises:
        InvalidTargetError: If root is None
    """
    if root is None:
        raise InvalidTargetError("Cannot map None")
    settings = _resolve_settings(settings, _default_map_settings)

    result = HierarchyMapper(settings, adapter, member_cache).map(root)

    report_logger.info("")
    report_logger.info("=== Map of %s ===", result.tree.name)
    report_logger.info("")
    for line in result.lines:
        report_logger.info(line)
    return result
