"""Configuration system for ExaminerLib.

This module defines how users specify what a dump, compare or map should
look at: which of the sixteen filter rule collections are enforced, what
gets reported, and the structural limits that keep a walk bounded.
"""

import collections.abc
import copy
import logging
import threading
import types
import weakref
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntFlag
from typing import Any, Dict, Iterable, Iterator, List, Tuple


class FilterFlags(IntFlag):
    """Selects which of the sixteen rule collections are enforced.

    Each bit activates one collection. Inactive collections keep their
    content and are simply not consulted.
    """
    NONE = 0

    EXAMINE_BLACKLIST_TYPES = 1 << 0
    EXAMINE_WHITELIST_TYPES = 1 << 1
    EXAMINE_BLACKLIST_NAMES = 1 << 2
    EXAMINE_WHITELIST_NAMES = 1 << 3
    EXAMINE_BLACKLIST_TYPE_TYPE_PAIRS = 1 << 4
    EXAMINE_WHITELIST_TYPE_TYPE_PAIRS = 1 << 5
    EXAMINE_BLACKLIST_TYPE_NAME_PAIRS = 1 << 6
    EXAMINE_WHITELIST_TYPE_NAME_PAIRS = 1 << 7

    RECURSE_BLACKLIST_TYPES = 1 << 8
    RECURSE_WHITELIST_TYPES = 1 << 9
    RECURSE_BLACKLIST_NAMES = 1 << 10
    RECURSE_WHITELIST_NAMES = 1 << 11
    RECURSE_BLACKLIST_TYPE_TYPE_PAIRS = 1 << 12
    RECURSE_WHITELIST_TYPE_TYPE_PAIRS = 1 << 13
    RECURSE_BLACKLIST_TYPE_NAME_PAIRS = 1 << 14
    RECURSE_WHITELIST_TYPE_NAME_PAIRS = 1 << 15

    ALL_EXAMINE_BLACKLISTS = (EXAMINE_BLACKLIST_TYPES | EXAMINE_BLACKLIST_NAMES
                              | EXAMINE_BLACKLIST_TYPE_TYPE_PAIRS
                              | EXAMINE_BLACKLIST_TYPE_NAME_PAIRS)
    ALL_EXAMINE_WHITELISTS = (EXAMINE_WHITELIST_TYPES | EXAMINE_WHITELIST_NAMES
                              | EXAMINE_WHITELIST_TYPE_TYPE_PAIRS
                              | EXAMINE_WHITELIST_TYPE_NAME_PAIRS)
    ALL_RECURSE_BLACKLISTS = (RECURSE_BLACKLIST_TYPES | RECURSE_BLACKLIST_NAMES
                              | RECURSE_BLACKLIST_TYPE_TYPE_PAIRS
                              | RECURSE_BLACKLIST_TYPE_NAME_PAIRS)
    ALL_RECURSE_WHITELISTS = (RECURSE_WHITELIST_TYPES | RECURSE_WHITELIST_NAMES
                              | RECURSE_WHITELIST_TYPE_TYPE_PAIRS
                              | RECURSE_WHITELIST_TYPE_NAME_PAIRS)

    ALL_BLACKLISTS = ALL_EXAMINE_BLACKLISTS | ALL_RECURSE_BLACKLISTS
    ALL_WHITELISTS = ALL_EXAMINE_WHITELISTS | ALL_RECURSE_WHITELISTS
    ALL = 0xFFFF


class ReportFlags(IntFlag):
    """Which classifications are written out during dump and compare."""
    NONE = 0
    NULL_MISMATCH = 1 << 0
    BOTH_NULL = 1 << 1
    REFERENCE_DIFFERENT = 1 << 2
    VALUE_DIFFERENT = 1 << 3
    REFERENCE_EQUAL = 1 << 4
    VALUE_EQUAL = 1 << 5
    LENGTH_MISMATCH = 1 << 6
    MAX_DEPTH = 1 << 7
    ERROR = 1 << 8
    TRUNCATED = 1 << 11     # Compare stopped at max_enumerable_items

    # Dump-specific
    DUMP_VALUE = 1 << 9
    DUMP_NULL = 1 << 10

    DEFAULT_COMPARE = NULL_MISMATCH | VALUE_DIFFERENT | LENGTH_MISMATCH | TRUNCATED
    DEFAULT_DUMP = DUMP_VALUE | DUMP_NULL | MAX_DEPTH | ERROR


class OutputFormat(Enum):
    """How dump results are rendered."""
    CONSOLE = "console"     # Indented report lines
    JSON = "json"           # Structured document serialized to JSON


class FilterAxis(Enum):
    """The two independent decisions made for every member."""
    EXAMINE = "examine"     # Report the value
    RECURSE = "recurse"     # Descend into the value


class FilterDimension(Enum):
    """What a rule collection is keyed by."""
    TYPES = "types"                     # Member value type
    NAMES = "names"                     # Member name, case-insensitive
    TYPE_TYPE_PAIRS = "type_type"       # (declaring type, value type)
    TYPE_NAME_PAIRS = "type_name"       # (declaring type, member name)


# flag -> (axis, is_whitelist, dimension)
FLAG_LAYOUT: Dict[FilterFlags, Tuple[FilterAxis, bool, FilterDimension]] = {
    FilterFlags.EXAMINE_BLACKLIST_TYPES: (FilterAxis.EXAMINE, False, FilterDimension.TYPES),
    FilterFlags.EXAMINE_WHITELIST_TYPES: (FilterAxis.EXAMINE, True, FilterDimension.TYPES),
    FilterFlags.EXAMINE_BLACKLIST_NAMES: (FilterAxis.EXAMINE, False, FilterDimension.NAMES),
    FilterFlags.EXAMINE_WHITELIST_NAMES: (FilterAxis.EXAMINE, True, FilterDimension.NAMES),
    FilterFlags.EXAMINE_BLACKLIST_TYPE_TYPE_PAIRS: (FilterAxis.EXAMINE, False, FilterDimension.TYPE_TYPE_PAIRS),
    FilterFlags.EXAMINE_WHITELIST_TYPE_TYPE_PAIRS: (FilterAxis.EXAMINE, True, FilterDimension.TYPE_TYPE_PAIRS),
    FilterFlags.EXAMINE_BLACKLIST_TYPE_NAME_PAIRS: (FilterAxis.EXAMINE, False, FilterDimension.TYPE_NAME_PAIRS),
    FilterFlags.EXAMINE_WHITELIST_TYPE_NAME_PAIRS: (FilterAxis.EXAMINE, True, FilterDimension.TYPE_NAME_PAIRS),
    FilterFlags.RECURSE_BLACKLIST_TYPES: (FilterAxis.RECURSE, False, FilterDimension.TYPES),
    FilterFlags.RECURSE_WHITELIST_TYPES: (FilterAxis.RECURSE, True, FilterDimension.TYPES),
    FilterFlags.RECURSE_BLACKLIST_NAMES: (FilterAxis.RECURSE, False, FilterDimension.NAMES),
    FilterFlags.RECURSE_WHITELIST_NAMES: (FilterAxis.RECURSE, True, FilterDimension.NAMES),
    FilterFlags.RECURSE_BLACKLIST_TYPE_TYPE_PAIRS: (FilterAxis.RECURSE, False, FilterDimension.TYPE_TYPE_PAIRS),
    FilterFlags.RECURSE_WHITELIST_TYPE_TYPE_PAIRS: (FilterAxis.RECURSE, True, FilterDimension.TYPE_TYPE_PAIRS),
    FilterFlags.RECURSE_BLACKLIST_TYPE_NAME_PAIRS: (FilterAxis.RECURSE, False, FilterDimension.TYPE_NAME_PAIRS),
    FilterFlags.RECURSE_WHITELIST_TYPE_NAME_PAIRS: (FilterAxis.RECURSE, True, FilterDimension.TYPE_NAME_PAIRS),
}


def flags_for(axis: FilterAxis, whitelist: bool) -> List[FilterFlags]:
    """Return the four single-collection flags for one axis and polarity."""
    return [flag for flag, (a, w, _) in FLAG_LAYOUT.items()
            if a is axis and w is whitelist]


class RuleCollection:
    """A set of filter rules for one dimension on one axis.

    Names are stored casefolded so lookups are case-insensitive; for
    (type, name) pairs only the name half is casefolded.
    """

    def __init__(self, dimension: FilterDimension, entries: Iterable[Any] = ()):
        self.dimension = dimension
        self._entries = set()
        self.merge(entries)

    def _normalize(self, entry: Any) -> Any:
        if self.dimension is FilterDimension.NAMES:
            return str(entry).casefold()
        if self.dimension is FilterDimension.TYPE_NAME_PAIRS:
            declaring_type, name = entry
            return (declaring_type, str(name).casefold())
        if self.dimension is FilterDimension.TYPE_TYPE_PAIRS:
            declaring_type, value_type = entry
            return (declaring_type, value_type)
        return entry

    def replace(self, entries: Iterable[Any]) -> None:
        self._entries = set()
        self.merge(entries)

    def merge(self, entries: Iterable[Any]) -> None:
        for entry in entries:
            self._entries.add(self._normalize(entry))

    def strip(self, entries: Iterable[Any]) -> None:
        for entry in entries:
            self._entries.discard(self._normalize(entry))

    def __contains__(self, entry: Any) -> bool:
        return self._normalize(entry) in self._entries

    def __iter__(self) -> Iterator[Any]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def copy(self) -> 'RuleCollection':
        clone = RuleCollection(self.dimension)
        clone._entries = set(self._entries)
        return clone

    def __repr__(self) -> str:
        return f"RuleCollection({self.dimension.value}, {len(self._entries)} entries)"


# Types that are never worth reading or descending into.
_RUNTIME_PLUMBING_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
    types.GeneratorType,
    types.CoroutineType,
    collections.abc.Iterator,
    type(threading.Lock()),
    type(threading.RLock()),
    threading.Event,
)

DEFAULT_RULES: Dict[FilterFlags, Tuple[Any, ...]] = {
    FilterFlags.EXAMINE_BLACKLIST_TYPES: _RUNTIME_PLUMBING_TYPES,
    FilterFlags.EXAMINE_BLACKLIST_NAMES: (
        "", "__weakref__", "_abc_impl", "parent", "pointer", "token", "_source",
    ),
    FilterFlags.EXAMINE_WHITELIST_TYPES: (bool, int, float, complex, str, Decimal, Enum),
    FilterFlags.EXAMINE_WHITELIST_NAMES: (
        "enabled", "active", "name", "id", "tag", "layer",
        "position", "rotation", "scale",
    ),
    FilterFlags.RECURSE_BLACKLIST_TYPES: _RUNTIME_PLUMBING_TYPES + (
        logging.Logger, weakref.ref, type,
    ),
    FilterFlags.RECURSE_BLACKLIST_NAMES: ("parent", "owner", "pointer", "token", "_source"),
}


class FilterRules:
    """The sixteen rule collections, keyed by their single FilterFlags bit."""

    def __init__(self, collections: Dict[FilterFlags, RuleCollection]):
        self._collections = collections

    @classmethod
    def defaults(cls) -> 'FilterRules':
        """Create rules populated with the default content."""
        collections = {}
        for flag, (_, _, dimension) in FLAG_LAYOUT.items():
            collections[flag] = RuleCollection(dimension, DEFAULT_RULES.get(flag, ()))
        return cls(collections)

    @classmethod
    def empty(cls) -> 'FilterRules':
        """Create rules with every collection empty."""
        return cls({flag: RuleCollection(dimension)
                    for flag, (_, _, dimension) in FLAG_LAYOUT.items()})

    def __getitem__(self, flag: FilterFlags) -> RuleCollection:
        return self._collections[_single_flag(flag)]

    def items(self):
        return self._collections.items()

    def copy(self) -> 'FilterRules':
        return FilterRules({flag: rules.copy() for flag, rules in self._collections.items()})


def _single_flag(flag: FilterFlags) -> FilterFlags:
    try:
        flag = FilterFlags(flag)
    except ValueError:
        raise ValueError(f"Not a filter flag: {flag!r}") from None
    if flag not in FLAG_LAYOUT:
        raise ValueError(
            f"{flag!r} does not name exactly one rule collection; "
            f"pass a single flag such as FilterFlags.EXAMINE_BLACKLIST_NAMES"
        )
    return flag


@dataclass
class Settings:
    """Complete configuration for dump, compare and map.

    All sixteen rule collections are populated with defaults on construction,
    but no collection is enforced until a flag activates it. Settings should
    be fully configured before a traversal starts and not touched while one
    is running.
    """

    # Which rule collections are enforced
    active_filters: FilterFlags = FilterFlags.NONE

    # What gets reported; set by for_dump()/for_compare()
    report_flags: ReportFlags = ReportFlags.NONE

    # Structural limits
    max_depth: int = 5                  # Member recursion depth for dump/compare
    max_enumerable_items: int = 50      # Elements visited per enumerable
    max_tree_depth: int = 10            # Hierarchy depth for map

    # Map behaviour
    prune_empty_branches: bool = True

    # Output
    description: str = ""
    output_format: OutputFormat = OutputFormat.CONSOLE

    rules: FilterRules = field(default_factory=FilterRules.defaults)

    # Flag activation

    def with_blacklist(self) -> 'Settings':
        """Activate every blacklist collection (OR'd into existing flags)."""
        self.active_filters |= FilterFlags.ALL_BLACKLISTS
        return self

    def with_whitelist(self) -> 'Settings':
        """Activate every whitelist collection (OR'd into existing flags)."""
        self.active_filters |= FilterFlags.ALL_WHITELISTS
        return self

    def with_filter_flags(self, flags: FilterFlags) -> 'Settings':
        """Replace the active flags entirely."""
        self.active_filters = FilterFlags(flags)
        return self

    def add_filter_flags(self, flags: FilterFlags) -> 'Settings':
        self.active_filters |= flags
        return self

    def strip_filter_flags(self, flags: FilterFlags) -> 'Settings':
        self.active_filters &= ~flags
        return self

    # Operation presets

    def for_dump(self) -> 'Settings':
        self.report_flags = ReportFlags.DEFAULT_DUMP
        return self

    def for_compare(self) -> 'Settings':
        self.report_flags = ReportFlags.DEFAULT_COMPARE
        return self

    def for_map(self, max_tree_depth: int = 10, prune_empty: bool = True) -> 'Settings':
        self.max_tree_depth = max_tree_depth
        self.prune_empty_branches = prune_empty
        self.report_flags = ReportFlags.NONE
        return self

    # Rule content

    def with_rules(self, flag: FilterFlags, *entries: Any) -> 'Settings':
        """Replace the content of one rule collection."""
        self.rules[flag].replace(entries)
        return self

    def merge_rules(self, flag: FilterFlags, *entries: Any) -> 'Settings':
        """Add entries to one rule collection."""
        self.rules[flag].merge(entries)
        return self

    def strip_rules(self, flag: FilterFlags, *entries: Any) -> 'Settings':
        """Remove entries from one rule collection."""
        self.rules[flag].strip(entries)
        return self

    # Scalar settings

    def with_max_depth(self, depth: int) -> 'Settings':
        self.max_depth = depth
        return self

    def with_max_enumerable_items(self, count: int) -> 'Settings':
        self.max_enumerable_items = count
        return self

    def with_max_tree_depth(self, depth: int) -> 'Settings':
        self.max_tree_depth = depth
        return self

    def with_prune_empty_branches(self, prune: bool) -> 'Settings':
        self.prune_empty_branches = prune
        return self

    def with_description(self, description: str) -> 'Settings':
        self.description = description
        return self

    def with_output_format(self, output_format: OutputFormat) -> 'Settings':
        self.output_format = output_format
        return self

    def with_report_flags(self, flags: ReportFlags) -> 'Settings':
        self.report_flags = ReportFlags(flags)
        return self

    # Convenience constructors

    @classmethod
    def blacklist(cls) -> 'Settings':
        """All blacklists active, nothing else."""
        return cls().with_blacklist()

    @classmethod
    def whitelist(cls) -> 'Settings':
        """All whitelists active, nothing else."""
        return cls().with_whitelist()

    @classmethod
    def strict(cls) -> 'Settings':
        """All blacklists and all whitelists active (most restrictive)."""
        return cls().with_blacklist().with_whitelist()

    def copy(self) -> 'Settings':
        """Independent copy, including rule content."""
        clone = copy.copy(self)
        clone.rules = self.rules.copy()
        return clone

    def validate(self) -> List[str]:
        """Validate settings for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.active_filters, FilterFlags):
            errors.append("active_filters must be a FilterFlags value")
        if not isinstance(self.report_flags, ReportFlags):
            errors.append("report_flags must be a ReportFlags value")

        if self.max_depth < 0:
            errors.append("max_depth cannot be negative")
        if self.max_enumerable_items < 0:
            errors.append("max_enumerable_items cannot be negative")
        if self.max_tree_depth < 0:
            errors.append("max_tree_depth cannot be negative")

        if not isinstance(self.output_format, OutputFormat):
            errors.append(f"Unknown output format: {self.output_format!r}")

        return errors
