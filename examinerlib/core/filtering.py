"""Filter engine for ExaminerLib.

Answers two independent questions for every member: should its value be
reported (examine), and should the traversal descend into it (recurse).

Both axes run the same two passes:

1. Blacklist pass: every active blacklist collection is checked. A match
   denies immediately.
2. Whitelist pass: if no whitelist collection is active, whatever survived
   the blacklists is allowed. Otherwise at least one active whitelist
   collection must match.

Type-keyed rules match by assignability, so a rule naming a base class
matches all of its subclasses.
"""

from typing import Any, Iterable

from ..config import (
    FLAG_LAYOUT,
    FilterAxis,
    FilterDimension,
    FilterFlags,
    Settings,
    flags_for,
)
from .members import MemberDescriptor
from .scalars import is_scalar_type

_BLACKLIST_FLAGS = {axis: flags_for(axis, whitelist=False) for axis in FilterAxis}
_WHITELIST_FLAGS = {axis: flags_for(axis, whitelist=True) for axis in FilterAxis}
_ALL_WHITELISTS = {
    FilterAxis.EXAMINE: FilterFlags.ALL_EXAMINE_WHITELISTS,
    FilterAxis.RECURSE: FilterFlags.ALL_RECURSE_WHITELISTS,
}


def matches_type_hierarchy(candidate: Any, filter_types: Iterable[Any]) -> bool:
    """Check if a type equals or derives from any type in a rule collection.

    Args:
        candidate: The type being tested
        filter_types: Types named by the rules

    Returns:
        True if candidate is one of, or a subclass of, the filter types
    """
    # Fast path: exact match
    if candidate in filter_types:
        return True

    if not isinstance(candidate, type):
        return False

    for filter_type in filter_types:
        try:
            if isinstance(filter_type, type) and issubclass(candidate, filter_type):
                return True
        except TypeError:
            continue
    return False


def _pair_matches(declaring_type: Any, second: Any, pairs: Iterable[Any], second_is_type: bool) -> bool:
    for rule_declaring, rule_second in pairs:
        if not matches_type_hierarchy(declaring_type, (rule_declaring,)):
            continue
        if second_is_type:
            if matches_type_hierarchy(second, (rule_second,)):
                return True
        elif second == rule_second:
            return True
    return False


def rule_matches(flag: FilterFlags, declaring_type: Any, member: MemberDescriptor,
                 settings: Settings) -> bool:
    """Check one rule collection against a member, ignoring whether it is active."""
    collection = settings.rules[flag]
    dimension = FLAG_LAYOUT[flag][2]

    if dimension is FilterDimension.TYPES:
        return matches_type_hierarchy(member.value_type, collection)
    if dimension is FilterDimension.NAMES:
        return member.name in collection
    if dimension is FilterDimension.TYPE_TYPE_PAIRS:
        if (declaring_type, member.value_type) in collection:
            return True
        return _pair_matches(declaring_type, member.value_type, collection, second_is_type=True)
    if dimension is FilterDimension.TYPE_NAME_PAIRS:
        if (declaring_type, member.name) in collection:
            return True
        return _pair_matches(declaring_type, member.name.casefold(), collection, second_is_type=False)
    return False


def _passes(axis: FilterAxis, declaring_type: Any, member: MemberDescriptor,
            settings: Settings) -> bool:
    active = settings.active_filters

    # Blacklist pass: any active match denies
    for flag in _BLACKLIST_FLAGS[axis]:
        if active & flag and rule_matches(flag, declaring_type, member, settings):
            return False

    # Whitelist pass: default-permit when none is active
    if not active & _ALL_WHITELISTS[axis]:
        return True

    for flag in _WHITELIST_FLAGS[axis]:
        if active & flag and rule_matches(flag, declaring_type, member, settings):
            return True
    return False


def should_examine(declaring_type: Any, member: MemberDescriptor, settings: Settings) -> bool:
    """Should this member's value be read and reported?"""
    return _passes(FilterAxis.EXAMINE, declaring_type, member, settings)


def should_recurse(declaring_type: Any, member: MemberDescriptor, settings: Settings) -> bool:
    """Should the traversal descend into this member's value?

    Scalar value types are never recursed into; no rule can override that.
    """
    if is_scalar_type(member.value_type):
        return False
    return _passes(FilterAxis.RECURSE, declaring_type, member, settings)


def should_include_component_type(component_type: Any, settings: Settings) -> bool:
    """Type-only variant of the recurse filter, used by the hierarchy mapper."""
    active = settings.active_filters

    if (active & FilterFlags.RECURSE_BLACKLIST_TYPES
            and matches_type_hierarchy(component_type,
                                       settings.rules[FilterFlags.RECURSE_BLACKLIST_TYPES])):
        return False

    if active & FilterFlags.RECURSE_WHITELIST_TYPES:
        return matches_type_hierarchy(component_type,
                                      settings.rules[FilterFlags.RECURSE_WHITELIST_TYPES])

    return True


def is_recurse_blacklisted_type(candidate: Any, settings: Settings) -> bool:
    """True if a runtime type is in the active recurse type blacklist.

    Values of such types are reported but never opened, so iterators and
    generators found through untyped members or elements are not drained.
    """
    if not settings.active_filters & FilterFlags.RECURSE_BLACKLIST_TYPES:
        return False
    return matches_type_hierarchy(candidate,
                                  settings.rules[FilterFlags.RECURSE_BLACKLIST_TYPES])


def should_skip_enumerable(element_type: Any, settings: Settings) -> bool:
    """True if an enumerable's declared element type is recurse-blacklisted."""
    if element_type is None:
        return False
    if not settings.active_filters & FilterFlags.RECURSE_BLACKLIST_TYPES:
        return False
    return matches_type_hierarchy(element_type,
                                  settings.rules[FilterFlags.RECURSE_BLACKLIST_TYPES])
