"""Diff engine for ExaminerLib.

Walks two object graphs in lock-step with the same filter, depth and cycle
machinery as the dump walker, and classifies every compared value:

    null mismatch -> both null -> value equal/different (scalars)
                               -> reference equal/different (everything else)

Enumerables are compared by parallel iteration; if one side runs out first
a length mismatch is reported and the rest of that enumerable is skipped.
Comparison stops after max_enumerable_items pairs with a truncation report;
sized enumerables whose lengths differ past that point still get their
length mismatch.
Every classification is computed, but only those enabled in the settings'
report flags are written out and returned.
"""

import logging
from collections.abc import Sized
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Iterator, List, Optional, Tuple

from ..config import ReportFlags, Settings
from .filtering import (
    is_recurse_blacklisted_type,
    should_examine,
    should_recurse,
    should_skip_enumerable,
)
from .identity import IdentityPairSet
from .members import MemberCache, MemberDescriptor, default_member_cache
from .reporting import construct_message, report, report_logger, with_member_type, with_values
from .scalars import is_enumerable, is_mapping, is_scalar, is_scalar_type, type_name
from .walker import describe_error

logger = logging.getLogger(__name__)

_VALUE_FLAGS = (ReportFlags.NULL_MISMATCH | ReportFlags.VALUE_DIFFERENT
                | ReportFlags.REFERENCE_DIFFERENT)

_EXHAUSTED = object()


class ErrorState(IntFlag):
    """Which side(s) of a comparison failed to read."""
    NONE = 0
    LEFT_SIDE = 1 << 0
    RIGHT_SIDE = 1 << 1
    BOTH = LEFT_SIDE | RIGHT_SIDE


@dataclass
class Difference:
    """One reported classification from a compare."""
    flag: ReportFlags
    path: str
    type_name: Optional[str] = None
    left: Any = None
    right: Any = None
    error_state: ErrorState = ErrorState.NONE
    message: str = ""
    depth: int = 0

    def render(self) -> str:
        """Format as a report line."""
        path = self.path
        if self.error_state:
            path = f"({_error_label(self.error_state)}) {path}"
        line = construct_message(self.flag, path, self.depth)
        if self.type_name is not None:
            line = with_member_type(line, self.type_name)
        if self.flag & _VALUE_FLAGS:
            line = with_values(line, self.left, self.right)
        if self.message:
            line = f"{line}: {self.message}"
        return line


def _error_label(state: ErrorState) -> str:
    if state == ErrorState.BOTH:
        return "Both"
    return "LeftSide" if state & ErrorState.LEFT_SIDE else "RightSide"


@dataclass
class DiffReporter:
    """Gates classifications by report flags, logs them and keeps them."""
    settings: Settings
    target: logging.Logger = report_logger
    differences: List[Difference] = field(default_factory=list)

    def maybe_report(self, flag: ReportFlags, path: str, depth: int, **details: Any) -> None:
        if not self.settings.report_flags & flag:
            return
        difference = Difference(flag=flag, path=path, depth=depth, **details)
        self.differences.append(difference)
        report(flag, difference.render(), self.target)


def _values_equal(left: Any, right: Any) -> bool:
    if left is right:
        return True
    try:
        return bool(left == right)
    except Exception:
        return False


def _length_of(items: Any) -> Optional[int]:
    if not isinstance(items, Sized):
        return None
    try:
        return len(items)
    except Exception as e:
        logger.debug("len() failed on %s: %s", type_name(type(items)), describe_error(e))
        return None


class Comparer:
    """Lock-step comparison of two object graphs."""

    def __init__(self, settings: Settings,
                 member_cache: Optional[MemberCache] = None,
                 reporter: Optional[DiffReporter] = None):
        self.settings = settings
        self.member_cache = member_cache or default_member_cache()
        self.reporter = reporter or DiffReporter(settings)

    def compare(self, a: Any, b: Any, path: Optional[str] = None) -> List[Difference]:
        """Compare two graphs from the top with a fresh visited-pair set.

        Returns only the differences found by this call, even when the
        reporter is reused and keeps earlier ones.
        """
        start = len(self.reporter.differences)
        root_type = type(a) if a is not None else type(b)
        self.compare_objects(a, b, root_type, path or type_name(root_type), 0,
                             IdentityPairSet())
        return self.reporter.differences[start:]

    def compare_objects(self,
                        a: Any,
                        b: Any,
                        declaring_type: Any,
                        path: str,
                        depth: int,
                        visited: IdentityPairSet,
                        element_type: Optional[type] = None) -> None:
        """Compare one pair of nodes.

        Args:
            a: Left node
            b: Right node
            declaring_type: Type whose members are being enumerated
            path: Fully-qualified path of this pair
            depth: Current depth (root = 0)
            visited: Unordered identity-pair set for this top-level call
            element_type: Declared element type when the nodes are enumerables
        """
        # Both-null is terminal and never recorded as a visited pair
        if a is None and b is None:
            self.reporter.maybe_report(ReportFlags.BOTH_NULL, path, depth)
            return

        if a is None or b is None:
            self.reporter.maybe_report(ReportFlags.NULL_MISMATCH, path, depth, left=a, right=b)
            return

        if depth >= self.settings.max_depth:
            self.reporter.maybe_report(ReportFlags.MAX_DEPTH, path, depth)
            return

        if is_scalar(a) or is_scalar(b):
            self.compare_values(a, b, path, type_name(type(a)), True, depth)
            return

        if (is_recurse_blacklisted_type(type(a), self.settings)
                or is_recurse_blacklisted_type(type(b), self.settings)):
            logger.debug("Not descending into %s: %s is recurse-blacklisted",
                         path, type_name(type(a)))
            return

        if visited.contains(a, b):
            return
        visited.add(a, b)

        if is_enumerable(a) and is_enumerable(b):
            self._compare_enumerables(a, b, path, depth, visited, element_type)
            return

        self._compare_members(a, b, declaring_type, path, depth, visited)

    def compare_values(self, left: Any, right: Any, path: str, declared_type_name: str,
                       scalar: bool, depth: int) -> None:
        """Classify one pair of values. Exactly one classification applies."""
        if (left is None) != (right is None):
            self.reporter.maybe_report(ReportFlags.NULL_MISMATCH, path, depth,
                                       type_name=declared_type_name, left=left, right=right)
            return

        if left is None:
            self.reporter.maybe_report(ReportFlags.BOTH_NULL, path, depth,
                                       type_name=declared_type_name)
            return

        if scalar:
            if _values_equal(left, right):
                self.reporter.maybe_report(ReportFlags.VALUE_EQUAL, path, depth,
                                           type_name=declared_type_name)
            else:
                self.reporter.maybe_report(ReportFlags.VALUE_DIFFERENT, path, depth,
                                           type_name=declared_type_name, left=left, right=right)
            return

        if left is right:
            self.reporter.maybe_report(ReportFlags.REFERENCE_EQUAL, path, depth,
                                       type_name=declared_type_name)
        else:
            self.reporter.maybe_report(ReportFlags.REFERENCE_DIFFERENT, path, depth,
                                       type_name=declared_type_name, left=left, right=right)

    def _read(self, owner: Any, member: MemberDescriptor) -> Tuple[Any, Optional[str]]:
        try:
            return self.member_cache.read(owner, member), None
        except Exception as e:
            return None, describe_error(e)

    def _compare_members(self, a: Any, b: Any, declaring_type: Any, path: str, depth: int,
                         visited: IdentityPairSet) -> None:
        try:
            members = self.member_cache.members_of(a)
        except Exception as e:
            self.reporter.maybe_report(ReportFlags.ERROR, path, depth,
                                       error_state=ErrorState.BOTH, message=describe_error(e))
            return

        for member in members:
            if not member.is_inspectable:
                continue

            examine = should_examine(declaring_type, member, self.settings)
            recurse = should_recurse(declaring_type, member, self.settings)
            if not examine and not recurse:
                continue

            member_path = f"{path}.{member.name}"
            left, left_error = self._read(a, member)
            if a is b:
                right, right_error = left, left_error
            else:
                right, right_error = self._read(b, member)

            state = ErrorState.NONE
            if left_error is not None:
                state |= ErrorState.LEFT_SIDE
            if right_error is not None:
                state |= ErrorState.RIGHT_SIDE

            if state:
                messages = [m for m in (left_error, right_error) if m is not None]
                if left_error is not None and left_error == right_error:
                    messages = [left_error]
                self.reporter.maybe_report(ReportFlags.ERROR, member_path, depth,
                                           type_name=member.type_name, error_state=state,
                                           message="; ".join(messages))
                if state == ErrorState.BOTH:
                    continue

            if examine:
                scalar = (is_scalar_type(member.value_type)
                          or is_scalar(left) and left is not None
                          or is_scalar(right) and right is not None)
                self.compare_values(left, right, member_path, member.type_name, scalar, depth)

            if (recurse and left is not None and right is not None
                    and not is_scalar(left) and not is_scalar(right)):
                self.compare_objects(left, right, type(left), member_path, depth + 1,
                                     visited, member.element_type)

    def _compare_enumerables(self, a: Any, b: Any, path: str, depth: int,
                             visited: IdentityPairSet, element_type: Optional[type]) -> None:
        if should_skip_enumerable(element_type, self.settings):
            logger.debug("Skipping %s: element type %s is recurse-blacklisted",
                         path, type_name(element_type))
            return

        keyed = is_mapping(a) and is_mapping(b)
        same = a is b

        try:
            left_items = iter(a.items() if keyed else a)
            right_items = left_items if same else iter(b.items() if keyed else b)
        except Exception as e:
            self.reporter.maybe_report(ReportFlags.ERROR, path, depth,
                                       error_state=ErrorState.BOTH, message=describe_error(e))
            return

        left_length = _length_of(a)
        right_length = left_length if same else _length_of(b)

        limit = self.settings.max_enumerable_items
        index = 0
        while True:
            left, left_error = self._advance(left_items)
            if same:
                right, right_error = left, left_error
            else:
                right, right_error = self._advance(right_items)

            if left_error is not None or right_error is not None:
                state = ErrorState.NONE
                if left_error is not None:
                    state |= ErrorState.LEFT_SIDE
                if right_error is not None:
                    state |= ErrorState.RIGHT_SIDE
                self.reporter.maybe_report(ReportFlags.ERROR, f"{path}[{index}]", depth + 1,
                                           error_state=state,
                                           message=left_error or right_error)
                return

            if left is _EXHAUSTED and right is _EXHAUSTED:
                return
            if left is _EXHAUSTED or right is _EXHAUSTED:
                self.reporter.maybe_report(ReportFlags.LENGTH_MISMATCH, path, depth)
                return

            if index >= limit:
                # Lengths past the cap are only known for sized enumerables
                if (left_length is not None and right_length is not None
                        and left_length != right_length):
                    self.reporter.maybe_report(ReportFlags.LENGTH_MISMATCH, path, depth,
                                               message=f"{left_length} vs {right_length} items")
                self.reporter.maybe_report(ReportFlags.TRUNCATED, path, depth,
                                           message=f"stopped after {limit} items")
                return

            if keyed:
                (left_key, left), (right_key, right) = left, right
                item_path = f"{path}[{left_key!r}]"
                if not _values_equal(left_key, right_key):
                    self.reporter.maybe_report(ReportFlags.VALUE_DIFFERENT, f"{path}[{index}]",
                                               depth + 1, type_name="key",
                                               left=left_key, right=right_key)
            else:
                item_path = f"{path}[{index}]"

            self._compare_element(left, right, item_path, depth + 1, visited)
            index += 1

    @staticmethod
    def _advance(items: Iterator[Any]) -> Tuple[Any, Optional[str]]:
        try:
            return next(items, _EXHAUSTED), None
        except Exception as e:
            return None, describe_error(e)

    def _compare_element(self, left: Any, right: Any, path: str, depth: int,
                         visited: IdentityPairSet) -> None:
        sample = left if left is not None else right
        scalar = sample is not None and (is_scalar(left) or is_scalar(right))
        self.compare_values(left, right, path, type_name(type(sample)), scalar, depth)

        if (left is not None and right is not None
                and not is_scalar(left) and not is_scalar(right)):
            self.compare_objects(left, right, type(left), path, depth, visited)
