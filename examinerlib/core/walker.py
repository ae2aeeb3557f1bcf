"""Traversal engine for ExaminerLib.

The Walker descends through an object graph to a bounded depth, asks the
filter engine about every member, and reports what it finds to a Sink.

Per node the state machine is:

1. None terminates silently.
2. ``depth >= max_depth`` emits a depth-limit marker and stops.
3. A non-scalar already in the visited set is skipped silently; otherwise
   it is added before descending.
4. Enumerables are walked element by element, up to max_enumerable_items.
5. Anything else is walked member by member.

A member getter that raises, or an iterator that breaks, is reported as an
error event and the walk moves on to the next sibling.

Values whose runtime type is in the active recurse type blacklist are
reported as values and never opened. This keeps one-shot iterators found
in untyped members or in collections intact.
"""

import logging
from typing import Any, Optional

from ..config import Settings
from .filtering import (
    is_recurse_blacklisted_type,
    should_examine,
    should_recurse,
    should_skip_enumerable,
)
from .identity import IdentitySet
from .members import MemberCache, MemberDescriptor, default_member_cache
from .scalars import is_enumerable, is_mapping, is_scalar, type_name
from .sink import Sink

logger = logging.getLogger(__name__)

NULL_TYPE_NAME = type(None).__name__


def last_path_segment(path: str) -> str:
    """``Player.stats.health`` -> ``health``."""
    return path.rsplit('.', 1)[-1]


def describe_error(error: BaseException) -> str:
    """Short message for a failed read."""
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


class Walker:
    """Depth-first, cycle-safe object graph walker.

    A Walker holds the settings, sink and member cache for one traversal
    configuration. Each top-level ``dump`` gets a fresh visited set.
    """

    def __init__(self, settings: Settings, sink: Sink,
                 member_cache: Optional[MemberCache] = None):
        """Initialize walker.

        Args:
            settings: Filter configuration and structural limits
            sink: Receiver of traversal events
            member_cache: Member descriptor cache (defaults to the shared one)
        """
        self.settings = settings
        self.sink = sink
        self.member_cache = member_cache or default_member_cache()

    def dump(self, obj: Any, path: Optional[str] = None) -> None:
        """Walk one object graph from the top, root container included.

        The root is addressed by its type name unless a path is given. A
        scalar root is a single value event.
        """
        root_name = type_name(type(obj))
        path = path or root_name
        if obj is None:
            self.sink.emit_null(root_name, NULL_TYPE_NAME, path=path, depth=0)
        elif is_scalar(obj) or self._is_opaque(obj):
            self.sink.emit_value(root_name, root_name, obj, path=path, depth=0)
        else:
            self._descend(root_name, obj, path, 0, IdentitySet())

    def walk(self,
             node: Any,
             declaring_type: Any,
             path: str,
             depth: int,
             visited: IdentitySet,
             element_type: Optional[type] = None) -> None:
        """Walk a single node.

        Args:
            node: Value to walk
            declaring_type: Type whose members are being enumerated
            path: Fully-qualified path of this node
            depth: Current depth (root = 0)
            visited: Identity set shared across this top-level call
            element_type: Declared element type when node is an enumerable
        """
        if node is None:
            return

        if depth >= self.settings.max_depth:
            self.sink.emit_depth_limit(last_path_segment(path), path=path, depth=depth)
            return

        if not is_scalar(node):
            if node in visited:
                return
            visited.add(node)

        if is_enumerable(node):
            self._walk_enumerable(node, path, depth, visited, element_type)
            return

        self._walk_members(node, declaring_type, path, depth, visited)

    def _walk_enumerable(self, node: Any, path: str, depth: int,
                         visited: IdentitySet, element_type: Optional[type]) -> None:
        if should_skip_enumerable(element_type, self.settings):
            logger.debug("Skipping %s: element type %s is recurse-blacklisted",
                         path, type_name(element_type))
            return

        limit = self.settings.max_enumerable_items
        keyed = is_mapping(node)
        used_keys = set()

        try:
            iterator = iter(node.items() if keyed else node)
        except Exception as e:
            self.sink.emit_error(None, type_name(type(node)), describe_error(e),
                                 path=path, depth=depth)
            return

        index = 0
        while True:
            try:
                entry = next(iterator)
            except StopIteration:
                break
            except Exception as e:
                self.sink.emit_error(None, type_name(type(node)), describe_error(e),
                                     path=f"{path}[{index}]", depth=depth + 1)
                break

            if index >= limit:
                self.sink.emit_truncated(limit, path=path, depth=depth + 1)
                break

            if keyed:
                key, item = entry
                self._walk_element(self._key_name(key, used_keys), item, f"{path}[{key!r}]",
                                   depth + 1, visited)
            else:
                self._walk_element(None, entry, f"{path}[{index}]", depth + 1, visited)
            index += 1

    @staticmethod
    def _key_name(key: Any, used: set) -> str:
        """Document name for a mapping key, unique within its mapping.

        ``str(key)`` unless another key already took it (``1`` and ``"1"``),
        then ``repr(key)``, then a numeric suffix.
        """
        name = str(key)
        if name in used:
            name = repr(key)
        base, suffix = name, 2
        while name in used:
            name = f"{base}#{suffix}"
            suffix += 1
        used.add(name)
        return name

    def _is_opaque(self, value: Any) -> bool:
        """Values whose runtime type must not be opened (iterators, generators)."""
        return is_recurse_blacklisted_type(type(value), self.settings)

    def _walk_element(self, name: Optional[str], item: Any, path: str, depth: int,
                      visited: IdentitySet) -> None:
        if item is None:
            self.sink.emit_null(name, NULL_TYPE_NAME, path=path, depth=depth)
        elif is_scalar(item) or self._is_opaque(item):
            self.sink.emit_value(name, type_name(type(item)), item, path=path, depth=depth)
        else:
            self._descend(name, item, path, depth, visited)

    def _walk_members(self, node: Any, declaring_type: Any, path: str, depth: int,
                      visited: IdentitySet) -> None:
        try:
            members = self.member_cache.members_of(node)
        except Exception as e:
            self.sink.emit_error(None, type_name(type(node)), describe_error(e),
                                 path=path, depth=depth)
            return

        for member in members:
            if not member.is_inspectable:
                continue

            examine = should_examine(declaring_type, member, self.settings)
            recurse = should_recurse(declaring_type, member, self.settings)
            if not examine and not recurse:
                continue

            member_path = f"{path}.{member.name}"
            try:
                value = self.member_cache.read(node, member)
            except Exception as e:
                self.sink.emit_error(member.name, member.type_name, describe_error(e),
                                     path=member_path, depth=depth)
                continue

            if examine:
                self._emit_member(member, value, member_path, depth)

            if recurse and value is not None and not is_scalar(value):
                self._descend(member.name, value, member_path, depth + 1, visited,
                              member.element_type)

    def _emit_member(self, member: MemberDescriptor, value: Any, path: str, depth: int) -> None:
        if value is None:
            self.sink.emit_null(member.name, member.type_name, path=path, depth=depth)
        else:
            self.sink.emit_value(member.name, member.type_name, value, path=path, depth=depth)

    def _descend(self, name: Optional[str], value: Any, path: str, depth: int,
                 visited: IdentitySet, element_type: Optional[type] = None) -> None:
        """Open a sub-context for a value and walk it.

        At the depth limit the marker stands in for the whole sub-context.
        """
        if self._is_opaque(value):
            logger.debug("Not descending into %s: %s is recurse-blacklisted",
                         path, type_name(type(value)))
            return

        if depth >= self.settings.max_depth:
            self.sink.emit_depth_limit(name, path=path, depth=depth)
            return

        value_type = type(value)
        if is_enumerable(value) and not is_mapping(value):
            self.sink.enter_array(name, path=path, depth=depth)
            try:
                self.walk(value, value_type, path, depth, visited, element_type)
            finally:
                self.sink.exit_array()
        else:
            self.sink.enter_object(name, type_name(value_type), path=path, depth=depth)
            try:
                self.walk(value, value_type, path, depth, visited, element_type)
            finally:
                self.sink.exit_object()


def walk(node: Any,
         declaring_type: Any,
         path: str,
         depth: int,
         visited: IdentitySet,
         settings: Settings,
         sink: Sink,
         member_cache: Optional[MemberCache] = None) -> None:
    """Functional form of ``Walker.walk`` for one-off calls."""
    Walker(settings, sink, member_cache).walk(node, declaring_type, path, depth, visited)
