"""Member introspection for ExaminerLib.

The MemberIntrospector is the seam between the engine and Python's own
reflection. The engine never touches ``__dict__`` or annotations itself; it
asks an introspector which members a type has and how to read one. The
MemberCache memoizes the per-type answer so repeated traversals over the
same types do not pay the introspection cost again.
"""

import dataclasses
import functools
import inspect
import logging
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import UnionType
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .scalars import type_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemberDescriptor:
    """One readable member of a type.

    Immutable so a cached list can be shared across traversals and threads.
    """
    name: str
    declaring_type: type
    value_type: type = object
    is_readable: bool = True
    indexer_arity: int = 0
    element_type: Optional[type] = None
    kind: str = "attribute"     # field, slot, property, attribute

    @property
    def type_name(self) -> str:
        return type_name(self.value_type)

    @property
    def is_inspectable(self) -> bool:
        """Readable and takes no index parameters."""
        return self.is_readable and self.indexer_arity == 0


class MemberIntrospector(ABC):
    """Abstract provider of member descriptors and values.

    Subclasses decide what counts as a member (annotations, slots,
    properties, manual registration...). The engine relies only on this
    contract.
    """

    @abstractmethod
    def describe(self, cls: type) -> List[MemberDescriptor]:
        """Return the members of a type, in a stable order.

        Args:
            cls: Concrete runtime type

        Returns:
            List of MemberDescriptor for the type
        """
        pass

    def read(self, instance: Any, member: MemberDescriptor) -> Any:
        """Read one member's value from an instance.

        May raise; the engine reports the failure and moves on.
        """
        return getattr(instance, member.name)

    def describe_instance(self, instance: Any, known: Set[str]) -> List[MemberDescriptor]:
        """Return members found only on this instance (never cached).

        Args:
            instance: The object being examined
            known: Names already described by ``describe(type(instance))``
        """
        return []


def normalize_annotation(hint: Any) -> Tuple[type, Optional[type]]:
    """Reduce a type hint to a class plus an optional element type.

    ``Optional[X]`` becomes ``X``, ``List[X]`` becomes ``(list, X)``,
    anything unresolvable becomes ``object``.
    """
    if hint is None:
        return type(None), None
    if hint is typing.Any:
        return object, None

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is typing.Annotated:
        return normalize_annotation(args[0])

    if origin is typing.Union or origin is UnionType:
        present = [arg for arg in args if arg is not type(None)]
        if len(present) == 1:
            return normalize_annotation(present[0])
        return object, None

    if origin is not None:
        base = origin if isinstance(origin, type) else object
        element = None
        if len(args) == 1 or (len(args) == 2 and args[1] is Ellipsis):
            element_type, _ = normalize_annotation(args[0])
            if element_type is not object:
                element = element_type
        return base, element

    if isinstance(hint, type):
        return hint, None

    return object, None


def _is_class_var(hint: Any) -> bool:
    if typing.get_origin(hint) is typing.ClassVar or hint is typing.ClassVar:
        return True
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return isinstance(hint, dataclasses.InitVar)


class AttributeIntrospector(MemberIntrospector):
    """Introspects plain Python classes.

    Walks the MRO from base to derived and collects annotated attributes
    (dataclass fields included), ``__slots__`` entries and properties.
    Attributes that live only in an instance ``__dict__`` are picked up per
    instance when ``include_instance_attributes`` is set.
    """

    def __init__(self,
                 include_private: bool = True,
                 include_instance_attributes: bool = True):
        """Initialize the introspector.

        Args:
            include_private: Describe ``_single_underscore`` members
            include_instance_attributes: Also report un-declared attributes
                found in an instance's ``__dict__``
        """
        self.include_private = include_private
        self.include_instance_attributes = include_instance_attributes

    def _wants(self, name: str) -> bool:
        if name.startswith('__') and name.endswith('__'):
            return False
        if name.startswith('_') and not self.include_private:
            return False
        return True

    @staticmethod
    def _resolved_hints(cls: type) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(cls)
        except Exception as e:
            logger.debug("Could not resolve type hints for %s: %s", cls, e)
            return {}

    @staticmethod
    def _own_annotations(cls: type) -> Dict[str, Any]:
        try:
            return dict(inspect.get_annotations(cls))
        except Exception as e:
            logger.debug("Could not read annotations of %s: %s", cls, e)
            return {}

    @staticmethod
    def _return_hint(getter: Any) -> Any:
        try:
            return typing.get_type_hints(getter).get('return', object)
        except Exception:
            return getattr(getter, '__annotations__', {}).get('return', object)

    def describe(self, cls: type) -> List[MemberDescriptor]:
        members: Dict[str, MemberDescriptor] = {}
        resolved = self._resolved_hints(cls)

        for klass in reversed(cls.__mro__):
            if klass is object:
                continue

            for name, raw_hint in self._own_annotations(klass).items():
                hint = resolved.get(name, raw_hint)
                if not self._wants(name) or _is_class_var(hint) or _is_class_var(raw_hint):
                    continue
                value_type, element_type = normalize_annotation(hint)
                members[name] = MemberDescriptor(
                    name=name,
                    declaring_type=klass,
                    value_type=value_type,
                    element_type=element_type,
                    kind="field" if dataclasses.is_dataclass(klass) else "attribute",
                )

            slots = klass.__dict__.get('__slots__', ())
            if isinstance(slots, str):
                slots = (slots,)
            for name in slots:
                if name in members or not self._wants(name):
                    continue
                members[name] = MemberDescriptor(name=name, declaring_type=klass, kind="slot")

            for name, attr in klass.__dict__.items():
                if not self._wants(name):
                    continue
                if isinstance(attr, property):
                    value_type, element_type = normalize_annotation(self._return_hint(attr.fget))
                    members[name] = MemberDescriptor(
                        name=name,
                        declaring_type=klass,
                        value_type=value_type,
                        element_type=element_type,
                        is_readable=attr.fget is not None,
                        kind="property",
                    )
                elif isinstance(attr, functools.cached_property):
                    # Reading a cached_property writes into the instance
                    value_type, element_type = normalize_annotation(self._return_hint(attr.func))
                    members[name] = MemberDescriptor(
                        name=name,
                        declaring_type=klass,
                        value_type=value_type,
                        element_type=element_type,
                        is_readable=False,
                        kind="property",
                    )

        return list(members.values())

    def describe_instance(self, instance: Any, known: Set[str]) -> List[MemberDescriptor]:
        if not self.include_instance_attributes:
            return []
        try:
            namespace = object.__getattribute__(instance, '__dict__')
        except AttributeError:
            return []
        if not isinstance(namespace, dict):
            return []

        extras = []
        for name, value in list(namespace.items()):
            if name in known or not isinstance(name, str) or not self._wants(name):
                continue
            extras.append(MemberDescriptor(
                name=name,
                declaring_type=type(instance),
                value_type=type(value) if value is not None else object,
                kind="attribute",
            ))
        return extras


class MemberCache:
    """Per-type memo of member descriptors.

    Entries are only ever added. A race between two first lookups of the
    same type computes the list twice and keeps whichever lands first, which
    is harmless because describing a type is idempotent.
    """

    def __init__(self, introspector: Optional[MemberIntrospector] = None):
        self.introspector = introspector or AttributeIntrospector()
        self._entries: Dict[type, Tuple[MemberDescriptor, ...]] = {}

    def get_members(self, cls: type) -> Tuple[MemberDescriptor, ...]:
        """Return the cached members of a type, describing it on first use."""
        members = self._entries.get(cls)
        if members is None:
            members = tuple(self.introspector.describe(cls))
            members = self._entries.setdefault(cls, members)
            logger.debug("Described %s: %d members", type_name(cls), len(members))
        return members

    def members_of(self, instance: Any) -> List[MemberDescriptor]:
        """Members of an instance: the type's cached list plus instance extras."""
        declared = self.get_members(type(instance))
        known = {member.name for member in declared}
        return list(declared) + list(self.introspector.describe_instance(instance, known))

    def read(self, instance: Any, member: MemberDescriptor) -> Any:
        return self.introspector.read(instance, member)

    def inspectable(self, members: Iterable[MemberDescriptor]) -> List[MemberDescriptor]:
        return [member for member in members if member.is_inspectable]

    def __contains__(self, cls: type) -> bool:
        return cls in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_default_cache = MemberCache()


def default_member_cache() -> MemberCache:
    """Process-wide cache used when a caller does not supply one."""
    return _default_cache
