"""Tests for member introspection and the member cache."""

import functools
import typing
import unittest
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

import pytest

from examinerlib.core.members import (
    AttributeIntrospector,
    MemberCache,
    MemberDescriptor,
    MemberIntrospector,
    default_member_cache,
    normalize_annotation,
)

from examiner_models import Dog, Flaky, Item, Player, Stats


@pytest.mark.parametrize("hint,expected", [
    (int, (int, None)),
    (Optional[int], (int, None)),
    (int | None, (int, None)),
    (Union[int, str], (object, None)),
    (List[Item], (list, Item)),
    (list[int], (list, int)),
    (Dict[str, int], (dict, None)),
    (Tuple[int, ...], (tuple, int)),
    (typing.Annotated[int, "hp"], (int, None)),
    (Any, (object, None)),
    ("NotResolved", (object, None)),
])
def test_normalize_annotation(hint, expected):
    assert normalize_annotation(hint) == expected


class Slotted:
    __slots__ = ("x", "_y")

    def __init__(self):
        self.x = 1
        self._y = 2


class WithExtras:
    count: ClassVar[int] = 0
    label: str

    def __init__(self):
        self.label = "declared"
        self.extra = 7

    @property
    def shout(self) -> str:
        return self.label.upper()

    @functools.cached_property
    def expensive(self) -> int:
        return 42


class TestAttributeIntrospector(unittest.TestCase):

    def setUp(self):
        self.introspector = AttributeIntrospector()

    def test_dataclass_fields_in_order(self):
        members = self.introspector.describe(Player)
        names = [m.name for m in members]

        self.assertEqual(names, ["name", "level", "stats", "inventory", "tags", "nickname"])
        by_name = {m.name: m for m in members}
        self.assertEqual(by_name["inventory"].value_type, list)
        self.assertEqual(by_name["inventory"].element_type, Item)
        self.assertEqual(by_name["nickname"].value_type, str)
        self.assertEqual(by_name["stats"].kind, "field")

    def test_inherited_members_come_first(self):
        names = [m.name for m in self.introspector.describe(Dog)]
        self.assertEqual(names, ["species", "breed"])

    def test_slots(self):
        members = self.introspector.describe(Slotted)
        self.assertEqual([m.name for m in members], ["x", "_y"])
        self.assertTrue(all(m.kind == "slot" for m in members))

        public = AttributeIntrospector(include_private=False).describe(Slotted)
        self.assertEqual([m.name for m in public], ["x"])

    def test_class_vars_skipped_and_properties_described(self):
        by_name = {m.name: m for m in self.introspector.describe(WithExtras)}

        self.assertNotIn("count", by_name)
        self.assertEqual(by_name["shout"].kind, "property")
        self.assertEqual(by_name["shout"].value_type, str)
        self.assertTrue(by_name["shout"].is_inspectable)

    def test_cached_property_is_not_readable(self):
        by_name = {m.name: m for m in self.introspector.describe(WithExtras)}

        self.assertFalse(by_name["expensive"].is_inspectable)

    def test_instance_extras(self):
        instance = WithExtras()
        known = {m.name for m in self.introspector.describe(WithExtras)}
        extras = self.introspector.describe_instance(instance, known)

        self.assertEqual([m.name for m in extras], ["extra"])
        self.assertEqual(extras[0].value_type, int)

        quiet = AttributeIntrospector(include_instance_attributes=False)
        self.assertEqual(quiet.describe_instance(instance, known), [])

    def test_read_propagates_errors(self):
        value_member = MemberDescriptor(name="value", declaring_type=Flaky, value_type=int)

        self.assertEqual(self.introspector.read(Flaky(fail=False, value=3), value_member), 3)
        with self.assertRaises(ValueError):
            self.introspector.read(Flaky(fail=True), value_member)


class TestMemberCache(unittest.TestCase):

    def test_members_are_memoized(self):
        cache = MemberCache()
        first = cache.get_members(Stats)
        second = cache.get_members(Stats)

        self.assertIs(first, second)
        self.assertIn(Stats, cache)
        self.assertEqual(len(cache), 1)

    def test_members_of_adds_instance_extras(self):
        cache = MemberCache()
        names = [m.name for m in cache.members_of(Flaky(fail=False))]

        self.assertEqual(names, ["value", "fail", "_value"])
        # Extras are per instance and never cached
        self.assertEqual([m.name for m in cache.get_members(Flaky)], ["value"])

    def test_custom_introspector(self):
        class NameOnly(MemberIntrospector):
            def describe(self, cls):
                return [MemberDescriptor(name="name", declaring_type=cls, value_type=str)]

        cache = MemberCache(NameOnly())
        members = cache.members_of(Player())

        self.assertEqual([m.name for m in members], ["name"])
        self.assertEqual(cache.read(Player(), members[0]), "Ada")

    def test_inspectable_filters_unreadable_and_indexed(self):
        cache = MemberCache()
        members = [
            MemberDescriptor(name="a", declaring_type=object),
            MemberDescriptor(name="b", declaring_type=object, is_readable=False),
            MemberDescriptor(name="c", declaring_type=object, indexer_arity=1),
        ]
        self.assertEqual([m.name for m in cache.inspectable(members)], ["a"])

    def test_default_cache_is_shared(self):
        self.assertIs(default_member_cache(), default_member_cache())
