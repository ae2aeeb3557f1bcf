"""Tests for the traversal engine, observed through RecordingSink."""

import logging
import unittest
from dataclasses import dataclass

import pytest

from examinerlib.config import FilterFlags, Settings
from examinerlib.core.identity import IdentitySet
from examinerlib.core.walker import Walker, describe_error, last_path_segment, walk
from examinerlib.testing import RecordingSink

from examiner_models import (
    Animal,
    Bag,
    ChainNode,
    CycleNode,
    Dog,
    Faulty,
    HasBrokenIterable,
    Item,
    Kennel,
    Keyed,
    ObjectWithArray,
    Player,
    Service,
    Stats,
    make_chain,
)


def record(obj, settings=None):
    sink = RecordingSink()
    Walker(settings or Settings().for_dump(), sink).dump(obj)
    return sink


@dataclass
class SharedPair:
    left: Stats
    right: Stats


class TestBasicWalk(unittest.TestCase):

    def setUp(self):
        self.player = Player(inventory=[Item("rope"), Item("torch")], tags={"gold": 5})
        self.sink = record(self.player)

    def test_root_object_wraps_everything(self):
        self.assertEqual(self.sink.events[0], ("enter_object", "Player", "Player", "Player", 0))
        self.assertEqual(self.sink.events[-1], ("exit_object",))
        self.assertTrue(self.sink.is_balanced)

    def test_scalar_members(self):
        values = self.sink.values()
        self.assertEqual(values["Player.name"], "Ada")
        self.assertEqual(values["Player.level"], 3)

    def test_nested_object_paths_and_depth(self):
        self.assertIn(("enter_object", "stats", "Stats", "Player.stats", 1), self.sink.events)
        self.assertIn(("value", "health", "int", 100, "Player.stats.health", 1), self.sink.events)

    def test_sequence_elements(self):
        values = self.sink.values()
        self.assertEqual(values["Player.inventory[0].label"], "rope")
        self.assertEqual(values["Player.inventory[1].label"], "torch")
        self.assertIn(("enter_array", "inventory", "Player.inventory", 1), self.sink.events)

    def test_mapping_elements_are_keyed(self):
        self.assertIn(("value", "gold", "int", 5, "Player.tags['gold']", 2), self.sink.events)

    def test_null_member(self):
        self.assertIn(("null", "nickname", "str", "Player.nickname", 0), self.sink.events)

    def test_enum_is_a_leaf(self):
        self.assertNotIn("Player.inventory[0].rarity.value", self.sink.values())
        self.assertIn("Player.inventory[0].rarity", self.sink.values())


class TestCycles(unittest.TestCase):
    """Cyclic graphs terminate and each node's content appears once."""

    def test_self_reference(self):
        root = CycleNode("Root")
        root.link = root

        sink = record(root)
        self.assertEqual(list(sink.values().values()).count("Root"), 1)
        self.assertTrue(sink.is_balanced)

    def test_indirect_cycle(self):
        a, b = CycleNode("NodeA"), CycleNode("NodeB")
        a.link, b.link = b, a

        names = [event[3] for event in record(a).of_kind("value") if event[1] == "name"]
        self.assertEqual(names, ["NodeA", "NodeB"])

    def test_shared_reference_expanded_once(self):
        stats = Stats(health=7)
        sink = record(SharedPair(stats, stats))

        health = [event for event in sink.of_kind("value") if event[1] == "health"]
        self.assertEqual(len(health), 1)
        self.assertEqual(health[0][4], "SharedPair.left.health")

    def test_cycle_through_list(self):
        holder = ObjectWithArray()
        holder.items.append(holder)

        sink = record(holder)
        self.assertTrue(sink.is_balanced)


class TestDepthLimit(unittest.TestCase):

    def test_chain_is_cut_at_max_depth(self):
        sink = record(make_chain(10), Settings().for_dump().with_max_depth(3))

        names = [event[3] for event in sink.of_kind("value") if event[1] == "name"]
        self.assertEqual(names, ["Level0", "Level1", "Level2"])
        self.assertEqual(sink.of_kind("max_depth"),
                         [("max_depth", "child", "ChainNode.child.child.child", 3)])

    def test_zero_depth_emits_only_the_marker(self):
        sink = record(make_chain(3), Settings().for_dump().with_max_depth(0))
        self.assertEqual(sink.events, [("max_depth", "ChainNode", "ChainNode", 0)])

    def test_direct_walk_at_limit(self):
        sink = RecordingSink()
        walk(make_chain(2), ChainNode, "Root.chain", 5, IdentitySet(), Settings(), sink)
        self.assertEqual(sink.events, [("max_depth", "chain", "Root.chain", 5)])


class TestEnumerableLimit(unittest.TestCase):

    def make(self, count):
        return ObjectWithArray(items=[Item(f"Item{i}") for i in range(1, count + 1)])

    def labels(self, sink):
        return [event[3] for event in sink.of_kind("value") if event[1] == "label"]

    def test_truncated_after_k_items(self):
        sink = record(self.make(100), Settings().for_dump().with_max_enumerable_items(5))

        self.assertEqual(self.labels(sink), ["Item1", "Item2", "Item3", "Item4", "Item5"])
        self.assertEqual(sink.of_kind("truncated"),
                         [("truncated", 5, "ObjectWithArray.items", 2)])

    def test_exactly_k_items_has_no_marker(self):
        sink = record(self.make(5), Settings().for_dump().with_max_enumerable_items(5))

        self.assertEqual(len(self.labels(sink)), 5)
        self.assertEqual(sink.of_kind("truncated"), [])

    def test_infinite_iterable_is_bounded(self):
        import itertools

        @dataclass
        class Stream:
            source: object

        sink = record(Stream(itertools.count()), Settings().for_dump().with_max_enumerable_items(3))
        values = [event[3] for event in sink.of_kind("value") if event[4].startswith("Stream.source[")]
        self.assertEqual(values, [0, 1, 2])
        self.assertEqual(len(sink.of_kind("truncated")), 1)


class TestErrors(unittest.TestCase):

    def test_failing_getter_does_not_hide_siblings(self):
        sink = record(Faulty())
        member_events = [(event[0], event[1]) for event in sink.events
                         if event[0] in ("value", "error")]

        self.assertEqual(member_events, [("value", "first"), ("error", "broken"), ("value", "last")])
        error = sink.of_kind("error")[0]
        self.assertEqual(error[2], "int")
        self.assertEqual(error[3], "RuntimeError: getter exploded")

    def test_failing_iterator_is_reported(self):
        sink = record(HasBrokenIterable())

        elements = [event[3] for event in sink.of_kind("value")
                    if event[4].startswith("HasBrokenIterable.stream[")]
        self.assertEqual(elements, [1, 2])
        errors = sink.of_kind("error")
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0][3], "OSError: stream closed")
        self.assertEqual(errors[0][4], "HasBrokenIterable.stream[2]")
        self.assertTrue(sink.is_balanced)

    def test_describe_error(self):
        self.assertEqual(describe_error(KeyError()), "KeyError")
        self.assertEqual(describe_error(ValueError("bad")), "ValueError: bad")


class TestFiltering(unittest.TestCase):

    def test_blacklisted_element_type_is_skipped(self):
        service = Service(loggers=[logging.getLogger("tests.a"), logging.getLogger("tests.b")])
        sink = record(service, Settings.blacklist().for_dump())

        self.assertFalse([path for path in sink.paths() if path.startswith("Service.loggers[")])
        self.assertFalse([path for path in sink.paths("enter_object")
                          if path == "Service.logger"])
        self.assertEqual(sink.values()["Service.retries"], 3)

    def test_base_type_whitelist_surfaces_subclass_members(self):
        kennel = Kennel(guard=Dog("beagle"))
        settings = (Settings().for_dump()
                    .with_filter_flags(FilterFlags.RECURSE_WHITELIST_TYPES)
                    .with_rules(FilterFlags.RECURSE_WHITELIST_TYPES, Animal))

        values = record(kennel, settings).values()
        self.assertEqual(values["Kennel.guard.breed"], "beagle")
        self.assertEqual(values["Kennel.guard.species"], "dog")

    def test_whitelist_only_output_is_a_subset(self):
        player = Player(inventory=[Item("rope")], tags={"gold": 5}, nickname="Countess")

        def shown(settings):
            sink = record(player, settings.for_dump())
            return {event[-2] for event in sink.events if event[0] in ("value", "null")}

        whitelisted = shown(Settings.whitelist())
        self.assertTrue(whitelisted)
        self.assertTrue(whitelisted <= shown(Settings()))
        self.assertTrue(whitelisted <= shown(Settings.blacklist()))

    def test_generator_element_is_not_drained(self):
        gen = (i for i in range(3))
        sink = record(Bag(things=[gen], extra=iter("ab")), Settings.blacklist().for_dump())

        self.assertEqual(list(gen), [0, 1, 2])
        self.assertEqual(sink.values()["Bag.things[0]"], gen)
        self.assertFalse([path for path in sink.paths() if path.startswith("Bag.things[0][")])
        self.assertTrue(sink.is_balanced)

    def test_iterator_member_is_not_drained(self):
        bag = Bag(extra=iter([1, 2]))
        record(bag, Settings.blacklist().for_dump())
        self.assertEqual(list(bag.extra), [1, 2])


class TestRoots(unittest.TestCase):

    def test_scalar_root(self):
        self.assertEqual(record(42).events, [("value", "int", "int", 42, "int", 0)])

    def test_mapping_root(self):
        sink = record({"a": 1, "b": None})

        self.assertEqual(sink.events, [
            ("enter_object", "dict", "dict", "dict", 0),
            ("value", "a", "int", 1, "dict['a']", 1),
            ("null", "b", "NoneType", "dict['b']", 1),
            ("exit_object",),
        ])

    def test_colliding_mapping_keys_get_distinct_names(self):
        sink = record(Keyed(table={1: "a", "1": "b"}))
        names = [event[1] for event in sink.of_kind("value") if event[4].startswith("Keyed.table[")]

        self.assertEqual(names, ["1", "'1'"])

    def test_list_root(self):
        sink = record([1, "two"])

        self.assertEqual(sink.events[0], ("enter_array", "list", "list", 0))
        self.assertEqual(sink.values(), {"list[0]": 1, "list[1]": "two"})


@pytest.mark.parametrize("path,expected", [
    ("Player", "Player"),
    ("Player.stats.health", "health"),
])
def test_last_path_segment(path, expected):
    assert last_path_segment(path) == expected


@pytest.mark.slow
def test_wide_graph_is_bounded():
    items = [Item(f"Item{i}") for i in range(10000)]
    sink = record(ObjectWithArray(items=items), Settings().for_dump().with_max_enumerable_items(1000))
    assert len([event for event in sink.of_kind("value") if event[1] == "label"]) == 1000
