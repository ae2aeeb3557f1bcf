#!/usr/bin/env python3
"""Demo script for ExaminerLib.

Builds a small game-state object graph (with a cycle, a collection and a
component hierarchy) and shows dump, JSON output, compare and map on it.
Report lines go through the ``examinerlib.report`` logger, so this script
configures logging to print them.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from examinerlib import (
    FilterFlags,
    ReportFlags,
    Settings,
    compare,
    dump,
    dump_to_json,
    map_hierarchy,
)


@dataclass
class Stats:
    health: int = 100
    stamina: float = 1.0


@dataclass
class Item:
    label: str
    weight: float = 1.0


@dataclass
class Player:
    name: str
    stats: Stats = field(default_factory=Stats)
    inventory: List[Item] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)
    target: Optional['Player'] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("game.player"))


class Transform:
    position: tuple

    def __init__(self, position=(0, 0, 0)):
        self.position = position


class Health:
    current: int
    maximum: int

    def __init__(self, current=100):
        self.current = current
        self.maximum = 100


class Node:
    def __init__(self, name, components=(), children=()):
        self.name = name
        self.components = list(components)
        self.children = list(children)


def demo_dump(player: Player):
    """Console dump with a depth limit."""
    print("\n=== Dump ===")
    dump(player, Settings.blacklist().for_dump().with_max_depth(2)
         .with_description("Cycle between the two players is cut automatically"))


def demo_json(player: Player):
    """Structured document as JSON."""
    print("\n=== JSON ===")
    print(dump_to_json(player, Settings.blacklist().for_dump().with_max_enumerable_items(2)))


def demo_compare(before: Player, after: Player):
    """Only what changed, plus length mismatches."""
    print("\n=== Compare ===")
    differences = compare(before, after)
    print(f"{len(differences)} difference(s)")


def demo_map():
    """Component hierarchy with a type legend."""
    print("\n=== Map ===")
    scene = Node("World", [Transform()], [
        Node("Hero", [Transform((1, 0, 0)), Health()]),
        Node("Props", [], [Node("Crate"), Node("Barrel")]),
    ])
    settings = (Settings.blacklist().for_map()
                .merge_rules(FilterFlags.EXAMINE_BLACKLIST_NAMES, "maximum"))
    map_hierarchy(scene, settings)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ada = Player("Ada", inventory=[Item("rope"), Item("torch", 0.5), Item("map", 0.1)])
    bob = Player("Bob", target=ada)
    ada.target = bob

    demo_dump(ada)
    demo_json(ada)

    after = Player("Ada", stats=Stats(health=80),
                   inventory=[Item("rope"), Item("torch", 0.5)], target=bob)
    demo_compare(ada, after)

    # Show equal values too
    print("\n=== Compare (verbose) ===")
    compare(ada, after, Settings.blacklist().for_compare()
            .with_report_flags(ReportFlags.DEFAULT_COMPARE | ReportFlags.VALUE_EQUAL))

    demo_map()
    return 0


if __name__ == "__main__":
    sys.exit(main())
