"""Hierarchy mapper for ExaminerLib.

Where dump and compare look at member values, map looks at structure: a
tree of nodes, each carrying component-like sub-objects. The mapper keeps
the components whose type passes the recurse filter, optionally prunes
branches that end up with nothing in them, and builds a legend that lists
once per component type the members a dump would show.

Output looks like::

    --- Type Legend ---
    [Health]
      .current (int)
      .maximum (int)

    --- Component Tree ---
    Player
    ├── [Health]
    └── Weapon
        └── [Damage]
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..config import Settings
from .filtering import should_examine, should_include_component_type
from .identity import IdentitySet
from .members import MemberCache, MemberDescriptor, default_member_cache
from .scalars import type_name

logger = logging.getLogger(__name__)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "

LEGEND_HEADER = "--- Type Legend ---"
TREE_HEADER = "--- Component Tree ---"


class HierarchyAdapter(ABC):
    """Abstract adapter for navigating a component hierarchy.

    The mapper never assumes what a node is. The adapter knows how to name
    a node, which components are attached to it, and what its structural
    children are.
    """

    @abstractmethod
    def get_name(self, node: Any) -> str:
        """Display name of a node."""
        pass

    @abstractmethod
    def get_components(self, node: Any) -> Iterable[Any]:
        """Component objects attached directly to a node."""
        pass

    @abstractmethod
    def get_children(self, node: Any) -> Iterable[Any]:
        """Structural child nodes, in display order."""
        pass


class AttributeHierarchyAdapter(HierarchyAdapter):
    """Reads name, components and children from plain attributes.

    Missing attributes are tolerated: a node without a name is shown by its
    type name, and a node without components or children has none.
    """

    def __init__(self,
                 name_attr: str = "name",
                 components_attr: str = "components",
                 children_attr: str = "children"):
        self.name_attr = name_attr
        self.components_attr = components_attr
        self.children_attr = children_attr

    def get_name(self, node: Any) -> str:
        name = getattr(node, self.name_attr, None)
        return str(name) if name is not None else type_name(type(node))

    def get_components(self, node: Any) -> Iterable[Any]:
        return getattr(node, self.components_attr, None) or ()

    def get_children(self, node: Any) -> Iterable[Any]:
        return getattr(node, self.children_attr, None) or ()


@dataclass
class MapNode:
    """One node of the component tree."""
    name: str
    component_types: List[type] = field(default_factory=list)
    children: List['MapNode'] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.component_types and not self.children

    def walk(self):
        """Yield this node and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class HierarchyMap:
    """Result of a map: the (possibly pruned) tree, the legend and the text."""
    tree: MapNode
    legend: Dict[type, List[MemberDescriptor]]
    lines: List[str] = field(default_factory=list)

    def render(self) -> str:
        return "\n".join(self.lines)


class HierarchyMapper:
    """Builds, prunes, describes and renders a component tree."""

    def __init__(self, settings: Settings,
                 adapter: Optional[HierarchyAdapter] = None,
                 member_cache: Optional[MemberCache] = None):
        self.settings = settings
        self.adapter = adapter or AttributeHierarchyAdapter()
        self.member_cache = member_cache or default_member_cache()

    def map(self, root: Any) -> HierarchyMap:
        """Build the tree, prune it if configured, and render it."""
        tree = self.build_tree(root)
        if self.settings.prune_empty_branches:
            self.prune_empty(tree)
        legend = self.collect_legend(tree)
        return HierarchyMap(tree=tree, legend=legend, lines=self.render(tree, legend))

    def build_tree(self, root: Any, depth: int = 0,
                   visited: Optional[IdentitySet] = None) -> MapNode:
        """Build the component tree below ``root``.

        Children are expanded while ``depth < max_tree_depth``. A node that
        is reached a second time is included by name but not expanded again.
        """
        if visited is None:
            visited = IdentitySet()
        visited.add(root)

        node = MapNode(name=self._name_of(root))

        for component in self._components_of(root):
            if component is None:
                continue
            component_type = type(component)
            if should_include_component_type(component_type, self.settings):
                node.component_types.append(component_type)

        if depth < self.settings.max_tree_depth:
            for child in self._children_of(root):
                if child is None:
                    continue
                if child in visited:
                    logger.debug("Node %s reached twice; not expanding", node.name)
                    node.children.append(MapNode(name=self._name_of(child)))
                    continue
                node.children.append(self.build_tree(child, depth + 1, visited))

        return node

    def _name_of(self, node: Any) -> str:
        try:
            return self.adapter.get_name(node)
        except Exception as e:
            logger.warning("Could not read name of %s: %s", type_name(type(node)), e)
            return type_name(type(node))

    def _components_of(self, node: Any) -> List[Any]:
        try:
            return list(self.adapter.get_components(node))
        except Exception as e:
            logger.warning("Could not read components of %s: %s", type_name(type(node)), e)
            return []

    def _children_of(self, node: Any) -> List[Any]:
        try:
            return list(self.adapter.get_children(node))
        except Exception as e:
            logger.warning("Could not read children of %s: %s", type_name(type(node)), e)
            return []

    @staticmethod
    def prune_empty(node: MapNode) -> None:
        """Remove empty children bottom-up. The node itself is never removed."""
        for child in node.children:
            HierarchyMapper.prune_empty(child)
        node.children = [child for child in node.children if not child.is_empty]

    def collect_legend(self, tree: MapNode) -> Dict[type, List[MemberDescriptor]]:
        """Each distinct component type once, with its examine-filtered members.

        First occurrence in pre-order wins.
        """
        legend: Dict[type, List[MemberDescriptor]] = {}
        for node in tree.walk():
            for component_type in node.component_types:
                if component_type in legend:
                    continue
                legend[component_type] = [
                    member for member in self.member_cache.get_members(component_type)
                    if member.is_inspectable
                    and should_examine(component_type, member, self.settings)
                ]
        return legend

    @staticmethod
    def render_legend(legend: Dict[type, List[MemberDescriptor]]) -> List[str]:
        lines = [LEGEND_HEADER]
        for component_type, members in legend.items():
            lines.append(f"[{type_name(component_type)}]")
            for member in members:
                lines.append(f"  .{member.name} ({member.type_name})")
            lines.append("")
        return lines

    @staticmethod
    def render_tree(tree: MapNode) -> List[str]:
        lines = [TREE_HEADER]
        _render_node(tree, "", True, True, lines)
        return lines

    def render(self, tree: MapNode, legend: Dict[type, List[MemberDescriptor]]) -> List[str]:
        return render(tree, legend)


def _render_node(node: MapNode, prefix: str, is_last: bool, is_root: bool,
                 lines: List[str]) -> None:
    if is_root:
        lines.append(node.name)
        child_prefix = ""
    else:
        lines.append(prefix + (LAST_BRANCH if is_last else BRANCH) + node.name)
        child_prefix = prefix + (SPACE if is_last else PIPE)

    total = len(node.component_types) + len(node.children)
    index = 0

    # Components are leaves, listed before structural children
    for component_type in node.component_types:
        index += 1
        connector = LAST_BRANCH if index == total else BRANCH
        lines.append(f"{child_prefix}{connector}[{type_name(component_type)}]")

    for child in node.children:
        index += 1
        _render_node(child, child_prefix, index == total, False, lines)


# Functional forms

def build_tree(root: Any, settings: Settings, depth: int = 0,
               adapter: Optional[HierarchyAdapter] = None) -> MapNode:
    return HierarchyMapper(settings, adapter).build_tree(root, depth)


def prune_empty(node: MapNode) -> None:
    HierarchyMapper.prune_empty(node)


def collect_legend(tree: MapNode, settings: Settings,
                   member_cache: Optional[MemberCache] = None) -> Dict[type, List[MemberDescriptor]]:
    return HierarchyMapper(settings, member_cache=member_cache).collect_legend(tree)


def render(tree: MapNode, legend: Dict[type, List[MemberDescriptor]]) -> List[str]:
    lines = HierarchyMapper.render_legend(legend)
    lines.append("")
    lines.extend(HierarchyMapper.render_tree(tree))
    return lines
