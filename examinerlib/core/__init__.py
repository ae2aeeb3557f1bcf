"""Core engines for ExaminerLib.

This module contains the filter, traversal, diff and mapping engines and
the abstract seams they are built on (member introspection, sinks,
hierarchy adapters).
"""

from .members import AttributeIntrospector, MemberCache, MemberDescriptor, MemberIntrospector
from .sink import ConsoleSink, Sink
from .document import DocumentBuilder
from .walker import Walker
from .differ import Comparer, Difference, ErrorState
from .mapper import AttributeHierarchyAdapter, HierarchyAdapter, HierarchyMap, HierarchyMapper, MapNode

__all__ = [
    "MemberDescriptor",
    "MemberIntrospector",
    "AttributeIntrospector",
    "MemberCache",
    "Sink",
    "ConsoleSink",
    "DocumentBuilder",
    "Walker",
    "Comparer",
    "Difference",
    "ErrorState",
    "HierarchyAdapter",
    "AttributeHierarchyAdapter",
    "HierarchyMapper",
    "HierarchyMap",
    "MapNode",
]
