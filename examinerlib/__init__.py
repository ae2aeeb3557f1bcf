"""ExaminerLib - Reflection-driven object graph inspection.

ExaminerLib dumps, diffs and maps arbitrary in-memory object graphs without
the graphs' types having to opt in. Every traversal is cycle-safe and
bounded in depth and in elements per collection, and what is shown is
controlled by sixteen blacklist/whitelist rule collections on two axes:
examine (report a value) and recurse (descend into it).

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from examinerlib import dump, compare, map_hierarchy, Settings

    dump(player)
    compare(before, after, Settings.blacklist().for_compare())
    map_hierarchy(scene_root)
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from .config import (
    FilterFlags,
    FilterRules,
    OutputFormat,
    ReportFlags,
    RuleCollection,
    Settings,
)
from .errors import (
    DocumentStateError,
    ExaminerError,
    InvalidSettingsError,
    InvalidTargetError,
)
from .core.members import (
    AttributeIntrospector,
    MemberCache,
    MemberDescriptor,
    MemberIntrospector,
    default_member_cache,
)
from .core.sink import ConsoleSink, Sink
from .core.document import DocumentBuilder
from .core.walker import Walker
from .core.differ import Comparer, Difference, ErrorState
from .core.mapper import (
    AttributeHierarchyAdapter,
    HierarchyAdapter,
    HierarchyMap,
    HierarchyMapper,
    MapNode,
)
from .api import (
    compare,
    dump,
    dump_to_document,
    dump_to_json,
    map_hierarchy,
)

__all__ = [
    "__version__",
    # Configuration
    "FilterFlags",
    "ReportFlags",
    "OutputFormat",
    "RuleCollection",
    "FilterRules",
    "Settings",
    # Errors
    "ExaminerError",
    "InvalidTargetError",
    "InvalidSettingsError",
    "DocumentStateError",
    # Introspection
    "MemberDescriptor",
    "MemberIntrospector",
    "AttributeIntrospector",
    "MemberCache",
    "default_member_cache",
    # Engines
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
    # Operations
    "dump",
    "dump_to_document",
    "dump_to_json",
    "compare",
    "map_hierarchy",
]
