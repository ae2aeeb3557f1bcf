"""Structured document builder.

Builds a nested dict/list structure that mirrors the traversal's enter/exit
calls, for serialization to JSON. Every object node carries ``$type``; every
value node carries ``$type`` and ``$value``. Markers use ``$error``,
``$maxDepth``, ``$truncated`` and ``$maxItems``.

Example document::

    {
      "Player": {
        "$type": "Player",
        "name": {"$type": "str", "$value": "Ada"},
        "inventory": [
          {"$type": "Item", "label": {"$type": "str", "$value": "rope"}},
          {"$truncated": true, "$maxItems": 1}
        ]
      }
    }
"""

import json
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import DocumentStateError
from .scalars import to_document_value
from .sink import Sink

Container = Union[Dict[str, Any], List[Any]]


class DocumentBuilder(Sink):
    """Stack-based builder; the current container moves with enter/exit."""

    def __init__(self):
        self._root: Dict[str, Any] = {}
        self._stack: List[Tuple[Optional[str], Container]] = []
        self._current: Container = self._root

    def enter_object(self, name, type_name, *, path="", depth=0):
        node = {"$type": type_name}
        self._add(name, node)
        self._stack.append((name, self._current))
        self._current = node

    def exit_object(self):
        self._pop(dict)

    def enter_array(self, name, *, path="", depth=0):
        node: List[Any] = []
        self._add(name, node)
        self._stack.append((name, self._current))
        self._current = node

    def exit_array(self):
        self._pop(list)

    def emit_value(self, name, type_name, value, *, path="", depth=0):
        self._add(name, {"$type": type_name, "$value": to_document_value(value)})

    def emit_null(self, name, type_name, *, path="", depth=0):
        self._add(name, {"$type": type_name, "$value": None})

    def emit_error(self, name, type_name, message, *, path="", depth=0):
        self._add(name, {"$type": type_name, "$error": message})

    def emit_depth_limit(self, name, *, path="", depth=0):
        self._add(name, {"$maxDepth": True})

    def emit_truncated(self, limit, *, path="", depth=0):
        marker = {"$truncated": True, "$maxItems": limit}
        if isinstance(self._current, dict):
            self._current.update(marker)
        else:
            self._current.append(marker)

    @property
    def depth(self) -> int:
        """Number of open containers below the root."""
        return len(self._stack)

    @property
    def is_balanced(self) -> bool:
        return not self._stack and self._current is self._root

    def finish(self) -> Dict[str, Any]:
        """Check that every enter was matched by an exit and return the root.

        Raises:
            DocumentStateError: If containers are still open
        """
        if not self.is_balanced:
            open_names = [name for name, _ in self._stack]
            raise DocumentStateError(f"Unclosed containers at finish: {open_names}")
        return self._root

    def get_root(self) -> Dict[str, Any]:
        return self._root

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self._root, indent=indent, ensure_ascii=False, allow_nan=False,
                          default=str)

    def _add(self, name: Optional[str], node: Any) -> None:
        if isinstance(self._current, dict):
            key = name if name is not None else f"${len(self._current)}"
            self._current[key] = node
        else:
            self._current.append(node)

    def _pop(self, expected: type) -> None:
        if not self._stack:
            raise DocumentStateError("exit called with no open container")
        if not isinstance(self._current, expected):
            raise DocumentStateError(
                f"exit_{'object' if expected is dict else 'array'} called while a "
                f"{type(self._current).__name__} is open"
            )
        _, parent = self._stack.pop()
        self._current = parent
