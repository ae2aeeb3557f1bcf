"""Test fixtures for ExaminerLib consumers.

RecordingSink stores every traversal event as a plain tuple so tests can
assert on exactly what the walker did, without going through a renderer.
"""

from typing import Any, List, Optional, Tuple

from ..core.sink import Sink


class RecordingSink(Sink):
    """Sink that records events in order.

    Each event is a tuple whose first element is the event kind::

        ("enter_object", name, type_name, path, depth)
        ("exit_object",)
        ("enter_array", name, path, depth)
        ("exit_array",)
        ("value", name, type_name, value, path, depth)
        ("null", name, type_name, path, depth)
        ("error", name, type_name, message, path, depth)
        ("max_depth", name, path, depth)
        ("truncated", limit, path, depth)

    Example:
        sink = RecordingSink()
        dump(player, sink=sink)
        assert "Player.name" in sink.paths("value")
    """

    def __init__(self):
        self.events: List[Tuple[Any, ...]] = []

    def enter_object(self, name, type_name, *, path="", depth=0):
        self.events.append(("enter_object", name, type_name, path, depth))

    def exit_object(self):
        self.events.append(("exit_object",))

    def enter_array(self, name, *, path="", depth=0):
        self.events.append(("enter_array", name, path, depth))

    def exit_array(self):
        self.events.append(("exit_array",))

    def emit_value(self, name, type_name, value, *, path="", depth=0):
        self.events.append(("value", name, type_name, value, path, depth))

    def emit_null(self, name, type_name, *, path="", depth=0):
        self.events.append(("null", name, type_name, path, depth))

    def emit_error(self, name, type_name, message, *, path="", depth=0):
        self.events.append(("error", name, type_name, message, path, depth))

    def emit_depth_limit(self, name, *, path="", depth=0):
        self.events.append(("max_depth", name, path, depth))

    def emit_truncated(self, limit, *, path="", depth=0):
        self.events.append(("truncated", limit, path, depth))

    def of_kind(self, kind: str) -> List[Tuple[Any, ...]]:
        """All events of one kind, in order."""
        return [event for event in self.events if event[0] == kind]

    def paths(self, kind: Optional[str] = None) -> List[str]:
        """Paths of all events (or of one kind) that carry a path."""
        result = []
        for event in self.events:
            if kind is not None and event[0] != kind:
                continue
            if event[0] in ("exit_object", "exit_array"):
                continue
            result.append(event[-2])
        return result

    def values(self) -> dict:
        """Map of path to value for every value event."""
        return {event[4]: event[3] for event in self.of_kind("value")}

    @property
    def is_balanced(self) -> bool:
        """Every enter was matched by an exit of the same kind, in order."""
        stack = []
        for event in self.events:
            if event[0] in ("enter_object", "enter_array"):
                stack.append(event[0])
            elif event[0] == "exit_object":
                if not stack or stack.pop() != "enter_object":
                    return False
            elif event[0] == "exit_array":
                if not stack or stack.pop() != "enter_array":
                    return False
        return not stack

    def clear(self) -> None:
        self.events.clear()
