"""Event sinks for the traversal engine.

The walker does not know how its output is rendered. It calls a Sink with
enter/exit and emit events, each carrying the fully-qualified path of the
node it describes (``Player.inventory[2].name``) and the depth it was found
at. Two sinks ship with the library: ConsoleSink (indented report lines)
and DocumentBuilder (nested maps and lists for JSON output).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..config import ReportFlags, Settings
from .reporting import (
    EMPTY_FLAG_PREFIX,
    construct_message,
    indent,
    level_for,
    report_logger,
)
from .scalars import format_value


class Sink(ABC):
    """Abstract receiver of traversal events.

    ``name`` is the member name (or mapping key) the event belongs to, and
    is None for elements of a sequence.
    """

    @abstractmethod
    def enter_object(self, name: Optional[str], type_name: str, *,
                     path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def exit_object(self) -> None:
        pass

    @abstractmethod
    def enter_array(self, name: Optional[str], *, path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def exit_array(self) -> None:
        pass

    @abstractmethod
    def emit_value(self, name: Optional[str], type_name: str, value: Any, *,
                   path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def emit_null(self, name: Optional[str], type_name: str, *,
                  path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def emit_error(self, name: Optional[str], type_name: str, message: str, *,
                   path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def emit_depth_limit(self, name: Optional[str], *, path: str = "", depth: int = 0) -> None:
        pass

    @abstractmethod
    def emit_truncated(self, limit: int, *, path: str = "", depth: int = 0) -> None:
        pass


class ConsoleSink(Sink):
    """Line-oriented renderer, indented by depth.

    Lines are kept in ``lines`` and also written to a logger. Which lines
    appear is gated by the settings' report flags.
    """

    def __init__(self, settings: Settings, target: Optional[logging.Logger] = None):
        """Initialize the sink.

        Args:
            settings: Settings whose report_flags gate the output
            target: Logger to write lines to (defaults to ``examinerlib.report``)
        """
        self.settings = settings
        self.target = target or report_logger
        self.lines: List[str] = []

    def _wants(self, flag: ReportFlags) -> bool:
        return bool(self.settings.report_flags & flag)

    def _write(self, line: str, level: int = logging.INFO) -> None:
        self.lines.append(line)
        self.target.log(level, line)

    def header(self, title: str, description: str = "") -> None:
        """Write the title block that precedes a dump."""
        self._write("")
        self._write(title)
        if description:
            self._write(description)
        self._write("")

    # Structure events carry no text of their own in console output

    def enter_object(self, name, type_name, *, path="", depth=0):
        pass

    def exit_object(self):
        pass

    def enter_array(self, name, *, path="", depth=0):
        pass

    def exit_array(self):
        pass

    def emit_value(self, name, type_name, value, *, path="", depth=0):
        if self._wants(ReportFlags.DUMP_VALUE):
            self._write(f"{EMPTY_FLAG_PREFIX}{indent(depth)}{path} ({type_name}): {format_value(value)}")

    def emit_null(self, name, type_name, *, path="", depth=0):
        if self._wants(ReportFlags.DUMP_NULL):
            self._write(f"{EMPTY_FLAG_PREFIX}{indent(depth)}{path} ({type_name}): null")

    def emit_error(self, name, type_name, message, *, path="", depth=0):
        if self._wants(ReportFlags.ERROR):
            line = construct_message(ReportFlags.ERROR, path, depth) + f" ({type_name}): {message}"
            self._write(line, level_for(ReportFlags.ERROR))

    def emit_depth_limit(self, name, *, path="", depth=0):
        if self._wants(ReportFlags.MAX_DEPTH):
            self._write(construct_message(ReportFlags.MAX_DEPTH, path, depth),
                        level_for(ReportFlags.MAX_DEPTH))

    def emit_truncated(self, limit, *, path="", depth=0):
        self._write(f"{EMPTY_FLAG_PREFIX}{indent(depth)}... (truncated at {limit} items)")
