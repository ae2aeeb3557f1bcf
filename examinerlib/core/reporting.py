"""Report line formatting shared by the console sink and the diff engine.

Lines look like::

    [ValueDifferent]       Player.stats.health (int): 10 vs 12
                             Player.name (str): Ada

The bracketed flag column is padded to a fixed width so paths line up.
"""

import logging
from typing import Any

from ..config import ReportFlags
from .scalars import format_value

report_logger = logging.getLogger("examinerlib.report")

FLAG_PREFIX_WIDTH = 21
EMPTY_FLAG_PREFIX = " " * FLAG_PREFIX_WIDTH

_LEVELS = {
    ReportFlags.ERROR: logging.ERROR,
    ReportFlags.MAX_DEPTH: logging.WARNING,
    ReportFlags.LENGTH_MISMATCH: logging.WARNING,
    ReportFlags.TRUNCATED: logging.WARNING,
}


def flag_label(flag: ReportFlags) -> str:
    """``ReportFlags.NULL_MISMATCH`` -> ``NullMismatch``."""
    name = flag.name or str(int(flag))
    return "".join(part.capitalize() for part in name.split("_"))


def indent(depth: int) -> str:
    return "  " * depth


def construct_message(flag: ReportFlags, path: str, depth: int) -> str:
    return f"[{flag_label(flag)}]".ljust(FLAG_PREFIX_WIDTH) + indent(depth) + path


def with_member_type(message: str, type_name: str) -> str:
    return f"{message} ({type_name})"


def with_values(message: str, left: Any, right: Any) -> str:
    return f"{message}: {format_value(left)} vs {format_value(right)}"


def level_for(flag: ReportFlags) -> int:
    return _LEVELS.get(flag, logging.INFO)


def report(flag: ReportFlags, message: str, target: logging.Logger = report_logger) -> None:
    """Write one report line at the level matching its classification."""
    target.log(level_for(flag), message)
