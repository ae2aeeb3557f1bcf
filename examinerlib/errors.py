"""Exception types raised by ExaminerLib.

Only invalid top-level calls raise. Failures inside a traversal (a member
getter that throws, an iterator that breaks, a limit that is reached) are
reported as events and never escape the walk.
"""


class ExaminerError(Exception):
    """Base class for all ExaminerLib errors."""
    pass


class InvalidTargetError(ExaminerError, ValueError):
    """Raised when a top-level operation is handed something it cannot examine.

    Examples: ``dump(None)``, ``compare(a, None)`` or ``compare`` on two
    objects whose runtime types differ.
    """
    pass


class InvalidSettingsError(ExaminerError):
    """Raised when Settings fail validation before a traversal starts."""
    pass


class DocumentStateError(ExaminerError):
    """Raised when the document builder's container stack is misused."""
    pass
