"""Testing utilities for ExaminerLib consumers."""

from .fixtures import RecordingSink

__all__ = ['RecordingSink']
