"""Scalar, enumerable and mapping classification.

Scalars are leaf values: they are read and reported but never descended
into, whatever the filter configuration says. The set is closed on purpose
so the leaf/aggregate boundary lives in exactly one place.
"""

import collections.abc
import datetime
import enum
import math
import uuid
from decimal import Decimal
from fractions import Fraction
from pathlib import PurePath
from typing import Any

SCALAR_TYPES = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    Decimal,
    Fraction,
    enum.Enum,
    datetime.date,          # covers datetime.datetime
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    PurePath,
    type(None),
)

# Values JSON can carry without conversion
_JSON_NATIVE = (bool, int, float, str, type(None))


def is_scalar_type(candidate: Any) -> bool:
    """Check if a type is a leaf value type."""
    if not isinstance(candidate, type):
        return False
    if candidate in SCALAR_TYPES:
        return True
    return issubclass(candidate, SCALAR_TYPES)


def is_scalar(value: Any) -> bool:
    """Check if a value's runtime type is a leaf value type."""
    return is_scalar_type(type(value))


def is_enumerable(value: Any) -> bool:
    """Check if a value should be walked element by element.

    Strings and other scalars are iterable but are never enumerated.
    """
    if is_scalar(value):
        return False
    return isinstance(value, collections.abc.Iterable)


def is_mapping(value: Any) -> bool:
    """Check if an enumerable is keyed (its elements are its values)."""
    return isinstance(value, collections.abc.Mapping)


def type_name(candidate: Any) -> str:
    """Short display name for a type."""
    return getattr(candidate, '__name__', None) or repr(candidate)


def format_value(value: Any) -> str:
    """Render a value for a report line.

    Non-scalars render as ``<TypeName>`` so an object's text never pulls in
    its nested content.
    """
    if value is None:
        return "null"
    if isinstance(value, enum.Enum):
        return value.name
    if is_scalar(value):
        return str(value)
    return f"<{type(value).__name__}>"


def to_document_value(value: Any) -> Any:
    """Convert a value for the structured document's ``$value`` slot.

    Non-finite floats become the strings ``nan``, ``inf`` and ``-inf``.
    """
    if isinstance(value, float) and not math.isfinite(value):
        # JSON has no NaN or Infinity
        return str(value)
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, _JSON_NATIVE):
        return value
    return format_value(value)
