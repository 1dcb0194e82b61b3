"""
Metadata Field Helpers

Small helpers for pulling typed values out of DICOM datasets and for
falling back to a secondary value when an optional element is absent.
"""

import math
from collections.abc import Sequence
from typing import Any, NamedTuple, Optional, Tuple

from core.errors import InvalidField, MissingField


class Resolved(NamedTuple):
    """A resolved value and whether the fallback supplied it."""
    value: Any
    used_fallback: bool


def resolve(primary: Optional[Any], fallback: Any) -> Resolved:
    """Return ``primary`` unless it is None, otherwise ``fallback``."""
    if primary is None:
        return Resolved(fallback, True)
    return Resolved(primary, False)


def parse_float(raw: Any) -> Optional[float]:
    """
    Convert a DS/IS/FD value to float.

    Returns None for absent, empty or malformed values, including
    multi-valued elements where a single number is expected. NaN and
    infinities count as malformed.
    """
    if raw is None or isinstance(raw, (str, bytes)) and not raw.strip():
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def element_value(ds, keyword: str) -> Optional[Any]:
    """Value of ``keyword`` in ``ds`` or None when absent or empty."""
    if keyword not in ds:
        return None
    value = ds[keyword].value
    if value is None or isinstance(value, (str, bytes)) and not value:
        return None
    return value


def required_int(ds, keyword: str, source=None) -> int:
    """Read a required positive integer element."""
    value = element_value(ds, keyword)
    if value is None:
        raise MissingField(keyword, source)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidField(keyword, f"not an integer: {value!r}", source)
    if number <= 0:
        raise InvalidField(keyword, f"must be positive, got {number}", source)
    return number


def required_floats(ds, keyword: str, count: int, source=None) -> Tuple[float, ...]:
    """Read a required multi-valued numeric element of exactly ``count`` values."""
    try:
        value = element_value(ds, keyword)
    except ValueError as e:
        raise InvalidField(keyword, str(e), source)
    if value is None:
        raise MissingField(keyword, source)

    # Single-valued elements come back as scalars
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        values = list(value)
    else:
        values = [value]

    if len(values) != count:
        raise InvalidField(keyword, f"expected {count} values, got {len(values)}", source)
    parsed = [parse_float(v) for v in values]
    if any(v is None for v in parsed):
        raise InvalidField(keyword, f"non-numeric or non-finite value in {values!r}", source)
    return tuple(parsed)


def optional_float(ds, keyword: str, default: float) -> Resolved:
    """Read an optional numeric element, falling back to ``default`` when unusable."""
    try:
        raw = element_value(ds, keyword)
    except ValueError:
        # pydicom converts DS/IS lazily and raises on garbage text
        raw = None
    return resolve(parse_float(raw), default)
