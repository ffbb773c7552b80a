"""
Lenient coercion of client-supplied query parameters.

Query strings arrive untyped. These helpers never raise: anything that does
not read as a finite number yields ``None`` and the caller decides the
fallback (drop the filter, use the default page size, ...).
"""
import math
from typing import Any, Mapping, Optional


def clean_param(params: Mapping[str, Any], name: str) -> Optional[str]:
    """Return the stripped string value of ``name``, or None if absent or blank."""
    value = params.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


# Largest magnitude a BSON int64 can hold
INT64_MAX = 2 ** 63 - 1
INT64_MIN = -(2 ** 63)


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an integer, truncating decimal input ("2.7" -> 2).

    Returns None for blank, non-numeric, infinite or NaN input, and for
    values outside the signed 64-bit range the store can encode.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    try:
        number = int(text)
    except ValueError:
        parsed = parse_float(text)
        if parsed is None:
            return None
        number = int(parsed)
    if not INT64_MIN <= number <= INT64_MAX:
        return None
    return number
