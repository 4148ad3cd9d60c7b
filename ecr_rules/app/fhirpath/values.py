"""
Value coercions shared by path filtering and operator evaluation.

Records are JSON trees, so values are rendered the way JSON would render them:
``True`` becomes ``"true"``, ``3.0`` becomes ``"3"`` and lists are joined with
commas.
"""

import json
import math
import re
from typing import Any, Optional

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$|^[+-]?Infinity$")


def stringify(value: Any) -> str:
    """Render a record value as a string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True)
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """Numeric coercion; returns None where the value has no numeric reading."""
    if value is None or isinstance(value, dict):
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, (list, tuple)):
        if len(value) == 0:
            return 0.0
        if len(value) == 1:
            return to_number(value[0])
        return None
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        if not NUMBER_PATTERN.match(text):
            return None
        number = float(text)
    if math.isnan(number):
        return None
    return number


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion (``"1" != 1`` and ``True != 1``)."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right
