"""
Condition operator evaluation.

Every operator fails closed: a missing extracted value, a value that cannot
be coerced, a malformed pattern or an unrecognised operator name all evaluate
to False rather than raising. Rules keep evaluating when one condition is
misconfigured.
"""

import re
from typing import Any, Callable, Dict, Union

from ecr_shared.logging import get_logger
from ..fhirpath.values import stringify, strict_equals, to_number
from .models import Operator

logger = get_logger("ecr_rules.operators")


def _equals(actual: Any, expected: Any) -> bool:
    return strict_equals(actual, expected)


def _not_equals(actual: Any, expected: Any) -> bool:
    return not strict_equals(actual, expected)


def _contains(actual: Any, expected: Any) -> bool:
    return stringify(expected).lower() in stringify(actual).lower()


def _in(actual: Any, expected: Any) -> bool:
    if isinstance(expected, (list, tuple)):
        return any(strict_equals(actual, item) for item in expected)
    options = [option.strip() for option in stringify(expected).split(",")]
    return stringify(actual) in options


def _greater(actual: Any, expected: Any) -> bool:
    left, right = to_number(actual), to_number(expected)
    if left is None or right is None:
        return False
    return left > right


def _less(actual: Any, expected: Any) -> bool:
    left, right = to_number(actual), to_number(expected)
    if left is None or right is None:
        return False
    return left < right


def _exists(actual: Any, expected: Any) -> bool:
    return actual is not None


def _matches(actual: Any, expected: Any) -> bool:
    try:
        pattern = re.compile(stringify(expected), re.IGNORECASE)
    except re.error as e:
        logger.debug("Invalid pattern in matches condition", pattern=expected, error=str(e))
        return False
    return pattern.search(stringify(actual)) is not None


OPERATOR_TABLE: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUALS: _equals,
    Operator.NOT_EQUALS: _not_equals,
    Operator.CONTAINS: _contains,
    Operator.IN: _in,
    Operator.GREATER: _greater,
    Operator.LESS: _less,
    Operator.EXISTS: _exists,
    Operator.MATCHES: _matches,
}


def evaluate(extracted_value: Any, operator: Union[str, Operator], expected_value: Any) -> bool:
    """Apply a named comparison operator.

    Args:
        extracted_value: Value pulled from a record (None when absent)
        operator: Operator name or member of :class:`Operator`
        expected_value: Value the condition compares against

    Returns:
        Whether the comparison holds
    """
    resolved = Operator.parse(operator)
    if resolved is None:
        logger.warning("Unknown condition operator", operator=operator)
        return False

    if resolved is Operator.EXISTS:
        return _exists(extracted_value, expected_value)

    # Absent data never satisfies a comparison
    if extracted_value is None:
        return False

    return OPERATOR_TABLE[resolved](extracted_value, expected_value)
