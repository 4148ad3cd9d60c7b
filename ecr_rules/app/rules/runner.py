"""
Condition runner: evaluates one condition against a record set.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from ecr_shared.errors import InvalidPathError
from ecr_shared.logging import get_logger
from ecr_shared.metrics import MetricsCollector
from ..fhirpath.extractor import extract
from ..fhirpath.parser import compile_path
from .models import Condition, ConditionErrorKind, ConditionResult, Operator
from .operators import evaluate


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class ConditionRunner:
    """Runs a single condition over the records of its resource type.

    A condition holds when ANY record of its resource type satisfies it.
    Records are scanned in order and the first satisfying record wins.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("ecr_rules.runner")
        self.metrics = metrics

    def run(self, condition: Union[Condition, Dict[str, Any]], records: List[Dict[str, Any]]) -> ConditionResult:
        """Run a condition and record its outcome."""
        result = self._run(condition, records)

        if self.metrics:
            operator = getattr(result.condition, "operator", None)
            known = Operator.parse(operator) if isinstance(operator, str) else None
            self.metrics.record_condition(
                operator=known.value if known else "unknown",
                outcome=result.result,
                error_kind=result.error_kind.value if result.error_kind else None
            )

        self.logger.debug(
            "Condition evaluated",
            resource_type=getattr(result.condition, "resource_type", None),
            path=getattr(result.condition, "path", None),
            result=result.result,
            error=result.error
        )
        return result

    def _run(self, condition: Union[Condition, Dict[str, Any]], records: List[Dict[str, Any]]) -> ConditionResult:
        parsed, problem = self._coerce(condition)
        if parsed is None:
            return ConditionResult(
                condition=condition,
                result=False,
                error=f"Invalid condition: {problem}",
                error_kind=ConditionErrorKind.INVALID_CONDITION
            )

        try:
            compiled = compile_path(parsed.path)
        except InvalidPathError as e:
            self._record_compilation("invalid")
            return ConditionResult(
                condition=parsed,
                result=False,
                error=f"Invalid path syntax: {e.message}",
                error_kind=ConditionErrorKind.INVALID_PATH
            )
        self._record_compilation("ok")

        matching = [
            record for record in records
            if isinstance(record, dict) and record.get("resourceType") == parsed.resource_type
        ]
        if not matching:
            return ConditionResult(
                condition=parsed,
                result=False,
                error=f"No {parsed.resource_type} resources found",
                error_kind=ConditionErrorKind.NO_RESOURCES
            )

        extracted_value = None
        error = None
        for record in matching:
            try:
                extracted_value = extract(record, compiled)
                if evaluate(extracted_value, parsed.operator, parsed.value):
                    return ConditionResult(condition=parsed, result=True, extracted_value=extracted_value)
            except Exception as e:
                self.logger.warning(
                    "Error evaluating condition against record",
                    record_id=record.get("id"),
                    path=parsed.path,
                    error=str(e)
                )
                extracted_value = None
                error = f"Execution error: {e}"

        return ConditionResult(
            condition=parsed,
            result=False,
            extracted_value=extracted_value,
            error=error,
            error_kind=ConditionErrorKind.EXECUTION if error else None
        )

    def _coerce(self, condition: Any) -> Tuple[Optional[Condition], Optional[str]]:
        if isinstance(condition, Condition):
            return condition, None
        if not isinstance(condition, dict):
            return None, "condition must be an object"
        try:
            return Condition.model_validate(condition), None
        except ValidationError as e:
            return None, _format_validation_error(e)

    def _record_compilation(self, status: str):
        if self.metrics:
            self.metrics.record_path_compilation(status)


def run_condition(condition: Union[Condition, Dict[str, Any]], records: List[Dict[str, Any]]) -> ConditionResult:
    """Run one condition without metrics."""
    return ConditionRunner().run(condition, records)
