"""
Rule evaluation engine for eCR rules.
"""

import time
from typing import Dict, Any, Optional, List, Sequence, Union

from pydantic import ValidationError

from ecr_shared.errors import InvalidConditionError, InvalidLogicOperatorError
from ecr_shared.logging import bind_evaluation, get_logger
from ecr_shared.metrics import MetricsCollector
from .models import (
    Condition, ConditionErrorKind, ConditionResult, ExecutionResult,
    LogicOperator, RuleDefinition
)
from .runner import ConditionRunner

ConditionInput = Union[Condition, Dict[str, Any]]


class RuleEngine:
    """Rule evaluation engine.

    Stateless apart from its logger and optional metrics collector, so a
    single instance may be shared between threads.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("ecr_rules.engine")
        self.metrics = metrics
        self.runner = ConditionRunner(metrics)

    def execute(
        self,
        conditions: Sequence[ConditionInput],
        records: Sequence[Dict[str, Any]],
        logic_operator: Union[str, LogicOperator] = LogicOperator.AND
    ) -> ExecutionResult:
        """Execute conditions against records.

        Args:
            conditions: Ordered conditions (models or plain dicts)
            records: Records tagged with ``resourceType``
            logic_operator: AND or OR

        Returns:
            ExecutionResult with per-condition diagnostics

        Raises:
            TypeError: if conditions or records is not a list
            InvalidLogicOperatorError: if logic_operator is not AND/OR
        """
        if not isinstance(conditions, (list, tuple)):
            raise TypeError(f"conditions must be a list, got {type(conditions).__name__}")
        if not isinstance(records, (list, tuple)):
            raise TypeError(f"records must be a list, got {type(records).__name__}")
        operator = self._resolve_logic_operator(logic_operator)

        with bind_evaluation():
            start_time = time.perf_counter()

            executed: List[ConditionResult] = []
            for condition in conditions:
                try:
                    executed.append(self.runner.run(condition, records))
                except Exception as e:
                    self.logger.error("Unexpected error running condition", error=str(e), exc_info=True)
                    executed.append(ConditionResult(
                        condition=condition,
                        result=False,
                        error=f"Execution error: {e}",
                        error_kind=ConditionErrorKind.EXECUTION
                    ))

            overall = operator.combine([c.result for c in executed])
            elapsed = time.perf_counter() - start_time

            if self.metrics:
                self.metrics.record_rule_execution(operator.value, overall, elapsed)

            self.logger.info(
                "Rule executed",
                logic_operator=operator.value,
                conditions=len(executed),
                records=len(records),
                overall_result=overall,
                errors=sum(1 for c in executed if c.error),
                execution_time_ms=round(elapsed * 1000, 3)
            )

        return ExecutionResult(
            condition_met=overall,
            executed_conditions=executed,
            overall_result=overall,
            logic_operator=operator,
            execution_time_ms=elapsed * 1000
        )

    def execute_rule(
        self,
        rule: Union[RuleDefinition, Dict[str, Any]],
        records: Sequence[Dict[str, Any]]
    ) -> ExecutionResult:
        """Execute a full rule definition (logic operator plus conditions)."""
        definition = self.parse_rule(rule)
        with bind_evaluation(rule_id=definition.rule_id, rule_name=definition.name):
            return self.execute(definition.conditions, records, definition.logic_operator)

    @staticmethod
    def parse_rule(rule: Union[RuleDefinition, Dict[str, Any]]) -> RuleDefinition:
        """Build a RuleDefinition, raising engine errors for malformed input."""
        if isinstance(rule, RuleDefinition):
            return rule
        if not isinstance(rule, dict):
            raise TypeError(f"rule must be a mapping, got {type(rule).__name__}")
        try:
            return RuleDefinition.model_validate(rule)
        except ValidationError as e:
            for item in e.errors():
                if item.get("loc", ())[:1] in (("logicOperator",), ("logic_operator",)):
                    raise InvalidLogicOperatorError(item.get("input")) from e
            raise InvalidConditionError(
                "Invalid rule definition",
                {"errors": [item.get("msg") for item in e.errors()]}
            ) from e

    @staticmethod
    def _resolve_logic_operator(logic_operator: Union[str, LogicOperator]) -> LogicOperator:
        if isinstance(logic_operator, LogicOperator):
            return logic_operator
        if isinstance(logic_operator, str):
            try:
                return LogicOperator(logic_operator.upper())
            except ValueError:
                pass
        raise InvalidLogicOperatorError(logic_operator)


_default_engine = RuleEngine()


def execute(
    conditions: Sequence[ConditionInput],
    records: Sequence[Dict[str, Any]],
    logic_operator: Union[str, LogicOperator] = LogicOperator.AND
) -> ExecutionResult:
    """Execute conditions with a shared engine that records no metrics."""
    return _default_engine.execute(conditions, records, logic_operator)


def execute_rule(
    rule: Union[RuleDefinition, Dict[str, Any]],
    records: Sequence[Dict[str, Any]]
) -> ExecutionResult:
    """Execute a rule definition with the shared engine."""
    return _default_engine.execute_rule(rule, records)
