"""
Sandbox rule testing against local or synthetic records.
"""

import time
from typing import Any, Dict, List, Optional, Sequence, Union

from ecr_shared.logging import get_logger
from .resources.store import RecordStore
from .resources.synthetic import available_resource_types, generate
from .rules.engine import RuleEngine
from .rules.models import Condition, LogicOperator, SandboxResult

SYNTHETIC_SOURCE = "synthetic"


class RuleSandbox:
    """Runs rules against test data for rule authors.

    Records come from a :class:`RecordStore` when one is configured and
    enabled, otherwise from the synthetic catalog.
    """

    def __init__(self, store: Optional[RecordStore] = None, engine: Optional[RuleEngine] = None):
        self.store = store
        self.engine = engine or RuleEngine()
        self.logger = get_logger("ecr_rules.sandbox")

    def load_records(self) -> List[Dict[str, Any]]:
        """Fetch the records a sandbox run evaluates."""
        if self.store is not None and self.store.is_enabled():
            return self.store.load_all_resources()
        return generate(available_resource_types())

    def data_source(self) -> str:
        if self.store is not None and self.store.is_enabled():
            return f"record-store ({self.store.data_dir})"
        return SYNTHETIC_SOURCE

    def test_rule(
        self,
        conditions: Sequence[Union[Condition, Dict[str, Any]]],
        logic_operator: Union[str, LogicOperator] = LogicOperator.AND,
        data_source: Optional[str] = None
    ) -> SandboxResult:
        """Execute conditions against sandbox records."""
        start_time = time.perf_counter()
        records = self.load_records()
        load_time_ms = (time.perf_counter() - start_time) * 1000

        execution = self.engine.execute(list(conditions), records, logic_operator)

        result = SandboxResult(
            condition_met=execution.condition_met,
            executed_conditions=execution.executed_conditions,
            overall_result=execution.overall_result,
            logic_operator=execution.logic_operator,
            execution_time_ms=execution.execution_time_ms,
            data_source=data_source or self.data_source(),
            patient_count=sum(1 for r in records if r.get("resourceType") == "Patient"),
            resource_types=sorted({r.get("resourceType") for r in records if r.get("resourceType")}),
            records_evaluated=len(records),
            api_response_time=load_time_ms
        )

        self.logger.info(
            "Sandbox rule test completed",
            data_source=result.data_source,
            records=result.records_evaluated,
            overall_result=result.overall_result
        )
        return result
