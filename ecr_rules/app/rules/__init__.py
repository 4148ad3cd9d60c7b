"""
Rules engine package.

Defines the condition model and the evaluation engine used to decide whether
an eCR rule fires for a set of clinical records. Conditions are combined with
AND/OR and every condition reports its own outcome, extracted value and
diagnostic for observability.

Modules of interest:
- models: Condition, logic operator and result types.
- operators: Fail-closed comparison operators.
- runner: Evaluation of one condition across records (any-match).
- engine: Rule execution, aggregation and timing.
- validation: Authoring-time checks for conditions and rule definitions.

The engine performs no I/O; records and rules come from the caller.
"""

from .engine import RuleEngine, execute, execute_rule
from .models import (
    Condition, ConditionErrorKind, ConditionResult, ExecutionResult,
    LogicOperator, Operator, RuleDefinition, SandboxResult
)
from .operators import evaluate
from .runner import ConditionRunner, run_condition

__all__ = [
    "Condition",
    "ConditionErrorKind",
    "ConditionResult",
    "ConditionRunner",
    "ExecutionResult",
    "LogicOperator",
    "Operator",
    "RuleDefinition",
    "RuleEngine",
    "SandboxResult",
    "evaluate",
    "execute",
    "execute_rule",
    "run_condition",
]
