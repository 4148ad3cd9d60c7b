"""
eCR rule engine.

Evaluates declarative electronic Case Report rules (AND/OR combinations of
path + operator + value conditions) against FHIR-shaped clinical records.
"""

from .app.fhirpath import compile_path, extract, validate_path
from .app.rules import (
    Condition, ConditionResult, ExecutionResult, LogicOperator, Operator,
    RuleDefinition, RuleEngine, evaluate, execute, run_condition
)
from .app.resources import generate

__version__ = "1.0.0"

__all__ = [
    "Condition",
    "ConditionResult",
    "ExecutionResult",
    "LogicOperator",
    "Operator",
    "RuleDefinition",
    "RuleEngine",
    "compile_path",
    "evaluate",
    "execute",
    "extract",
    "generate",
    "run_condition",
    "validate_path",
]
