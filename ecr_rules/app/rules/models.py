"""
Rule data models for the eCR rule engine.
"""

from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Operator(str, Enum):
    """Condition comparison operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    IN = "in"
    GREATER = "greater"
    LESS = "less"
    EXISTS = "exists"
    MATCHES = "matches"

    @classmethod
    def parse(cls, name: Union[str, "Operator"]) -> Optional["Operator"]:
        """Resolve an operator name, returning None for unknown names."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


class LogicOperator(str, Enum):
    """How per-condition results combine into a rule result."""
    AND = "AND"
    OR = "OR"

    def combine(self, results: List[bool]) -> bool:
        """AND is vacuously true, OR vacuously false."""
        if self is LogicOperator.AND:
            return all(results)
        return any(results)


class ConditionErrorKind(str, Enum):
    """Why a condition could not be evaluated normally."""
    INVALID_CONDITION = "invalid_condition"
    INVALID_PATH = "invalid_path"
    NO_RESOURCES = "no_resources"
    EXECUTION = "execution"


class Condition(BaseModel):
    """One atomic test: resource type + path + operator + expected value."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    resource_type: str = Field(..., alias="resourceType", description="Resource type the condition applies to")
    path: str = Field(..., description="Path expression rooted at the resource type")
    operator: str = Field(..., description="Comparison operator name")
    value: Any = Field(None, description="Expected value; ignored by 'exists'")
    system: Optional[str] = Field(None, description="Coding system of an expected code")
    code: Optional[str] = Field(None, description="Expected code, validated against system")
    description: Optional[str] = None

    @field_validator("resource_type", "path", "operator")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @model_validator(mode="after")
    def _value_required(self) -> "Condition":
        if self.value is None and self.operator != Operator.EXISTS.value:
            raise ValueError(f"value is required for operator '{self.operator}'")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class RuleDefinition(BaseModel):
    """A rule as authored externally: logic operator plus ordered conditions."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rule_id: Optional[str] = Field(None, alias="ruleId")
    name: Optional[str] = None
    logic_operator: LogicOperator = Field(LogicOperator.AND, alias="logicOperator")
    # Entries stay unvalidated here; the runner reports malformed ones per condition
    conditions: List[Any] = Field(default_factory=list)

    @field_validator("logic_operator", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


@dataclass
class ConditionResult:
    """Outcome of running one condition against a record set."""
    condition: Union[Condition, Dict[str, Any], Any]
    result: bool
    extracted_value: Any = None
    error: Optional[str] = None
    error_kind: Optional[ConditionErrorKind] = None

    @property
    def ok(self) -> bool:
        """True when the condition was evaluated without a diagnostic."""
        return self.error_kind is None

    def to_dict(self) -> Dict[str, Any]:
        condition = self.condition.to_dict() if isinstance(self.condition, Condition) else self.condition
        data = {
            "condition": condition,
            "result": self.result,
            "extractedValue": self.extracted_value,
        }
        if self.error is not None:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        return data


@dataclass
class ExecutionResult:
    """Result of executing a rule. ``condition_met`` and ``overall_result`` are the same value."""
    condition_met: bool
    executed_conditions: List[ConditionResult]
    overall_result: bool
    logic_operator: LogicOperator
    execution_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conditionMet": self.condition_met,
            "executedConditions": [c.to_dict() for c in self.executed_conditions],
            "overallResult": self.overall_result,
            "logicOperator": self.logic_operator.value,
            "executionTimeMs": self.execution_time_ms,
        }


@dataclass
class SandboxResult(ExecutionResult):
    """Execution result enriched with information about the data it ran on."""
    data_source: str = "synthetic"
    patient_count: int = 0
    resource_types: List[str] = field(default_factory=list)
    records_evaluated: int = 0
    api_response_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "dataSource": self.data_source,
            "patientCount": self.patient_count,
            "resourceTypes": list(self.resource_types),
            "recordsEvaluated": self.records_evaluated,
            "apiResponseTime": self.api_response_time,
        })
        return data
