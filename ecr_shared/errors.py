"""
Shared error handling for the eCR rule engine.

Only programming errors and path compilation failures are raised. Everything
that can go wrong while evaluating a rule against data is reported on the
execution result instead.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from .logging import get_evaluation_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    evaluation_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class RuleEngineException(Exception):
    """Base exception for the rule engine."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            evaluation_id=get_evaluation_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidPathError(RuleEngineException):
    """Path expression failed to compile."""

    def __init__(self, message: str = "Invalid path syntax", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_PATH", message, details)


class InvalidConditionError(RuleEngineException):
    """Condition definition is missing fields or malformed."""

    def __init__(self, message: str = "Invalid condition", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CONDITION", message, details)


class InvalidLogicOperatorError(RuleEngineException):
    """Logic operator is not AND or OR."""

    def __init__(self, operator: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "INVALID_LOGIC_OPERATOR",
            f"Invalid logic operator {operator!r}. Must be AND or OR",
            details
        )


class RecordStoreError(RuleEngineException):
    """Local record store errors."""

    def __init__(self, message: str = "Record store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("RECORD_STORE_ERROR", message, details)


class ConfigurationError(RuleEngineException):
    """Configuration errors."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
