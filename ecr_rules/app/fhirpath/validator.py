"""
Path expression validation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ecr_shared.errors import InvalidPathError
from .parser import compile_path

RECURSIVE_TRAVERSAL_WARNING = "Path contains recursive traversal (..) which may affect performance"


@dataclass
class PathValidationResult:
    """Outcome of validating a path expression."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def validate_path(path: Any) -> PathValidationResult:
    """Validate a path expression without touching any record.

    Uses the same compiler as extraction, so a path that validates here is
    one the extractor accepts and vice versa.
    """
    if not isinstance(path, str) or not path.strip():
        return PathValidationResult(is_valid=False, errors=["FHIR path must be a non-empty string"])

    try:
        compiled = compile_path(path)
    except InvalidPathError as e:
        return PathValidationResult(is_valid=False, errors=[f"Invalid path syntax: {e.message}"])

    warnings = []
    if compiled.has_descendants:
        warnings.append(RECURSIVE_TRAVERSAL_WARNING)

    return PathValidationResult(is_valid=True, warnings=warnings)
