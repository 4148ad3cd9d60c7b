"""
Authoring-time validation for conditions and rule definitions.

These checks are advisory tooling for rule authors. The engine never calls
them: it evaluates whatever it is given and reports problems per condition.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..fhirpath.extractor import extract
from ..fhirpath.parser import compile_path
from ..fhirpath.validator import validate_path
from .models import LogicOperator, Operator

REQUIRED_CONDITION_FIELDS = ["resourceType", "path", "operator", "value"]

KNOWN_CODING_SYSTEMS = [
    "http://hl7.org/fhir/sid/icd-10",
    "http://hl7.org/fhir/sid/icd-10-cm",
    "http://hl7.org/fhir/sid/icd-9-cm",
    "http://loinc.org",
    "http://snomed.info/sct",
    "http://www.nlm.nih.gov/research/umls/rxnorm",
]

ICD10_SYSTEMS = ("http://hl7.org/fhir/sid/icd-10", "http://hl7.org/fhir/sid/icd-10-cm")
ICD10_CODE_PATTERN = re.compile(r"^[A-Z]\d{2}(\.\d+)?$")


@dataclass
class ValidationReport:
    """Errors block a rule from being saved; warnings do not."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    extracted_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationReport", prefix: str = "") -> None:
        self.errors.extend(f"{prefix}{error}" for error in other.errors)
        self.warnings.extend(f"{prefix}{warning}" for warning in other.warnings)
        self.extracted_data.update(other.extracted_data)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
        if self.extracted_data:
            data["extractedData"] = dict(self.extracted_data)
        return data


def _is_missing(condition: Dict[str, Any], name: str) -> bool:
    if name == "value" and condition.get("operator") == Operator.EXISTS.value:
        return False
    value = condition.get(name)
    return value is None or (isinstance(value, str) and not value.strip())


def validate_condition(condition: Any) -> ValidationReport:
    """Check a condition for missing fields, path syntax and coding hygiene."""
    report = ValidationReport()

    if not isinstance(condition, dict) or not condition:
        report.errors.append("Condition is required")
        return report

    missing = [name for name in REQUIRED_CONDITION_FIELDS if _is_missing(condition, name)]
    if missing:
        report.errors.append(f"Missing required fields: {', '.join(missing)}")

    path = condition.get("path")
    if path:
        path_result = validate_path(path)
        report.errors.extend(path_result.errors)
        report.warnings.extend(path_result.warnings)

        resource_type = condition.get("resourceType")
        if path_result.is_valid and resource_type:
            root = compile_path(path).root
            if root != resource_type:
                report.warnings.append(
                    f"Path root '{root}' does not match resource type '{resource_type}'; "
                    "the condition can never match"
                )

    operator = condition.get("operator")
    if operator and Operator.parse(operator) is None:
        report.warnings.append(f"Uncommon operator: {operator}")

    report.merge(_validate_coding(condition.get("system"), condition.get("code")))
    return report


def _validate_coding(system: Optional[str], code: Optional[str]) -> ValidationReport:
    report = ValidationReport()
    if not system or not code:
        return report

    if system not in KNOWN_CODING_SYSTEMS:
        report.warnings.append(f"Uncommon coding system: {system}")

    if system in ICD10_SYSTEMS and not ICD10_CODE_PATTERN.match(code):
        report.warnings.append(f'Code "{code}" may not be valid ICD-10 format')

    return report


def validate_rule_definition(definition: Any) -> ValidationReport:
    """Validate a rule definition: logic operator plus a list of conditions."""
    report = ValidationReport()

    if not isinstance(definition, dict):
        report.errors.append("Invalid rule definition format")
        return report

    operator = definition.get("logicOperator", LogicOperator.AND.value)
    if not isinstance(operator, str) or operator.upper() not in {op.value for op in LogicOperator}:
        report.errors.append(f'Invalid logic operator "{operator}". Must be AND or OR')

    conditions = definition.get("conditions")
    if not isinstance(conditions, list):
        report.errors.append("Rule must have a conditions list")
        return report

    if not conditions:
        report.warnings.append("Rule has no conditions defined")

    for index, condition in enumerate(conditions):
        report.merge(validate_condition(condition), prefix=f"Condition {index + 1}: ")

    return report


def check_condition_against_resource(condition: Dict[str, Any], resource: Optional[Dict[str, Any]] = None) -> ValidationReport:
    """Validate a condition's path and, given a sample resource, show what it extracts."""
    report = ValidationReport()

    if not isinstance(condition, dict):
        report.errors.append("Condition must be a valid object")
        return report

    path = condition.get("path")
    if not path:
        report.errors.append("Condition has no path to test")
        return report

    path_result = validate_path(path)
    report.errors.extend(path_result.errors)
    report.warnings.extend(path_result.warnings)

    if resource is not None and path_result.is_valid:
        extracted = extract(resource, path)
        report.extracted_data[path] = extracted
        if extracted is None:
            report.warnings.append(f'FHIR path "{path}" returned no data')

    return report
