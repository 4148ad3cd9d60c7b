"""
Structural validation of FHIR resources and eCR document bundles.
"""

from typing import Any, Dict, List

from ..rules.validation import ValidationReport

# FHIR resource types used in eCR
FHIR_RESOURCE_TYPES: Dict[str, str] = {
    "PATIENT": "Patient",
    "ENCOUNTER": "Encounter",
    "OBSERVATION": "Observation",
    "CONDITION": "Condition",
    "DIAGNOSTIC_REPORT": "DiagnosticReport",
    "MEDICATION_ADMINISTRATION": "MedicationAdministration",
    "PROCEDURE": "Procedure",
    "IMMUNIZATION": "Immunization",
    "COMPOSITION": "Composition",
    "BUNDLE": "Bundle",
}

# Common paths for eCR conditions
COMMON_FHIR_PATHS: Dict[str, str] = {
    # Patient demographics
    "PATIENT_ID": "Patient.id",
    "PATIENT_NAME": "Patient.name.family",
    "PATIENT_BIRTHDATE": "Patient.birthDate",
    "PATIENT_GENDER": "Patient.gender",
    "PATIENT_ADDRESS": "Patient.address",
    "PATIENT_STATE": "Patient.address.state",

    # Condition/Diagnosis
    "CONDITION_CODE": "Condition.code.coding.code",
    "CONDITION_ICD10_CODE": 'Condition.code.coding.where(system="http://hl7.org/fhir/sid/icd-10").code',
    "CONDITION_SYSTEM": "Condition.code.coding.system",
    "CONDITION_DISPLAY": "Condition.code.coding.display",
    "CONDITION_ONSET": "Condition.onsetDateTime",

    # Observations (lab results)
    "OBSERVATION_CODE": "Observation.code.coding.code",
    "OBSERVATION_RESULT": "Observation.valueCodeableConcept.coding.display",
    "OBSERVATION_VALUE": "Observation.valueQuantity.value",
    "OBSERVATION_UNIT": "Observation.valueQuantity.unit",
    "OBSERVATION_DATE": "Observation.effectiveDateTime",

    # Encounter
    "ENCOUNTER_CLASS": "Encounter.class.code",
    "ENCOUNTER_TYPE": "Encounter.type.coding.code",
    "ENCOUNTER_PERIOD": "Encounter.period",
}


def validate_resource(resource: Any) -> ValidationReport:
    """Check that a resource has the basic shape of a FHIR resource."""
    report = ValidationReport()

    if resource is None:
        report.errors.append("Resource is null or undefined")
        return report

    if not isinstance(resource, dict):
        report.errors.append("Resource must be an object")
        return report

    resource_type = resource.get("resourceType")
    if not resource_type:
        report.errors.append("Resource missing required resourceType")
    elif resource_type not in FHIR_RESOURCE_TYPES.values():
        report.warnings.append(f"Uncommon resource type: {resource_type}")

    if resource_type != "Bundle" and not resource.get("id"):
        report.warnings.append("Resource missing id field")

    return report


def _entry_types(entries: List[Any]) -> List[str]:
    return [
        entry.get("resource", {}).get("resourceType")
        for entry in entries
        if isinstance(entry, dict) and isinstance(entry.get("resource"), dict)
    ]


def validate_ecr_bundle(bundle: Any) -> ValidationReport:
    """Validate an eCR document bundle."""
    report = validate_resource(bundle)
    if not isinstance(bundle, dict):
        return report

    if bundle.get("resourceType") != "Bundle":
        report.errors.append("Resource must be a Bundle")
        return report

    if bundle.get("type") != "document":
        report.errors.append('eCR Bundle must be of type "document"')

    entries = bundle.get("entry")
    if not isinstance(entries, list):
        report.errors.append("Bundle must contain an entry array")
        return report

    types = _entry_types(entries)
    if "Composition" not in types:
        report.errors.append("eCR Bundle must contain a Composition resource")
    if "Patient" not in types:
        report.warnings.append("eCR Bundle should contain a Patient resource")

    return report
