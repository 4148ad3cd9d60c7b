"""
Test helper functions and factory methods for the eCR rule engine.
"""

import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional, List


ICD10 = "http://hl7.org/fhir/sid/icd-10"
LOINC = "http://loinc.org"
SNOMED = "http://snomed.info/sct"


class RecordFactory:
    """Factory for creating FHIR-shaped test records."""

    @staticmethod
    def patient(patient_id: str = "patient-1", gender: str = "female", state: str = "CA") -> Dict[str, Any]:
        """Create a patient record."""
        return {
            "resourceType": "Patient",
            "id": patient_id,
            "name": [{"use": "official", "family": "Smith", "given": ["Jane"]}],
            "gender": gender,
            "birthDate": "1975-06-30",
            "address": [{"city": "Springfield", "state": state, "postalCode": "90001"}]
        }

    @staticmethod
    def condition(
        code: str = "U07.1",
        display: str = "COVID-19",
        system: str = ICD10,
        condition_id: Optional[str] = None,
        patient_id: str = "patient-1"
    ) -> Dict[str, Any]:
        """Create a diagnosis record."""
        return {
            "resourceType": "Condition",
            "id": condition_id or f"condition-{code.replace('.', '-').lower()}",
            "subject": {"reference": f"Patient/{patient_id}"},
            "code": {"coding": [{"system": system, "code": code, "display": display}]},
            "onsetDateTime": "2024-02-10"
        }

    @staticmethod
    def observation(
        code: str = "94500-6",
        result: str = "Detected",
        value: Optional[float] = None,
        unit: str = "mg/dL",
        observation_id: str = "observation-1",
        patient_id: str = "patient-1"
    ) -> Dict[str, Any]:
        """Create a lab result; numeric when ``value`` is given, coded otherwise."""
        record: Dict[str, Any] = {
            "resourceType": "Observation",
            "id": observation_id,
            "status": "final",
            "subject": {"reference": f"Patient/{patient_id}"},
            "code": {"coding": [{"system": LOINC, "code": code}]},
            "effectiveDateTime": "2024-02-10T10:30:00Z"
        }
        if value is not None:
            record["valueQuantity"] = {"value": value, "unit": unit}
        else:
            record["valueCodeableConcept"] = {"coding": [{"system": SNOMED, "display": result}]}
        return record

    @staticmethod
    def encounter(encounter_id: str = "encounter-1", class_code: str = "EMER", patient_id: str = "patient-1") -> Dict[str, Any]:
        """Create an encounter record."""
        return {
            "resourceType": "Encounter",
            "id": encounter_id,
            "status": "finished",
            "class": {"code": class_code},
            "subject": {"reference": f"Patient/{patient_id}"}
        }

    @staticmethod
    def bundle(records: List[Dict[str, Any]], bundle_type: str = "collection") -> Dict[str, Any]:
        """Wrap records in a Bundle."""
        return {
            "resourceType": "Bundle",
            "type": bundle_type,
            "entry": [{"resource": copy.deepcopy(record)} for record in records]
        }


class ConditionFactory:
    """Factory for creating rule conditions."""

    @staticmethod
    def condition(
        resource_type: str,
        path: str,
        operator: str,
        value: Any = None,
        **extra: Any
    ) -> Dict[str, Any]:
        """Create a condition in its external (camelCase) form."""
        data = {"resourceType": resource_type, "path": path, "operator": operator}
        if value is not None:
            data["value"] = value
        data.update(extra)
        return data

    @staticmethod
    def covid_diagnosis() -> Dict[str, Any]:
        """Condition code equals U07.1."""
        return ConditionFactory.condition("Condition", "Condition.code.coding.code", "equals", "U07.1")

    @staticmethod
    def positive_lab() -> Dict[str, Any]:
        """Observation result display contains 'detected'."""
        return ConditionFactory.condition(
            "Observation", "Observation.valueCodeableConcept.coding.display", "contains", "detected"
        )

    @staticmethod
    def rule(conditions: List[Dict[str, Any]], logic_operator: str = "AND", **extra: Any) -> Dict[str, Any]:
        """Create a rule definition."""
        data = {"logicOperator": logic_operator, "conditions": conditions}
        data.update(extra)
        return data


def write_record_store(data_dir: Path, records: List[Dict[str, Any]], folders: Dict[str, str]) -> Path:
    """Lay records out on disk, one JSON file per record.

    Args:
        data_dir: Root directory to populate
        records: Records tagged with resourceType
        folders: Resource type to folder name mapping

    Returns:
        The data directory
    """
    for index, record in enumerate(records):
        folder = data_dir / folders[record["resourceType"]]
        folder.mkdir(parents=True, exist_ok=True)
        name = record.get("id") or f"record-{index}"
        (folder / f"{name}.json").write_text(json.dumps(record), encoding="utf-8")
    return data_dir
