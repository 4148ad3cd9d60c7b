"""
Synthetic FHIR records for tests and sandbox rule runs.

Every catalog entry belongs to the same synthetic patient so cross-resource
rules (a COVID-19 diagnosis AND a positive SARS-CoV-2 result) can fire.
"""

import copy
from typing import Any, Dict, List

from ecr_shared.logging import get_logger

logger = get_logger("ecr_rules.synthetic")

SYNTHETIC_PATIENT_ID = "example-patient-001"
_SUBJECT = {"reference": f"Patient/{SYNTHETIC_PATIENT_ID}"}
_ENCOUNTER = {"reference": "Encounter/example-encounter-001"}

_CATALOG: Dict[str, Dict[str, Any]] = {
    "Patient": {
        "resourceType": "Patient",
        "id": SYNTHETIC_PATIENT_ID,
        "name": [{"use": "official", "family": "Doe", "given": ["John"]}],
        "gender": "male",
        "birthDate": "1980-01-15",
        "address": [
            {
                "line": ["123 Main St"],
                "city": "Anytown",
                "state": "CA",
                "postalCode": "12345",
                "country": "US"
            }
        ]
    },
    "Condition": {
        "resourceType": "Condition",
        "id": "covid-19-condition",
        "subject": _SUBJECT,
        "encounter": _ENCOUNTER,
        "code": {
            "coding": [
                {
                    "system": "http://hl7.org/fhir/sid/icd-10",
                    "code": "U07.1",
                    "display": "COVID-19"
                }
            ],
            "text": "COVID-19"
        },
        "onsetDateTime": "2024-02-10",
        "clinicalStatus": {
            "coding": [
                {
                    "system": "http://terminology.hl7.org/CodeSystem/condition-clinical",
                    "code": "active"
                }
            ]
        }
    },
    "Observation": {
        "resourceType": "Observation",
        "id": "covid-test-result",
        "status": "final",
        "subject": _SUBJECT,
        "encounter": _ENCOUNTER,
        "category": [
            {
                "coding": [
                    {
                        "system": "http://terminology.hl7.org/CodeSystem/observation-category",
                        "code": "laboratory"
                    }
                ]
            }
        ],
        "code": {
            "coding": [
                {
                    "system": "http://loinc.org",
                    "code": "94500-6",
                    "display": "SARS-CoV-2 RNA [Presence] in Respiratory specimen by NAA with probe detection"
                }
            ]
        },
        "valueCodeableConcept": {
            "coding": [
                {
                    "system": "http://snomed.info/sct",
                    "code": "260373001",
                    "display": "Detected"
                }
            ]
        },
        "effectiveDateTime": "2024-02-10T10:30:00Z"
    },
    "Encounter": {
        "resourceType": "Encounter",
        "id": "example-encounter-001",
        "status": "finished",
        "class": {
            "system": "http://terminology.hl7.org/CodeSystem/v3-ActCode",
            "code": "AMB",
            "display": "ambulatory"
        },
        "type": [
            {
                "coding": [
                    {
                        "system": "http://snomed.info/sct",
                        "code": "185349003",
                        "display": "Encounter for check up"
                    }
                ]
            }
        ],
        "subject": _SUBJECT,
        "period": {"start": "2024-02-10T09:00:00Z", "end": "2024-02-10T11:00:00Z"}
    },
    "DiagnosticReport": {
        "resourceType": "DiagnosticReport",
        "id": "covid-panel-report",
        "status": "final",
        "subject": _SUBJECT,
        "encounter": _ENCOUNTER,
        "code": {
            "coding": [
                {
                    "system": "http://loinc.org",
                    "code": "94531-1",
                    "display": "SARS-CoV-2 RNA panel"
                }
            ]
        },
        "result": [{"reference": "Observation/covid-test-result"}],
        "conclusion": "SARS-CoV-2 RNA detected"
    },
    "Procedure": {
        "resourceType": "Procedure",
        "id": "nasopharyngeal-swab",
        "status": "completed",
        "subject": _SUBJECT,
        "encounter": _ENCOUNTER,
        "code": {
            "coding": [
                {
                    "system": "http://snomed.info/sct",
                    "code": "871810001",
                    "display": "Nasopharyngeal swab"
                }
            ]
        },
        "performedDateTime": "2024-02-10T09:30:00Z"
    },
    "Immunization": {
        "resourceType": "Immunization",
        "id": "covid-vaccine-dose-1",
        "status": "completed",
        "patient": _SUBJECT,
        "vaccineCode": {
            "coding": [
                {
                    "system": "http://hl7.org/fhir/sid/cvx",
                    "code": "208",
                    "display": "SARS-COV-2 (COVID-19) vaccine, mRNA, spike protein, LNP, preservative free, 30 mcg/0.3mL dose"
                }
            ]
        },
        "occurrenceDateTime": "2021-05-01"
    },
    "MedicationAdministration": {
        "resourceType": "MedicationAdministration",
        "id": "nirmatrelvir-admin",
        "status": "completed",
        "subject": _SUBJECT,
        "context": _ENCOUNTER,
        "medicationCodeableConcept": {
            "coding": [
                {
                    "system": "http://www.nlm.nih.gov/research/umls/rxnorm",
                    "code": "2587899",
                    "display": "nirmatrelvir 150 MG / ritonavir 100 MG"
                }
            ]
        },
        "effectiveDateTime": "2024-02-10T12:00:00Z",
        "dosage": {"dose": {"value": 300, "unit": "mg"}}
    },
}


def available_resource_types() -> List[str]:
    """Resource types the synthetic catalog can produce."""
    return list(_CATALOG)


def generate(resource_types: List[str]) -> List[Dict[str, Any]]:
    """Return one synthetic record per requested resource type, in request order.

    Records are fresh copies, so callers may modify them freely.
    """
    records = []
    for resource_type in resource_types:
        template = _CATALOG.get(resource_type)
        if template is None:
            logger.warning("No synthetic record for resource type", resource_type=resource_type)
            continue
        records.append(copy.deepcopy(template))
    return records
