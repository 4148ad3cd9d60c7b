"""
eCR document bundle assembly.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ECR_COMPOSITION_CODE = {
    "system": "http://loinc.org",
    "code": "55751-2",
    "display": "Public health Case report",
}


def generate_ecr_bundle(
    patient: Optional[Dict[str, Any]],
    conditions: List[Dict[str, Any]],
    observations: List[Dict[str, Any]],
    encounter: Optional[Dict[str, Any]] = None,
    timestamp: Optional[datetime] = None
) -> Dict[str, Any]:
    """Wrap clinical records into an eCR document Bundle.

    The Composition is always the first entry, followed by the patient,
    conditions, observations and encounter.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    issued = timestamp.isoformat()
    bundle_id = f"ecr-bundle-{int(timestamp.timestamp() * 1000)}"
    patient_id = (patient or {}).get("id") or "unknown"

    entries: List[Dict[str, Any]] = [{
        "fullUrl": f"urn:uuid:composition-{bundle_id}",
        "resource": {
            "resourceType": "Composition",
            "id": f"composition-{bundle_id}",
            "status": "final",
            "type": {"coding": [dict(ECR_COMPOSITION_CODE)]},
            "subject": {"reference": f"Patient/{patient_id}"},
            "date": issued,
            "author": [{"display": "eCR Rule Engine"}],
            "title": "Electronic Case Report",
            "section": [],
        },
    }]

    if patient:
        entries.append({"fullUrl": f"urn:uuid:patient-{patient_id}", "resource": patient})

    for index, condition in enumerate(conditions):
        entries.append({"fullUrl": f"urn:uuid:condition-{index}", "resource": condition})

    for index, observation in enumerate(observations):
        entries.append({"fullUrl": f"urn:uuid:observation-{index}", "resource": observation})

    if encounter:
        entries.append({"fullUrl": f"urn:uuid:encounter-{encounter.get('id')}", "resource": encounter})

    return {
        "resourceType": "Bundle",
        "id": bundle_id,
        "type": "document",
        "timestamp": issued,
        "entry": entries,
    }


def bundle_records(bundle: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Unwrap ``entry[].resource`` from a Bundle into a flat record list."""
    if not isinstance(bundle, dict) or bundle.get("resourceType") != "Bundle":
        return []
    return [
        entry["resource"]
        for entry in bundle.get("entry") or []
        if isinstance(entry, dict) and isinstance(entry.get("resource"), dict)
    ]
