"""
Local record store backed by a directory of FHIR JSON files.

Layout: ``<data_dir>/<folder>/<anything>.json`` with one resource per file,
where the folder name comes from ``RESOURCE_TYPE_FOLDERS``. This is the
record-fetch collaborator used by the sandbox and the CLI; the rule engine
itself never reads files.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from ecr_shared.config import EngineConfig
from ecr_shared.errors import RecordStoreError
from ecr_shared.logging import get_logger

# Resource type mappings to folders
RESOURCE_TYPE_FOLDERS: Dict[str, str] = {
    "Patient": "patient",
    "Encounter": "encounter",
    "Observation": "observation",
    "Condition": "condition",
    "Procedure": "procedure",
    "Immunization": "immunization",
    "DiagnosticReport": "diagnosticreport",
    "MedicationAdministration": "medication",
    "Composition": "composition",
    "Bundle": "bundle",
}

CODE_FIELDS = ("code", "vaccineCode", "medicationCodeableConcept")


class RecordStore:
    """File-backed store of FHIR resources."""

    def __init__(self, data_dir: Union[str, Path], enabled: bool = True, cache_enabled: bool = True):
        self.data_dir = Path(data_dir)
        self.enabled = enabled
        self.cache_enabled = cache_enabled
        self.logger = get_logger("ecr_rules.store")
        self._cache: Dict[str, List[Dict[str, Any]]] = {}

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RecordStore":
        """Build a store from engine configuration."""
        if not config.data_dir:
            raise RecordStoreError("No data directory configured", {"setting": "ECR_RULES_DATA_DIR"})
        return cls(
            config.data_dir,
            enabled=config.record_store_enabled,
            cache_enabled=config.enable_record_cache
        )

    def is_enabled(self) -> bool:
        """Check if the store should serve records."""
        return self.enabled

    def load_resources_by_type(self, resource_type: str) -> List[Dict[str, Any]]:
        """Load all resources of a specific type."""
        if resource_type in self._cache:
            return list(self._cache[resource_type])

        folder_name = RESOURCE_TYPE_FOLDERS.get(resource_type)
        if not folder_name:
            self.logger.warning("Unknown resource type", resource_type=resource_type)
            return []

        folder_path = self.data_dir / folder_name
        if not folder_path.is_dir():
            self.logger.debug("Record folder not found", folder=str(folder_path))
            return []

        resources = []
        for file_path in sorted(folder_path.glob("*.json")):
            try:
                resource = json.loads(file_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                self.logger.error("Error loading record file", file=str(file_path), error=str(e))
                continue

            if isinstance(resource, dict) and resource.get("resourceType") == resource_type:
                resources.append(resource)
            else:
                self.logger.warning(
                    "Record file does not hold the expected resource type",
                    file=str(file_path),
                    expected=resource_type
                )

        if self.cache_enabled:
            self._cache[resource_type] = list(resources)

        self.logger.debug("Loaded records", resource_type=resource_type, count=len(resources))
        return resources

    def load_all_resources(self) -> List[Dict[str, Any]]:
        """Load all available resources."""
        resources: List[Dict[str, Any]] = []
        for resource_type in RESOURCE_TYPE_FOLDERS:
            resources.extend(self.load_resources_by_type(resource_type))
        return resources

    def get_resource_by_id(self, resource_type: str, resource_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific resource by ID."""
        for resource in self.load_resources_by_type(resource_type):
            if resource.get("id") == resource_id:
                return resource
        return None

    def search_resources(
        self,
        resource_type: str,
        patient: Optional[str] = None,
        encounter: Optional[str] = None,
        code: Optional[str] = None,
        system: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Search resources of a type by reference, code and status criteria.

        Reference criteria match by substring, so ``patient="123"`` matches
        ``Patient/123``. A resource without the referenced field is kept.
        """
        results = []
        for resource in self.load_resources_by_type(resource_type):
            if patient and not self._reference_matches(resource, ("subject", "patient"), patient):
                continue
            if encounter and not self._reference_matches(resource, ("encounter", "context"), encounter):
                continue
            if code and not self._has_code(resource, code, system):
                continue
            if status and resource.get("status") != status:
                continue
            results.append(resource)
        return results

    @staticmethod
    def _reference_matches(resource: Dict[str, Any], fields: tuple, value: str) -> bool:
        for name in fields:
            field = resource.get(name)
            reference = field.get("reference") if isinstance(field, dict) else None
            if reference:
                return value in reference
        return True

    @staticmethod
    def _has_code(resource: Dict[str, Any], code: str, system: Optional[str] = None) -> bool:
        concepts = [resource.get(name) for name in CODE_FIELDS]
        category = resource.get("category")
        if isinstance(category, list):
            concepts.extend(category)
        elif category:
            concepts.append(category)

        for concept in concepts:
            if not isinstance(concept, dict):
                continue
            for coding in concept.get("coding") or []:
                if coding.get("code") == code and (not system or coding.get("system") == system):
                    return True
        return False

    def get_data_summary(self) -> Dict[str, int]:
        """Count available resources per type."""
        return {
            resource_type: len(self.load_resources_by_type(resource_type))
            for resource_type in RESOURCE_TYPE_FOLDERS
        }

    def clear_cache(self) -> None:
        """Clear cached records."""
        self._cache.clear()
