"""
FHIR resource helpers: synthetic records, a local record store, and
resource/bundle validation.
"""

from .bundle import bundle_records, generate_ecr_bundle
from .store import RecordStore, RESOURCE_TYPE_FOLDERS
from .synthetic import available_resource_types, generate
from .validation import COMMON_FHIR_PATHS, FHIR_RESOURCE_TYPES, validate_ecr_bundle, validate_resource

__all__ = [
    "COMMON_FHIR_PATHS",
    "FHIR_RESOURCE_TYPES",
    "RESOURCE_TYPE_FOLDERS",
    "RecordStore",
    "available_resource_types",
    "bundle_records",
    "generate",
    "generate_ecr_bundle",
    "validate_ecr_bundle",
    "validate_resource",
]
