"""
Unit tests for synthetic records, resource validation and eCR bundles.
"""

from datetime import datetime, timezone

import pytest

from ecr_shared.test_helpers import ConditionFactory, RecordFactory
from ecr_rules.app.fhirpath.validator import validate_path
from ecr_rules.app.resources.bundle import bundle_records, generate_ecr_bundle
from ecr_rules.app.resources.synthetic import SYNTHETIC_PATIENT_ID, available_resource_types, generate
from ecr_rules.app.resources.validation import (
    COMMON_FHIR_PATHS, FHIR_RESOURCE_TYPES, validate_ecr_bundle, validate_resource
)
from ecr_rules.app.rules.engine import RuleEngine


class TestSyntheticRecords:
    """Test cases for the synthetic record generator."""

    def test_catalog_types(self):
        """Test the catalog covers the clinical resource types used by eCR."""
        assert set(available_resource_types()) == {
            "Patient", "Condition", "Observation", "Encounter",
            "DiagnosticReport", "Procedure", "Immunization", "MedicationAdministration"
        }

    def test_generate_in_request_order(self):
        """Test one record per requested type, in order."""
        records = generate(["Observation", "Condition"])

        assert [r["resourceType"] for r in records] == ["Observation", "Condition"]

    def test_unknown_types_are_skipped(self):
        """Test that unknown types produce nothing."""
        records = generate(["Patient", "Spaceship"])

        assert [r["resourceType"] for r in records] == ["Patient"]

    def test_records_are_copies(self):
        """Test that callers may mutate generated records."""
        first = generate(["Condition"])[0]
        first["code"]["coding"][0]["code"] = "J06.9"

        assert generate(["Condition"])[0]["code"]["coding"][0]["code"] == "U07.1"

    def test_generation_is_deterministic(self):
        """Test repeated generation yields equal records."""
        assert generate(available_resource_types()) == generate(available_resource_types())

    def test_records_share_one_patient(self):
        """Test every clinical record points at the synthetic patient."""
        expected = f"Patient/{SYNTHETIC_PATIENT_ID}"

        for record in generate(available_resource_types()):
            if record["resourceType"] == "Patient":
                assert record["id"] == SYNTHETIC_PATIENT_ID
                continue
            subject = record.get("subject") or record.get("patient")
            assert subject["reference"] == expected

    def test_cross_resource_rule_fires(self):
        """Test a diagnosis AND positive lab rule against the whole catalog."""
        conditions = [ConditionFactory.covid_diagnosis(), ConditionFactory.positive_lab()]

        result = RuleEngine().execute(conditions, generate(available_resource_types()), "AND")

        assert result.overall_result is True

    def test_catalog_records_are_valid_resources(self):
        """Test the catalog passes resource validation cleanly."""
        for record in generate(available_resource_types()):
            report = validate_resource(record)
            assert report.is_valid and report.warnings == []


class TestResourceValidation:
    """Test cases for validate_resource."""

    def test_none(self):
        """Test a missing resource."""
        assert validate_resource(None).errors == ["Resource is null or undefined"]

    def test_not_an_object(self):
        """Test a resource that is not a mapping."""
        assert validate_resource(["Patient"]).errors == ["Resource must be an object"]

    def test_missing_resource_type(self):
        """Test a resource without resourceType."""
        report = validate_resource({"id": "x"})

        assert report.errors == ["Resource missing required resourceType"]

    def test_uncommon_type_and_missing_id(self):
        """Test advisory warnings."""
        report = validate_resource({"resourceType": "Basic"})

        assert report.is_valid is True
        assert report.warnings == ["Uncommon resource type: Basic", "Resource missing id field"]

    def test_common_paths_are_valid(self):
        """Test every published common path compiles."""
        for name, path in COMMON_FHIR_PATHS.items():
            assert validate_path(path).is_valid, name

    def test_common_paths_use_known_types(self):
        """Test every common path is rooted at a known resource type."""
        known = set(FHIR_RESOURCE_TYPES.values())

        for path in COMMON_FHIR_PATHS.values():
            assert path.split(".")[0] in known


class TestECRBundle:
    """Test cases for eCR bundle assembly and validation."""

    @pytest.fixture
    def timestamp(self):
        """Create a fixed bundle timestamp."""
        return datetime(2024, 2, 10, 12, 0, tzinfo=timezone.utc)

    @pytest.fixture
    def bundle(self, timestamp):
        """Create an eCR bundle from factory records."""
        return generate_ecr_bundle(
            RecordFactory.patient(),
            [RecordFactory.condition("U07.1")],
            [RecordFactory.observation()],
            encounter=RecordFactory.encounter(),
            timestamp=timestamp
        )

    def test_bundle_shape(self, bundle):
        """Test identifiers, type and entry order."""
        assert bundle["resourceType"] == "Bundle"
        assert bundle["type"] == "document"
        assert bundle["id"] == "ecr-bundle-1707566400000"
        assert bundle["timestamp"] == "2024-02-10T12:00:00+00:00"
        assert [e["resource"]["resourceType"] for e in bundle["entry"]] == [
            "Composition", "Patient", "Condition", "Observation", "Encounter"
        ]

    def test_composition(self, bundle):
        """Test the composition header."""
        composition = bundle["entry"][0]["resource"]

        assert composition["type"]["coding"][0]["code"] == "55751-2"
        assert composition["subject"] == {"reference": "Patient/patient-1"}

    def test_generated_bundle_is_valid(self, bundle):
        """Test validation of a generated bundle."""
        report = validate_ecr_bundle(bundle)

        assert report.is_valid is True
        assert report.warnings == []

    def test_bundle_without_patient(self, timestamp):
        """Test a bundle missing the patient."""
        bundle = generate_ecr_bundle(None, [], [], timestamp=timestamp)

        report = validate_ecr_bundle(bundle)

        assert report.is_valid is True
        assert report.warnings == ["eCR Bundle should contain a Patient resource"]
        assert bundle["entry"][0]["resource"]["subject"] == {"reference": "Patient/unknown"}

    def test_not_a_bundle(self):
        """Test validating a plain resource as a bundle."""
        report = validate_ecr_bundle(RecordFactory.patient())

        assert report.errors == ["Resource must be a Bundle"]

    def test_not_a_document(self):
        """Test a collection bundle."""
        report = validate_ecr_bundle(RecordFactory.bundle([RecordFactory.patient()]))

        assert 'eCR Bundle must be of type "document"' in report.errors
        assert "eCR Bundle must contain a Composition resource" in report.errors

    def test_missing_entries(self):
        """Test a bundle without an entry array."""
        report = validate_ecr_bundle({"resourceType": "Bundle", "type": "document"})

        assert report.errors == ["Bundle must contain an entry array"]

    def test_bundle_records(self, bundle):
        """Test unwrapping entries into records."""
        records = bundle_records(bundle)

        assert len(records) == 5
        assert records[1]["id"] == "patient-1"

    def test_bundle_records_skips_malformed_entries(self):
        """Test entries without a resource."""
        bundle = {"resourceType": "Bundle", "entry": [{"fullUrl": "x"}, {"resource": RecordFactory.patient()}, "junk"]}

        assert [r["resourceType"] for r in bundle_records(bundle)] == ["Patient"]

    def test_bundle_records_of_non_bundle(self):
        """Test unwrapping something that is not a bundle."""
        assert bundle_records(RecordFactory.patient()) == []

    def test_rule_over_bundle(self, bundle):
        """Test executing a rule directly against bundle contents."""
        result = RuleEngine().execute([ConditionFactory.covid_diagnosis()], bundle_records(bundle))

        assert result.overall_result is True
