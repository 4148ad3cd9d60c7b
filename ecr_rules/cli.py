#!/usr/bin/env python3
"""
Command line tooling for eCR rules.

Rule, resource and record files may be YAML or JSON. Results are printed as
JSON on stdout; logs go to stderr.

Exit codes: 0 success (valid / rule met), 1 invalid or rule not met,
2 usage or input errors.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import yaml

from ecr_shared.config import LOG_LEVELS, get_config
from ecr_shared.errors import ConfigurationError, RuleEngineException
from ecr_shared.logging import configure_logging, get_logger
from ecr_shared.metrics import get_metrics_collector
from .app.fhirpath.extractor import extract
from .app.fhirpath.parser import compile_path
from .app.fhirpath.validator import validate_path
from .app.resources.bundle import bundle_records
from .app.resources.store import RecordStore
from .app.resources.synthetic import available_resource_types, generate
from .app.resources.validation import COMMON_FHIR_PATHS, validate_ecr_bundle, validate_resource
from .app.rules.engine import RuleEngine
from .app.rules.validation import validate_rule_definition
from .app.sandbox import RuleSandbox

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INPUT_ERROR = 2

logger = get_logger("ecr_rules.cli")


class InputFileError(Exception):
    """A file given on the command line could not be read or parsed."""


def load_document(path: str) -> Any:
    """Read a YAML or JSON document."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InputFileError(f"Invalid YAML/JSON in {path}: {e}") from e
    except OSError as e:
        raise InputFileError(f"Error reading {path}: {e}") from e


def records_from_document(document: Any) -> List[Dict[str, Any]]:
    """Accept a list of resources, a single resource, or a Bundle."""
    if isinstance(document, list):
        return [item for item in document if isinstance(item, dict)]
    if isinstance(document, dict):
        if document.get("resourceType") == "Bundle":
            return bundle_records(document)
        return [document]
    return []


def emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_validate_path(args: argparse.Namespace) -> int:
    result = validate_path(args.path)
    emit(result.to_dict())
    return EXIT_OK if result.is_valid else EXIT_FAILED


def cmd_extract(args: argparse.Namespace) -> int:
    resource = load_document(args.resource_file)
    validation = validate_path(args.path)
    if not validation.is_valid:
        emit(validation.to_dict())
        return EXIT_FAILED

    emit({
        "path": args.path,
        "extractedData": extract(resource, compile_path(args.path)),
        "warnings": validation.warnings,
    })
    return EXIT_OK


def cmd_validate_resource(args: argparse.Namespace) -> int:
    document = load_document(args.file)
    report = validate_ecr_bundle(document) if args.bundle else validate_resource(document)
    emit(report.to_dict())
    return EXIT_OK if report.is_valid else EXIT_FAILED


def cmd_validate_rule(args: argparse.Namespace) -> int:
    report = validate_rule_definition(load_document(args.rule_file))
    emit(report.to_dict())
    return EXIT_OK if report.is_valid else EXIT_FAILED


def _collect_records(args: argparse.Namespace, config) -> Optional[List[Dict[str, Any]]]:
    """Records named on the command line, or None to fall back to the sandbox."""
    records: List[Dict[str, Any]] = []
    explicit = False

    for path in args.records or []:
        records.extend(records_from_document(load_document(path)))
        explicit = True

    if args.data_dir:
        store = RecordStore(args.data_dir, cache_enabled=config.enable_record_cache)
        records.extend(store.load_all_resources())
        explicit = True

    if args.synthetic:
        types = [t.strip() for t in args.synthetic.split(",") if t.strip()]
        records.extend(generate(types))
        explicit = True

    return records if explicit else None


def cmd_execute(args: argparse.Namespace) -> int:
    config = args.config
    rule = load_document(args.rule_file)
    if not isinstance(rule, dict):
        raise InputFileError(f"Rule file {args.rule_file} must contain a mapping")
    if "logicOperator" not in rule and "logic_operator" not in rule:
        rule["logicOperator"] = config.default_logic_operator
    metrics = get_metrics_collector("ecr_rules") if config.enable_metrics else None
    engine = RuleEngine(metrics=metrics)

    try:
        definition = engine.parse_rule(rule)
        records = _collect_records(args, config)
        if records is None:
            store = RecordStore.from_config(config) if config.data_dir else None
            result = RuleSandbox(store=store, engine=engine).test_rule(
                definition.conditions, definition.logic_operator
            )
        else:
            result = engine.execute_rule(definition, records)
    except RuleEngineException as e:
        emit({"error": e.to_response().model_dump()})
        return EXIT_INPUT_ERROR

    emit(result.to_dict())
    return EXIT_OK if result.overall_result else EXIT_FAILED


def cmd_samples(args: argparse.Namespace) -> int:
    types = args.resource_types or available_resource_types()
    emit({
        "samples": generate(types),
        "availableResourceTypes": available_resource_types(),
        "commonPaths": COMMON_FHIR_PATHS,
    })
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecr-rules", description="Evaluate and validate eCR rules")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS, help="Override ECR_RULES_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("validate-path", help="Check path expression syntax")
    p.add_argument("path")
    p.set_defaults(func=cmd_validate_path)

    p = subparsers.add_parser("extract", help="Extract a path from a resource file")
    p.add_argument("resource_file")
    p.add_argument("path")
    p.set_defaults(func=cmd_extract)

    p = subparsers.add_parser("validate-resource", help="Validate a FHIR resource or eCR bundle")
    p.add_argument("file")
    p.add_argument("--bundle", action="store_true", help="Validate as an eCR document bundle")
    p.set_defaults(func=cmd_validate_resource)

    p = subparsers.add_parser("validate-rule", help="Validate a rule definition")
    p.add_argument("rule_file")
    p.set_defaults(func=cmd_validate_rule)

    p = subparsers.add_parser("execute", help="Execute a rule against records")
    p.add_argument("rule_file")
    p.add_argument("--records", action="append", help="Resource, list or Bundle file (repeatable)")
    p.add_argument("--data-dir", help="Directory laid out for the local record store")
    p.add_argument("--synthetic", help="Comma-separated resource types from the synthetic catalog")
    p.set_defaults(func=cmd_execute)

    p = subparsers.add_parser("samples", help="Print synthetic sample records")
    p.add_argument("resource_types", nargs="*")
    p.set_defaults(func=cmd_samples)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"Error: {e.message}: {'; '.join(e.details.get('errors', []))}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    args.config = config
    configure_logging("ecr_rules", args.log_level or config.log_level, config.log_format)

    try:
        return args.func(args)
    except InputFileError as e:
        logger.error("Unreadable input", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
