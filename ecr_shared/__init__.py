"""
Shared utilities for the eCR rule engine.

This package aggregates common building blocks consumed by the engine and
its tooling:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with evaluation correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- test_helpers: Record and condition factories for tests

Do not import from ecr_rules into ecr_shared/.
"""
