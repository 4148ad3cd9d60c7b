"""
eCR rule engine application package.

- app.fhirpath: Path expression compiler, extractor and validator.
- app.rules: Condition model, operators, runner and rule engine.
- app.resources: Synthetic records, local record store, bundle helpers.
- app.sandbox: Rule testing against local or synthetic records.

Guidelines:
- The engine is stateless and performs no I/O; callers supply records.
- Domain failures are reported on results, never raised.
- Keep rule evaluation deterministic and observable (metrics + logs).
"""
