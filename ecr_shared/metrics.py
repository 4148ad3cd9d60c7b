"""
Shared metrics configuration for the eCR rule engine.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for the engine.

    Each collector owns its registry so several engines (and test cases) can
    coexist in one process without duplicate registration errors.
    """

    def __init__(self, component: str, registry: Optional[CollectorRegistry] = None):
        self.component = component
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for rule evaluation."""

        # Component info
        self._metrics["engine_info"] = Info(
            "ecr_engine",
            "Rule engine information",
            registry=self.registry
        )
        self._metrics["engine_info"].info({
            "component": self.component,
            "version": "1.0.0"
        })

        self._metrics["rule_executions_total"] = Counter(
            "rule_executions_total",
            "Total rule executions",
            ["logic_operator", "outcome"],
            registry=self.registry
        )

        self._metrics["rule_execution_duration_seconds"] = Histogram(
            "rule_execution_duration_seconds",
            "Rule execution duration in seconds",
            registry=self.registry
        )

        self._metrics["condition_evaluations_total"] = Counter(
            "condition_evaluations_total",
            "Total condition evaluations",
            ["operator", "outcome"],
            registry=self.registry
        )

        self._metrics["condition_errors_total"] = Counter(
            "condition_errors_total",
            "Total condition diagnostics by kind",
            ["kind"],
            registry=self.registry
        )

        self._metrics["path_compilations_total"] = Counter(
            "path_compilations_total",
            "Total path compilations",
            ["status"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read back a sample value from this collector's registry."""
        return self.registry.get_sample_value(name, labels or {})

    def render(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)

    def record_rule_execution(self, logic_operator: str, outcome: bool, duration: float):
        """Record rule execution metrics."""
        self._metrics["rule_executions_total"].labels(
            logic_operator=logic_operator,
            outcome="met" if outcome else "not_met"
        ).inc()
        self._metrics["rule_execution_duration_seconds"].observe(duration)

    def record_condition(self, operator: str, outcome: bool, error_kind: Optional[str] = None):
        """Record condition evaluation metrics."""
        self._metrics["condition_evaluations_total"].labels(
            operator=operator,
            outcome="true" if outcome else "false"
        ).inc()
        if error_kind:
            self._metrics["condition_errors_total"].labels(kind=error_kind).inc()

    def record_path_compilation(self, status: str):
        """Record a path compilation outcome."""
        self._metrics["path_compilations_total"].labels(status=status).inc()


def get_metrics_collector(component: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a component."""
    return MetricsCollector(component, registry)
