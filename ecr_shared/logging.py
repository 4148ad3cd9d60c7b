"""
Shared logging configuration for the eCR rule engine.
"""

import sys
import structlog
import logging
import uuid
import time
from typing import Any, Dict, Iterator, Optional
from contextlib import contextmanager
from contextvars import ContextVar

# Context variables for correlation IDs
evaluation_id_var: ContextVar[Optional[str]] = ContextVar('evaluation_id', default=None)
rule_id_var: ContextVar[Optional[str]] = ContextVar('rule_id', default=None)
rule_name_var: ContextVar[Optional[str]] = ContextVar('rule_name', default=None)


def configure_logging(component: str, log_level: str = "info", fmt: str = "json") -> None:
    """Configure structured logging for a component."""

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_component_context,
            add_correlation_context,
            add_timestamp,
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging; logs go to stderr so CLI output stays clean
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )
    logging.getLogger(component).setLevel(getattr(logging, log_level.upper()))


def add_component_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add component context to log events."""
    # Extract component name from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["component"] = logger_name.split(".")[0]

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add evaluation and rule correlation context to log events."""
    evaluation_id = evaluation_id_var.get()
    if evaluation_id:
        event_dict["evaluation_id"] = evaluation_id

    rule_id = rule_id_var.get()
    if rule_id:
        event_dict["rule_id"] = rule_id

    rule_name = rule_name_var.get()
    if rule_name:
        event_dict["rule_name"] = rule_name

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def get_evaluation_id() -> Optional[str]:
    """Get the evaluation ID bound to the current context, if any."""
    return evaluation_id_var.get()


@contextmanager
def bind_evaluation(
    evaluation_id: Optional[str] = None,
    rule_id: Optional[str] = None,
    rule_name: Optional[str] = None
) -> Iterator[str]:
    """Bind correlation context for the duration of one evaluation.

    An evaluation ID already bound by an outer scope is reused so nested
    calls log under the same ID. Previous values are restored on exit.
    """
    current = evaluation_id_var.get()
    bound_id = evaluation_id or current or str(uuid.uuid4())

    tokens = [(evaluation_id_var, evaluation_id_var.set(bound_id))]
    if rule_id:
        tokens.append((rule_id_var, rule_id_var.set(rule_id)))
    if rule_name:
        tokens.append((rule_name_var, rule_name_var.set(rule_name)))
    try:
        yield bound_id
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
