"""
Core infrastructure module for the BPMN converter.

Provides exceptions, logging and observability.
"""

from .exceptions import (
    ConversionError,
    DiagnosticError,
    GraphInvariantError,
    MalformedDocument,
    SchemaError,
)
from .observability import (
    LogLevel,
    ObservabilityConfig,
    ObservabilityManager,
    Timer,
    log_execution,
    record_metric,
    span,
)

__all__ = [
    # Exceptions
    "ConversionError",
    "DiagnosticError",
    "GraphInvariantError",
    "MalformedDocument",
    "SchemaError",
    # Observability
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "Timer",
    "log_execution",
    "record_metric",
    "span",
]
