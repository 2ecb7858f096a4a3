"""
Converter Exceptions

Fatal failures of an import or export call. Recoverable problems are reported
as :class:`~bpmn_converter.models.diagnostics.Diagnostic` records instead.
"""

from typing import List, Optional

from bpmn_converter.models.diagnostics import Diagnostic


class ConversionError(Exception):
    """Base class for all converter failures."""


class MalformedDocument(ConversionError):
    """The input text could not be parsed as XML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Invalid XML: {message}{location}")


class SchemaError(ConversionError):
    """The XML parsed but is not a usable BPMN document."""

    def __init__(self, message: str, element_id: Optional[str] = None):
        self.message = message
        self.element_id = element_id
        suffix = f" [{element_id}]" if element_id else ""
        super().__init__(f"Invalid BPMN: {message}{suffix}")


class GraphInvariantError(ConversionError):
    """A graph handed to the exporter violates the model invariants."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__("Graph invariants violated: " + "; ".join(self.violations))


class DiagnosticError(ConversionError):
    """A recoverable diagnostic escalated under the strict error strategy."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(f"{diagnostic.code.value}: {diagnostic.message}")


__all__ = [
    "ConversionError",
    "MalformedDocument",
    "SchemaError",
    "GraphInvariantError",
    "DiagnosticError",
]
