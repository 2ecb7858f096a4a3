"""
BPMN Converter: BPMN 2.0 XML <-> Diagram Graph

Imports loosely structured BPMN 2.0 documents into a normalized diagram graph
(pools owning lanes, lanes owning elements, typed connections) and exports
such graphs back to namespace-correct BPMN 2.0 XML with Diagram Interchange
layout.
"""

from typing import Optional

# Core components
from bpmn_converter.core.exceptions import (
    ConversionError,
    DiagnosticError,
    GraphInvariantError,
    MalformedDocument,
    SchemaError,
)
from bpmn_converter.core.observability import ObservabilityConfig, ObservabilityManager

# Converter
from bpmn_converter.converter import (
    BPMNConverter,
    ConverterConfig,
    ErrorHandlingStrategy,
    LayoutConfig,
)

# Models
from bpmn_converter.models import (
    Connection,
    ConnectionKind,
    Diagnostic,
    DiagnosticCode,
    DiagramGraph,
    DiagramNode,
    ImportResult,
    Lane,
    NodeKind,
)
from bpmn_converter.stages.xml_generation import IdFactory

__version__ = "0.1.0"


def import_bpmn(text: str, config: Optional[ConverterConfig] = None) -> ImportResult:
    """Import BPMN 2.0 XML into a diagram graph."""
    return BPMNConverter(config).import_document(text)


def export_bpmn(
    graph: DiagramGraph,
    process_name: str = "Process",
    config: Optional[ConverterConfig] = None,
    id_factory: Optional[IdFactory] = None,
) -> str:
    """Export a diagram graph as BPMN 2.0 XML."""
    return BPMNConverter(config).export_document(graph, process_name, id_factory=id_factory)


__all__ = [
    # Version
    "__version__",
    # Entry points
    "import_bpmn",
    "export_bpmn",
    "BPMNConverter",
    # Configuration
    "ConverterConfig",
    "ErrorHandlingStrategy",
    "LayoutConfig",
    "ObservabilityConfig",
    "ObservabilityManager",
    # Errors
    "ConversionError",
    "DiagnosticError",
    "GraphInvariantError",
    "MalformedDocument",
    "SchemaError",
    # Models
    "Connection",
    "ConnectionKind",
    "Diagnostic",
    "DiagnosticCode",
    "DiagramGraph",
    "DiagramNode",
    "IdFactory",
    "ImportResult",
    "Lane",
    "NodeKind",
]
