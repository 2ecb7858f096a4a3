"""
Data models for the BPMN converter.
"""

from bpmn_converter.models.bpmn_elements import (
    Bounds,
    ConnectionKind,
    DataObjectKind,
    EventFlavor,
    EventPhase,
    GatewayKind,
    Handle,
    NodeKind,
    TaskKind,
    Waypoint,
)
from bpmn_converter.models.diagnostics import Diagnostic, DiagnosticCode, DiagnosticLevel
from bpmn_converter.models.diagram import (
    Connection,
    DiagramGraph,
    DiagramNode,
    ImportResult,
    Lane,
)

__all__ = [
    # Vocabulary
    "NodeKind",
    "EventPhase",
    "EventFlavor",
    "TaskKind",
    "GatewayKind",
    "DataObjectKind",
    "ConnectionKind",
    "Handle",
    "Bounds",
    "Waypoint",
    # Diagnostics
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLevel",
    # Graph
    "Lane",
    "DiagramNode",
    "Connection",
    "DiagramGraph",
    "ImportResult",
]
