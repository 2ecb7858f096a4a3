"""
Import Diagnostics

Recoverable inconsistencies found while importing a document. They are
collected and returned next to the graph instead of being raised.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DiagnosticLevel(str, Enum):
    """Severity of a recoverable diagnostic."""

    INFO = "info"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    """Kinds of recoverable inconsistencies."""

    DANGLING_REFERENCE = "dangling_reference"
    DUPLICATE_LANE_CLAIM = "duplicate_lane_claim"
    CONFLICTING_LANE_MEMBERSHIP = "conflicting_lane_membership"
    ORPHAN_LANE = "orphan_lane"
    DUPLICATE_ID = "duplicate_id"
    CONTAINMENT_CYCLE = "containment_cycle"


class Diagnostic(BaseModel):
    """A single recoverable import diagnostic."""

    code: DiagnosticCode = Field(..., description="Diagnostic kind")
    level: DiagnosticLevel = Field(DiagnosticLevel.WARNING, description="Severity")
    message: str = Field(..., description="Human readable description")
    element_id: Optional[str] = Field(None, description="Offending element id, if any")


def diagnostics_with_code(diagnostics: List[Diagnostic], code: DiagnosticCode) -> List[Diagnostic]:
    """Filter diagnostics by code."""
    return [d for d in diagnostics if d.code == code]


__all__ = [
    "DiagnosticLevel",
    "DiagnosticCode",
    "Diagnostic",
    "diagnostics_with_code",
]
