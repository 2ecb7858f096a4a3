"""
Converter Configuration Schema

Defines configuration for the BPMNConverter: error handling, fallback
layout and the exporter identity written into generated documents.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bpmn_converter.stages.graph_assembler import (
    FALLBACK_BASE_X,
    FALLBACK_SPACING,
    FALLBACK_Y,
)
from bpmn_converter.stages.xml_generation import DEFAULT_EXPORTER, DEFAULT_EXPORTER_VERSION


class ErrorHandlingStrategy(str, Enum):
    """How recoverable diagnostics are treated."""

    STRICT = "strict"  # Raise on the first diagnostic
    LENIENT = "lenient"  # Return diagnostics alongside the graph


@dataclass
class LayoutConfig:
    """Placement of nodes that have no Diagram Interchange shape."""

    fallback_base_x: float = FALLBACK_BASE_X
    fallback_spacing: float = FALLBACK_SPACING
    fallback_y: float = FALLBACK_Y


@dataclass
class ConverterConfig:
    """Complete converter configuration."""

    # Layout
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    # Error Handling
    error_handling: ErrorHandlingStrategy = ErrorHandlingStrategy.LENIENT

    # Export
    exporter_name: str = DEFAULT_EXPORTER
    exporter_version: str = DEFAULT_EXPORTER_VERSION
    default_process_name: str = "Process"

    @property
    def strict(self) -> bool:
        return self.error_handling == ErrorHandlingStrategy.STRICT

    @classmethod
    def from_env(cls) -> "ConverterConfig":
        """Load configuration from environment variables.

        Reads ``BPMN_CONVERTER_*`` variables; unset ones keep their defaults.

        Returns:
            ConverterConfig instance
        """
        layout = LayoutConfig(
            fallback_base_x=float(os.getenv("BPMN_CONVERTER_FALLBACK_BASE_X", str(FALLBACK_BASE_X))),
            fallback_spacing=float(
                os.getenv("BPMN_CONVERTER_FALLBACK_SPACING", str(FALLBACK_SPACING))
            ),
            fallback_y=float(os.getenv("BPMN_CONVERTER_FALLBACK_Y", str(FALLBACK_Y))),
        )
        return cls(
            layout=layout,
            error_handling=cls._strategy(os.getenv("BPMN_CONVERTER_ERROR_HANDLING")),
            exporter_name=os.getenv("BPMN_CONVERTER_EXPORTER", DEFAULT_EXPORTER),
            exporter_version=os.getenv("BPMN_CONVERTER_EXPORTER_VERSION", DEFAULT_EXPORTER_VERSION),
            default_process_name=os.getenv("BPMN_CONVERTER_PROCESS_NAME", "Process"),
        )

    @staticmethod
    def _strategy(value: Optional[str]) -> ErrorHandlingStrategy:
        try:
            return ErrorHandlingStrategy((value or "").lower())
        except ValueError:
            return ErrorHandlingStrategy.LENIENT


__all__ = ["ErrorHandlingStrategy", "LayoutConfig", "ConverterConfig"]
