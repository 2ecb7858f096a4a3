"""
Converter entry points and configuration.
"""

from bpmn_converter.converter.config import ConverterConfig, ErrorHandlingStrategy, LayoutConfig
from bpmn_converter.converter.orchestrator import BPMNConverter

__all__ = [
    "BPMNConverter",
    "ConverterConfig",
    "ErrorHandlingStrategy",
    "LayoutConfig",
]
