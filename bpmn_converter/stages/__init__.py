"""
Conversion pipeline stages.

Import: DocumentReader -> LayoutExtractor -> ContainmentResolver ->
ElementClassifier -> FlowResolver -> GraphAssembler.
Export: BPMNXMLGenerator.
"""

from bpmn_converter.stages.containment import (
    ContainmentMap,
    ContainmentResolver,
    LaneRecord,
    PoolRecord,
)
from bpmn_converter.stages.document_reader import BPMNDocument, DocumentReader
from bpmn_converter.stages.element_classifier import (
    UNCLASSIFIED,
    Classification,
    ClassifiedElement,
    ElementClassifier,
    bpmn_tag_for,
)
from bpmn_converter.stages.flow_resolver import FlowResolution, FlowResolver, select_handles
from bpmn_converter.stages.graph_assembler import AssemblyResult, GraphAssembler
from bpmn_converter.stages.layout_extraction import LayoutExtractor, LayoutIndex
from bpmn_converter.stages.xml_generation import BPMNXMLGenerator, IdFactory

__all__ = [
    # Stage 1
    "BPMNDocument",
    "DocumentReader",
    # Stage 2
    "LayoutExtractor",
    "LayoutIndex",
    # Stage 3
    "ContainmentMap",
    "ContainmentResolver",
    "LaneRecord",
    "PoolRecord",
    # Stage 4
    "Classification",
    "ClassifiedElement",
    "ElementClassifier",
    "UNCLASSIFIED",
    "bpmn_tag_for",
    # Stage 5
    "FlowResolution",
    "FlowResolver",
    "select_handles",
    # Stage 6
    "AssemblyResult",
    "GraphAssembler",
    # Export
    "BPMNXMLGenerator",
    "IdFactory",
]
