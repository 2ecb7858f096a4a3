"""
Element Classifier (Import Stage 4)

Maps BPMN semantic elements to diagram node kinds and sub-kinds by exact
lookup of the element's local tag name. Unknown tags are skipped silently so
that newer documents still import.
"""

import logging
from typing import List, Optional, Tuple

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field

from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import (
    EVENT_DEFINITION_TAGS,
    KIND_TO_TAG,
    SUB_KINDS,
    TAG_CLASSIFICATION,
    DataObjectKind,
    EventFlavor,
    EventPhase,
    GatewayKind,
    NodeKind,
    TaskKind,
    decode_name,
)
from bpmn_converter.stages.document_reader import (
    BPMNDocument,
    element_name,
    iter_children,
    local_name,
)

logger = logging.getLogger(__name__)

# Sub-kind assumed when a node carries none
DEFAULT_SUB_KINDS = {
    NodeKind.EVENT: EventPhase.START.value,
    NodeKind.TASK: TaskKind.USER.value,
    NodeKind.GATEWAY: GatewayKind.EXCLUSIVE.value,
    NodeKind.DATA_OBJECT: DataObjectKind.DATA_OBJECT.value,
}


class Classification(BaseModel):
    """(kind, sub-kind) pair; ``kind`` is None for unclassified elements."""

    kind: Optional[NodeKind] = Field(None, description="Node kind")
    sub_kind: Optional[str] = Field(None, description="Kind-dependent sub-kind")

    model_config = ConfigDict(frozen=True)

    @property
    def is_classified(self) -> bool:
        return self.kind is not None

    def as_tuple(self) -> Tuple[Optional[NodeKind], Optional[str]]:
        return self.kind, self.sub_kind


UNCLASSIFIED = Classification()


class ClassifiedElement(BaseModel):
    """A semantic element that maps to a diagram node."""

    id: str = Field(..., description="Element id")
    tag: str = Field(..., description="BPMN local tag name")
    kind: NodeKind = Field(..., description="Node kind")
    sub_kind: Optional[str] = Field(None, description="Node sub-kind")
    label: Optional[str] = Field(None, description="Decoded name")
    description: Optional[str] = Field(None, description="Documentation text")
    event_flavor: Optional[EventFlavor] = Field(None, description="Event trigger")
    default_flow: Optional[str] = Field(None, description="Id of the default outgoing flow")
    process_id: Optional[str] = Field(None, description="Enclosing process id")

    model_config = ConfigDict(frozen=True)

    @property
    def classification(self) -> Classification:
        return Classification(kind=self.kind, sub_kind=self.sub_kind)


def bpmn_tag_for(kind: NodeKind, sub_kind: Optional[str] = None) -> Optional[str]:
    """BPMN tag for a (kind, sub-kind) pair; None for pools."""
    if sub_kind is None:
        sub_kind = DEFAULT_SUB_KINDS.get(kind)
    return KIND_TO_TAG.get((kind, sub_kind))


class ElementClassifier:
    """Classifies BPMN elements by exact tag lookup."""

    def classify_tag(self, tag: Optional[str]) -> Classification:
        """Classify a BPMN local tag name."""
        entry = TAG_CLASSIFICATION.get(tag) if tag else None
        if entry is None:
            return UNCLASSIFIED
        kind, sub_kind = entry
        return Classification(kind=kind, sub_kind=sub_kind)

    def classify(self, element: etree._Element) -> Classification:
        """Classify a single semantic element."""
        return self.classify_tag(local_name(element))

    def normalize(self, kind: NodeKind, sub_kind: Optional[str] = None) -> Classification:
        """Re-derive the classification of an already classified pair.

        Valid pairs come back unchanged; a missing sub-kind is filled with the
        kind's default.
        """
        if sub_kind is None:
            sub_kind = DEFAULT_SUB_KINDS.get(kind)
        enum_type = SUB_KINDS.get(kind)
        if enum_type is None:
            return Classification(kind=kind, sub_kind=None)
        if sub_kind not in {member.value for member in enum_type}:
            raise ValueError(f"'{sub_kind}' is not a valid sub-kind for {kind.value}")
        return Classification(kind=kind, sub_kind=sub_kind)

    def describe(
        self,
        element: etree._Element,
        element_id: str,
        process_id: Optional[str] = None,
    ) -> Optional[ClassifiedElement]:
        """Classify an element and collect its display attributes.

        Returns None for unclassified elements.
        """
        tag = local_name(element)
        classification = self.classify_tag(tag)
        if not classification.is_classified:
            return None

        label = element_name(element)
        if classification.kind == NodeKind.NOTE and not label:
            text_elem = next(iter_children(element, "text"), None)
            if text_elem is not None and text_elem.text:
                label = decode_name(text_elem.text.strip())

        documentation = next(iter_children(element, "documentation"), None)
        description = None
        if documentation is not None and documentation.text:
            description = documentation.text.strip() or None

        event_flavor = None
        if classification.kind == NodeKind.EVENT:
            event_flavor = self._event_flavor(element)

        return ClassifiedElement(
            id=element_id,
            tag=tag,
            kind=classification.kind,
            sub_kind=classification.sub_kind,
            label=label,
            description=description,
            event_flavor=event_flavor,
            default_flow=element.get("default"),
            process_id=process_id,
        )

    def _event_flavor(self, element: etree._Element) -> Optional[EventFlavor]:
        for child in iter_children(element):
            flavor = EVENT_DEFINITION_TAGS.get(local_name(child))
            if flavor is not None:
                return flavor
        return None

    def classify_document(self, document: BPMNDocument) -> List[ClassifiedElement]:
        """Classify the flow elements of every process fragment, in document order."""
        with Timer("element_classification"):
            elements: List[ClassifiedElement] = []
            counter = 0
            for process in document.processes:
                process_id = process.get("id")
                for child in iter_children(process):
                    element_id = child.get("id") or f"element_{counter}"
                    counter += 1
                    classified = self.describe(child, element_id, process_id)
                    if classified is None:
                        logger.debug(f"Skipping unclassified element <{local_name(child)}> {element_id}")
                        continue
                    elements.append(classified)

        logger.debug(f"Classified {len(elements)} elements")
        return elements


__all__ = [
    "Classification",
    "ClassifiedElement",
    "ElementClassifier",
    "UNCLASSIFIED",
    "DEFAULT_SUB_KINDS",
    "bpmn_tag_for",
]
