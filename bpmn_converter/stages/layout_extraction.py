"""
Layout Extractor (Import Stage 2)

Scans the Diagram Interchange section and indexes shape bounds by the id of
the element they annotate and edge waypoints by connection id. The index is
the position source of truth for the graph assembler.
"""

import logging
import math
from typing import Dict, List, Optional

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field

from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import (
    TAG_CLASSIFICATION,
    Bounds,
    Waypoint,
    default_size,
)
from bpmn_converter.stages.document_reader import BPMNDocument, iter_children

logger = logging.getLogger(__name__)


class LayoutIndex(BaseModel):
    """Read-only layout lookups keyed by BPMN element id."""

    shapes: Dict[str, Bounds] = Field(default_factory=dict, description="Element id -> bounds")
    edges: Dict[str, List[Waypoint]] = Field(
        default_factory=dict, description="Connection id -> waypoints"
    )

    model_config = ConfigDict(frozen=True)

    def bounds_for(self, element_id: str) -> Optional[Bounds]:
        return self.shapes.get(element_id)

    def waypoints_for(self, element_id: str) -> List[Waypoint]:
        return list(self.edges.get(element_id, []))


def _to_float(value: Optional[str]) -> Optional[float]:
    """Parse a coordinate; anything non-numeric counts as missing."""
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


class LayoutExtractor:
    """Builds the layout index from BPMNShape and BPMNEdge records."""

    def extract(self, document: BPMNDocument) -> LayoutIndex:
        """Extract shape bounds and edge waypoints.

        Args:
            document: Parsed document

        Returns:
            LayoutIndex
        """
        with Timer("layout_extraction"):
            shapes: Dict[str, Bounds] = {}
            for shape in document.shapes():
                element_id = shape.get("bpmnElement")
                if not element_id or element_id in shapes:
                    continue
                bounds = self._read_bounds(shape, document.tag_by_id.get(element_id))
                if bounds is not None:
                    shapes[element_id] = bounds

            edges: Dict[str, List[Waypoint]] = {}
            for edge in document.edges():
                element_id = edge.get("bpmnElement")
                if not element_id or element_id in edges:
                    continue
                edges[element_id] = self._read_waypoints(edge)

        logger.debug(f"Extracted {len(shapes)} shapes and {len(edges)} edges from diagram")
        return LayoutIndex(shapes=shapes, edges=edges)

    def _read_bounds(self, shape: etree._Element, tag: Optional[str]) -> Optional[Bounds]:
        bounds_elem = next(iter_children(shape, "Bounds"), None)
        if bounds_elem is None:
            return None

        kind = TAG_CLASSIFICATION[tag][0] if tag in TAG_CLASSIFICATION else None
        default_width, default_height = default_size(kind)

        width = _to_float(bounds_elem.get("width"))
        height = _to_float(bounds_elem.get("height"))
        return Bounds(
            x=_to_float(bounds_elem.get("x")) or 0.0,
            y=_to_float(bounds_elem.get("y")) or 0.0,
            width=width if width is not None else default_width,
            height=height if height is not None else default_height,
        )

    def _read_waypoints(self, edge: etree._Element) -> List[Waypoint]:
        waypoints: List[Waypoint] = []
        for point in iter_children(edge, "waypoint"):
            x = _to_float(point.get("x"))
            y = _to_float(point.get("y"))
            if x is None or y is None:
                continue
            waypoints.append(Waypoint(x=x, y=y))
        return waypoints


__all__ = ["LayoutIndex", "LayoutExtractor"]
