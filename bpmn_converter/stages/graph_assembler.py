"""
Graph Assembler (Import Stage 6)

Merges pools and lanes, classified elements and resolved connections into
the diagram graph, using the layout index for positions. Nodes without a DI
shape are placed on a deterministic row so repeated imports of the same
document yield the same graph.
"""

import logging
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from bpmn_converter.core.exceptions import GraphInvariantError
from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import (
    DEFAULT_POOL_WIDTH,
    EMPTY_POOL_HEIGHT,
    POOL_HEADER_HEIGHT,
    Bounds,
    NodeKind,
    default_size,
)
from bpmn_converter.models.diagnostics import Diagnostic, DiagnosticCode, DiagnosticLevel
from bpmn_converter.models.diagram import Connection, DiagramGraph, DiagramNode, Lane
from bpmn_converter.stages.containment import ContainmentMap, PoolRecord
from bpmn_converter.stages.element_classifier import ClassifiedElement
from bpmn_converter.stages.flow_resolver import FlowResolution
from bpmn_converter.stages.layout_extraction import LayoutIndex

logger = logging.getLogger(__name__)

# Fallback placement for nodes without a DI shape
FALLBACK_BASE_X = 100
FALLBACK_SPACING = 150
FALLBACK_Y = 200
# Least clear space between neighbouring fallback-placed nodes
FALLBACK_MIN_GAP = 20


class AssemblyResult(BaseModel):
    """Assembled graph plus assembly-time diagnostics."""

    graph: DiagramGraph = Field(..., description="Assembled graph")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Recoverable issues")


class _FallbackRow:
    """Left-to-right cursor for nodes without a DI shape.

    Each placed node advances the cursor by ``spacing``, or by its width plus
    FALLBACK_MIN_GAP when it is wider than that, so neighbours never overlap.
    """

    def __init__(self, base_x: float, spacing: float):
        self.next_x = base_x
        self.spacing = spacing

    def take(self, width: float) -> float:
        x = self.next_x
        self.next_x += max(self.spacing, width + FALLBACK_MIN_GAP)
        return x


class GraphAssembler:
    """Builds the final diagram graph."""

    def __init__(
        self,
        base_x: float = FALLBACK_BASE_X,
        spacing: float = FALLBACK_SPACING,
        fallback_y: float = FALLBACK_Y,
    ):
        """Initialize assembler.

        Args:
            base_x: X of the first fallback-placed node
            spacing: Least horizontal distance between fallback-placed nodes
            fallback_y: Y of all fallback-placed nodes
        """
        if spacing <= 0:
            raise ValueError("Fallback spacing must be positive")
        self.base_x = base_x
        self.spacing = spacing
        self.fallback_y = fallback_y

    def assemble(
        self,
        layout: LayoutIndex,
        containment: ContainmentMap,
        elements: List[ClassifiedElement],
        flows: FlowResolution,
    ) -> AssemblyResult:
        """Assemble the diagram graph.

        Args:
            layout: Layout index
            containment: Pool/lane ownership
            elements: Classified elements in document order
            flows: Resolved connections

        Returns:
            AssemblyResult

        Raises:
            GraphInvariantError: If the assembled graph is inconsistent
        """
        with Timer("graph_assembly"):
            diagnostics: List[Diagnostic] = []
            nodes: List[DiagramNode] = []
            node_ids: Set[str] = set()
            row = _FallbackRow(self.base_x, self.spacing)

            for pool in containment.pools.values():
                nodes.append(self._pool_node(pool, containment, layout, row))
                node_ids.add(pool.id)

            for element in elements:
                if element.id in node_ids or element.id in containment.lanes:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DUPLICATE_ID,
                            message=f"Element id {element.id} is used more than once; keeping the first",
                            element_id=element.id,
                        )
                    )
                    continue
                nodes.append(self._element_node(element, containment, layout, row))
                node_ids.add(element.id)

            diagnostics.extend(self._check_ownership_tree(containment, node_ids))

            connections: List[Connection] = []
            for connection in flows.connections:
                if connection.id in node_ids or connection.id in containment.lanes:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DUPLICATE_ID,
                            message=f"Connection id {connection.id} is already used by a node or lane; dropped",
                            element_id=connection.id,
                        )
                    )
                elif connection.source_id in node_ids and connection.target_id in node_ids:
                    connections.append(connection)
                else:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DANGLING_REFERENCE,
                            message=f"Dropping connection {connection.id}: endpoint is not a node",
                            element_id=connection.id,
                        )
                    )

            graph = DiagramGraph(nodes=nodes, connections=connections)
            violations = graph.validate_invariants()
            if violations:
                raise GraphInvariantError(violations)

        for diagnostic in diagnostics:
            logger.log(
                logging.INFO if diagnostic.level == DiagnosticLevel.INFO else logging.WARNING,
                diagnostic.message,
            )
        logger.info(f"Import complete: {len(nodes)} nodes, {len(connections)} connections")
        return AssemblyResult(graph=graph, diagnostics=diagnostics)

    def _place(
        self, bounds: Optional[Bounds], width: float, height: float, row: _FallbackRow
    ) -> Bounds:
        """Bounds from the layout index, or the next fallback slot."""
        if bounds is not None:
            return bounds
        x = row.take(width)
        return Bounds(x=x, y=self.fallback_y, width=width, height=height)

    def _pool_node(
        self,
        pool: PoolRecord,
        containment: ContainmentMap,
        layout: LayoutIndex,
        row: _FallbackRow,
    ) -> DiagramNode:
        lanes = [
            Lane(id=lane.id, name=lane.name, height=lane.height, color=lane.color)
            for lane in containment.lanes_of(pool.id)
        ]
        if lanes:
            height = POOL_HEADER_HEIGHT + sum(lane.height for lane in lanes)
        else:
            height = EMPTY_POOL_HEIGHT
        bounds = self._place(layout.bounds_for(pool.id), DEFAULT_POOL_WIDTH, height, row)

        return DiagramNode(
            id=pool.id,
            kind=NodeKind.POOL_WITH_LANES,
            label=pool.name,
            x=bounds.x,
            y=bounds.y,
            width=bounds.width,
            height=bounds.height,
            color=pool.color,
            lanes=lanes,
        )

    def _element_node(
        self,
        element: ClassifiedElement,
        containment: ContainmentMap,
        layout: LayoutIndex,
        row: _FallbackRow,
    ) -> DiagramNode:
        width, height = default_size(element.kind)
        bounds = self._place(layout.bounds_for(element.id), width, height, row)

        lane = containment.lane_of(element.id)
        return DiagramNode(
            id=element.id,
            kind=element.kind,
            sub_kind=element.sub_kind,
            label=element.label or element.id,
            x=bounds.x,
            y=bounds.y,
            width=bounds.width,
            height=bounds.height,
            container_id=lane.pool_id if lane is not None else None,
            lane_id=lane.id if lane is not None else None,
            lane_name=lane.name if lane is not None else None,
            lane_color=lane.color if lane is not None else None,
            description=element.description,
            event_flavor=element.event_flavor,
        )

    def _check_ownership_tree(
        self, containment: ContainmentMap, node_ids: Set[str]
    ) -> List[Diagnostic]:
        """Pool -> lanes -> members must be a single-parent, acyclic tree."""
        diagnostics: List[Diagnostic] = []
        for lane in containment.lanes.values():
            for member_id in lane.member_ids:
                if member_id in containment.pools:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.CONTAINMENT_CYCLE,
                            message=f"Lane {lane.id} lists pool {member_id} as a member; ignored",
                            element_id=member_id,
                        )
                    )
                elif member_id not in node_ids:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DANGLING_REFERENCE,
                            level=DiagnosticLevel.INFO,
                            message=f"Lane {lane.id} references unknown element {member_id}",
                            element_id=member_id,
                        )
                    )
        return diagnostics


__all__ = [
    "AssemblyResult",
    "GraphAssembler",
    "FALLBACK_BASE_X",
    "FALLBACK_SPACING",
    "FALLBACK_Y",
    "FALLBACK_MIN_GAP",
]
