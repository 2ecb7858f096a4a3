"""
BPMN 2.0 XML Generation (Export Stage)

Converts a DiagramGraph back into a BPMN 2.0 document, including the
Diagram Interchange section used by other modelling tools to lay it out.

Supports:
- One process per pool plus a default process for uncontained nodes
- Lane sets with flowNodeRef membership
- Collaboration with participants and message flows
- Shape and edge records with simplified midline routing
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from lxml import etree

from bpmn_converter.core.exceptions import GraphInvariantError
from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import (
    BPMN_NAMESPACE,
    BPMNDI_NAMESPACE,
    DC_NAMESPACE,
    DI_NAMESPACE,
    POOL_HEADER_HEIGHT,
    SIGNAVIO_NAMESPACE,
    XSI_NAMESPACE,
    ConnectionKind,
    DataObjectKind,
    NodeKind,
    encode_name,
)
from bpmn_converter.models.diagram import Connection, DiagramGraph, DiagramNode
from bpmn_converter.stages.element_classifier import bpmn_tag_for

logger = logging.getLogger(__name__)

DEFAULT_EXPORTER = "bpmn-converter"
DEFAULT_EXPORTER_VERSION = "0.1.0"

# Fixed metadata block written into every element's extensionElements
EXTENSION_METADATA = (("bgcolor", "#ffffff"), ("bordercolor", "#000000"))

# Width of the vertical name band on the left of a horizontal pool
POOL_LABEL_BAND = 30

EVENT_DEFINITION_BY_FLAVOR = {
    "message": "messageEventDefinition",
    "timer": "timerEventDefinition",
    "error": "errorEventDefinition",
}


def _bpmn(tag: str) -> str:
    return "{%s}%s" % (BPMN_NAMESPACE, tag)


def _coord(value: float) -> str:
    return str(int(round(value)))


class IdFactory:
    """Source of ids for synthesized elements.

    All ids of one factory share a timestamp taken on first use, followed by
    a running counter, so they are unique within an export and reproducible
    when the clock is injected.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """Initialize factory.

        Args:
            clock: Returns seconds since the epoch; defaults to time.time
        """
        self._clock = clock or time.time
        self._stamp: Optional[int] = None
        self._counter = 0

    @property
    def stamp(self) -> int:
        if self._stamp is None:
            self._stamp = int(self._clock() * 1000)
        return self._stamp

    def new_id(self, prefix: str) -> str:
        """Next id with the given prefix, e.g. ``process_1700000000000_0``."""
        element_id = f"{prefix}_{self.stamp}_{self._counter}"
        self._counter += 1
        return element_id


class _ProcessPlan:
    """Nodes, lanes and flows destined for one process element."""

    def __init__(self, process_id: str, name: str, pool: Optional[DiagramNode] = None):
        self.process_id = process_id
        self.name = name
        self.pool = pool
        self.nodes: List[DiagramNode] = []
        self.flows: List[Connection] = []
        # lane id -> (lane name, member ids), in lane order
        self.lanes: Dict[str, tuple] = {}


class BPMNXMLGenerator:
    """Generates BPMN 2.0 XML from a DiagramGraph."""

    def __init__(
        self,
        exporter: str = DEFAULT_EXPORTER,
        exporter_version: str = DEFAULT_EXPORTER_VERSION,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize XML generator.

        Args:
            exporter: Value of the definitions ``exporter`` attribute
            exporter_version: Value of the definitions ``exporterVersion`` attribute
            clock: Clock for the default IdFactory of each export
        """
        self.exporter = exporter
        self.exporter_version = exporter_version
        self.clock = clock

    def generate_xml(
        self,
        graph: DiagramGraph,
        process_name: str = "Process",
        id_factory: Optional[IdFactory] = None,
    ) -> str:
        """Generate BPMN 2.0 XML from a diagram graph.

        Args:
            graph: Graph to convert
            process_name: Name of the process holding uncontained nodes and of the collaboration
            id_factory: Id source for synthesized elements; a fresh one per call if omitted

        Returns:
            BPMN 2.0 XML string

        Raises:
            GraphInvariantError: If the graph violates the model invariants
        """
        with Timer("xml_generation"):
            graph.rebuild_indexes()
            violations = graph.validate_invariants()
            if violations:
                logger.error(f"Refusing to export inconsistent graph: {violations}")
                raise GraphInvariantError(violations)

            ids = id_factory or IdFactory(self.clock)
            root = etree.Element(
                _bpmn("definitions"),
                nsmap={
                    None: BPMN_NAMESPACE,
                    "bpmndi": BPMNDI_NAMESPACE,
                    "dc": DC_NAMESPACE,
                    "di": DI_NAMESPACE,
                    "xsi": XSI_NAMESPACE,
                    "signavio": SIGNAVIO_NAMESPACE,
                },
            )
            root.set("id", ids.new_id("definitions"))
            root.set("targetNamespace", SIGNAVIO_NAMESPACE)
            root.set("exporter", self.exporter)
            root.set("exporterVersion", self.exporter_version)

            plans = self._plan_processes(graph, process_name, ids)
            for plan in plans:
                root.append(self._build_process_element(plan, graph, ids))

            collaboration_id = None
            message_flows = graph.connections_of_kind(ConnectionKind.MESSAGE_FLOW)
            pool_plans = [plan for plan in plans if plan.pool is not None]
            if pool_plans or message_flows:
                collaboration_id = ids.new_id("collaboration")
                root.append(
                    self._build_collaboration(collaboration_id, process_name, pool_plans, message_flows)
                )

            plane_target = collaboration_id or plans[0].process_id
            root.append(self._build_diagram_element(graph, plane_target, ids))

            logger.info(
                f"Generated BPMN XML: {len(plans)} processes, {len(graph.nodes)} nodes, "
                f"{len(graph.connections)} connections"
            )
            return etree.tostring(
                root, pretty_print=True, xml_declaration=True, encoding="utf-8"
            ).decode("utf-8")

    def _plan_processes(
        self, graph: DiagramGraph, process_name: str, ids: IdFactory
    ) -> List[_ProcessPlan]:
        """Distribute nodes and sequence flows over one process per pool plus the default one."""
        by_pool: Dict[str, _ProcessPlan] = {}
        for pool in graph.pools():
            plan = _ProcessPlan(ids.new_id("process"), pool.label, pool)
            for lane in pool.lanes:
                plan.lanes[lane.id] = (lane.name, [])
            by_pool[pool.id] = plan

        default_plan = _ProcessPlan(ids.new_id("process"), process_name)

        for node in graph.nodes:
            if node.is_pool:
                continue
            plan = by_pool.get(node.container_id) if node.container_id else default_plan
            plan.nodes.append(node)
            if node.lane_id is None:
                continue
            if node.lane_id not in plan.lanes:
                # Lane without a pool
                plan.lanes[node.lane_id] = (node.lane_name or node.lane_id, [])
            plan.lanes[node.lane_id][1].append(node.id)

        for connection in graph.connections_of_kind(ConnectionKind.SEQUENCE_FLOW):
            source = graph.get_node(connection.source_id)
            plan = by_pool.get(source.container_id) if source.container_id else None
            (plan or default_plan).flows.append(connection)

        plans = list(by_pool.values())
        if not plans or default_plan.nodes or default_plan.flows:
            plans.append(default_plan)
        return plans

    def _build_process_element(
        self, plan: _ProcessPlan, graph: DiagramGraph, ids: IdFactory
    ) -> etree._Element:
        process_elem = etree.Element(_bpmn("process"))
        process_elem.set("id", plan.process_id)
        process_elem.set("name", encode_name(plan.name))
        process_elem.set("isExecutable", "false")

        if plan.lanes:
            lane_set = etree.SubElement(process_elem, _bpmn("laneSet"))
            lane_set.set("id", ids.new_id("laneSet"))
            for lane_id, (lane_name, member_ids) in plan.lanes.items():
                lane_elem = etree.SubElement(lane_set, _bpmn("lane"))
                lane_elem.set("id", lane_id)
                lane_elem.set("name", encode_name(lane_name))
                for member_id in member_ids:
                    etree.SubElement(lane_elem, _bpmn("flowNodeRef")).text = member_id

        for node in plan.nodes:
            if node.kind == NodeKind.DATA_OBJECT and node.sub_kind != DataObjectKind.DATA_STORE.value:
                data_object = etree.SubElement(process_elem, _bpmn("dataObject"))
                data_object.set("id", f"dataObj_{node.id}")
            process_elem.append(self._build_flow_node_element(node, graph))

        for flow in plan.flows:
            process_elem.append(self._build_sequence_flow_element(flow))

        return process_elem

    def _build_flow_node_element(self, node: DiagramNode, graph: DiagramGraph) -> etree._Element:
        """Build XML element for a non-pool node."""
        tag = bpmn_tag_for(node.kind, node.sub_kind)
        elem = etree.Element(_bpmn(tag))
        elem.set("id", node.id)
        if node.kind != NodeKind.NOTE:
            elem.set("name", encode_name(node.label))

        if node.description:
            etree.SubElement(elem, _bpmn("documentation")).text = etree.CDATA(node.description)

        extensions = etree.SubElement(elem, _bpmn("extensionElements"))
        for key, value in EXTENSION_METADATA:
            meta = etree.SubElement(extensions, "{%s}signavioMetaData" % SIGNAVIO_NAMESPACE)
            meta.set("metaKey", key)
            meta.set("metaValue", value)

        if node.kind == NodeKind.NOTE:
            etree.SubElement(elem, _bpmn("text")).text = encode_name(node.label)
            return elem
        if node.kind == NodeKind.SHAPE:
            return elem

        incoming = [c for c in graph.get_incoming(node.id) if c.kind == ConnectionKind.SEQUENCE_FLOW]
        outgoing = [c for c in graph.get_outgoing(node.id) if c.kind == ConnectionKind.SEQUENCE_FLOW]
        for connection in incoming:
            etree.SubElement(elem, _bpmn("incoming")).text = connection.id
        for connection in outgoing:
            etree.SubElement(elem, _bpmn("outgoing")).text = connection.id

        if node.kind == NodeKind.EVENT and node.event_flavor is not None:
            etree.SubElement(elem, _bpmn(EVENT_DEFINITION_BY_FLAVOR[node.event_flavor.value]))
        elif node.kind == NodeKind.TASK:
            elem.set("implementation", "##unspecified")
        elif node.kind == NodeKind.GATEWAY:
            elem.set("gatewayDirection", self._gateway_direction(len(incoming), len(outgoing)))
        elif node.kind == NodeKind.DATA_OBJECT and node.sub_kind != DataObjectKind.DATA_STORE.value:
            elem.set("dataObjectRef", f"dataObj_{node.id}")

        if node.kind in (NodeKind.TASK, NodeKind.GATEWAY):
            default_flow = next((c for c in outgoing if c.is_default), None)
            if default_flow is not None:
                elem.set("default", default_flow.id)

        return elem

    def _gateway_direction(self, incoming: int, outgoing: int) -> str:
        if incoming > 1 and outgoing > 1:
            return "Mixed"
        if outgoing > 1:
            return "Diverging"
        if incoming > 1:
            return "Converging"
        return "Unspecified"

    def _build_sequence_flow_element(self, flow: Connection) -> etree._Element:
        """Build XML element for a sequence flow."""
        elem = etree.Element(_bpmn("sequenceFlow"))
        elem.set("id", flow.id)
        if flow.label:
            elem.set("name", encode_name(flow.label))
        elem.set("sourceRef", flow.source_id)
        elem.set("targetRef", flow.target_id)

        if flow.condition:
            cond_elem = etree.SubElement(elem, _bpmn("conditionExpression"))
            cond_elem.set("{%s}type" % XSI_NAMESPACE, "tFormalExpression")
            cond_elem.text = etree.CDATA(flow.condition)

        return elem

    def _build_collaboration(
        self,
        collaboration_id: str,
        name: str,
        pool_plans: List[_ProcessPlan],
        message_flows: List[Connection],
    ) -> etree._Element:
        collaboration = etree.Element(_bpmn("collaboration"))
        collaboration.set("id", collaboration_id)
        collaboration.set("name", encode_name(name))

        for plan in pool_plans:
            participant = etree.SubElement(collaboration, _bpmn("participant"))
            participant.set("id", plan.pool.id)
            participant.set("name", encode_name(plan.pool.label))
            participant.set("processRef", plan.process_id)

        for flow in message_flows:
            elem = etree.SubElement(collaboration, _bpmn("messageFlow"))
            elem.set("id", flow.id)
            if flow.label:
                elem.set("name", encode_name(flow.label))
            elem.set("sourceRef", flow.source_id)
            elem.set("targetRef", flow.target_id)

        return collaboration

    def _build_diagram_element(
        self, graph: DiagramGraph, plane_target: str, ids: IdFactory
    ) -> etree._Element:
        """Build BPMN Diagram Interchange element."""
        diagram = etree.Element("{%s}BPMNDiagram" % BPMNDI_NAMESPACE)
        diagram.set("id", ids.new_id("diagram"))

        plane = etree.SubElement(diagram, "{%s}BPMNPlane" % BPMNDI_NAMESPACE)
        plane.set("id", ids.new_id("plane"))
        plane.set("bpmnElement", plane_target)

        for node in graph.nodes:
            plane.append(
                self._build_shape_diagram(node.id, node.x, node.y, node.width, node.height, node.is_pool)
            )
            if node.is_pool:
                lane_y = node.y + POOL_HEADER_HEIGHT
                for lane in node.lanes:
                    plane.append(
                        self._build_shape_diagram(
                            lane.id,
                            node.x + POOL_LABEL_BAND,
                            lane_y,
                            node.width - POOL_LABEL_BAND,
                            lane.height,
                            True,
                        )
                    )
                    lane_y += lane.height

        for connection in graph.connections:
            plane.append(self._build_edge_diagram(connection, graph))

        return diagram

    def _build_shape_diagram(
        self, element_id: str, x: float, y: float, width: float, height: float, horizontal: bool
    ) -> etree._Element:
        """Build BPMN shape diagram element."""
        shape = etree.Element("{%s}BPMNShape" % BPMNDI_NAMESPACE)
        shape.set("id", f"{element_id}_gui")
        shape.set("bpmnElement", element_id)
        if horizontal:
            shape.set("isHorizontal", "true")

        bounds = etree.SubElement(shape, "{%s}Bounds" % DC_NAMESPACE)
        bounds.set("x", _coord(x))
        bounds.set("y", _coord(y))
        bounds.set("width", _coord(width))
        bounds.set("height", _coord(height))

        return shape

    def _build_edge_diagram(self, connection: Connection, graph: DiagramGraph) -> etree._Element:
        """Build BPMN edge with two waypoints: source right midline to target left midline."""
        source = graph.get_node(connection.source_id)
        target = graph.get_node(connection.target_id)

        edge = etree.Element("{%s}BPMNEdge" % BPMNDI_NAMESPACE)
        edge.set("id", f"{connection.id}_gui")
        edge.set("bpmnElement", connection.id)

        for x, y in (
            (source.x + source.width, source.y + source.height / 2),
            (target.x, target.y + target.height / 2),
        ):
            waypoint = etree.SubElement(edge, "{%s}waypoint" % DI_NAMESPACE)
            waypoint.set("x", _coord(x))
            waypoint.set("y", _coord(y))

        return edge


__all__ = ["BPMNXMLGenerator", "IdFactory", "DEFAULT_EXPORTER", "DEFAULT_EXPORTER_VERSION"]
