"""
Diagram Graph Model

The graph exchanged with the canvas: typed nodes with positions, pools owning
ordered lanes, and typed connections. Both the import pipeline and the
document writer work on this representation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from bpmn_converter.models.bpmn_elements import (
    DEFAULT_LANE_HEIGHT,
    SUB_KINDS,
    ConnectionKind,
    EventFlavor,
    Handle,
    NodeKind,
)
from bpmn_converter.models.diagnostics import Diagnostic


class Lane(BaseModel):
    """A horizontal subdivision of a pool."""

    id: str = Field(..., description="Lane identifier")
    name: str = Field(..., description="Lane display name")
    height: float = Field(default=DEFAULT_LANE_HEIGHT, description="Lane height")
    color: str = Field(..., description="Lane display color")


class DiagramNode(BaseModel):
    """Node on the diagram canvas."""

    id: str = Field(..., description="Unique node identifier")
    kind: NodeKind = Field(..., description="Node kind")
    sub_kind: Optional[str] = Field(
        None, description="Event phase, task kind, gateway kind or data-object kind"
    )
    label: str = Field("", description="Display text (defaults to the id)")

    # Geometry
    x: float = Field(0.0, description="X coordinate")
    y: float = Field(0.0, description="Y coordinate")
    width: float = Field(..., description="Width")
    height: float = Field(..., description="Height")

    # Containment
    container_id: Optional[str] = Field(None, description="Owning pool node id")
    lane_id: Optional[str] = Field(None, description="Lane the node belongs to")
    lane_name: Optional[str] = Field(None, description="Name of that lane")
    lane_color: Optional[str] = Field(None, description="Color of that lane")

    # Display attributes
    description: Optional[str] = Field(None, description="Documentation text")
    event_flavor: Optional[EventFlavor] = Field(None, description="Event trigger (display only)")
    color: Optional[str] = Field(None, description="Display color")

    # Pool-with-lanes only
    lanes: List[Lane] = Field(default_factory=list, description="Ordered lanes of a pool")

    @model_validator(mode="after")
    def default_label(self) -> "DiagramNode":
        """Fall back to the id when no label is given."""
        if not self.label:
            self.label = self.id
        return self

    @property
    def is_pool(self) -> bool:
        return self.kind == NodeKind.POOL_WITH_LANES

    def lane_ids(self) -> List[str]:
        return [lane.id for lane in self.lanes]


class Connection(BaseModel):
    """Directed connection between two nodes."""

    id: str = Field(..., description="Unique connection identifier")
    kind: ConnectionKind = Field(..., description="Connection kind")
    source_id: str = Field(..., description="Source node ID")
    target_id: str = Field(..., description="Target node ID")
    source_handle: Handle = Field(Handle.OUTPUT_RIGHT, description="Source attachment point")
    target_handle: Handle = Field(Handle.INPUT_LEFT, description="Target attachment point")

    label: Optional[str] = Field(None, description="Connection label")
    condition: Optional[str] = Field(None, description="Guard condition (sequence flows)")
    is_default: bool = Field(False, description="Whether this is the default path")


class DiagramGraph(BaseModel):
    """Nodes and connections with O(1) id lookups."""

    nodes: List[DiagramNode] = Field(default_factory=list, description="All nodes")
    connections: List[Connection] = Field(default_factory=list, description="All connections")

    _node_index: Dict[str, DiagramNode] = PrivateAttr(default_factory=dict)
    _connection_index: Dict[str, Connection] = PrivateAttr(default_factory=dict)
    _outgoing: Dict[str, List[Connection]] = PrivateAttr(default_factory=dict)
    _incoming: Dict[str, List[Connection]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        """Build indexes after construction or validation."""
        self.rebuild_indexes()

    def rebuild_indexes(self) -> None:
        """Rebuild lookup indexes after the node or connection lists were replaced."""
        self._node_index = {}
        self._connection_index = {}
        self._outgoing = {}
        self._incoming = {}

        for node in self.nodes:
            self._node_index.setdefault(node.id, node)

        for connection in self.connections:
            self._index_connection(connection)

    def _index_connection(self, connection: Connection) -> None:
        self._connection_index.setdefault(connection.id, connection)
        self._outgoing.setdefault(connection.source_id, []).append(connection)
        self._incoming.setdefault(connection.target_id, []).append(connection)

    def add_node(self, node: DiagramNode) -> None:
        self.nodes.append(node)
        self._node_index.setdefault(node.id, node)

    def add_connection(self, connection: Connection) -> None:
        self.connections.append(connection)
        self._index_connection(connection)

    # Helper methods
    def get_node(self, node_id: str) -> Optional[DiagramNode]:
        """Get node by ID - O(1) lookup."""
        return self._node_index.get(node_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        """Get connection by ID - O(1) lookup."""
        return self._connection_index.get(connection_id)

    def get_incoming(self, node_id: str) -> List[Connection]:
        """Get all connections targeting this node."""
        return self._incoming.get(node_id, [])

    def get_outgoing(self, node_id: str) -> List[Connection]:
        """Get all connections leaving this node."""
        return self._outgoing.get(node_id, [])

    def pools(self) -> List[DiagramNode]:
        """Pool nodes in graph order."""
        return [n for n in self.nodes if n.is_pool]

    def members_of(self, pool_id: str) -> List[DiagramNode]:
        """Nodes contained in the given pool."""
        return [n for n in self.nodes if n.container_id == pool_id]

    def connections_of_kind(self, kind: ConnectionKind) -> List[Connection]:
        return [c for c in self.connections if c.kind == kind]

    def validate_invariants(self) -> List[str]:
        """
        Check the model invariants.

        Returns the list of violations; an empty list means the graph can be
        exported.
        """
        violations: List[str] = []

        seen_nodes = set()
        for node in self.nodes:
            if node.id in seen_nodes:
                violations.append(f"Duplicate node id: {node.id}")
            seen_nodes.add(node.id)

            enum_type = SUB_KINDS.get(node.kind)
            if node.sub_kind is not None:
                allowed = {member.value for member in enum_type} if enum_type else set()
                if node.sub_kind not in allowed:
                    violations.append(
                        f"Node {node.id}: sub-kind '{node.sub_kind}' is not valid for {node.kind.value}"
                    )

        seen_connections = set()
        for connection in self.connections:
            if connection.id in seen_connections:
                violations.append(f"Duplicate connection id: {connection.id}")
            seen_connections.add(connection.id)
            if connection.source_id not in seen_nodes:
                violations.append(
                    f"Connection {connection.id} references non-existent source: {connection.source_id}"
                )
            if connection.target_id not in seen_nodes:
                violations.append(
                    f"Connection {connection.id} references non-existent target: {connection.target_id}"
                )

        violations.extend(self._containment_violations())
        violations.extend(self._shared_id_violations())
        return violations

    def _shared_id_violations(self) -> List[str]:
        """Nodes, lanes and connections share one XML id space."""
        violations: List[str] = []
        lane_ids = {lane.id for pool in self.pools() for lane in pool.lanes}
        lane_ids.update(n.lane_id for n in self.nodes if n.lane_id is not None and n.container_id is None)
        node_ids = {n.id for n in self.nodes}
        connection_ids = {c.id for c in self.connections}

        for element_id in sorted(node_ids & lane_ids):
            violations.append(f"Id {element_id} is used by both a node and a lane")
        for element_id in sorted(connection_ids & (node_ids | lane_ids)):
            violations.append(f"Id {element_id} is used by a connection and a node or lane")
        return violations

    def _containment_violations(self) -> List[str]:
        violations: List[str] = []
        lane_owner: Dict[str, str] = {}

        for pool in self.pools():
            for lane in pool.lanes:
                if lane.id in lane_owner:
                    violations.append(
                        f"Lane {lane.id} is claimed by pools {lane_owner[lane.id]} and {pool.id}"
                    )
                else:
                    lane_owner[lane.id] = pool.id

        for node in self.nodes:
            if node.container_id is None:
                if node.lane_id in lane_owner:
                    violations.append(
                        f"Node {node.id} is in lane {node.lane_id} of pool "
                        f"{lane_owner[node.lane_id]} but has no container"
                    )
                continue
            if node.is_pool:
                violations.append(f"Pool {node.id} cannot be placed inside container {node.container_id}")
                continue
            container = self._node_index.get(node.container_id)
            if container is None:
                violations.append(f"Node {node.id} references non-existent container: {node.container_id}")
            elif not container.is_pool:
                violations.append(f"Node {node.id} container {node.container_id} is not a pool")
            elif node.lane_id not in container.lane_ids():
                violations.append(
                    f"Node {node.id} lane {node.lane_id} is not a lane of pool {container.id}"
                )

        return violations


class ImportResult(BaseModel):
    """Graph produced by an import plus the recoverable diagnostics."""

    graph: DiagramGraph = Field(..., description="Imported graph")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Recoverable issues")


__all__ = [
    "Lane",
    "DiagramNode",
    "Connection",
    "DiagramGraph",
    "ImportResult",
]
