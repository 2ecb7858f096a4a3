"""
Tests for the diagram graph model and BPMN vocabulary helpers.
"""

import pytest

from bpmn_converter.models.bpmn_elements import (
    LANE_COLORS,
    POOL_COLORS,
    ConnectionKind,
    Handle,
    NodeKind,
    decode_name,
    default_size,
    encode_name,
    lane_color,
    pool_color,
)
from bpmn_converter.models.diagram import Connection, DiagramGraph, DiagramNode, Lane


def task(node_id: str, **kwargs) -> DiagramNode:
    return DiagramNode(id=node_id, kind=NodeKind.TASK, sub_kind="user", width=100, height=80, **kwargs)


def pool(node_id: str, lane_ids=()) -> DiagramNode:
    return DiagramNode(
        id=node_id,
        kind=NodeKind.POOL_WITH_LANES,
        width=800,
        height=200,
        lanes=[Lane(id=lane_id, name=lane_id, color="#3B82F6") for lane_id in lane_ids],
    )


def flow(flow_id: str, source: str, target: str, kind=ConnectionKind.SEQUENCE_FLOW) -> Connection:
    return Connection(id=flow_id, kind=kind, source_id=source, target_id=target)


# ===========================
# Nodes and Connections
# ===========================


def test_label_defaults_to_id():
    assert task("t1").label == "t1"
    assert task("t2", label="Approve").label == "Approve"


def test_label_defaults_to_id_when_validated_from_data():
    graph = DiagramGraph.model_validate(
        {
            "nodes": [
                {"id": "t1", "kind": "task", "sub_kind": "user", "width": 100, "height": 80},
                {"id": "t2", "kind": "task", "label": "Ship", "width": 100, "height": 80},
            ],
            "connections": [{"id": "f", "kind": "sequence-flow", "source_id": "t1", "target_id": "t2"}],
        }
    )

    assert graph.get_node("t1").label == "t1"
    assert graph.get_node("t2").label == "Ship"
    assert [c.id for c in graph.get_outgoing("t1")] == ["f"]


def test_lane_height_default():
    assert Lane(id="l", name="Lane", color="#fff").height == 120


def test_connection_defaults():
    connection = flow("f", "a", "b")

    assert connection.source_handle == Handle.OUTPUT_RIGHT
    assert connection.target_handle == Handle.INPUT_LEFT
    assert connection.is_default is False
    assert connection.condition is None


# ===========================
# Graph Lookups
# ===========================


@pytest.fixture
def small_graph():
    return DiagramGraph(
        nodes=[pool("pool", ["l1"]), task("a", container_id="pool", lane_id="l1"), task("b")],
        connections=[flow("f1", "a", "b"), flow("m1", "pool", "b", ConnectionKind.MESSAGE_FLOW)],
    )


def test_lookups(small_graph):
    assert small_graph.get_node("a").id == "a"
    assert small_graph.get_node("missing") is None
    assert small_graph.get_connection("f1").target_id == "b"
    assert [c.id for c in small_graph.get_outgoing("a")] == ["f1"]
    assert [c.id for c in small_graph.get_incoming("b")] == ["f1", "m1"]
    assert small_graph.get_incoming("a") == []


def test_pools_and_members(small_graph):
    assert [p.id for p in small_graph.pools()] == ["pool"]
    assert [n.id for n in small_graph.members_of("pool")] == ["a"]
    assert [c.id for c in small_graph.connections_of_kind(ConnectionKind.MESSAGE_FLOW)] == ["m1"]


def test_add_node_and_connection_update_indexes(small_graph):
    small_graph.add_node(task("c"))
    small_graph.add_connection(flow("f2", "b", "c"))

    assert small_graph.get_node("c") is not None
    assert [c.id for c in small_graph.get_outgoing("b")] == ["f2"]


def test_graph_from_json_round_trip(small_graph):
    restored = DiagramGraph.model_validate_json(small_graph.model_dump_json())
    restored.rebuild_indexes()

    assert restored.get_node("a").container_id == "pool"
    assert restored.get_node("pool").lanes[0].id == "l1"
    assert [c.id for c in restored.get_incoming("b")] == ["f1", "m1"]


# ===========================
# Invariants
# ===========================


def test_valid_graph_has_no_violations(small_graph):
    assert small_graph.validate_invariants() == []


def test_duplicate_node_id():
    graph = DiagramGraph(nodes=[task("a"), task("a")])
    assert any("Duplicate node id" in v for v in graph.validate_invariants())


def test_duplicate_connection_id():
    graph = DiagramGraph(nodes=[task("a"), task("b")], connections=[flow("f", "a", "b"), flow("f", "b", "a")])
    assert any("Duplicate connection id" in v for v in graph.validate_invariants())


def test_dangling_endpoints():
    graph = DiagramGraph(nodes=[task("a")], connections=[flow("f", "a", "ghost")])
    violations = graph.validate_invariants()

    assert any("non-existent target: ghost" in v for v in violations)


def test_invalid_sub_kind():
    node = DiagramNode(id="g", kind=NodeKind.GATEWAY, sub_kind="user", width=40, height=40)
    assert any("sub-kind" in v for v in DiagramGraph(nodes=[node]).validate_invariants())


def test_container_must_be_a_pool():
    graph = DiagramGraph(nodes=[task("a"), task("b", container_id="a", lane_id="l1")])
    assert any("is not a pool" in v for v in graph.validate_invariants())


def test_container_must_exist():
    graph = DiagramGraph(nodes=[task("b", container_id="nowhere", lane_id="l1")])
    assert any("non-existent container" in v for v in graph.validate_invariants())


def test_lane_must_belong_to_container():
    graph = DiagramGraph(nodes=[pool("pool", ["l1"]), task("a", container_id="pool", lane_id="l2")])
    assert any("is not a lane of pool" in v for v in graph.validate_invariants())


def test_pool_cannot_be_contained():
    inner = pool("inner")
    inner.container_id = "outer"
    graph = DiagramGraph(nodes=[pool("outer", ["l1"]), inner])

    assert any("cannot be placed inside" in v for v in graph.validate_invariants())


def test_pool_lane_requires_its_container():
    graph = DiagramGraph(nodes=[pool("pool", ["l1"]), task("a", lane_id="l1")])
    assert any("is in lane l1 of pool pool but has no container" in v for v in graph.validate_invariants())


def test_uncontained_node_may_keep_a_poolless_lane():
    graph = DiagramGraph(nodes=[task("a", lane_id="floating"), task("b", lane_id="floating")])
    assert graph.validate_invariants() == []


def test_node_id_shared_with_lane():
    graph = DiagramGraph(nodes=[pool("pool", ["X"]), task("X")])
    assert any("Id X is used by both a node and a lane" in v for v in graph.validate_invariants())


def test_connection_id_shared_with_node():
    graph = DiagramGraph(nodes=[task("a"), task("b")], connections=[flow("a", "a", "b")])
    assert any("Id a is used by a connection" in v for v in graph.validate_invariants())


def test_lane_claimed_by_two_pools():
    graph = DiagramGraph(nodes=[pool("p1", ["shared"]), pool("p2", ["shared"])])
    assert any("claimed by pools p1 and p2" in v for v in graph.validate_invariants())


# ===========================
# Vocabulary Helpers
# ===========================


def test_name_encoding_is_symmetric():
    assert decode_name("Line 1\\nLine 2") == "Line 1\nLine 2"
    assert encode_name("Line 1\nLine 2") == "Line 1\\nLine 2"
    assert decode_name(encode_name("a\nb\nc")) == "a\nb\nc"
    assert decode_name(None) is None


def test_palettes_wrap_around():
    assert lane_color(0) == LANE_COLORS[0]
    assert lane_color(len(LANE_COLORS)) == LANE_COLORS[0]
    assert pool_color(len(POOL_COLORS) + 1) == POOL_COLORS[1]


@pytest.mark.parametrize(
    "kind,expected",
    [
        (NodeKind.GATEWAY, (40, 40)),
        (NodeKind.EVENT, (30, 30)),
        (NodeKind.TASK, (100, 80)),
        (NodeKind.DATA_OBJECT, (100, 80)),
        (None, (100, 80)),
    ],
)
def test_default_sizes(kind, expected):
    assert default_size(kind) == expected
