"""
Tests for the Containment Resolver (import stage 3).

Tests:
- Pools from participants, lanes in source order
- Duplicate lane claims and conflicting memberships
- Orphan lanes and nested lane sets
"""

from bpmn_converter.models.bpmn_elements import (
    DEFAULT_LANE_HEIGHT,
    LANE_COLORS,
    POOL_COLORS,
)
from bpmn_converter.models.diagnostics import DiagnosticCode, DiagnosticLevel, diagnostics_with_code
from bpmn_converter.stages.containment import ContainmentResolver
from bpmn_converter.stages.document_reader import DocumentReader
from bpmn_converter.stages.layout_extraction import LayoutExtractor

from conftest import wrap_definitions


def resolve(text: str):
    document = DocumentReader().read(text)
    layout = LayoutExtractor().extract(document)
    return ContainmentResolver().resolve(document, layout)


# ===========================
# Pools and Lanes
# ===========================


def test_pool_with_two_lanes(lanes_bpmn):
    containment = resolve(lanes_bpmn)

    pool = containment.pools["pool_1"]
    assert pool.name == "Company"
    assert pool.process_ref == "proc_1"
    assert pool.color == POOL_COLORS[0]
    assert pool.lane_ids == ["lane_a", "lane_b"]


def test_lane_records_carry_name_height_and_color(lanes_bpmn):
    containment = resolve(lanes_bpmn)
    lane_a, lane_b = containment.lanes_of("pool_1")

    assert (lane_a.name, lane_a.height, lane_a.color) == ("Sales", 120, LANE_COLORS[0])
    assert (lane_b.name, lane_b.height, lane_b.color) == ("Operations", 150, LANE_COLORS[1])
    assert lane_a.pool_id == "pool_1"
    assert lane_a.member_ids == ["task_a"]


def test_element_to_lane_map(lanes_bpmn):
    containment = resolve(lanes_bpmn)

    assert containment.element_lane == {"task_a": "lane_a", "task_b": "lane_b"}
    assert containment.lane_of("task_b").name == "Operations"
    assert containment.lane_of("unknown") is None
    assert containment.diagnostics == []


def test_pools_without_lanes(two_pools_bpmn):
    containment = resolve(two_pools_bpmn)

    assert list(containment.pools) == ["pool_a", "pool_b"]
    assert containment.lanes_of("pool_a") == []
    assert containment.pools["pool_b"].color == POOL_COLORS[1]


def test_lane_height_defaults_without_layout():
    body = (
        '<bpmn:collaboration id="c"><bpmn:participant id="pool" processRef="p"/></bpmn:collaboration>'
        '<bpmn:process id="p"><bpmn:laneSet><bpmn:lane id="l1"/></bpmn:laneSet></bpmn:process>'
    )
    containment = resolve(wrap_definitions(body))
    lane = containment.lanes["l1"]

    assert lane.height == DEFAULT_LANE_HEIGHT
    assert lane.name == "Lane 1"
    assert containment.pools["pool"].name == "Pool 1"


def test_lanes_attributed_per_process_fragment():
    body = (
        '<bpmn:collaboration id="c">'
        '<bpmn:participant id="pool_1" processRef="p1"/>'
        '<bpmn:participant id="pool_2" processRef="p2"/>'
        "</bpmn:collaboration>"
        '<bpmn:process id="p1"><bpmn:laneSet><bpmn:lane id="l1"/></bpmn:laneSet></bpmn:process>'
        '<bpmn:process id="p2"><bpmn:laneSet><bpmn:lane id="l2"/><bpmn:lane id="l3"/></bpmn:laneSet></bpmn:process>'
    )
    containment = resolve(wrap_definitions(body))

    assert containment.pools["pool_1"].lane_ids == ["l1"]
    assert containment.pools["pool_2"].lane_ids == ["l2", "l3"]
    # Colors follow the global lane index
    assert containment.lanes["l3"].color == LANE_COLORS[2]


# ===========================
# Inconsistencies
# ===========================


def test_duplicate_lane_claim_keeps_first():
    body = (
        '<bpmn:collaboration id="c">'
        '<bpmn:participant id="pool_1" processRef="p1"/>'
        '<bpmn:participant id="pool_2" processRef="p2"/>'
        "</bpmn:collaboration>"
        '<bpmn:process id="p1"><bpmn:laneSet><bpmn:lane id="shared" name="First"/></bpmn:laneSet></bpmn:process>'
        '<bpmn:process id="p2"><bpmn:laneSet><bpmn:lane id="shared" name="Second"/></bpmn:laneSet></bpmn:process>'
    )
    containment = resolve(wrap_definitions(body))

    assert containment.lanes["shared"].pool_id == "pool_1"
    assert containment.lanes["shared"].name == "First"
    assert containment.pools["pool_2"].lane_ids == []

    claims = diagnostics_with_code(containment.diagnostics, DiagnosticCode.DUPLICATE_LANE_CLAIM)
    assert len(claims) == 1
    assert claims[0].element_id == "shared"
    assert claims[0].level == DiagnosticLevel.WARNING


def test_conflicting_lane_membership_keeps_first_lane():
    body = (
        '<bpmn:process id="p">'
        "<bpmn:laneSet>"
        '<bpmn:lane id="l1"><bpmn:flowNodeRef>task_x</bpmn:flowNodeRef></bpmn:lane>'
        '<bpmn:lane id="l2"><bpmn:flowNodeRef>task_x</bpmn:flowNodeRef></bpmn:lane>'
        "</bpmn:laneSet>"
        '<bpmn:task id="task_x"/>'
        "</bpmn:process>"
    )
    containment = resolve(wrap_definitions(body))

    assert containment.lane_of("task_x").id == "l1"
    assert containment.lanes["l2"].member_ids == []
    conflicts = diagnostics_with_code(
        containment.diagnostics, DiagnosticCode.CONFLICTING_LANE_MEMBERSHIP
    )
    assert [d.element_id for d in conflicts] == ["task_x"]


def test_orphan_lane_recorded_but_not_attached():
    body = (
        '<bpmn:process id="p">'
        '<bpmn:laneSet><bpmn:lane id="l1" name="Floating"><bpmn:flowNodeRef>t1</bpmn:flowNodeRef></bpmn:lane></bpmn:laneSet>'
        '<bpmn:task id="t1"/>'
        "</bpmn:process>"
    )
    containment = resolve(wrap_definitions(body))

    assert containment.pools == {}
    assert [lane.id for lane in containment.orphan_lanes()] == ["l1"]
    assert containment.lane_of("t1").name == "Floating"

    orphans = diagnostics_with_code(containment.diagnostics, DiagnosticCode.ORPHAN_LANE)
    assert len(orphans) == 1
    assert orphans[0].level == DiagnosticLevel.INFO


def test_nested_lanes_keep_only_leaf_lanes():
    body = (
        '<bpmn:collaboration id="c"><bpmn:participant id="pool" processRef="p"/></bpmn:collaboration>'
        '<bpmn:process id="p">'
        "<bpmn:laneSet>"
        '<bpmn:lane id="parent" name="Department">'
        "<bpmn:flowNodeRef>t1</bpmn:flowNodeRef>"
        "<bpmn:childLaneSet>"
        '<bpmn:lane id="child_1"><bpmn:flowNodeRef>t1</bpmn:flowNodeRef></bpmn:lane>'
        '<bpmn:lane id="child_2"/>'
        "</bpmn:childLaneSet>"
        "</bpmn:lane>"
        "</bpmn:laneSet>"
        '<bpmn:task id="t1"/>'
        "</bpmn:process>"
    )
    containment = resolve(wrap_definitions(body))

    assert containment.pools["pool"].lane_ids == ["child_1", "child_2"]
    assert "parent" not in containment.lanes
    assert containment.lane_of("t1").id == "child_1"
    assert containment.lanes["child_1"].color == LANE_COLORS[0]
    assert containment.diagnostics == []


def test_duplicate_participant_reported():
    body = (
        '<bpmn:collaboration id="c">'
        '<bpmn:participant id="pool" name="A" processRef="p"/>'
        '<bpmn:participant id="pool" name="B" processRef="p"/>'
        "</bpmn:collaboration>"
        '<bpmn:process id="p"/>'
    )
    containment = resolve(wrap_definitions(body))

    assert containment.pools["pool"].name == "A"
    assert diagnostics_with_code(containment.diagnostics, DiagnosticCode.DUPLICATE_ID)
