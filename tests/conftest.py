"""Pytest configuration for bpmn-converter tests."""

import logging
import sys
from pathlib import Path

import pytest
from loguru import logger

# Add the bpmn-converter source directory to the path
bpmn_converter_dir = Path(__file__).parent.parent
sys.path.insert(0, str(bpmn_converter_dir))

from bpmn_converter.core.observability import ObservabilityManager  # noqa: E402
from bpmn_converter.stages.xml_generation import IdFactory  # noqa: E402

FIXED_TIME = 1700000000.0

NAMESPACES = (
    'xmlns:bpmn="http://www.omg.org/spec/BPMN/20100524/MODEL" '
    'xmlns:bpmndi="http://www.omg.org/spec/BPMN/20100524/DI" '
    'xmlns:dc="http://www.omg.org/spec/DD/20100524/DC" '
    'xmlns:di="http://www.omg.org/spec/DD/20100524/DI" '
    'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
)


def wrap_definitions(body: str) -> str:
    """Wrap a document body in a prefixed ``bpmn:definitions`` root."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<bpmn:definitions {NAMESPACES} id="defs_1" targetNamespace="http://example.com/bpmn">\n'
        f"{body}\n"
        "</bpmn:definitions>\n"
    )


# ===========================
# Sample Documents
# ===========================


SIMPLE_PROCESS_BODY = r"""
  <bpmn:process id="proc_1" name="Simple" isExecutable="false">
    <bpmn:startEvent id="start_1" name="Start">
      <bpmn:outgoing>flow_1</bpmn:outgoing>
    </bpmn:startEvent>
    <bpmn:userTask id="task_1" name="Review\norder">
      <bpmn:documentation>Check the order lines</bpmn:documentation>
      <bpmn:incoming>flow_1</bpmn:incoming>
      <bpmn:outgoing>flow_2</bpmn:outgoing>
    </bpmn:userTask>
    <bpmn:endEvent id="end_1" name="End">
      <bpmn:incoming>flow_2</bpmn:incoming>
    </bpmn:endEvent>
    <bpmn:sequenceFlow id="flow_1" sourceRef="start_1" targetRef="task_1"/>
    <bpmn:sequenceFlow id="flow_2" sourceRef="task_1" targetRef="end_1"/>
  </bpmn:process>
"""

SIMPLE_DIAGRAM = """
  <bpmndi:BPMNDiagram id="diagram_1">
    <bpmndi:BPMNPlane id="plane_1" bpmnElement="proc_1">
      <bpmndi:BPMNShape id="start_1_di" bpmnElement="start_1">
        <dc:Bounds x="100" y="100" width="30" height="30"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="task_1_di" bpmnElement="task_1">
        <dc:Bounds x="200" y="75" width="100" height="80"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="end_1_di" bpmnElement="end_1">
        <dc:Bounds x="400" y="100" width="30" height="30"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNEdge id="flow_1_di" bpmnElement="flow_1">
        <di:waypoint x="130" y="115"/>
        <di:waypoint x="200" y="115"/>
      </bpmndi:BPMNEdge>
      <bpmndi:BPMNEdge id="flow_2_di" bpmnElement="flow_2">
        <di:waypoint x="300" y="115"/>
        <di:waypoint x="400" y="115"/>
      </bpmndi:BPMNEdge>
    </bpmndi:BPMNPlane>
  </bpmndi:BPMNDiagram>
"""

# Scenario E: no shape for task_1 and end_1
PARTIAL_DIAGRAM = """
  <bpmndi:BPMNDiagram id="diagram_1">
    <bpmndi:BPMNPlane id="plane_1" bpmnElement="proc_1">
      <bpmndi:BPMNShape id="start_1_di" bpmnElement="start_1">
        <dc:Bounds x="100" y="100" width="30" height="30"/>
      </bpmndi:BPMNShape>
    </bpmndi:BPMNPlane>
  </bpmndi:BPMNDiagram>
"""

LANES_BODY = """
  <bpmn:collaboration id="collab_1">
    <bpmn:participant id="pool_1" name="Company" processRef="proc_1"/>
  </bpmn:collaboration>
  <bpmn:process id="proc_1" isExecutable="false">
    <bpmn:laneSet id="laneset_1">
      <bpmn:lane id="lane_a" name="Sales">
        <bpmn:flowNodeRef>task_a</bpmn:flowNodeRef>
      </bpmn:lane>
      <bpmn:lane id="lane_b" name="Operations">
        <bpmn:flowNodeRef>task_b</bpmn:flowNodeRef>
      </bpmn:lane>
    </bpmn:laneSet>
    <bpmn:userTask id="task_a" name="Take order"/>
    <bpmn:serviceTask id="task_b" name="Ship order"/>
    <bpmn:sequenceFlow id="flow_ab" sourceRef="task_a" targetRef="task_b"/>
  </bpmn:process>
  <bpmndi:BPMNDiagram id="diagram_1">
    <bpmndi:BPMNPlane id="plane_1" bpmnElement="collab_1">
      <bpmndi:BPMNShape id="pool_1_di" bpmnElement="pool_1" isHorizontal="true">
        <dc:Bounds x="50" y="50" width="800" height="330"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="lane_a_di" bpmnElement="lane_a" isHorizontal="true">
        <dc:Bounds x="80" y="110" width="770" height="120"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="lane_b_di" bpmnElement="lane_b" isHorizontal="true">
        <dc:Bounds x="80" y="230" width="770" height="150"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="task_a_di" bpmnElement="task_a">
        <dc:Bounds x="150" y="130" width="100" height="80"/>
      </bpmndi:BPMNShape>
      <bpmndi:BPMNShape id="task_b_di" bpmnElement="task_b">
        <dc:Bounds x="350" y="260" width="100" height="80"/>
      </bpmndi:BPMNShape>
    </bpmndi:BPMNPlane>
  </bpmndi:BPMNDiagram>
"""

TWO_POOLS_BODY = """
  <bpmn:collaboration id="collab_1">
    <bpmn:participant id="pool_a" name="Customer" processRef="proc_a"/>
    <bpmn:participant id="pool_b" name="Supplier" processRef="proc_b"/>
    <bpmn:messageFlow id="mf_1" name="Order" sourceRef="pool_a" targetRef="pool_b"/>
  </bpmn:collaboration>
  <bpmn:process id="proc_a" isExecutable="false"/>
  <bpmn:process id="proc_b" isExecutable="false"/>
"""

GATEWAY_BODY = """
  <bpmn:process id="proc_1" isExecutable="false">
    <bpmn:startEvent id="start_1"/>
    <bpmn:exclusiveGateway id="gw_1" name="Large order?" default="flow_no"/>
    <bpmn:userTask id="task_yes" name="Manual approval"/>
    <bpmn:serviceTask id="task_no" name="Auto approval"/>
    <bpmn:sequenceFlow id="flow_in" sourceRef="start_1" targetRef="gw_1"/>
    <bpmn:sequenceFlow id="flow_yes" name="yes" sourceRef="gw_1" targetRef="task_yes">
      <bpmn:conditionExpression xsi:type="bpmn:tFormalExpression"> amount &gt; 100 </bpmn:conditionExpression>
    </bpmn:sequenceFlow>
    <bpmn:sequenceFlow id="flow_no" name="no" sourceRef="gw_1" targetRef="task_no"/>
  </bpmn:process>
"""


@pytest.fixture
def simple_bpmn() -> str:
    """Scenario A: start -> user task -> end with full layout."""
    return wrap_definitions(SIMPLE_PROCESS_BODY + SIMPLE_DIAGRAM)


@pytest.fixture
def partial_layout_bpmn() -> str:
    """Scenario E: same process, shapes missing for task_1 and end_1."""
    return wrap_definitions(SIMPLE_PROCESS_BODY + PARTIAL_DIAGRAM)


@pytest.fixture
def lanes_bpmn() -> str:
    """Scenario B: one pool with two lanes, one task per lane."""
    return wrap_definitions(LANES_BODY)


@pytest.fixture
def two_pools_bpmn() -> str:
    """Scenario C: two empty pools linked by a message flow."""
    return wrap_definitions(TWO_POOLS_BODY)


@pytest.fixture
def gateway_bpmn() -> str:
    """Scenario D: exclusive gateway with a conditional and a default flow."""
    return wrap_definitions(GATEWAY_BODY)


# ===========================
# Export Fixtures
# ===========================


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def id_factory(fixed_clock) -> IdFactory:
    """Id factory with a frozen clock."""
    return IdFactory(clock=fixed_clock)


# ===========================
# Observability Isolation
# ===========================


@pytest.fixture(autouse=True)
def reset_observability():
    """Undo logging setup done by CLI commands so later tests log normally."""
    yield
    if ObservabilityManager.get_instance() is not None:
        ObservabilityManager.reset()
        logger.remove()
        logger.add(sys.stderr, level="WARNING")
        stdlib_logger = logging.getLogger("bpmn_converter")
        stdlib_logger.handlers = []
        stdlib_logger.propagate = True
