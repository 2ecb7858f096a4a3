"""
BPMN 2.0 Vocabulary

Enumerations of the diagram-side element kinds and the exact BPMN 2.0 tag
names they map to, plus the DI geometry primitives shared by the import and
export stages.

Namespaces follow the OMG BPMN 2.0 specification:
https://www.omg.org/spec/BPMN/2.0.2/
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# BPMN 2.0 Namespaces
BPMN_NAMESPACE = "http://www.omg.org/spec/BPMN/20100524/MODEL"
BPMNDI_NAMESPACE = "http://www.omg.org/spec/BPMN/20100524/DI"
DC_NAMESPACE = "http://www.omg.org/spec/DD/20100524/DC"
DI_NAMESPACE = "http://www.omg.org/spec/DD/20100524/DI"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SIGNAVIO_NAMESPACE = "http://www.signavio.com"


class NodeKind(str, Enum):
    """Kinds of nodes on the diagram canvas."""

    EVENT = "event"
    TASK = "task"
    GATEWAY = "gateway"
    DATA_OBJECT = "data-object"
    POOL_WITH_LANES = "pool-with-lanes"
    SHAPE = "shape"
    NOTE = "note"


class EventPhase(str, Enum):
    """Position of an event in the flow."""

    START = "start"
    INTERMEDIATE = "intermediate"
    END = "end"


class EventFlavor(str, Enum):
    """Event trigger shown on the canvas (display only)."""

    MESSAGE = "message"
    TIMER = "timer"
    ERROR = "error"


class TaskKind(str, Enum):
    """BPMN task types."""

    USER = "user"
    SERVICE = "service"
    MANUAL = "manual"
    SCRIPT = "script"
    BUSINESS_RULE = "business-rule"
    SEND = "send"
    RECEIVE = "receive"


class GatewayKind(str, Enum):
    """BPMN gateway types."""

    EXCLUSIVE = "exclusive"
    PARALLEL = "parallel"
    INCLUSIVE = "inclusive"
    EVENT_BASED = "event-based"
    COMPLEX = "complex"


class DataObjectKind(str, Enum):
    """Data-object flavors."""

    DATA_OBJECT = "data-object"
    DATA_STORE = "data-store"


class ConnectionKind(str, Enum):
    """Types of connections between nodes."""

    SEQUENCE_FLOW = "sequence-flow"
    MESSAGE_FLOW = "message-flow"


class Handle(str, Enum):
    """Symbolic attachment points used by the canvas."""

    START_RIGHT = "start-right"
    INTER_OUTPUT = "inter-output"
    INTER_INPUT = "inter-input"
    END_LEFT = "end-left"
    OUTPUT_RIGHT = "output-right"
    INPUT_LEFT = "input-left"


# Closed table: exact BPMN local tag name -> (kind, sub-kind)
TAG_CLASSIFICATION: Dict[str, Tuple[NodeKind, Optional[str]]] = {
    "startEvent": (NodeKind.EVENT, EventPhase.START.value),
    "intermediateThrowEvent": (NodeKind.EVENT, EventPhase.INTERMEDIATE.value),
    "intermediateCatchEvent": (NodeKind.EVENT, EventPhase.INTERMEDIATE.value),
    "endEvent": (NodeKind.EVENT, EventPhase.END.value),
    "task": (NodeKind.TASK, TaskKind.USER.value),
    "userTask": (NodeKind.TASK, TaskKind.USER.value),
    "serviceTask": (NodeKind.TASK, TaskKind.SERVICE.value),
    "manualTask": (NodeKind.TASK, TaskKind.MANUAL.value),
    "scriptTask": (NodeKind.TASK, TaskKind.SCRIPT.value),
    "businessRuleTask": (NodeKind.TASK, TaskKind.BUSINESS_RULE.value),
    "sendTask": (NodeKind.TASK, TaskKind.SEND.value),
    "receiveTask": (NodeKind.TASK, TaskKind.RECEIVE.value),
    "exclusiveGateway": (NodeKind.GATEWAY, GatewayKind.EXCLUSIVE.value),
    "parallelGateway": (NodeKind.GATEWAY, GatewayKind.PARALLEL.value),
    "inclusiveGateway": (NodeKind.GATEWAY, GatewayKind.INCLUSIVE.value),
    "eventBasedGateway": (NodeKind.GATEWAY, GatewayKind.EVENT_BASED.value),
    "complexGateway": (NodeKind.GATEWAY, GatewayKind.COMPLEX.value),
    "dataObjectReference": (NodeKind.DATA_OBJECT, DataObjectKind.DATA_OBJECT.value),
    "dataStoreReference": (NodeKind.DATA_OBJECT, DataObjectKind.DATA_STORE.value),
    "textAnnotation": (NodeKind.NOTE, None),
    "group": (NodeKind.SHAPE, None),
}

# Inverse table used on export. "task" is an import-only alias of userTask and
# intermediateCatchEvent an import-only alias of intermediateThrowEvent.
KIND_TO_TAG: Dict[Tuple[NodeKind, Optional[str]], str] = {
    key: tag
    for tag, key in TAG_CLASSIFICATION.items()
    if tag not in ("task", "intermediateCatchEvent")
}

SUB_KINDS: Dict[NodeKind, Optional[type]] = {
    NodeKind.EVENT: EventPhase,
    NodeKind.TASK: TaskKind,
    NodeKind.GATEWAY: GatewayKind,
    NodeKind.DATA_OBJECT: DataObjectKind,
    NodeKind.POOL_WITH_LANES: None,
    NodeKind.SHAPE: None,
    NodeKind.NOTE: None,
}

EVENT_DEFINITION_TAGS: Dict[str, EventFlavor] = {
    "messageEventDefinition": EventFlavor.MESSAGE,
    "timerEventDefinition": EventFlavor.TIMER,
    "errorEventDefinition": EventFlavor.ERROR,
}

# Element sizes for layout
DEFAULT_TASK_WIDTH = 100
DEFAULT_TASK_HEIGHT = 80
DEFAULT_EVENT_WIDTH = 30
DEFAULT_EVENT_HEIGHT = 30
DEFAULT_GATEWAY_WIDTH = 40
DEFAULT_GATEWAY_HEIGHT = 40
DEFAULT_POOL_WIDTH = 800
EMPTY_POOL_HEIGHT = 200
POOL_HEADER_HEIGHT = 60
DEFAULT_LANE_HEIGHT = 120

LANE_COLORS = [
    "#3B82F6",  # blue
    "#10B981",  # emerald
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#8B5CF6",  # violet
    "#06B6D4",  # cyan
    "#84CC16",  # lime
    "#F97316",  # orange
]

POOL_COLORS = [
    "#1F2937",  # gray-800
    "#374151",  # gray-700
    "#4B5563",  # gray-600
    "#6B7280",  # gray-500
]


def lane_color(index: int) -> str:
    """Palette color for the index-th lane."""
    return LANE_COLORS[index % len(LANE_COLORS)]


def pool_color(index: int) -> str:
    """Palette color for the index-th pool."""
    return POOL_COLORS[index % len(POOL_COLORS)]


def default_size(kind: Optional[NodeKind]) -> Tuple[float, float]:
    """Default (width, height) for a node kind."""
    if kind == NodeKind.GATEWAY:
        return DEFAULT_GATEWAY_WIDTH, DEFAULT_GATEWAY_HEIGHT
    if kind == NodeKind.EVENT:
        return DEFAULT_EVENT_WIDTH, DEFAULT_EVENT_HEIGHT
    return DEFAULT_TASK_WIDTH, DEFAULT_TASK_HEIGHT


def decode_name(value: Optional[str]) -> Optional[str]:
    """Turn literal ``\\n`` escape sequences in a name into line breaks."""
    if value is None:
        return None
    return value.replace("\\n", "\n")


def encode_name(value: str) -> str:
    """Inverse of :func:`decode_name`."""
    return value.replace("\n", "\\n")


class Bounds(BaseModel):
    """Graphical bounds for diagram elements."""

    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")
    width: float = Field(..., description="Width")
    height: float = Field(..., description="Height")

    model_config = ConfigDict(frozen=True)


class Waypoint(BaseModel):
    """A point along a connection path."""

    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")

    model_config = ConfigDict(frozen=True)


__all__ = [
    "BPMN_NAMESPACE",
    "BPMNDI_NAMESPACE",
    "DC_NAMESPACE",
    "DI_NAMESPACE",
    "XSI_NAMESPACE",
    "SIGNAVIO_NAMESPACE",
    "NodeKind",
    "EventPhase",
    "EventFlavor",
    "TaskKind",
    "GatewayKind",
    "DataObjectKind",
    "ConnectionKind",
    "Handle",
    "TAG_CLASSIFICATION",
    "KIND_TO_TAG",
    "SUB_KINDS",
    "EVENT_DEFINITION_TAGS",
    "Bounds",
    "Waypoint",
    "default_size",
    "lane_color",
    "pool_color",
    "decode_name",
    "encode_name",
]
