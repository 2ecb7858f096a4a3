"""
Flow Resolver (Import Stage 5)

Turns sequence-flow and message-flow records into graph connections.
Endpoints are resolved through an id index built once per import; handles
are chosen from the already classified sub-kinds of the two endpoints.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field

from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import ConnectionKind, EventPhase, Handle, NodeKind
from bpmn_converter.models.diagnostics import Diagnostic, DiagnosticCode
from bpmn_converter.models.diagram import Connection
from bpmn_converter.stages.document_reader import BPMNDocument, element_name, iter_children
from bpmn_converter.stages.element_classifier import Classification, ClassifiedElement

logger = logging.getLogger(__name__)

NO_CONDITION = "None"


class FlowResolution(BaseModel):
    """Connections built from flow records plus the dropped-flow diagnostics."""

    connections: List[Connection] = Field(default_factory=list, description="Resolved connections")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Recoverable issues")

    model_config = ConfigDict(frozen=True)


def select_handles(source: Classification, target: Classification) -> Tuple[Handle, Handle]:
    """Pick (source handle, target handle) from the endpoint classifications."""
    source_handle = Handle.OUTPUT_RIGHT
    target_handle = Handle.INPUT_LEFT

    if source.kind == NodeKind.EVENT:
        if source.sub_kind == EventPhase.START.value:
            source_handle = Handle.START_RIGHT
        elif source.sub_kind == EventPhase.INTERMEDIATE.value:
            source_handle = Handle.INTER_OUTPUT

    if target.kind == NodeKind.EVENT:
        if target.sub_kind == EventPhase.END.value:
            target_handle = Handle.END_LEFT
        elif target.sub_kind == EventPhase.INTERMEDIATE.value:
            target_handle = Handle.INTER_INPUT

    return source_handle, target_handle


class FlowResolver:
    """Builds connections for flows whose endpoints resolve."""

    def resolve(
        self,
        document: BPMNDocument,
        elements: Iterable[ClassifiedElement],
        pool_ids: Iterable[str] = (),
    ) -> FlowResolution:
        """Resolve all sequence and message flows.

        Args:
            document: Parsed document
            elements: Classified elements (possible endpoints)
            pool_ids: Pool ids (message-flow endpoints)

        Returns:
            FlowResolution
        """
        with Timer("flow_resolution"):
            endpoints: Dict[str, Classification] = {}
            default_flows: Set[str] = set()
            for pool_id in pool_ids:
                endpoints.setdefault(pool_id, Classification(kind=NodeKind.POOL_WITH_LANES))
            for element in elements:
                endpoints.setdefault(element.id, element.classification)
                if element.default_flow:
                    default_flows.add(element.default_flow)

            connections: List[Connection] = []
            diagnostics: List[Diagnostic] = []
            seen: Set[str] = set()

            records: List[Tuple[etree._Element, ConnectionKind]] = []
            for process in document.processes:
                for flow in iter_children(process, "sequenceFlow"):
                    records.append((flow, ConnectionKind.SEQUENCE_FLOW))
            for flow in document.message_flows():
                records.append((flow, ConnectionKind.MESSAGE_FLOW))

            counters = {ConnectionKind.SEQUENCE_FLOW: 0, ConnectionKind.MESSAGE_FLOW: 0}
            for flow, kind in records:
                prefix = "flow" if kind == ConnectionKind.SEQUENCE_FLOW else "msgflow"
                flow_id = flow.get("id") or f"{prefix}_{counters[kind]}"
                counters[kind] += 1

                if flow_id in seen:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DUPLICATE_ID,
                            message=f"Flow {flow_id} is declared more than once; keeping the first",
                            element_id=flow_id,
                        )
                    )
                    continue

                connection = self._build_connection(flow, flow_id, kind, endpoints, default_flows)
                if connection is None:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DANGLING_REFERENCE,
                            message=(
                                f"Dropping {kind.value} {flow_id}: endpoint "
                                f"{flow.get('sourceRef')!r} -> {flow.get('targetRef')!r} does not resolve"
                            ),
                            element_id=flow_id,
                        )
                    )
                    continue

                seen.add(flow_id)
                connections.append(connection)

        for diagnostic in diagnostics:
            logger.warning(diagnostic.message)
        logger.debug(f"Resolved {len(connections)} connections")
        return FlowResolution(connections=connections, diagnostics=diagnostics)

    def _build_connection(
        self,
        flow: etree._Element,
        flow_id: str,
        kind: ConnectionKind,
        endpoints: Dict[str, Classification],
        default_flows: Set[str],
    ) -> Optional[Connection]:
        source_id = flow.get("sourceRef")
        target_id = flow.get("targetRef")
        source = endpoints.get(source_id) if source_id else None
        target = endpoints.get(target_id) if target_id else None
        if source is None or target is None:
            return None

        source_handle, target_handle = select_handles(source, target)

        condition = None
        is_default = False
        if kind == ConnectionKind.SEQUENCE_FLOW:
            condition = self._condition_text(flow)
            is_default = flow_id in default_flows or flow.get("default") == "true"

        return Connection(
            id=flow_id,
            kind=kind,
            source_id=source_id,
            target_id=target_id,
            source_handle=source_handle,
            target_handle=target_handle,
            label=element_name(flow) or None,
            condition=condition,
            is_default=is_default,
        )

    def _condition_text(self, flow: etree._Element) -> Optional[str]:
        expression = next(iter_children(flow, "conditionExpression"), None)
        if expression is None or expression.text is None:
            return None
        text = expression.text.strip()
        if not text or text == NO_CONDITION:
            return None
        return text


__all__ = ["FlowResolution", "FlowResolver", "select_handles"]
