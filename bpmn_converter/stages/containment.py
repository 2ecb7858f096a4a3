"""
Containment Resolver (Import Stage 3)

Reconciles collaboration participants with the lane sets of every process
fragment. Produces the pool -> ordered lane list and element -> lane maps the
graph assembler turns into container assignments.

A document may embed several process fragments, one per participant; each
lane is attributed to the pool whose participant references the lane's
process.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bpmn_converter.core.observability import Timer
from bpmn_converter.models.bpmn_elements import DEFAULT_LANE_HEIGHT, lane_color, pool_color
from bpmn_converter.models.diagnostics import Diagnostic, DiagnosticCode, DiagnosticLevel
from bpmn_converter.stages.document_reader import (
    BPMNDocument,
    element_name,
    iter_children,
    iter_descendants,
)
from bpmn_converter.stages.layout_extraction import LayoutIndex

logger = logging.getLogger(__name__)


class LaneRecord(BaseModel):
    """A lane found in some process fragment."""

    id: str = Field(..., description="Lane id")
    name: str = Field(..., description="Lane name")
    height: float = Field(DEFAULT_LANE_HEIGHT, description="Lane height")
    color: str = Field(..., description="Lane display color")
    pool_id: Optional[str] = Field(None, description="Owning pool, None for orphan lanes")
    member_ids: List[str] = Field(default_factory=list, description="Referenced element ids")

    model_config = ConfigDict(frozen=True)


class PoolRecord(BaseModel):
    """A participant of a collaboration."""

    id: str = Field(..., description="Pool (participant) id")
    name: str = Field(..., description="Pool name")
    process_ref: Optional[str] = Field(None, description="Referenced process id")
    color: str = Field(..., description="Pool display color")
    lane_ids: List[str] = Field(default_factory=list, description="Lanes in source order")

    model_config = ConfigDict(frozen=True)


class ContainmentMap(BaseModel):
    """Result of containment resolution."""

    pools: Dict[str, PoolRecord] = Field(default_factory=dict, description="Pools in source order")
    lanes: Dict[str, LaneRecord] = Field(default_factory=dict, description="All lanes by id")
    element_lane: Dict[str, str] = Field(default_factory=dict, description="Element id -> lane id")
    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Recoverable issues")

    model_config = ConfigDict(frozen=True)

    def lanes_of(self, pool_id: str) -> List[LaneRecord]:
        pool = self.pools.get(pool_id)
        if pool is None:
            return []
        return [self.lanes[lane_id] for lane_id in pool.lane_ids]

    def orphan_lanes(self) -> List[LaneRecord]:
        return [lane for lane in self.lanes.values() if lane.pool_id is None]

    def lane_of(self, element_id: str) -> Optional[LaneRecord]:
        lane_id = self.element_lane.get(element_id)
        return self.lanes.get(lane_id) if lane_id else None


class ContainmentResolver:
    """Builds the pool/lane ownership maps."""

    def resolve(self, document: BPMNDocument, layout: LayoutIndex) -> ContainmentMap:
        """Resolve pools, lanes and lane membership.

        Args:
            document: Parsed document
            layout: Layout index (lane heights)

        Returns:
            ContainmentMap
        """
        with Timer("containment_resolution"):
            diagnostics: List[Diagnostic] = []
            pools: Dict[str, dict] = {}
            process_to_pool: Dict[str, str] = {}

            for index, participant in enumerate(document.participants):
                pool_id = participant.get("id") or f"pool_{index}"
                if pool_id in pools:
                    diagnostics.append(
                        Diagnostic(
                            code=DiagnosticCode.DUPLICATE_ID,
                            message=f"Participant {pool_id} is declared more than once",
                            element_id=pool_id,
                        )
                    )
                    continue

                process_ref = participant.get("processRef")
                pools[pool_id] = dict(
                    id=pool_id,
                    name=element_name(participant) or f"Pool {index + 1}",
                    process_ref=process_ref,
                    color=pool_color(index),
                    lane_ids=[],
                )
                if process_ref and process_ref not in process_to_pool:
                    process_to_pool[process_ref] = pool_id

            lanes: Dict[str, dict] = {}
            element_lane: Dict[str, str] = {}
            lane_index = 0

            for process in document.processes:
                owner = process_to_pool.get(process.get("id"))

                for lane in iter_descendants(process, "lane"):
                    # Parent lanes restate the members of their child lanes
                    if next(iter_children(lane, "childLaneSet"), None) is not None:
                        continue

                    lane_id = lane.get("id") or f"lane_{lane_index}"
                    if lane_id in lanes:
                        first_owner = lanes[lane_id]["pool_id"]
                        diagnostics.append(
                            Diagnostic(
                                code=DiagnosticCode.DUPLICATE_LANE_CLAIM,
                                message=(
                                    f"Lane {lane_id} claimed by {owner or 'no pool'} is already "
                                    f"owned by {first_owner or 'no pool'}; keeping the first claim"
                                ),
                                element_id=lane_id,
                            )
                        )
                        continue

                    bounds = layout.bounds_for(lane_id)
                    lanes[lane_id] = dict(
                        id=lane_id,
                        name=element_name(lane) or f"Lane {lane_index + 1}",
                        height=bounds.height if bounds is not None else DEFAULT_LANE_HEIGHT,
                        color=lane_color(lane_index),
                        pool_id=owner,
                        member_ids=[],
                    )
                    lane_index += 1

                    if owner is not None:
                        pools[owner]["lane_ids"].append(lane_id)
                    else:
                        diagnostics.append(
                            Diagnostic(
                                code=DiagnosticCode.ORPHAN_LANE,
                                level=DiagnosticLevel.INFO,
                                message=f"Lane {lane_id} is not attributable to any pool",
                                element_id=lane_id,
                            )
                        )

                    for ref in iter_children(lane, "flowNodeRef"):
                        element_id = (ref.text or "").strip()
                        if not element_id:
                            continue
                        if element_id in element_lane:
                            if element_lane[element_id] != lane_id:
                                diagnostics.append(
                                    Diagnostic(
                                        code=DiagnosticCode.CONFLICTING_LANE_MEMBERSHIP,
                                        message=(
                                            f"Element {element_id} is listed in lanes "
                                            f"{element_lane[element_id]} and {lane_id}; keeping the first"
                                        ),
                                        element_id=element_id,
                                    )
                                )
                            continue
                        element_lane[element_id] = lane_id
                        lanes[lane_id]["member_ids"].append(element_id)

            result = ContainmentMap(
                pools={pool_id: PoolRecord(**data) for pool_id, data in pools.items()},
                lanes={lane_id: LaneRecord(**data) for lane_id, data in lanes.items()},
                element_lane=element_lane,
                diagnostics=diagnostics,
            )

        for diagnostic in diagnostics:
            logger.log(
                logging.INFO if diagnostic.level == DiagnosticLevel.INFO else logging.WARNING,
                diagnostic.message,
            )
        logger.debug(f"Found {len(result.lanes)} lanes and {len(result.pools)} pools")
        return result


__all__ = ["LaneRecord", "PoolRecord", "ContainmentMap", "ContainmentResolver"]
