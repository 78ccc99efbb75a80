from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from railgraph.config.settings import MovementConfig
from railgraph.errors import RailgraphError
from railgraph.graph.graph_schema import Mover
from railgraph.graph.graph_store import GraphStore
from railgraph.utils.geometry import step_towards

logger = logging.getLogger("railgraph.movement")

MOVED = "moved"
ARRIVED = "arrived"


@dataclass
class TickReport:
    moved: List[int] = field(default_factory=list)
    arrived: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


class MovementEngine:
    """
    Fixed-step simulation of trains travelling in straight lines.
    """

    def __init__(self, store: GraphStore, config: MovementConfig) -> None:
        self.store = store
        self.config = config

    def step_distance(self, mover: Mover) -> float:
        """
        Position units a mover covers in one tick.
        """
        km_per_tick = mover.speed_kmh * (self.config.sim_seconds_per_tick / 3600.0)
        return km_per_tick * self.config.pixels_per_km

    async def tick(self) -> TickReport:
        report = TickReport()

        for mover in self.store.get_movers():
            if not mover.is_moving:
                continue
            try:
                result = await self._advance(mover.id)
            except RailgraphError:
                logger.exception("tick failed for mover %s", mover.id)
                report.failed.append(mover.id)
                continue

            if result == ARRIVED:
                report.arrived.append(mover.id)
            elif result == MOVED:
                report.moved.append(mover.id)

        return report

    async def _advance(self, mover_id: int) -> Optional[str]:
        async with self.store.mover_lock(mover_id):
            # Re-read under the lock; a dispatch may have retargeted it.
            mover = self.store.get_mover(mover_id)
            if mover is None or not mover.is_moving:
                return None

            target = self.store.get_node(mover.target_node_id)
            if target is None:
                logger.warning(
                    "mover %s targets missing node %s",
                    mover.id,
                    mover.target_node_id,
                )
                return None

            position, reached = step_towards(
                mover.position,
                target.position,
                self.step_distance(mover),
            )

            if not reached:
                self.store.update_mover(mover.moved_to(*position))
                return MOVED

            self.store.update_mover(mover.arrived(target))

        self.store.add_event("ARRIVAL", f"{mover.name} arrived at {target.name}")
        logger.info("mover %s arrived at node %s", mover.id, target.id)
        return ARRIVED
