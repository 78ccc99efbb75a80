from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict

from railgraph.config.settings import MovementConfig
from railgraph.errors import NotFoundError, ValidationError
from railgraph.graph.graph_store import GraphStore
from railgraph.utils.geometry import km_between
from railgraph.utils.time import iso_timestamp, utc_now

logger = logging.getLogger("railgraph.dispatch")


@dataclass(frozen=True)
class DispatchReceipt:
    mover_id: int
    target_node_id: int
    distance_km: float
    eta_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mover_id": self.mover_id,
            "target_node_id": self.target_node_id,
            "distance_km": self.distance_km,
            "eta_minutes": self.eta_minutes,
        }


class Dispatcher:
    """
    Sends a train towards a station.

    Only the plan is recorded here; the movement engine does the travelling.
    """

    def __init__(
        self,
        store: GraphStore,
        config: MovementConfig,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.config = config
        self._clock = clock

    async def dispatch(self, mover_id: int, target_node_id: int) -> DispatchReceipt:
        async with self.store.mover_lock(mover_id):
            mover = self.store.get_mover(mover_id)
            if mover is None:
                raise NotFoundError(f"Mover {mover_id} not found")

            target = self.store.get_node(target_node_id)
            if target is None:
                raise NotFoundError(f"Node {target_node_id} not found")

            if mover.current_node_id == target.id:
                raise ValidationError(f"{mover.name} is already at {target.name}")

            if mover.speed_kmh <= 0:
                raise ValidationError(f"{mover.name} has no usable speed")

            distance_km = km_between(mover.position, target.position, self.config.pixels_per_km)
            eta_minutes = round(distance_km / mover.speed_kmh * 60)

            self.store.update_mover(
                mover.departed(target.id, iso_timestamp(self._clock()))
            )

        self.store.add_event(
            "DISPATCH",
            f"{mover.name} dispatched to {target.name} ({distance_km:.1f} km)",
        )
        logger.info(
            "mover %s -> node %s: %.1f km, eta %s min",
            mover.id,
            target.id,
            distance_km,
            eta_minutes,
        )

        return DispatchReceipt(
            mover_id=mover.id,
            target_node_id=target.id,
            distance_km=round(distance_km, 1),
            eta_minutes=eta_minutes,
        )
