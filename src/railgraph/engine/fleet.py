from __future__ import annotations

import logging
import random
from typing import Optional

from railgraph.config.settings import FleetConfig
from railgraph.graph.graph_schema import Mover
from railgraph.graph.graph_store import GraphStore

logger = logging.getLogger("railgraph.fleet")


class FleetBalancer:
    """
    Buys one train whenever stations outnumber the fleet's capacity.
    """

    def __init__(
        self,
        store: GraphStore,
        config: FleetConfig,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.rng = rng or random.Random()

    def needs_mover(self, node_count: int, mover_count: int) -> bool:
        return node_count > self.config.nodes_per_mover * mover_count

    def rebalance(self) -> Optional[Mover]:
        nodes = self.store.get_nodes()
        mover_count = self.store.mover_count()

        if not nodes or not self.needs_mover(len(nodes), mover_count):
            return None

        start = self.rng.choice(nodes)
        speed = self.rng.randrange(self.config.min_speed_kmh, self.config.max_speed_kmh)
        name = f"{self.config.name_prefix}-{mover_count + 1:02d}"

        logger.info("spawning %s at node %s (%s km/h)", name, start.id, speed)
        mover = self.store.add_mover(name, start.id, float(speed))
        self.store.add_event("SYSTEM", f"New rolling stock acquired: {name}")
        return mover
