from __future__ import annotations

from typing import List

import networkx as nx

from railgraph.graph.graph_schema import MOVING
from railgraph.graph.graph_store import GraphStore


class GraphQueryEngine:
    """
    Read-only topology queries over the store's network mirror.
    """

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def neighbors(self, node_id: int) -> List[int]:
        return self.store.neighbors(node_id)

    def degree(self, node_id: int) -> int:
        return len(self.store.neighbors(node_id))

    def component_count(self) -> int:
        graph = self.store.topology()
        if graph.number_of_nodes() == 0:
            return 0
        return nx.number_connected_components(graph)

    def is_connected(self) -> bool:
        return self.component_count() == 1

    def occupied_edges(self) -> List[int]:
        """
        Ids of tracks with a train running between their two stations.

        A track is occupied when a moving train departed from one endpoint
        and is heading to the other, in either direction.
        """
        graph = self.store.topology()
        occupied = set()

        for mover in self.store.get_movers():
            if mover.status != MOVING:
                continue
            a, b = mover.current_node_id, mover.target_node_id
            if a is None or b is None or not graph.has_edge(a, b):
                continue
            occupied.add(graph.edges[a, b]["data"].id)

        return sorted(occupied)
