from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Literal, Optional, Tuple

from railgraph.errors import ValidationError

MoverStatus = Literal["idle", "moving"]

IDLE: MoverStatus = "idle"
MOVING: MoverStatus = "moving"


@dataclass(frozen=True)
class Node:
    """
    Station with fixed planar coordinates.
    """

    id: int
    name: str
    x: float
    y: float
    created_at: str

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Edge:
    """
    Undirected track between two distinct stations.
    """

    id: int
    node_a_id: int
    node_b_id: int

    def endpoints(self) -> frozenset[int]:
        return frozenset((self.node_a_id, self.node_b_id))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "node_a_id": self.node_a_id,
            "node_b_id": self.node_b_id,
        }


@dataclass(frozen=True)
class Mover:
    """
    Train travelling between stations.

    State machine:
    - idle: parked at ``current_node_id``, no target
    - moving: heading to ``target_node_id``; ``current_node_id`` keeps
      the departure station while in transit
    """

    id: int
    name: str
    x: float
    y: float
    current_node_id: Optional[int]
    target_node_id: Optional[int]
    speed_kmh: float
    departure_time: Optional[str]
    status: MoverStatus

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def is_moving(self) -> bool:
        return self.status == MOVING and self.target_node_id is not None

    def moved_to(self, x: float, y: float) -> "Mover":
        return replace(self, x=x, y=y)

    def departed(self, target_node_id: int, departure_time: str) -> "Mover":
        return replace(
            self,
            target_node_id=target_node_id,
            departure_time=departure_time,
            status=MOVING,
        )

    def arrived(self, node: Node) -> "Mover":
        return replace(
            self,
            x=node.x,
            y=node.y,
            current_node_id=node.id,
            target_node_id=None,
            departure_time=None,
            status=IDLE,
        )

    def check(self) -> None:
        """
        Raise ``ValidationError`` if the status and node references disagree.
        """
        if self.status == IDLE:
            if self.current_node_id is None or self.target_node_id is not None:
                raise ValidationError(
                    f"idle mover {self.id} needs a current node and no target"
                )
        elif self.status == MOVING:
            if self.target_node_id is None:
                raise ValidationError(f"moving mover {self.id} has no target")
            if self.target_node_id == self.current_node_id:
                raise ValidationError(
                    f"moving mover {self.id} targets its current node"
                )
        else:
            raise ValidationError(f"unknown mover status {self.status!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "current_node_id": self.current_node_id,
            "target_node_id": self.target_node_id,
            "speed_kmh": self.speed_kmh,
            "departure_time": self.departure_time,
            "status": self.status,
        }


@dataclass(frozen=True)
class Event:
    """
    Append-only audit record.
    """

    id: int
    type: str
    message: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "timestamp": self.timestamp,
        }
