from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field


class NodeOut(BaseModel):
    id: int
    name: str
    x: float
    y: float
    created_at: str


class EdgeOut(BaseModel):
    id: int
    node_a_id: int
    node_b_id: int


class MoverOut(BaseModel):
    id: int
    name: str
    x: float
    y: float
    current_node_id: Optional[int]
    target_node_id: Optional[int]
    speed_kmh: float
    departure_time: Optional[str]
    status: str


class EventOut(BaseModel):
    id: int
    type: str
    message: str
    timestamp: str


class StateResponse(BaseModel):
    nodes: List[NodeOut]
    edges: List[EdgeOut]
    movers: List[MoverOut]
    events: List[EventOut]
    occupied_edges: List[int]


class DispatchRequest(BaseModel):
    target_node_id: int


class DispatchResponse(BaseModel):
    success: bool = True
    mover_id: int
    target_node_id: int
    distance_km: float
    eta_minutes: int


class EventRequest(BaseModel):
    type: str = Field(min_length=1, max_length=32)
    message: str = Field(min_length=1)


class AutoModeRequest(BaseModel):
    enabled: bool


class AutoModeResponse(BaseModel):
    enabled: bool
    outcome: Dict[str, Any] | None = None


class GraphStatsResponse(BaseModel):
    nodes: int
    edges: int
    movers: int
    components: int
    connected: bool
