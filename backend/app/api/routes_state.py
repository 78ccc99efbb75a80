from fastapi import APIRouter, Depends, Response

from backend.app.api.schemas import StateResponse, EventRequest, EventOut
from backend.app.dependencies import get_store, get_query_engine

router = APIRouter()


@router.get("/state", response_model=StateResponse)
def state(
    response: Response,
    store=Depends(get_store),
    query=Depends(get_query_engine),
):
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
    snapshot = store.snapshot()
    return StateResponse(
        nodes=[n.to_dict() for n in snapshot.nodes],
        edges=[e.to_dict() for e in snapshot.edges],
        movers=[m.to_dict() for m in snapshot.movers],
        events=[e.to_dict() for e in snapshot.events],
        occupied_edges=query.occupied_edges(),
    )


@router.post("/events", response_model=EventOut)
def add_event(request: EventRequest, store=Depends(get_store)):
    return store.add_event(request.type, request.message).to_dict()


@router.post("/reset")
def reset(store=Depends(get_store)):
    store.reset()
    return {"success": True, "message": "Simulation reset completely."}
