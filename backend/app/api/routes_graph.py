from fastapi import APIRouter, Depends

from backend.app.api.schemas import GraphStatsResponse
from backend.app.dependencies import get_store, get_query_engine

router = APIRouter()


@router.get("/stats", response_model=GraphStatsResponse)
def graph_stats(store=Depends(get_store), query=Depends(get_query_engine)):
    components = query.component_count()
    return GraphStatsResponse(
        nodes=store.node_count(),
        edges=store.edge_count(),
        movers=store.mover_count(),
        components=components,
        connected=components == 1,
    )
