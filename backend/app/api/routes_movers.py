from fastapi import APIRouter, Depends, HTTPException

from railgraph.engine.dispatch import Dispatcher
from railgraph.errors import NotFoundError, ValidationError

from backend.app.api.schemas import DispatchRequest, DispatchResponse
from backend.app.dependencies import get_dispatcher

router = APIRouter()


@router.post("/{mover_id}/dispatch", response_model=DispatchResponse)
async def dispatch(
    mover_id: int,
    request: DispatchRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    try:
        receipt = await dispatcher.dispatch(mover_id, request.target_node_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return DispatchResponse(**receipt.to_dict())
