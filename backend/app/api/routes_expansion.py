from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from railgraph.engine.orchestrator import ExpansionOrchestrator, ExpansionOutcome
from railgraph.engine.scheduler import AutoExpansionScheduler

from backend.app.api.schemas import AutoModeRequest, AutoModeResponse
from backend.app.dependencies import get_orchestrator, get_auto_scheduler

router = APIRouter()

STATUS_CODES = {
    "built": 200,
    "throttled": 429,
    "consensus_failed": 502,
    "oracle_error": 502,
}


def _outcome_response(outcome: ExpansionOutcome) -> JSONResponse:
    body = outcome.to_dict()
    if not outcome.success:
        body["error"] = outcome.message
    return JSONResponse(status_code=STATUS_CODES[outcome.status], content=body)


@router.post("")
async def expand(orchestrator: ExpansionOrchestrator = Depends(get_orchestrator)):
    return _outcome_response(await orchestrator.run_expansion_cycle())


@router.get("/auto", response_model=AutoModeResponse)
def auto_mode(scheduler: AutoExpansionScheduler = Depends(get_auto_scheduler)):
    return AutoModeResponse(enabled=scheduler.enabled)


@router.post("/auto", response_model=AutoModeResponse)
async def set_auto_mode(
    request: AutoModeRequest,
    scheduler: AutoExpansionScheduler = Depends(get_auto_scheduler),
):
    outcome = await scheduler.set_enabled(request.enabled)
    return AutoModeResponse(
        enabled=scheduler.enabled,
        outcome=outcome.to_dict() if outcome is not None else None,
    )
