# /flasharb/core/control_api.py
# Operator control surface for a running simulated executor.
# Admin calls are made as the executor's owner; the bearer token stands in for the owner key.
from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request

from flasharb.core import persistence
from flasharb.core.admin import ExecutorAdmin
from flasharb.core.config import settings
from flasharb.core.errors import AuthorizationError, ConfigurationError, ExecutionError, ReentrancyError
from flasharb.core.executor import FlashArbExecutor
from flasharb.core.logger import get_logger

app = FastAPI(title="flasharb control")
log = get_logger(__name__)


def bind_executor(executor: FlashArbExecutor):
    app.state.executor = executor
    app.state.admin = ExecutorAdmin(executor)


def verify(authorization: str | None = Header(None)):
    token = settings.CONTROL_API_TOKEN
    if not token:
        raise HTTPException(status_code=500, detail="Control token not configured")
    if authorization != f"Bearer {token}":
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_executor(request: Request) -> FlashArbExecutor:
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        raise HTTPException(status_code=503, detail="No executor bound")
    return executor


def _http_error(e: ExecutionError) -> HTTPException:
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ReentrancyError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@app.get("/healthz")
async def healthz(request: Request):
    executor = getattr(request.app.state, "executor", None)
    return {
        "status": "ok" if executor is not None else "unbound",
        "paused": executor.admin.paused if executor is not None else None,
    }


@app.get("/stats")
async def stats(auth: None = Depends(verify), executor: FlashArbExecutor = Depends(get_executor)):
    total_profits, total_arbitrages = executor.get_stats()
    return {
        "total_profits": total_profits,
        "total_arbitrages": total_arbitrages,
        "profits_by_asset": dict(executor.ledger.profits_by_asset),
        "paused": executor.admin.paused,
        "approved_routers": sorted(executor.admin.approved_routers),
    }


@app.post("/pause/toggle")
async def toggle_pause(
    request: Request,
    auth: None = Depends(verify),
    executor: FlashArbExecutor = Depends(get_executor),
):
    admin: ExecutorAdmin = request.app.state.admin
    try:
        if executor.admin.paused:
            admin.unpause(executor.admin.owner)
        else:
            admin.pause(executor.admin.owner)
    except ExecutionError as e:
        raise _http_error(e) from e
    return {"paused": executor.admin.paused}


@app.post("/venues/approval")
async def set_venue_approval(
    request: Request,
    router: str = Body(...),
    approved: bool = Body(...),
    auth: None = Depends(verify),
    executor: FlashArbExecutor = Depends(get_executor),
):
    admin: ExecutorAdmin = request.app.state.admin
    try:
        admin.set_router_approval(executor.admin.owner, router, approved)
    except ExecutionError as e:
        raise _http_error(e) from e
    return {"router": router, "approved": executor.admin.is_router_approved(router)}


@app.post("/snapshot")
async def snapshot(auth: None = Depends(verify), executor: FlashArbExecutor = Depends(get_executor)):
    path = await persistence.save_snapshot(executor.state)
    log.info("SNAPSHOT_REQUESTED", path=path)
    return {"path": path}
