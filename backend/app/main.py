import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from railgraph.engine.scheduler import run_movement_loop
from railgraph.errors import ConfigError, PersistenceError

from backend.app.config import AppConfig
from backend.app.api.routes_state import router as state_router
from backend.app.api.routes_movers import router as movers_router
from backend.app.api.routes_expansion import router as expansion_router
from backend.app.api.routes_graph import router as graph_router
from backend.app.dependencies import (
    get_config,
    get_store,
    get_movement_engine,
    get_auto_scheduler,
)


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if config.activity_log:
        handler = logging.FileHandler(config.activity_log)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s")
        )
        logging.getLogger("railgraph").addHandler(handler)


def start_background_tasks(stop: asyncio.Event) -> List[asyncio.Task]:
    """
    Start the movement loop, then the auto scheduler if its oracles can be built.

    Trains keep moving when no LLM backend is configured.
    """
    logger = logging.getLogger("railgraph.startup")
    tasks = [asyncio.create_task(run_movement_loop(get_movement_engine(), stop))]

    try:
        scheduler = get_auto_scheduler()
    except ConfigError as exc:
        logger.warning("[startup] auto expansion disabled: %s", exc)
    else:
        tasks.append(asyncio.create_task(scheduler.run(stop)))
    return tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle hooks.

    Opens the store once, then runs the movement loop and the
    auto-expansion scheduler until shutdown.
    """
    config = get_config()
    configure_logging(config)
    store = get_store()

    stop = asyncio.Event()
    tasks = start_background_tasks(stop) if config.run_background_tasks else []

    yield

    stop.set()
    await asyncio.gather(*tasks)
    store.close()


async def persistence_error_handler(request: Request, exc: PersistenceError):
    logging.getLogger("railgraph.api").error("persistence failure: %s", exc)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


async def config_error_handler(request: Request, exc: ConfigError):
    logging.getLogger("railgraph.api").error("configuration error: %s", exc)
    return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
    )

    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(ConfigError, config_error_handler)

    app.include_router(
        state_router,
        prefix=config.api_prefix,
        tags=["state"],
    )

    app.include_router(
        movers_router,
        prefix=f"{config.api_prefix}/movers",
        tags=["movers"],
    )

    app.include_router(
        expansion_router,
        prefix=f"{config.api_prefix}/expand",
        tags=["expansion"],
    )

    app.include_router(
        graph_router,
        prefix=f"{config.api_prefix}/graph",
        tags=["graph"],
    )

    return app


config = AppConfig()
app = create_app(config)
