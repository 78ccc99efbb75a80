from functools import lru_cache
import logging
import time

from railgraph.graph.graph_store import GraphStore
from railgraph.graph.graph_query import GraphQueryEngine
from railgraph.engine.dispatch import Dispatcher
from railgraph.engine.fleet import FleetBalancer
from railgraph.engine.movement import MovementEngine
from railgraph.engine.orchestrator import ExpansionOrchestrator
from railgraph.engine.scheduler import AutoExpansionScheduler
from railgraph.oracles import (
    LLMProposalOracle,
    LLMStrategyOracle,
    LLMVerificationOracle,
    build_backend,
)

from backend.app.config import AppConfig


@lru_cache
def get_config() -> AppConfig:
    return AppConfig()


@lru_cache
def get_store() -> GraphStore:
    logger = logging.getLogger("railgraph.startup")
    t0 = time.perf_counter()
    store = GraphStore(get_config().railgraph.store)
    logger.info(
        "[startup] store %s opened in %.3fs (%s nodes, %s movers)",
        store.path,
        time.perf_counter() - t0,
        store.node_count(),
        store.mover_count(),
    )
    return store


@lru_cache
def get_query_engine() -> GraphQueryEngine:
    return GraphQueryEngine(get_store())


@lru_cache
def get_dispatcher() -> Dispatcher:
    return Dispatcher(get_store(), get_config().railgraph.movement)


@lru_cache
def get_movement_engine() -> MovementEngine:
    return MovementEngine(get_store(), get_config().railgraph.movement)


@lru_cache
def get_fleet_balancer() -> FleetBalancer:
    return FleetBalancer(get_store(), get_config().railgraph.fleet)


@lru_cache
def get_orchestrator() -> ExpansionOrchestrator:
    config = get_config().railgraph

    t0 = time.perf_counter()
    reviewer = build_backend(config.oracles.reviewer)
    engineer = build_backend(config.oracles.engineer)
    logging.getLogger("railgraph.startup").info(
        "[startup] oracle backends init in %.3fs",
        time.perf_counter() - t0,
    )

    return ExpansionOrchestrator(
        store=get_store(),
        strategy=LLMStrategyOracle(reviewer),
        proposer=LLMProposalOracle(engineer),
        verifier=LLMVerificationOracle(reviewer),
        fleet=get_fleet_balancer(),
        config=config.expansion,
    )


@lru_cache
def get_auto_scheduler() -> AutoExpansionScheduler:
    return AutoExpansionScheduler(
        get_store(),
        get_orchestrator(),
        poll_seconds=get_config().auto_poll_seconds,
    )
