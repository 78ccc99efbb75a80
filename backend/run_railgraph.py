import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.dependencies import (  # noqa: E402
    get_dispatcher,
    get_movement_engine,
    get_orchestrator,
    get_store,
)
from railgraph.engine.scheduler import run_movement_loop  # noqa: E402


async def run(cycles: int, simulate_seconds: float) -> None:
    logger = logging.getLogger("railgraph.run")
    start = time.perf_counter()
    store = get_store()
    orchestrator = get_orchestrator()

    for i in range(cycles):
        outcome = await orchestrator.run_expansion_cycle()
        logger.info(
            "[cycle %s] %s in %.2fs",
            i + 1,
            outcome.status,
            time.perf_counter() - start,
        )
        logger.info(json.dumps(outcome.to_dict(), indent=2, default=str))
        # Respect the cooldown between cycles.
        if i + 1 < cycles:
            await asyncio.sleep(orchestrator.config.cooldown_seconds)

    # Send the first idle train to the newest station and watch it travel.
    nodes = store.get_nodes()
    idle = [m for m in store.get_movers() if not m.is_moving]
    if idle and nodes and idle[0].current_node_id != nodes[-1].id:
        receipt = await get_dispatcher().dispatch(idle[0].id, nodes[-1].id)
        logger.info("dispatch: %s", receipt.to_dict())

    stop = asyncio.Event()
    loop_task = asyncio.create_task(run_movement_loop(get_movement_engine(), stop))
    await asyncio.sleep(simulate_seconds)
    stop.set()
    await loop_task

    for mover in store.get_movers():
        logger.info("%s", mover.to_dict())


def main() -> None:
    parser = argparse.ArgumentParser(description="Run expansion cycles against the configured store.")
    parser.add_argument("--cycles", type=int, default=1)
    parser.add_argument("--simulate", type=float, default=5.0, help="seconds of movement to simulate")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    asyncio.run(run(args.cycles, args.simulate))


if __name__ == "__main__":
    main()
