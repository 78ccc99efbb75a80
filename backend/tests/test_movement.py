import asyncio
import math

import pytest

from railgraph.config.settings import MovementConfig
from railgraph.engine.movement import MovementEngine
from railgraph.errors import PersistenceError
from railgraph.graph.graph_schema import IDLE, MOVING
from railgraph.utils.geometry import distance

from conftest import FlakyConnection


def _on_segment(point, start, end, tol=1e-9):
    return math.isclose(
        distance(start, point) + distance(point, end),
        distance(start, end),
        abs_tol=tol,
    )


def test_step_distance_uses_accelerated_time(engine, store):
    mover = store.get_mover(1)
    # 50 ms * 60 = 3 simulated seconds; 80 km/h -> 1/15 km -> 4/15 units
    assert engine.step_distance(mover) == pytest.approx(80 * 3 / 3600 * 4)


@pytest.mark.asyncio
async def test_tick_advances_along_segment_without_overshoot(engine, dispatcher, store):
    await dispatcher.dispatch(1, 2)
    target = store.get_node(2).position

    for _ in range(25):
        before = store.get_mover(1).position
        report = await engine.tick()
        after = store.get_mover(1).position

        assert report.moved == [1]
        assert _on_segment(after, before, target)
        assert distance(before, after) == pytest.approx(engine.step_distance(store.get_mover(1)))
        assert after[0] <= target[0]


@pytest.mark.asyncio
async def test_arrival_snaps_to_target_and_goes_idle(store, dispatcher):
    near = store.add_node("Siding", 50.1, 300.05)
    await dispatcher.dispatch(1, near.id)

    engine = MovementEngine(store, MovementConfig())
    report = await engine.tick()

    mover = store.get_mover(1)
    assert report.arrived == [1]
    assert mover.position == (50.1, 300.05)
    assert mover.status == IDLE
    assert mover.current_node_id == near.id
    assert mover.target_node_id is None
    assert mover.departure_time is None
    assert store.recent_events(1)[0].type == "ARRIVAL"


@pytest.mark.asyncio
async def test_zero_distance_target_arrives_immediately(store, dispatcher, engine):
    twin = store.add_node("Central Junction East", 50.0, 300.0)
    receipt = await dispatcher.dispatch(1, twin.id)
    assert receipt.distance_km == 0.0

    report = await engine.tick()
    assert report.arrived == [1]
    assert store.get_mover(1).current_node_id == twin.id


@pytest.mark.asyncio
async def test_long_trip_finishes_exactly_on_target(store, dispatcher):
    engine = MovementEngine(store, MovementConfig(tick_ms=50, time_acceleration=36000))
    await dispatcher.dispatch(1, 2)

    for _ in range(100):
        report = await engine.tick()
        x, _ = store.get_mover(1).position
        assert x <= 650.0
        if report.arrived:
            break

    mover = store.get_mover(1)
    assert mover.position == (650.0, 300.0)
    assert mover.status == IDLE


@pytest.mark.asyncio
async def test_idle_movers_are_not_touched(engine, store):
    report = await engine.tick()
    assert report.moved == [] and report.arrived == [] and report.failed == []
    assert store.get_mover(1).position == (50.0, 300.0)


@pytest.mark.asyncio
async def test_one_failing_mover_does_not_block_others(store, dispatcher, engine, monkeypatch):
    second = store.add_mover("Express-02", 2, 120.0)
    await dispatcher.dispatch(1, 2)
    await dispatcher.dispatch(second.id, 1)

    original = store.update_mover

    def flaky(mover):
        if mover.id == 1:
            raise PersistenceError("disk full")
        return original(mover)

    monkeypatch.setattr(store, "update_mover", flaky)

    report = await engine.tick()

    assert report.failed == [1]
    assert report.moved == [second.id]
    assert store.get_mover(1).position == (50.0, 300.0)
    assert store.get_mover(second.id).position[0] < 650.0
    assert store.get_mover(second.id).status == MOVING


@pytest.mark.asyncio
async def test_read_failure_for_one_mover_does_not_block_others(store, dispatcher, engine, monkeypatch):
    second = store.add_mover("Express-02", 2, 120.0)
    await dispatcher.dispatch(1, 2)
    await dispatcher.dispatch(second.id, 1)

    def mover_one_read(sql, params):
        return sql.startswith("SELECT * FROM movers WHERE id") and params == (1,)

    monkeypatch.setattr(store, "_conn", FlakyConnection(store._conn, mover_one_read))

    report = await engine.tick()

    assert report.failed == [1]
    assert report.moved == [second.id]
    assert store.get_movers()[1].position[0] < 650.0


def test_store_read_errors_surface_as_persistence_errors(store, monkeypatch):
    monkeypatch.setattr(store, "_conn", FlakyConnection(store._conn, lambda sql, params: True))

    with pytest.raises(PersistenceError):
        store.get_mover(1)


@pytest.mark.asyncio
async def test_tick_waits_for_dispatch_holding_the_mover_lock(store, dispatcher, engine):
    branch = store.add_node("Southgate", 50.0, 700.0)
    await dispatcher.dispatch(1, 2)

    lock = store.mover_lock(1)
    await lock.acquire()
    retarget = asyncio.create_task(dispatcher.dispatch(1, branch.id))
    ticking = asyncio.create_task(engine.tick())
    for _ in range(3):
        await asyncio.sleep(0)

    # Both are parked on the lock; nothing has been written yet.
    assert not retarget.done() and not ticking.done()
    mover = store.get_mover(1)
    assert mover.target_node_id == 2
    assert mover.position == (50.0, 300.0)

    lock.release()
    await retarget
    report = await ticking

    mover = store.get_mover(1)
    assert report.moved == [1]
    assert mover.target_node_id == branch.id
    assert mover.position[0] == pytest.approx(50.0)
    assert mover.position[1] == pytest.approx(300.0 + engine.step_distance(mover))
