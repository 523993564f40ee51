import json
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.snowroute.models.domain import DEFAULT_CHECK_IN_STATE, CheckInState, WorkCategory
from src.snowroute.persistence.filesystem import JsonFileStore
from src.snowroute.persistence.keyvalue import MemoryStore
from src.snowroute.services.checkin.state_machine import CheckInStateMachine, format_duration, storage_key


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class BrokenStore:
    def get(self, key):
        raise OSError("disk unavailable")

    def set(self, key, value):
        raise OSError("disk unavailable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 6, 30, tzinfo=timezone.utc))


def _machine(store, clock, worker="w1", category=WorkCategory.PLOW) -> CheckInStateMachine:
    return CheckInStateMachine(store, worker, category, clock=clock)


def test_starts_not_checked_in(clock: FakeClock):
    machine = _machine(MemoryStore(), clock)

    assert machine.state == DEFAULT_CHECK_IN_STATE
    assert machine.elapsed_millis() == 0
    assert machine.format_elapsed() == "0:00:00"


def test_check_in_sets_all_fields(clock: FakeClock):
    machine = _machine(MemoryStore(), clock)

    replaced = machine.check_in("site-1", "Maple Plaza", "salt")

    assert replaced is None
    assert machine.state == CheckInState(
        is_checked_in=True,
        site_id="site-1",
        site_name="Maple Plaza",
        check_in_time=clock.now.isoformat(),
        service_type="salt",
    )
    assert machine.state.is_consistent()


def test_check_in_then_out_round_trips_to_default(clock: FakeClock):
    store = MemoryStore()
    machine = _machine(store, clock)

    machine.check_in("site-1", "Maple Plaza", "plow")
    previous = machine.check_out()

    assert previous.site_id == "site-1"
    assert machine.state == DEFAULT_CHECK_IN_STATE
    persisted = json.loads(store.get(machine.key))
    assert persisted == {
        "is_checked_in": False,
        "site_id": None,
        "site_name": None,
        "check_in_time": None,
        "service_type": None,
    }


def test_check_out_is_idempotent(clock: FakeClock):
    machine = _machine(MemoryStore(), clock)

    machine.check_out()
    machine.check_out()

    assert machine.state == DEFAULT_CHECK_IN_STATE


def test_elapsed_formatting(clock: FakeClock):
    machine = _machine(MemoryStore(), clock)
    machine.check_in("site-1", "Maple Plaza")

    clock.advance(seconds=90)
    assert machine.elapsed_millis() == 90_000
    assert machine.format_elapsed() == "0:01:30"

    clock.advance(seconds=3661 - 90)
    assert machine.format_elapsed() == "1:01:01"


@pytest.mark.parametrize(
    ("millis", "label"),
    [(0, "0:00:00"), (999, "0:00:00"), (59_000, "0:00:59"), (36_000_000 * 3, "30:00:00"), (-5_000, "0:00:00")],
)
def test_format_duration(millis: int, label: str):
    assert format_duration(millis) == label


def test_state_survives_restart(clock: FakeClock, tmp_path: Path):
    store = JsonFileStore(tmp_path / "state.json")
    _machine(store, clock).check_in("site-9", "Oak Lot", "both")

    clock.advance(minutes=5)
    reloaded = _machine(JsonFileStore(tmp_path / "state.json"), clock)

    assert reloaded.is_checked_in
    assert reloaded.state.site_name == "Oak Lot"
    assert reloaded.format_elapsed() == "0:05:00"


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"is_checked_in": True, "site_id": "x"}),
        json.dumps({"is_checked_in": True, "site_id": "x", "site_name": "X", "check_in_time": "yesterday"}),
    ],
)
def test_corrupt_state_falls_back_to_default(clock: FakeClock, raw: str):
    store = MemoryStore({storage_key("w1", WorkCategory.PLOW): raw})

    machine = _machine(store, clock)

    assert machine.state == DEFAULT_CHECK_IN_STATE


def test_storage_failures_do_not_block_transitions(clock: FakeClock):
    machine = _machine(BrokenStore(), clock)

    machine.check_in("site-1", "Maple Plaza")
    assert machine.is_checked_in

    machine.check_out()
    assert machine.state == DEFAULT_CHECK_IN_STATE


def test_categories_are_independent(clock: FakeClock):
    store = MemoryStore()
    plow = _machine(store, clock, category=WorkCategory.PLOW)
    shovel = _machine(store, clock, category=WorkCategory.SHOVEL)

    plow.check_in("site-1", "Maple Plaza", "plow")

    assert not shovel.is_checked_in
    assert not _machine(store, clock, category=WorkCategory.SHOVEL).is_checked_in
    assert _machine(store, clock, category=WorkCategory.PLOW).is_checked_in
    assert plow.key != shovel.key


def test_double_check_in_returns_replaced_session(clock: FakeClock):
    machine = _machine(MemoryStore(), clock)
    machine.check_in("site-1", "Maple Plaza", "plow")
    first = machine.state

    clock.advance(minutes=20)
    replaced = machine.check_in("site-2", "Birch Court", "salt")

    assert replaced == first
    assert machine.state.site_id == "site-2"
    assert machine.elapsed_millis() == 0


def test_service_type_must_match_category(clock: FakeClock):
    shovel = _machine(MemoryStore(), clock, category=WorkCategory.SHOVEL)

    with pytest.raises(ValueError):
        shovel.check_in("site-1", "Maple Plaza", "plow")
    assert not shovel.is_checked_in


def test_update_service_type(clock: FakeClock):
    store = MemoryStore()
    machine = _machine(store, clock)

    assert machine.update_service_type("salt") == DEFAULT_CHECK_IN_STATE

    machine.check_in("site-1", "Maple Plaza", "plow")
    machine.update_service_type("both")

    assert machine.state.service_type == "both"
    assert json.loads(store.get(machine.key))["service_type"] == "both"


def test_concurrent_check_ins_share_one_state_file(clock: FakeClock, tmp_path: Path):
    path = tmp_path / "state.json"
    workers = [f"w{i}" for i in range(40)]
    barrier = threading.Barrier(len(workers))

    def check_in(worker: str) -> None:
        machine = _machine(JsonFileStore(path), clock, worker=worker)
        barrier.wait()
        machine.check_in(f"site-{worker}", "Maple Plaza", "plow")

    threads = [threading.Thread(target=check_in, args=(worker,)) for worker in workers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lost = [worker for worker in workers if not _machine(JsonFileStore(path), clock, worker=worker).is_checked_in]
    assert lost == []
