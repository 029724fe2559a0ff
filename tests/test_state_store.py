import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from policychain.core.ports import ExecutionStateStore
from policychain.state.memory import InMemoryExecutionStateStore, get_default_store


def test_put_get_remove() -> None:
    store = InMemoryExecutionStateStore()
    store.put("e1", "rate-limit", {"tokens": 3})

    assert store.get("e1", "rate-limit") == {"tokens": 3}
    assert ("e1", "rate-limit") in store
    assert store.get("e1", "missing") is None
    assert store.get("e1", "missing", default=0) == 0

    store.remove("e1", "rate-limit")
    store.remove("e1", "rate-limit")
    assert store.get("e1", "rate-limit") is None
    assert store.execution_ids() == []
    assert len(store) == 0


def test_executions_are_isolated() -> None:
    store = InMemoryExecutionStateStore()
    store.put("a", "p0", 1)
    store.put("b", "p0", 2)
    store.remove("a", "p0")

    assert store.get("a", "p0") is None
    assert store.get("b", "p0") == 2
    assert store.snapshot("b") == {"p0": 2}


def test_none_values_are_still_records() -> None:
    store = InMemoryExecutionStateStore()
    store.put("e1", "k", None)
    assert ("e1", "k") in store
    assert ("e1", "other") not in store
    assert "e1" not in store


def test_scoped_record_is_released_on_failure() -> None:
    store = InMemoryExecutionStateStore()
    with pytest.raises(RuntimeError):
        with store.scoped("e1", "p0", "held") as value:
            assert value == "held"
            assert store.get("e1", "p0") == "held"
            raise RuntimeError("policy failed")
    assert len(store) == 0


async def test_scoped_record_is_released_on_cancellation() -> None:
    store = InMemoryExecutionStateStore()
    entered = asyncio.Event()

    async def hold() -> None:
        with store.scoped("e1", "p0", "held"):
            entered.set()
            await asyncio.Event().wait()

    task = asyncio.create_task(hold())
    await entered.wait()
    assert store.get("e1", "p0") == "held"
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(store) == 0


def test_failed_update_leaves_no_bucket_behind() -> None:
    store = InMemoryExecutionStateStore()

    def explode(current: object) -> object:
        raise ValueError("bad state")

    with pytest.raises(ValueError):
        store.update("e1", "k", explode)

    assert store.execution_ids() == []
    assert len(store) == 0

    store.put("e2", "k", 1)
    with pytest.raises(ValueError):
        store.update("e2", "k", explode)
    assert store.get("e2", "k") == 1


def test_update_has_no_lost_updates_across_threads() -> None:
    store = InMemoryExecutionStateStore()
    barrier = threading.Barrier(8)

    def bump() -> None:
        barrier.wait()
        for _ in range(500):
            store.update("e1", "counter", lambda current: current + 1, default=0)

    with ThreadPoolExecutor(max_workers=8) as pool:
        for future in [pool.submit(bump) for _ in range(8)]:
            future.result()

    assert store.get("e1", "counter") == 4000


async def test_record_survives_resumption_on_another_thread() -> None:
    store = InMemoryExecutionStateStore()
    store.put("e1", "p0", "before-suspension")

    seen = await asyncio.to_thread(store.get, "e1", "p0")
    await asyncio.to_thread(store.remove, "e1", "p0")

    assert seen == "before-suspension"
    assert len(store) == 0


def test_clear_drops_one_execution() -> None:
    store = InMemoryExecutionStateStore()
    store.put("e1", "p0", 1)
    store.put("e1", "p1", 2)
    store.put("e2", "p0", 3)

    assert store.clear("e1") == 2
    assert store.clear("e1") == 0
    assert store.execution_ids() == ["e2"]
    assert len(store) == 1


def test_store_satisfies_port_and_default_is_shared() -> None:
    assert isinstance(InMemoryExecutionStateStore(), ExecutionStateStore)
    assert get_default_store() is get_default_store()
