"""Process-wide in-memory execution state store.

Policies use it to keep local variables across the gap between calling
their continuation and seeing its result.  Records are keyed by
``(execution_id, key)``; the chain uses the policy id as key and releases
that record whenever control leaves the policy's layer.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

_MISSING = object()


class InMemoryExecutionStateStore:
    """Thread-safe execution state store.

    A single re-entrant lock guards every bucket, so operations on one
    ``(execution_id, key)`` are linearizable no matter which thread or event
    loop a chain resumes on.
    """

    __slots__ = ("_records", "_lock")

    def __init__(self) -> None:
        self._records: dict[str, dict[Hashable, Any]] = {}
        self._lock = threading.RLock()

    def put(self, execution_id: str, key: Hashable, value: Any) -> None:
        with self._lock:
            self._records.setdefault(execution_id, {})[key] = value

    def get(self, execution_id: str, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            bucket = self._records.get(execution_id)
            if bucket is None:
                return default
            return bucket.get(key, default)

    def remove(self, execution_id: str, key: Hashable) -> None:
        with self._lock:
            bucket = self._records.get(execution_id)
            if bucket is None:
                return
            bucket.pop(key, None)
            if not bucket:
                del self._records[execution_id]

    def update(
        self,
        execution_id: str,
        key: Hashable,
        fn: Callable[[Any], Any],
        default: Any = None,
    ) -> Any:
        """Atomically replace the stored value with ``fn(current)`` and return it."""
        with self._lock:
            current = self._records.get(execution_id, {}).get(key, default)
            value = fn(current)
            self._records.setdefault(execution_id, {})[key] = value
            return value

    @contextmanager
    def scoped(self, execution_id: str, key: Hashable, value: Any) -> Iterator[Any]:
        """Hold one record for the duration of a ``with`` block."""
        self.put(execution_id, key, value)
        try:
            yield value
        finally:
            self.remove(execution_id, key)

    def snapshot(self, execution_id: str) -> dict[Hashable, Any]:
        """Copy of every record one execution currently holds."""
        with self._lock:
            return dict(self._records.get(execution_id, {}))

    def execution_ids(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def clear(self, execution_id: str) -> int:
        """Drop every record of one execution and return how many there were."""
        with self._lock:
            bucket = self._records.pop(execution_id, None)
        count = len(bucket) if bucket else 0
        if count:
            logger.debug("state store cleared {} record(s) for execution {}", count, execution_id)
        return count

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        execution_id, key = item
        with self._lock:
            bucket = self._records.get(execution_id)
            return bucket is not None and bucket.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._records.values())

    def __repr__(self) -> str:
        return f"InMemoryExecutionStateStore(executions={len(self.execution_ids())}, records={len(self)})"


_default_store: InMemoryExecutionStateStore | None = None
_default_store_lock = threading.Lock()


def get_default_store() -> InMemoryExecutionStateStore:
    """Return the lazily created process-wide store."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = InMemoryExecutionStateStore()
        return _default_store
