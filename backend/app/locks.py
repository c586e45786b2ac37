"""
locks.py — Per-group mutual exclusion.

Every request that mutates a group (join, record expense, settle, simplify)
runs its service call AND its commit inside group_lock(group_id), so the next
writer on that group always reads committed state. Operations on different
groups never contend.

Settlement holds the lock across the payment-rail call, so a concurrent
simplify or second settlement on the same group cannot observe a debt edge
halfway through a settlement.

Locks live only while some request holds or waits on them; the registry keeps
weak references, so ids that are never used again (including ids of groups
that do not exist) do not accumulate.

This only serialises callers inside one process. Across processes the
services additionally lock the group row (SELECT ... FOR UPDATE).
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

_registry_lock = threading.Lock()
_group_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()


def _lock_for(group_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _group_locks.get(group_id)
        if lock is None:
            lock = threading.Lock()
            _group_locks[group_id] = lock
        return lock


@contextmanager
def group_lock(group_id: int) -> Iterator[None]:
    """Holds the in-process lock for `group_id` for the duration of the block."""
    with _lock_for(group_id):
        yield
