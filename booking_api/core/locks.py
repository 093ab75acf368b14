"""Named in-process locks for booking critical sections.

Guards the read-availability-then-write sequence of a booking per calendar
(and per order) inside one worker. Cross-process safety comes from the row
locks taken inside the booking transaction.

Entries are reference counted and removed once nobody holds or waits on
them, so the registry only ever contains keys that are in use.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

_registry_lock = threading.Lock()
# key -> [lock, holders + waiters]
_locks: dict[str, list] = {}


def _checkout(key: str) -> threading.Lock:
    with _registry_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = [threading.Lock(), 0]
            _locks[key] = entry
        entry[1] += 1
        return entry[0]


def _checkin(key: str) -> None:
    with _registry_lock:
        entry = _locks[key]
        entry[1] -= 1
        if entry[1] == 0:
            del _locks[key]


def active_lock_count() -> int:
    """Number of keys currently held or waited on."""
    with _registry_lock:
        return len(_locks)


def calendar_key(calendar_id: UUID) -> str:
    return f"calendar:{calendar_id}"


def order_key(order_id: UUID) -> str:
    return f"order:{order_id}"


@contextmanager
def named_locks(*keys: str) -> Iterator[None]:
    """
    Hold every lock in ``keys`` for the duration of the block.

    Keys are acquired in the order given and released in reverse; callers
    pass order keys before calendar keys so two bookings never wait on each
    other in opposite order.
    """
    held: list[tuple[str, threading.Lock]] = []
    try:
        for key in dict.fromkeys(keys):
            lock = _checkout(key)
            try:
                lock.acquire()
            except BaseException:
                _checkin(key)
                raise
            held.append((key, lock))
        yield
    finally:
        for key, lock in reversed(held):
            lock.release()
            _checkin(key)
