"""
Per-User Locks

Wallet records are read and overwritten whole. Without a lock, two
callers doing load-mutate-save on the same user can silently lose
one of the updates.

Every load-mutate-save cycle holds the lock of each user it touches.
Multi-user holds acquire in sorted order so two opposite transfers
cannot deadlock. Locks are re-entrant: a flow that already holds a
user's lock can call into the transfer engine, which takes it again.

The registry only keeps locks that someone still references. A lock
taken for a name that never resolves to a user (a transfer to an
unknown recipient) disappears once it is released.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class UserLockRegistry:
    """One re-entrant lock per user id, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, user_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, *user_ids: str) -> Iterator[None]:
        """Hold the locks of all given users for the duration of the block."""
        ordered = sorted({user_id for user_id in user_ids if user_id})
        acquired: list[threading.RLock] = []
        try:
            for user_id in ordered:
                lock = self.lock_for(user_id)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            acquired.clear()
