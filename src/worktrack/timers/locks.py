from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from ..core.constants import DEFAULT_TIMER_LOCK_TIMEOUT
from ..core.exceptions import ConflictError


class UserLockRegistry:
    """One lock per user id; timer operations of different users never contend.

    A caller that cannot get the lock within ``timeout`` seconds is rejected
    with :class:`ConflictError` instead of queueing forever. Each lock is
    reference counted by the callers holding or waiting on it and dropped
    once the last one leaves, so the registry only tracks active users.
    """

    def __init__(self, timeout: float = DEFAULT_TIMER_LOCK_TIMEOUT):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        self._locks: dict[str, _Slot] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, user_id: str) -> threading.Lock:
        with self._guard:
            slot = self._locks.get(user_id)
            if slot is None:
                slot = self._locks[user_id] = _Slot()
            slot.users += 1
            return slot.lock

    def _checkin(self, user_id: str) -> None:
        with self._guard:
            slot = self._locks[user_id]
            slot.users -= 1
            if slot.users == 0:
                del self._locks[user_id]

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        lock = self._checkout(user_id)
        try:
            if not lock.acquire(timeout=self._timeout):
                raise ConflictError("Another timer operation is in progress for this user")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(user_id)

    def is_held(self, user_id: str) -> bool:
        with self._guard:
            slot = self._locks.get(user_id)
            return slot is not None and slot.lock.locked()


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0
