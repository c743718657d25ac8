from __future__ import annotations

from typing import Callable, Optional, Protocol

from ..time_entries.model import TimeEntry
from .model import ActiveTimer

# (timer, entry it accumulates into or None) -> the completed entry to store
Settle = Callable[[ActiveTimer, Optional[TimeEntry]], TimeEntry]


class ActiveTimerRepository(Protocol):
    """Registry of in-flight timers, at most one per user."""

    def get_for_user(self, user_id: str) -> Optional[ActiveTimer]:
        raise NotImplementedError

    def get(self, timer_id: str, *, user_id: str) -> Optional[ActiveTimer]:
        raise NotImplementedError

    def add(self, timer: ActiveTimer) -> None:
        """Insert a timer; raise ConflictError if the user already has one."""

        raise NotImplementedError

    def finish(self, timer_id: str, *, user_id: str, settle: Settle) -> Optional[TimeEntry]:
        """Close a live timer into its entry as one unit of work.

        Re-reads the timer (and the entry it references) under a row lock,
        stores the entry returned by ``settle`` (update when the referenced
        entry exists, insert otherwise) and deletes the timer. Returns None,
        writing nothing, when the timer is already gone.
        """

        raise NotImplementedError

    def find_for_entry(self, entry_id: str) -> Optional[ActiveTimer]:
        raise NotImplementedError

    def exists_for_task(self, task_id: str, workspace_id: str) -> bool:
        raise NotImplementedError
