from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import TimeEntry, TimeEntryFilter


class TimeEntryRepository(Protocol):
    """Durable record of work sessions, keyed by entry id."""

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        raise NotImplementedError

    def get_owned(self, entry_id: str, *, user_id: str, workspace_id: Optional[str] = None) -> Optional[TimeEntry]:
        raise NotImplementedError

    def add(self, entry: TimeEntry) -> None:
        raise NotImplementedError

    def mark_resumed(self, entry_id: str, *, resumed_at: datetime) -> bool:
        raise NotImplementedError

    def update_description(self, entry_id: str, *, user_id: str, description: str, updated_at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, entry_id: str, *, user_id: str) -> bool:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: str,
        workspace_id: str,
        filters: TimeEntryFilter = TimeEntryFilter(),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[TimeEntry]:
        """Entries ordered by ``start_time`` descending."""

        raise NotImplementedError

    def count_for_user(self, *, user_id: str, workspace_id: str, filters: TimeEntryFilter = TimeEntryFilter()) -> int:
        raise NotImplementedError

    def list_for_task(self, *, task_id: str, workspace_id: str) -> Sequence[TimeEntry]:
        raise NotImplementedError
