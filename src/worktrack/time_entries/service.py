from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import day_bounds, parse_instant
from ..common.validators import require_int_range
from ..core.constants import DEFAULT_ENTRIES_LIMIT, DEFAULT_PAGE_SIZE, MAX_ENTRIES_LIMIT
from ..core.enums import Timeframe
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..timers.repository import ActiveTimerRepository
from .model import EntryPage, TimeEntry, TimeEntryFilter
from .repository import TimeEntryRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskTotal:
    total_time: int
    is_running: bool

    def to_dict(self) -> dict:
        return {"total_time": self.total_time, "is_running": self.is_running}


def parse_timeframe(value: str | None) -> Timeframe:
    """Unrecognised timeframes mean all time."""
    try:
        return Timeframe((value or Timeframe.ALL.value).strip().lower())
    except ValueError:
        logger.debug("Unknown timeframe %r; using all", value)
        return Timeframe.ALL


def timeframe_window(timeframe: Timeframe, now: datetime) -> tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive bounds of a timeframe; ``(None, None)`` for all time."""
    today, end_of_today = day_bounds(now.date())
    if timeframe is Timeframe.TODAY:
        return today, end_of_today
    if timeframe is Timeframe.WEEK:
        # Weeks start on Sunday; isoweekday() is 7 for Sunday.
        return today - timedelta(days=today.isoweekday() % 7), now
    if timeframe is Timeframe.MONTH:
        return today.replace(day=1), now
    if timeframe is Timeframe.YEAR:
        return today.replace(month=1, day=1), now
    return None, None


class TimeEntryService:
    def __init__(
        self,
        entries: TimeEntryRepository,
        timers: ActiveTimerRepository,
        *,
        clock: Clock | None = None,
    ):
        self._entries = entries
        self._timers = timers
        self._clock = clock or SystemClock()

    def list_entries(
        self,
        *,
        user_id: str,
        workspace_id: str,
        task_id: str | None = None,
        project_id: str | None = None,
        start: str | None = None,
        end: str | None = None,
        limit: int | str | None = DEFAULT_ENTRIES_LIMIT,
    ) -> list[TimeEntry]:
        limit = require_int_range(DEFAULT_ENTRIES_LIMIT if limit in (None, "") else limit, "limit", 1, MAX_ENTRIES_LIMIT)
        start_at = parse_instant(start) if start else None
        end_at = parse_instant(end) if end else None
        if end and len(end.strip()) == 10:
            # A bare date as upper bound covers the whole day.
            _, end_at = day_bounds(end_at.date())
        if start_at and end_at and end_at < start_at:
            raise ValidationError("End date must not be before start date")

        filters = TimeEntryFilter(task_id=task_id or None, project_id=project_id or None, start=start_at, end=end_at)
        return list(self._entries.list_for_user(user_id=user_id, workspace_id=workspace_id, filters=filters, limit=limit))

    def list_user_entries(
        self,
        *,
        user_id: str,
        workspace_id: str,
        timeframe: str | None = None,
        page: int | str | None = 1,
        limit: int | str | None = DEFAULT_PAGE_SIZE,
    ) -> EntryPage:
        """Completed entries of one user in a timeframe, paginated newest first."""
        frame = parse_timeframe(timeframe)
        page = require_int_range(page or 1, "page", 1, 1_000_000)
        limit = require_int_range(limit or DEFAULT_PAGE_SIZE, "limit", 1, MAX_ENTRIES_LIMIT)

        start, end = timeframe_window(frame, self._clock.now())
        filters = TimeEntryFilter(start=start, end=end, is_running=False)
        rows = self._entries.list_for_user(
            user_id=user_id,
            workspace_id=workspace_id,
            filters=filters,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = self._entries.count_for_user(user_id=user_id, workspace_id=workspace_id, filters=filters)
        return EntryPage(entries=list(rows), page=page, limit=limit, total=total)

    def update_description(self, *, user_id: str, entry_id: str, description: str | None) -> TimeEntry:
        entry = self._entries.get_owned(entry_id, user_id=user_id)
        if not entry:
            raise NotFoundError("Time entry not found")

        now = self._clock.now()
        self._entries.update_description(entry_id, user_id=user_id, description=(description or "").strip(), updated_at=now)
        return self._entries.get(entry_id) or entry

    def delete_entry(self, *, user_id: str, entry_id: str) -> None:
        entry = self._entries.get_owned(entry_id, user_id=user_id)
        if not entry:
            raise NotFoundError("Time entry not found")
        if self._timers.find_for_entry(entry_id) is not None:
            raise ConflictError("Stop the running timer before deleting its entry")

        if not self._entries.delete(entry_id, user_id=user_id):
            raise NotFoundError("Time entry not found")
        logger.info("Time entry deleted: %s user=%s", entry_id, user_id)

    def task_total(self, *, task_id: str, workspace_id: str) -> TaskTotal:
        entries = self._entries.list_for_task(task_id=task_id, workspace_id=workspace_id)
        total = sum(int(e.duration or 0) for e in entries)
        return TaskTotal(total_time=total, is_running=self._timers.exists_for_task(task_id, workspace_id))
