from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import day_bounds
from ..core.constants import (
    AVERAGE_WINDOW_DAYS,
    DAY_NAMES,
    PRODUCTIVITY_BASELINE_HOURS,
    RECENT_ENTRIES_LIMIT,
    SECONDS_PER_HOUR,
    TOP_PROJECTS_LIMIT,
)
from ..core.enums import Timeframe
from ..core.exceptions import NotFoundError
from ..time_entries.model import TimeEntry, TimeEntryFilter
from ..time_entries.repository import TimeEntryRepository
from ..time_entries.service import parse_timeframe, timeframe_window
from ..timers.repository import ActiveTimerRepository
from ..workspaces.repository import WorkspaceDirectory
from .model import DashboardStats, DayHours, ProjectHours


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def hours_of(entries: Iterable[TimeEntry]) -> float:
    return sum(int(e.duration or 0) for e in entries) / SECONDS_PER_HOUR


def _between(entries: list[TimeEntry], start: Optional[datetime], end: Optional[datetime]) -> list[TimeEntry]:
    return [
        e
        for e in entries
        if (start is None or e.start_time >= start) and (end is None or e.start_time <= end)
    ]


class StatsService:
    """Read-side dashboards over a user's completed entries."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        timers: ActiveTimerRepository,
        workspaces: WorkspaceDirectory,
        *,
        clock: Clock | None = None,
    ):
        self._entries = entries
        self._timers = timers
        self._workspaces = workspaces
        self._clock = clock or SystemClock()

    def _window(self, entries: list[TimeEntry], timeframe: Timeframe, now: datetime) -> list[TimeEntry]:
        start, end = timeframe_window(timeframe, now)
        if timeframe is not Timeframe.TODAY:
            end = None
        return _between(entries, start, end)

    def dashboard(self, *, user_id: str, workspace_id: str, timeframe: str | None = None) -> DashboardStats:
        if not workspace_id or self._workspaces.get_workspace(workspace_id) is None:
            raise NotFoundError("Workspace not found")
        frame = parse_timeframe(timeframe)
        now = self._clock.now()
        today, _ = day_bounds(now.date())

        all_entries = list(
            self._entries.list_for_user(
                user_id=user_id,
                workspace_id=workspace_id,
                filters=TimeEntryFilter(is_running=False),
            )
        )
        windows = {tf: self._window(all_entries, tf, now) for tf in Timeframe}
        week_hours = hours_of(windows[Timeframe.WEEK])
        filtered = windows[frame]

        last_30 = _between(all_entries, now - timedelta(days=AVERAGE_WINDOW_DAYS), None)

        weekly_data: list[DayHours] = []
        for offset in range(6, -1, -1):
            day_start = today - timedelta(days=offset)
            day_entries = _between(all_entries, *day_bounds(day_start.date()))
            weekly_data.append(
                DayHours(
                    day=DAY_NAMES[day_start.isoweekday() % 7],
                    date=day_start.date().isoformat(),
                    hours=round_half_up(hours_of(day_entries), 1),
                )
            )

        timer = self._timers.get_for_user(user_id)

        return DashboardStats(
            timeframe=frame.value,
            today_hours=round_half_up(hours_of(windows[Timeframe.TODAY]), 1),
            week_hours=round_half_up(week_hours, 1),
            month_hours=round_half_up(hours_of(windows[Timeframe.MONTH]), 1),
            year_hours=round_half_up(hours_of(windows[Timeframe.YEAR]), 1),
            all_time_hours=round_half_up(hours_of(all_entries), 1),
            avg_daily_hours=round_half_up(hours_of(last_30) / AVERAGE_WINDOW_DAYS, 1),
            productivity=int(min(100, round_half_up(week_hours / PRODUCTIVITY_BASELINE_HOURS * 100))),
            filtered_hours=round_half_up(hours_of(filtered), 1),
            filtered_projects=len({e.project_id for e in filtered if e.project_id}),
            filtered_tasks=len({e.task_id for e in filtered if e.task_id}),
            filtered_entries=len(filtered),
            is_running=timer is not None and timer.workspace_id == workspace_id,
            weekly_data=weekly_data,
            project_data=self._top_projects(filtered),
            recent_entries=filtered[:RECENT_ENTRIES_LIMIT],
        )

    @staticmethod
    def _top_projects(entries: list[TimeEntry]) -> list[ProjectHours]:
        seconds: dict[str, int] = {}
        names: dict[str, str] = {}
        for e in entries:
            if not e.project_id:
                continue
            seconds[e.project_id] = seconds.get(e.project_id, 0) + int(e.duration or 0)
            names.setdefault(e.project_id, e.project_name or e.project_id)

        ranked = sorted(seconds.items(), key=lambda kv: (-kv[1], names[kv[0]]))
        return [
            ProjectHours(project_id=pid, project=names[pid], hours=round_half_up(total / SECONDS_PER_HOUR, 1))
            for pid, total in ranked[:TOP_PROJECTS_LIMIT]
        ]
