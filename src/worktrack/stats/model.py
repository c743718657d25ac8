from __future__ import annotations

from dataclasses import asdict, dataclass, field

from ..time_entries.model import TimeEntry


@dataclass(frozen=True)
class DayHours:
    day: str
    date: str
    hours: float


@dataclass(frozen=True)
class ProjectHours:
    project_id: str
    project: str
    hours: float


@dataclass(frozen=True)
class DashboardStats:
    """Dashboard payload; every hour figure is rounded to one decimal."""

    timeframe: str
    today_hours: float
    week_hours: float
    month_hours: float
    year_hours: float
    all_time_hours: float
    avg_daily_hours: float
    productivity: int
    filtered_hours: float
    filtered_projects: int
    filtered_tasks: int
    filtered_entries: int
    is_running: bool
    weekly_data: list[DayHours] = field(default_factory=list)
    project_data: list[ProjectHours] = field(default_factory=list)
    recent_entries: list[TimeEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["recent_entries"] = [e.to_dict() for e in self.recent_entries]
        return data
