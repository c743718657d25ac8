from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso


@dataclass(frozen=True)
class TimeEntry:
    """A completed or in-progress unit of tracked work.

    ``duration`` is the accumulated number of worked seconds across every
    session applied to the entry; resuming never resets it.
    """

    id: str
    user_id: str
    workspace_id: str
    task_id: str
    project_id: Optional[str]
    start_time: datetime
    end_time: Optional[datetime]
    duration: int
    is_running: bool
    created_at: datetime
    updated_at: datetime
    description: str = ""
    task_title: Optional[str] = None
    project_name: Optional[str] = None
    resumed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("start_time", "end_time", "created_at", "updated_at", "resumed_at"):
            data[key] = to_iso(data[key])
        return data


@dataclass(frozen=True)
class TimeEntryFilter:
    """Optional narrowing for entry listings."""

    task_id: Optional[str] = None
    project_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    is_running: Optional[bool] = None


@dataclass(frozen=True)
class EntryPage:
    entries: list[TimeEntry] = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
                "hasMore": self.page < self.total_pages,
            },
        }
