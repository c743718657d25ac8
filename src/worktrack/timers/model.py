from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import elapsed_seconds, to_iso


@dataclass(frozen=True)
class ActiveTimer:
    """The single live session of a user.

    ``start_time`` is when this session began, not when the entry was first
    started. ``previous_duration`` is what the entry had accumulated before it.
    """

    id: str
    user_id: str
    task_id: str
    workspace_id: str
    start_time: datetime
    created_at: datetime
    entry_id: Optional[str] = None
    project_id: Optional[str] = None
    task_title: Optional[str] = None
    project_name: Optional[str] = None
    description: str = ""
    previous_duration: int = 0

    def session_elapsed(self, now: datetime) -> int:
        return elapsed_seconds(self.start_time, now)

    def live_duration(self, now: datetime) -> int:
        return self.previous_duration + self.session_elapsed(now)

    def to_dict(self, *, now: Optional[datetime] = None) -> dict:
        data = asdict(self)
        data["start_time"] = to_iso(self.start_time)
        data["created_at"] = to_iso(self.created_at)
        if now is not None:
            data["elapsed_time"] = self.session_elapsed(now)
            data["total_duration"] = self.live_duration(now)
        return data
