from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from ..common.datetime_utils import to_iso
from ..workspaces.model import UserRef


@dataclass(frozen=True)
class AttendanceRecord:
    """One user's derived daily summary, keyed by (user, workspace, date)."""

    id: str
    user_id: str
    workspace_id: str
    date: str
    is_present: bool
    total_time_worked: int
    time_entries: tuple[str, ...]
    created_at: datetime
    updated_at: datetime

    def same_values(self, other: "AttendanceRecord") -> bool:
        return (
            self.is_present == other.is_present
            and self.total_time_worked == other.total_time_worked
            and tuple(self.time_entries) == tuple(other.time_entries)
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["time_entries"] = list(self.time_entries)
        data["created_at"] = to_iso(self.created_at)
        data["updated_at"] = to_iso(self.updated_at)
        return data


UNKNOWN_USERNAME = "Unknown"


def attendance_rate(present: int, total: int) -> float:
    return (present / total) * 100 if total > 0 else 0.0


@dataclass(frozen=True)
class DailyAttendance:
    date: str
    workspace_id: str
    records: list[AttendanceRecord] = field(default_factory=list)
    users: Mapping[str, UserRef] = field(default_factory=dict)

    @property
    def total_users(self) -> int:
        return len(self.records)

    @property
    def present_count(self) -> int:
        return sum(1 for r in self.records if r.is_present)

    @property
    def absent_count(self) -> int:
        return self.total_users - self.present_count

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.present_count, self.total_users)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "workspace_id": self.workspace_id,
            "total_users": self.total_users,
            "present_count": self.present_count,
            "absent_count": self.absent_count,
            "attendance_rate": self.attendance_rate,
            "records": [self._record_with_user(r) for r in self.records],
        }

    def _record_with_user(self, record: AttendanceRecord) -> dict:
        data = record.to_dict()
        user = self.users.get(record.user_id)
        data["username"] = (user.username if user else None) or UNKNOWN_USERNAME
        data["email"] = (user.email if user else None) or ""
        return data


@dataclass(frozen=True)
class MonthlyDay:
    date: str
    day_name: str
    present_count: int
    absent_count: int
    total_users: int
    attendance_rate: float


@dataclass(frozen=True)
class AttendanceStats:
    total_days: int
    present_days: int
    absent_days: int
    attendance_rate: float
    average_hours_per_day: float


@dataclass(frozen=True)
class MonthlyAttendance:
    workspace_id: str
    month: str
    year: int
    month_name: str
    days: list[MonthlyDay]
    stats: AttendanceStats

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UserMonthlyDay:
    date: str
    day_name: str
    is_present: bool
    total_time_worked: int
    time_entries: int
    attendance_rate: float


@dataclass(frozen=True)
class UserMonthlyStats:
    total_days: int
    present_days: int
    absent_days: int
    attendance_rate: float
    total_time_worked: int
    average_hours_per_day: float
    total_entries: int


@dataclass(frozen=True)
class UserMonthlyAttendance:
    user_id: str
    username: str
    email: Optional[str]
    month: str
    year: int
    month_name: str
    days: list[UserMonthlyDay]
    stats: UserMonthlyStats

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UserAttendanceHistory:
    """A user's stored attendance records, newest first, with summary stats."""

    user: UserRef
    records: list[AttendanceRecord]
    stats: AttendanceStats

    def to_dict(self) -> dict:
        return {
            "user": {"id": self.user.id, "username": self.user.username, "email": self.user.email},
            "records": [r.to_dict() for r in self.records],
            "stats": asdict(self.stats),
        }
