from __future__ import annotations

from collections import defaultdict
from datetime import date

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import date_key, day_bounds, days_in_month, month_bounds, parse_iso_date, parse_month
from ..common.ids import new_id
from ..core.constants import DAY_NAMES, MONTH_NAMES, PRESENCE_THRESHOLD_SECONDS, SECONDS_PER_HOUR
from ..core.exceptions import NotFoundError, ValidationError
from ..core.logging import get_logger
from ..time_entries.model import TimeEntryFilter
from ..time_entries.repository import TimeEntryRepository
from ..workspaces.model import UserRef
from ..workspaces.repository import UserDirectory, WorkspaceDirectory
from .model import (
    AttendanceRecord,
    AttendanceStats,
    DailyAttendance,
    MonthlyAttendance,
    MonthlyDay,
    UserAttendanceHistory,
    UserMonthlyAttendance,
    UserMonthlyDay,
    UserMonthlyStats,
    attendance_rate,
)
from .repository import AttendanceRepository

logger = get_logger(__name__)


def day_name(day: date) -> str:
    return DAY_NAMES[day.isoweekday() % 7]


class AttendanceService:
    """Derives daily and monthly presence from completed time entries.

    Runs are idempotent: recomputing a day rewrites the same records under the
    same ids and never touches live timers.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        entries: TimeEntryRepository,
        workspaces: WorkspaceDirectory,
        users: UserDirectory,
        *,
        clock: Clock | None = None,
        presence_threshold: int = PRESENCE_THRESHOLD_SECONDS,
    ):
        self._attendance = attendance
        self._entries = entries
        self._workspaces = workspaces
        self._users = users
        self._clock = clock or SystemClock()
        self._threshold = int(presence_threshold)

    def _require_workspace(self, workspace_id: str) -> None:
        if not workspace_id or self._workspaces.get_workspace(workspace_id) is None:
            raise NotFoundError("Workspace not found")

    def _resolve_day(self, value: str | None) -> date:
        if not value:
            return self._clock.now().date()
        return parse_iso_date(value)

    def _resolve_month(self, value: str | None) -> tuple[str, int, int]:
        if not value:
            now = self._clock.now()
            return now.strftime("%Y-%m"), now.year, now.month
        year, month = parse_month(value)
        return f"{year:04d}-{month:02d}", year, month

    def compute_daily(self, *, workspace_id: str, day: str | None = None) -> DailyAttendance:
        self._require_workspace(workspace_id)
        target = self._resolve_day(day)
        key = target.isoformat()
        start, end = day_bounds(target)
        now = self._clock.now()

        records: list[AttendanceRecord] = []
        for member in self._workspaces.list_members(workspace_id):
            entries = self._entries.list_for_user(
                user_id=member.member_id,
                workspace_id=workspace_id,
                filters=TimeEntryFilter(start=start, end=end, is_running=False),
            )
            total = sum(int(e.duration or 0) for e in entries)
            existing = self._attendance.get_for_key(user_id=member.member_id, workspace_id=workspace_id, date=key)

            record = AttendanceRecord(
                id=existing.id if existing else new_id("att"),
                user_id=member.member_id,
                workspace_id=workspace_id,
                date=key,
                is_present=total >= self._threshold,
                total_time_worked=total,
                time_entries=tuple(e.id for e in entries),
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            if existing is not None and existing.same_values(record):
                record = existing
            else:
                self._attendance.save(record)
            records.append(record)

        result = DailyAttendance(date=key, workspace_id=workspace_id, records=records, users=self._users_for(records))
        logger.info(
            "Attendance computed: workspace=%s date=%s present=%d absent=%d",
            workspace_id,
            key,
            result.present_count,
            result.absent_count,
        )
        return result

    def get_daily(self, *, workspace_id: str, day: str | None = None) -> DailyAttendance:
        self._require_workspace(workspace_id)
        key = self._resolve_day(day).isoformat()
        records = list(self._attendance.list_for_date(workspace_id=workspace_id, date=key))
        return DailyAttendance(date=key, workspace_id=workspace_id, records=records, users=self._users_for(records))

    def _users_for(self, records: list[AttendanceRecord]) -> dict[str, UserRef]:
        users: dict[str, UserRef] = {}
        for user_id in {r.user_id for r in records}:
            user = self._users.get_by_id(user_id)
            if user is not None:
                users[user_id] = user
        return users

    def compute_monthly(self, *, workspace_id: str, month: str | None = None) -> MonthlyAttendance:
        self._require_workspace(workspace_id)
        month_key, year, month_num = self._resolve_month(month)
        last_day = days_in_month(year, month_num)

        records = self._attendance.list_for_range(
            workspace_id=workspace_id,
            start_date=f"{month_key}-01",
            end_date=f"{month_key}-{last_day:02d}",
        )
        by_date: dict[str, list[AttendanceRecord]] = defaultdict(list)
        for r in records:
            by_date[r.date].append(r)

        days: list[MonthlyDay] = []
        for d in range(1, last_day + 1):
            current = date(year, month_num, d)
            day_records = by_date.get(current.isoformat(), [])
            present = sum(1 for r in day_records if r.is_present)
            days.append(
                MonthlyDay(
                    date=current.isoformat(),
                    day_name=day_name(current),
                    present_count=present,
                    absent_count=len(day_records) - present,
                    total_users=len(day_records),
                    attendance_rate=attendance_rate(present, len(day_records)),
                )
            )

        total_records = len(records)
        total_present = sum(1 for r in records if r.is_present)
        total_seconds = sum(r.total_time_worked for r in records)

        return MonthlyAttendance(
            workspace_id=workspace_id,
            month=month_key,
            year=year,
            month_name=MONTH_NAMES[month_num - 1],
            days=days,
            stats=AttendanceStats(
                total_days=last_day,
                present_days=total_present,
                absent_days=total_records - total_present,
                attendance_rate=attendance_rate(total_present, total_records),
                average_hours_per_day=(total_seconds / SECONDS_PER_HOUR / total_records) if total_records else 0.0,
            ),
        )

    def _require_member(self, user_id: str, workspace_id: str) -> UserRef:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        self._require_workspace(workspace_id)
        if not any(m.member_id == user_id for m in self._workspaces.list_members(workspace_id)):
            raise NotFoundError("User not in workspace")
        return user

    def user_monthly(self, *, user_id: str, workspace_id: str, month: str | None = None) -> UserMonthlyAttendance:
        user = self._require_member(user_id, workspace_id)

        month_key, year, month_num = self._resolve_month(month)
        last_day = days_in_month(year, month_num)
        start, end = month_bounds(year, month_num)

        entries = self._entries.list_for_user(
            user_id=user_id,
            workspace_id=workspace_id,
            filters=TimeEntryFilter(start=start, end=end, is_running=False),
        )
        by_date: dict[str, list] = defaultdict(list)
        for e in entries:
            by_date[date_key(e.start_time)].append(e)

        days: list[UserMonthlyDay] = []
        for d in range(1, last_day + 1):
            current = date(year, month_num, d)
            day_entries = by_date.get(current.isoformat(), [])
            worked = sum(int(e.duration or 0) for e in day_entries)
            present = worked >= self._threshold
            days.append(
                UserMonthlyDay(
                    date=current.isoformat(),
                    day_name=day_name(current),
                    is_present=present,
                    total_time_worked=worked,
                    time_entries=len(day_entries),
                    attendance_rate=100.0 if present else 0.0,
                )
            )

        present_days = sum(1 for d in days if d.is_present)
        total_worked = sum(d.total_time_worked for d in days)

        return UserMonthlyAttendance(
            user_id=user.id,
            username=user.username,
            email=user.email,
            month=month_key,
            year=year,
            month_name=MONTH_NAMES[month_num - 1],
            days=days,
            stats=UserMonthlyStats(
                total_days=last_day,
                present_days=present_days,
                absent_days=last_day - present_days,
                attendance_rate=attendance_rate(present_days, last_day),
                total_time_worked=total_worked,
                average_hours_per_day=total_worked / SECONDS_PER_HOUR / last_day,
                total_entries=sum(d.time_entries for d in days),
            ),
        )

    def user_history(
        self,
        *,
        user_id: str,
        workspace_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> UserAttendanceHistory:
        """Stored records of one user, newest first, optionally bounded by dates.

        Stats are over the returned records, not over calendar days.
        """

        user = self._require_member(user_id, workspace_id)
        start = parse_iso_date(start_date).isoformat() if start_date else None
        end = parse_iso_date(end_date).isoformat() if end_date else None
        if start and end and end < start:
            raise ValidationError("End date must not be before start date")

        records = list(
            self._attendance.list_for_user(user_id=user_id, workspace_id=workspace_id, start_date=start, end_date=end)
        )
        present = sum(1 for r in records if r.is_present)
        total_seconds = sum(r.total_time_worked for r in records)

        return UserAttendanceHistory(
            user=user,
            records=records,
            stats=AttendanceStats(
                total_days=len(records),
                present_days=present,
                absent_days=len(records) - present,
                attendance_rate=attendance_rate(present, len(records)),
                average_hours_per_day=(total_seconds / SECONDS_PER_HOUR / len(records)) if records else 0.0,
            ),
        )
