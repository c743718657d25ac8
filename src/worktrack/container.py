from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import Clock, SystemClock
from .core.constants import DEFAULT_TIMER_LOCK_TIMEOUT, PRESENCE_THRESHOLD_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .security.rate_limit import InMemoryRateLimitStore, RateLimiter, RateLimitStore
from .stats.service import StatsService
from .targets.mysql_target_repository import MySQLTargetRepository
from .targets.repository import TargetRepository
from .targets.service import TargetService
from .time_entries.mysql_time_entry_repository import MySQLTimeEntryRepository
from .time_entries.repository import TimeEntryRepository
from .time_entries.service import TimeEntryService
from .timers.locks import UserLockRegistry
from .timers.mysql_active_timer_repository import MySQLActiveTimerRepository
from .timers.repository import ActiveTimerRepository
from .timers.service import TimerService
from .workspaces.mysql_directory import MySQLTaskDirectory, MySQLUserDirectory, MySQLWorkspaceDirectory
from .workspaces.repository import TaskDirectory, UserDirectory, WorkspaceDirectory


@dataclass(frozen=True)
class Container:
    time_entries_repo: TimeEntryRepository
    active_timers_repo: ActiveTimerRepository
    attendance_repo: AttendanceRepository
    targets_repo: TargetRepository

    tasks: TaskDirectory
    workspaces: WorkspaceDirectory
    users: UserDirectory

    timer_service: TimerService
    time_entry_service: TimeEntryService
    attendance_service: AttendanceService
    stats_service: StatsService
    target_service: TargetService

    rate_limiter: RateLimiter
    clock: Clock
    conn: Optional[DatabaseConnection] = None


def assemble(
    *,
    entries: TimeEntryRepository,
    timers: ActiveTimerRepository,
    attendance: AttendanceRepository,
    targets: TargetRepository,
    tasks: TaskDirectory,
    workspaces: WorkspaceDirectory,
    users: UserDirectory,
    clock: Clock | None = None,
    lock_timeout: float = DEFAULT_TIMER_LOCK_TIMEOUT,
    presence_threshold: int = PRESENCE_THRESHOLD_SECONDS,
    rate_limit_store: RateLimitStore | None = None,
    conn: DatabaseConnection | None = None,
) -> Container:
    """Wire services over any set of repositories (MySQL in production, fakes in tests)."""

    clock = clock or SystemClock()

    timer_service = TimerService(
        timers,
        entries,
        tasks,
        clock=clock,
        locks=UserLockRegistry(timeout=lock_timeout),
    )
    time_entry_service = TimeEntryService(entries, timers, clock=clock)
    attendance_service = AttendanceService(
        attendance,
        entries,
        workspaces,
        users,
        clock=clock,
        presence_threshold=presence_threshold,
    )
    stats_service = StatsService(entries, timers, workspaces, clock=clock)
    target_service = TargetService(targets, clock=clock)

    return Container(
        time_entries_repo=entries,
        active_timers_repo=timers,
        attendance_repo=attendance,
        targets_repo=targets,
        tasks=tasks,
        workspaces=workspaces,
        users=users,
        timer_service=timer_service,
        time_entry_service=time_entry_service,
        attendance_service=attendance_service,
        stats_service=stats_service,
        target_service=target_service,
        rate_limiter=RateLimiter(rate_limit_store or InMemoryRateLimitStore()),
        clock=clock,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        entries=MySQLTimeEntryRepository(conn),
        timers=MySQLActiveTimerRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        targets=MySQLTargetRepository(conn),
        tasks=MySQLTaskDirectory(conn),
        workspaces=MySQLWorkspaceDirectory(conn),
        users=MySQLUserDirectory(conn),
        lock_timeout=float(getattr(settings, "TIMER_LOCK_TIMEOUT", DEFAULT_TIMER_LOCK_TIMEOUT)),
        presence_threshold=int(getattr(settings, "PRESENCE_THRESHOLD_SECONDS", PRESENCE_THRESHOLD_SECONDS)),
        conn=conn,
    )
