from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..time_entries.model import TimeEntry
from ..time_entries.repository import TimeEntryRepository
from ..workspaces.repository import TaskDirectory
from .locks import UserLockRegistry
from .model import ActiveTimer
from .repository import ActiveTimerRepository
from .state import Idle, Running, UserTimerState, state_of

logger = get_logger(__name__)

UNKNOWN_PROJECT = "Unknown Project"


class TimerService:
    """Start/stop/resume state machine enforcing one live timer per user.

    Every mutating call runs under the caller's per-user lock. Closing a
    timer writes its entry and deletes the timer in one repository unit of
    work, so two workers stopping the same timer record the session once.
    """

    def __init__(
        self,
        timers: ActiveTimerRepository,
        entries: TimeEntryRepository,
        tasks: TaskDirectory,
        *,
        clock: Clock | None = None,
        locks: UserLockRegistry | None = None,
    ):
        self._timers = timers
        self._entries = entries
        self._tasks = tasks
        self._clock = clock or SystemClock()
        self._locks = locks or UserLockRegistry()

    def get_state(self, user_id: str) -> UserTimerState:
        return state_of(self._timers.get_for_user(user_id))

    def get_active(self, user_id: str) -> Optional[ActiveTimer]:
        return self._timers.get_for_user(user_id)

    def get_elapsed(self, user_id: str) -> int:
        """Live total of the running timer; never persisted."""
        state = self.get_state(user_id)
        if isinstance(state, Idle):
            return 0
        return state.timer.live_duration(self._clock.now())

    def start(self, *, user_id: str, workspace_id: str, task_id: str, description: str | None = "") -> ActiveTimer:
        task_id = require_non_empty(task_id, "Task ID")
        task = self._tasks.resolve_task(task_id, workspace_id)
        if not task:
            raise NotFoundError("Task not found")

        with self._locks.hold(user_id):
            now = self._clock.now()
            self._collapse(self.get_state(user_id), now)

            timer = ActiveTimer(
                id=new_id("timer"),
                user_id=user_id,
                entry_id=None,
                task_id=task.id,
                task_title=task.title,
                project_id=task.project_id,
                project_name=task.project_name or UNKNOWN_PROJECT,
                workspace_id=workspace_id,
                description=(description or "").strip(),
                start_time=now,
                previous_duration=0,
                created_at=now,
            )
            self._timers.add(timer)

        logger.info("Timer started: %s user=%s task=%s", timer.id, user_id, task.id)
        return timer

    def resume(self, *, entry_id: str, user_id: str, workspace_id: str) -> ActiveTimer:
        with self._locks.hold(user_id):
            entry = self._entries.get_owned(entry_id, user_id=user_id, workspace_id=workspace_id)
            if not entry:
                raise NotFoundError("Time entry not found")

            now = self._clock.now()
            self._collapse(self.get_state(user_id), now)

            # Re-read: the force-stop may have just finalized this very entry.
            entry = self._entries.get(entry.id) or entry
            self._entries.mark_resumed(entry.id, resumed_at=now)

            timer = ActiveTimer(
                id=new_id("timer"),
                user_id=user_id,
                entry_id=entry.id,
                task_id=entry.task_id,
                task_title=entry.task_title,
                project_id=entry.project_id,
                project_name=entry.project_name,
                workspace_id=workspace_id,
                description=entry.description,
                start_time=now,
                previous_duration=entry.duration,
                created_at=now,
            )
            self._timers.add(timer)

        logger.info("Timer resumed: %s user=%s entry=%s previous=%ss", timer.id, user_id, entry.id, entry.duration)
        return timer

    def stop(self, *, timer_id: str, user_id: str, workspace_id: str | None = None) -> TimeEntry:
        with self._locks.hold(user_id):
            timer = self._timers.get(timer_id, user_id=user_id)
            if timer is None or (workspace_id is not None and timer.workspace_id != workspace_id):
                raise NotFoundError("Active timer not found")

            now = self._clock.now()
            entry = self._timers.finish(
                timer.id,
                user_id=user_id,
                settle=lambda live, existing: self._settle(live, existing, now, forced=False),
            )
            if entry is None:
                # Another worker closed this timer between our read and the locked re-read.
                logger.warning("Timer %s was stopped concurrently", timer.id)
                raise NotFoundError("Active timer not found")

        logger.info("Timer stopped: %s user=%s entry=%s duration=%ss", timer.id, user_id, entry.id, entry.duration)
        return entry

    def _collapse(self, state: UserTimerState, now: datetime) -> Optional[TimeEntry]:
        """Force-stop a running timer before a new session begins."""
        if not isinstance(state, Running):
            return None

        timer = state.timer
        entry = self._timers.finish(
            timer.id,
            user_id=timer.user_id,
            settle=lambda live, existing: self._settle(live, existing, now, forced=True),
        )
        if entry is None:
            logger.warning("Force-stopped timer %s had already been removed", timer.id)
            return None

        logger.info("Timer force-stopped: %s user=%s entry=%s", timer.id, timer.user_id, entry.id)
        return entry

    @staticmethod
    def _settle(timer: ActiveTimer, existing: Optional[TimeEntry], now: datetime, *, forced: bool) -> TimeEntry:
        """The completed entry for the session of ``timer``.

        A force-stop adds the session onto the entry's stored duration; a
        regular stop writes ``previous_duration + session``. Both are clamped
        so an entry's duration never goes down.
        """

        session = timer.session_elapsed(now)

        if existing is not None:
            base = existing.duration if forced else timer.previous_duration
            total = max(base + session, existing.duration)
            return replace(existing, duration=total, end_time=now, is_running=False, updated_at=now)

        if timer.entry_id:
            logger.warning("Timer %s references missing entry %s; recording a new entry", timer.id, timer.entry_id)

        return TimeEntry(
            id=new_id("time"),
            user_id=timer.user_id,
            workspace_id=timer.workspace_id,
            task_id=timer.task_id,
            task_title=timer.task_title,
            project_id=timer.project_id,
            project_name=timer.project_name,
            start_time=timer.start_time,
            end_time=now,
            duration=session if forced else timer.previous_duration + session,
            is_running=False,
            description=timer.description,
            created_at=now,
            updated_at=now,
        )
