from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

import pytest

from worktrack.common.clock import FixedClock
from worktrack.container import assemble
from worktrack.core.enums import TargetStatus
from worktrack.core.exceptions import ConflictError
from worktrack.main import create_app
from worktrack.time_entries.model import TimeEntry, TimeEntryFilter
from worktrack.timers.model import ActiveTimer
from worktrack.workspaces.model import TaskRef, UserRef, Workspace, WorkspaceMember

# Wednesday; the week started on Sunday 2024-03-10.
NOW = datetime(2024, 3, 13, 9, 0, 0, tzinfo=timezone.utc)

WS = "ws_1"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_entry(
    entry_id: str,
    *,
    user_id: str = "u1",
    workspace_id: str = WS,
    task_id: str = "t1",
    project_id: Optional[str] = "p1",
    project_name: Optional[str] = "Website",
    start: datetime = NOW,
    duration: int = 0,
    is_running: bool = False,
) -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        user_id=user_id,
        workspace_id=workspace_id,
        task_id=task_id,
        project_id=project_id,
        project_name=project_name,
        task_title="Landing page",
        start_time=start,
        end_time=None if is_running else start,
        duration=duration,
        is_running=is_running,
        created_at=start,
        updated_at=start,
    )


class InMemoryTimeEntries:
    def __init__(self):
        self.items: dict[str, TimeEntry] = {}
        self.writes = 0

    def seed(self, *entries: TimeEntry) -> None:
        for e in entries:
            self.items[e.id] = e

    def get(self, entry_id):
        return self.items.get(entry_id)

    def get_owned(self, entry_id, *, user_id, workspace_id=None):
        e = self.items.get(entry_id)
        if e is None or e.user_id != user_id:
            return None
        if workspace_id is not None and e.workspace_id != workspace_id:
            return None
        return e

    def add(self, entry):
        self.writes += 1
        self.items[entry.id] = entry

    def mark_resumed(self, entry_id, *, resumed_at):
        e = self.items.get(entry_id)
        if e is None:
            return False
        self.writes += 1
        self.items[entry_id] = replace(e, is_running=True, resumed_at=resumed_at, updated_at=resumed_at)
        return True

    def update_description(self, entry_id, *, user_id, description, updated_at):
        e = self.items.get(entry_id)
        if e is None or e.user_id != user_id:
            return False
        self.items[entry_id] = replace(e, description=description, updated_at=updated_at)
        return True

    def delete(self, entry_id, *, user_id):
        e = self.items.get(entry_id)
        if e is None or e.user_id != user_id:
            return False
        del self.items[entry_id]
        return True

    def _matching(self, user_id, workspace_id, filters: TimeEntryFilter):
        rows = [
            e
            for e in self.items.values()
            if e.user_id == user_id
            and e.workspace_id == workspace_id
            and (not filters.task_id or e.task_id == filters.task_id)
            and (not filters.project_id or e.project_id == filters.project_id)
            and (filters.start is None or e.start_time >= filters.start)
            and (filters.end is None or e.start_time <= filters.end)
            and (filters.is_running is None or e.is_running == filters.is_running)
        ]
        rows.sort(key=lambda e: e.start_time, reverse=True)
        return rows

    def list_for_user(self, *, user_id, workspace_id, filters=TimeEntryFilter(), limit=None, offset=0):
        rows = self._matching(user_id, workspace_id, filters)[offset:]
        return rows[:limit] if limit is not None else rows

    def count_for_user(self, *, user_id, workspace_id, filters=TimeEntryFilter()):
        return len(self._matching(user_id, workspace_id, filters))

    def list_for_task(self, *, task_id, workspace_id):
        return [e for e in self.items.values() if e.task_id == task_id and e.workspace_id == workspace_id]


class InMemoryTimers:
    def __init__(self, entries: InMemoryTimeEntries):
        self.entries = entries
        self.by_user: dict[str, ActiveTimer] = {}

    def get_for_user(self, user_id):
        return self.by_user.get(user_id)

    def get(self, timer_id, *, user_id):
        t = self.by_user.get(user_id)
        return t if t is not None and t.id == timer_id else None

    def add(self, timer):
        if timer.user_id in self.by_user:
            raise ConflictError("An active timer already exists for this user")
        self.by_user[timer.user_id] = timer

    def finish(self, timer_id, *, user_id, settle):
        timer = self.get(timer_id, user_id=user_id)
        if timer is None:
            return None
        existing = self.entries.get(timer.entry_id) if timer.entry_id else None
        completed = settle(timer, existing)
        self.entries.writes += 1
        self.entries.items[completed.id] = completed
        del self.by_user[user_id]
        return completed

    def find_for_entry(self, entry_id):
        return next((t for t in self.by_user.values() if t.entry_id == entry_id), None)

    def exists_for_task(self, task_id, workspace_id):
        return any(t.task_id == task_id and t.workspace_id == workspace_id for t in self.by_user.values())


class InMemoryAttendance:
    def __init__(self):
        self.by_key = {}
        self.saves = 0

    def get_for_key(self, *, user_id, workspace_id, date):
        return self.by_key.get((user_id, workspace_id, date))

    def save(self, record):
        self.saves += 1
        self.by_key[(record.user_id, record.workspace_id, record.date)] = record

    def list_for_date(self, *, workspace_id, date):
        return [r for (_, ws, d), r in self.by_key.items() if ws == workspace_id and d == date]

    def list_for_range(self, *, workspace_id, start_date, end_date):
        return [r for (_, ws, d), r in self.by_key.items() if ws == workspace_id and start_date <= d <= end_date]

    def list_for_user(self, *, user_id, workspace_id, start_date=None, end_date=None):
        rows = [
            r
            for (uid, ws, d), r in self.by_key.items()
            if uid == user_id
            and ws == workspace_id
            and (not start_date or d >= start_date)
            and (not end_date or d <= end_date)
        ]
        return sorted(rows, key=lambda r: r.date, reverse=True)


class InMemoryTargets:
    def __init__(self, *targets):
        self.items = {t.id: t for t in targets}
        self.fail_on: set[str] = set()

    def list_by_status(self, statuses):
        return [t for t in self.items.values() if t.status in statuses]

    def update_status(self, target_id, *, expected_status, new_status, updated_at, completed_at=None):
        if target_id in self.fail_on:
            raise RuntimeError("connection lost")
        t = self.items.get(target_id)
        if t is None or t.status != expected_status:
            return False
        self.items[target_id] = replace(t, status=TargetStatus(new_status), updated_at=updated_at, completed_at=completed_at)
        return True


@dataclass
class InMemoryDirectory:
    tasks: dict[tuple[str, str], TaskRef] = field(default_factory=dict)
    workspaces: dict[str, Workspace] = field(default_factory=dict)
    members: dict[str, list[str]] = field(default_factory=dict)
    users: dict[str, UserRef] = field(default_factory=dict)

    def resolve_task(self, task_id, workspace_id):
        return self.tasks.get((task_id, workspace_id))

    def get_workspace(self, workspace_id):
        return self.workspaces.get(workspace_id)

    def list_members(self, workspace_id):
        return [WorkspaceMember(member_id=m) for m in self.members.get(workspace_id, [])]

    def get_by_id(self, user_id):
        return self.users.get(user_id)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def entries_repo():
    return InMemoryTimeEntries()


@pytest.fixture
def timers_repo(entries_repo):
    return InMemoryTimers(entries_repo)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def targets_repo():
    return InMemoryTargets()


@pytest.fixture
def directory():
    return InMemoryDirectory(
        tasks={
            ("t1", WS): TaskRef(id="t1", title="Landing page", project_id="p1", project_name="Website"),
            ("t2", WS): TaskRef(id="t2", title="Invoices", project_id="p2", project_name=None),
        },
        workspaces={WS: Workspace(id=WS, name="Acme")},
        members={WS: ["u1", "u2"]},
        users={
            "u1": UserRef(id="u1", username="alice", email="alice@example.com"),
            "u2": UserRef(id="u2", username="bob"),
            "u9": UserRef(id="u9", username="outsider"),
        },
    )


@pytest.fixture
def container(clock, entries_repo, timers_repo, attendance_repo, targets_repo, directory):
    return assemble(
        entries=entries_repo,
        timers=timers_repo,
        attendance=attendance_repo,
        targets=targets_repo,
        tasks=directory,
        workspaces=directory,
        users=directory,
        clock=clock,
        lock_timeout=0.05,
    )


@pytest.fixture
def app(container):
    app = create_app(container=container, settings_module="worktrack.config.testing")
    app.config["RATE_LIMIT_MAX"] = 5
    return app


@pytest.fixture
def client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_id"] = "u1"
        sess["workspace_id"] = WS
    return client
