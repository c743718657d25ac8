from __future__ import annotations

from typing import Optional

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_db_datetime, to_db_datetime
from ..time_entries.model import TimeEntry
from ..time_entries.mysql_time_entry_repository import ENTRY_COLUMNS, close_entry, insert_entry, row_to_entry
from .model import ActiveTimer
from .repository import ActiveTimerRepository, Settle

_COLUMNS = """
    id, user_id, entry_id, task_id, task_title, project_id, project_name,
    workspace_id, description, start_time, previous_duration, created_at
"""


def _row_to_timer(r: dict) -> ActiveTimer:
    return ActiveTimer(
        id=r["id"],
        user_id=r["user_id"],
        entry_id=r.get("entry_id"),
        task_id=r["task_id"],
        task_title=r.get("task_title"),
        project_id=r.get("project_id"),
        project_name=r.get("project_name"),
        workspace_id=r["workspace_id"],
        description=r.get("description") or "",
        start_time=from_db_datetime(r["start_time"]),
        previous_duration=int(r.get("previous_duration") or 0),
        created_at=from_db_datetime(r["created_at"]),
    )


class MySQLActiveTimerRepository(ActiveTimerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user(self, user_id: str) -> Optional[ActiveTimer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM active_timers WHERE user_id=%s", (user_id,))
            r = fetchone(cur)
            return _row_to_timer(r) if r else None

    def get(self, timer_id: str, *, user_id: str) -> Optional[ActiveTimer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM active_timers WHERE id=%s AND user_id=%s", (timer_id, user_id))
            r = fetchone(cur)
            return _row_to_timer(r) if r else None

    def add(self, timer: ActiveTimer) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO active_timers(
                        id, user_id, entry_id, task_id, task_title, project_id, project_name,
                        workspace_id, description, start_time, previous_duration, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        timer.id,
                        timer.user_id,
                        timer.entry_id,
                        timer.task_id,
                        timer.task_title,
                        timer.project_id,
                        timer.project_name,
                        timer.workspace_id,
                        timer.description,
                        to_db_datetime(timer.start_time),
                        int(timer.previous_duration),
                        to_db_datetime(timer.created_at),
                    ),
                )
            except mysql.connector.IntegrityError as exc:
                # uq_active_timers_user: another worker started a timer first.
                raise ConflictError("An active timer already exists for this user") from exc

    def finish(self, timer_id: str, *, user_id: str, settle: Settle) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM active_timers WHERE id=%s AND user_id=%s FOR UPDATE",
                (timer_id, user_id),
            )
            r = fetchone(cur)
            if not r:
                return None
            timer = _row_to_timer(r)

            existing = None
            if timer.entry_id:
                cur.execute(f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE id=%s FOR UPDATE", (timer.entry_id,))
                row = fetchone(cur)
                existing = row_to_entry(row) if row else None

            completed = settle(timer, existing)
            if existing is not None and completed.id == existing.id:
                close_entry(cur, completed)
            else:
                insert_entry(cur, completed)
            cur.execute("DELETE FROM active_timers WHERE id=%s", (timer.id,))
            return completed

    def find_for_entry(self, entry_id: str) -> Optional[ActiveTimer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM active_timers WHERE entry_id=%s", (entry_id,))
            r = fetchone(cur)
            return _row_to_timer(r) if r else None

    def exists_for_task(self, task_id: str, workspace_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM active_timers WHERE task_id=%s AND workspace_id=%s LIMIT 1",
                (task_id, workspace_id),
            )
            return fetchone(cur) is not None
