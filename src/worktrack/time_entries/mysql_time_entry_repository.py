from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import TimeEntry, TimeEntryFilter
from .repository import TimeEntryRepository

ENTRY_COLUMNS = """
    id, user_id, workspace_id, task_id, task_title, project_id, project_name,
    start_time, end_time, duration, is_running, description, resumed_at,
    created_at, updated_at
"""


def row_to_entry(r: dict) -> TimeEntry:
    return TimeEntry(
        id=r["id"],
        user_id=r["user_id"],
        workspace_id=r["workspace_id"],
        task_id=r["task_id"],
        task_title=r.get("task_title"),
        project_id=r.get("project_id"),
        project_name=r.get("project_name"),
        start_time=from_db_datetime(r["start_time"]),
        end_time=from_db_datetime(r.get("end_time")),
        duration=int(r.get("duration") or 0),
        is_running=bool(r.get("is_running")),
        description=r.get("description") or "",
        resumed_at=from_db_datetime(r.get("resumed_at")),
        created_at=from_db_datetime(r["created_at"]),
        updated_at=from_db_datetime(r["updated_at"]),
    )


def _where(user_id: str, workspace_id: str, filters: TimeEntryFilter) -> tuple[str, list[Any]]:
    clauses = ["user_id=%s", "workspace_id=%s"]
    params: list[Any] = [user_id, workspace_id]

    if filters.task_id:
        clauses.append("task_id=%s")
        params.append(filters.task_id)
    if filters.project_id:
        clauses.append("project_id=%s")
        params.append(filters.project_id)
    if filters.start is not None:
        clauses.append("start_time>=%s")
        params.append(to_db_datetime(filters.start))
    if filters.end is not None:
        clauses.append("start_time<=%s")
        params.append(to_db_datetime(filters.end))
    if filters.is_running is not None:
        clauses.append("is_running=%s")
        params.append(1 if filters.is_running else 0)

    return " AND ".join(clauses), params


def insert_entry(cur, entry: TimeEntry) -> None:
    cur.execute(
        """
        INSERT INTO time_entries(
            id, user_id, workspace_id, task_id, task_title, project_id, project_name,
            start_time, end_time, duration, is_running, description, resumed_at,
            created_at, updated_at
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
        """,
        (
            entry.id,
            entry.user_id,
            entry.workspace_id,
            entry.task_id,
            entry.task_title,
            entry.project_id,
            entry.project_name,
            to_db_datetime(entry.start_time),
            to_db_datetime(entry.end_time),
            int(entry.duration),
            1 if entry.is_running else 0,
            entry.description,
            to_db_datetime(entry.resumed_at),
            to_db_datetime(entry.created_at),
            to_db_datetime(entry.updated_at),
        ),
    )


def close_entry(cur, entry: TimeEntry) -> None:
    """Write the settled duration of ``entry`` and mark it stopped."""
    cur.execute(
        """
        UPDATE time_entries
        SET duration=%s, end_time=%s, is_running=0, updated_at=%s
        WHERE id=%s
        """,
        (int(entry.duration), to_db_datetime(entry.end_time), to_db_datetime(entry.updated_at), entry.id),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE id=%s", (entry_id,))
            r = fetchone(cur)
            return row_to_entry(r) if r else None

    def get_owned(self, entry_id: str, *, user_id: str, workspace_id: Optional[str] = None) -> Optional[TimeEntry]:
        sql = f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE id=%s AND user_id=%s"
        params: list[Any] = [entry_id, user_id]
        if workspace_id is not None:
            sql += " AND workspace_id=%s"
            params.append(workspace_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            r = fetchone(cur)
            return row_to_entry(r) if r else None

    def add(self, entry: TimeEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            insert_entry(cur, entry)

    def mark_resumed(self, entry_id: str, *, resumed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET is_running=1, resumed_at=%s, updated_at=%s
                WHERE id=%s
                """,
                (to_db_datetime(resumed_at), to_db_datetime(resumed_at), entry_id),
            )
            return cur.rowcount > 0

    def update_description(self, entry_id: str, *, user_id: str, description: str, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET description=%s, updated_at=%s
                WHERE id=%s AND user_id=%s
                """,
                (description, to_db_datetime(updated_at), entry_id, user_id),
            )
            return cur.rowcount > 0

    def delete(self, entry_id: str, *, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_entries WHERE id=%s AND user_id=%s", (entry_id, user_id))
            return cur.rowcount > 0

    def list_for_user(
        self,
        *,
        user_id: str,
        workspace_id: str,
        filters: TimeEntryFilter = TimeEntryFilter(),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[TimeEntry]:
        where, params = _where(user_id, workspace_id, filters)
        sql = f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE {where} ORDER BY start_time DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_entry(r) for r in fetchall(cur)]

    def count_for_user(self, *, user_id: str, workspace_id: str, filters: TimeEntryFilter = TimeEntryFilter()) -> int:
        where, params = _where(user_id, workspace_id, filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM time_entries WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_for_task(self, *, task_id: str, workspace_id: str) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE task_id=%s AND workspace_id=%s ORDER BY start_time DESC",
                (task_id, workspace_id),
            )
            return [row_to_entry(r) for r in fetchall(cur)]
