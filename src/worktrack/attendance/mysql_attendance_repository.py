from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    dump_json_list,
    fetchall,
    fetchone,
    from_db_datetime,
    load_json_list,
    to_db_datetime,
)
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "id, user_id, workspace_id, work_date, is_present, total_time_worked, time_entries, created_at, updated_at"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=r["id"],
        user_id=r["user_id"],
        workspace_id=r["workspace_id"],
        date=str(r["work_date"]),
        is_present=bool(r["is_present"]),
        total_time_worked=int(r["total_time_worked"]),
        time_entries=tuple(load_json_list(r.get("time_entries"))),
        created_at=from_db_datetime(r["created_at"]),
        updated_at=from_db_datetime(r["updated_at"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_key(self, *, user_id: str, workspace_id: str, date: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND workspace_id=%s AND work_date=%s
                """,
                (user_id, workspace_id, date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def save(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    id, user_id, workspace_id, work_date, is_present, total_time_worked,
                    time_entries, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    is_present=VALUES(is_present),
                    total_time_worked=VALUES(total_time_worked),
                    time_entries=VALUES(time_entries),
                    updated_at=VALUES(updated_at)
                """,
                (
                    record.id,
                    record.user_id,
                    record.workspace_id,
                    record.date,
                    1 if record.is_present else 0,
                    int(record.total_time_worked),
                    dump_json_list(record.time_entries),
                    to_db_datetime(record.created_at),
                    to_db_datetime(record.updated_at),
                ),
            )

    def list_for_date(self, *, workspace_id: str, date: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE workspace_id=%s AND work_date=%s
                ORDER BY user_id ASC
                """,
                (workspace_id, date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_range(self, *, workspace_id: str, start_date: str, end_date: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE workspace_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC, user_id ASC
                """,
                (workspace_id, start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_user(
        self,
        *,
        user_id: str,
        workspace_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["user_id=%s", "workspace_id=%s"]
        params = [user_id, workspace_id]
        if start_date:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date:
            clauses.append("work_date<=%s")
            params.append(end_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date DESC
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
