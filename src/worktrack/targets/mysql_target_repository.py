from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import TargetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime, to_db_datetime
from .model import Target
from .repository import TargetRepository


class MySQLTargetRepository(TargetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_status(self, statuses: Sequence[TargetStatus]) -> Sequence[Target]:
        if not statuses:
            return []
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, workspace_id, user_id, title, current_value, target_value,
                       deadline, status, completed_at, updated_at
                FROM targets
                WHERE status IN ({placeholders})
                ORDER BY deadline ASC
                """,
                tuple(s.value for s in statuses),
            )
            return [
                Target(
                    id=r["id"],
                    workspace_id=r["workspace_id"],
                    user_id=r["user_id"],
                    title=r["title"],
                    current_value=float(r["current_value"]),
                    target_value=float(r["target_value"]),
                    deadline=from_db_datetime(r["deadline"]),
                    status=TargetStatus(r["status"]),
                    completed_at=from_db_datetime(r.get("completed_at")),
                    updated_at=from_db_datetime(r["updated_at"]),
                )
                for r in fetchall(cur)
            ]

    def update_status(
        self,
        target_id: str,
        *,
        expected_status: TargetStatus,
        new_status: TargetStatus,
        updated_at: datetime,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE targets
                SET status=%s, updated_at=%s, completed_at=COALESCE(%s, completed_at)
                WHERE id=%s AND status=%s
                """,
                (
                    new_status.value,
                    to_db_datetime(updated_at),
                    to_db_datetime(completed_at),
                    target_id,
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0
