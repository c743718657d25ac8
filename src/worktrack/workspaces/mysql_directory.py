from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TaskRef, UserRef, Workspace, WorkspaceMember
from .repository import TaskDirectory, UserDirectory, WorkspaceDirectory


class MySQLTaskDirectory(TaskDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def resolve_task(self, task_id: str, workspace_id: str) -> Optional[TaskRef]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT t.id, t.title, t.project_id, p.name AS project_name
                FROM tasks t
                LEFT JOIN projects p ON p.id = t.project_id
                WHERE t.id=%s AND t.workspace_id=%s
                """,
                (task_id, workspace_id),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TaskRef(
                id=r["id"],
                title=r["title"],
                project_id=r.get("project_id"),
                project_name=r.get("project_name"),
            )


class MySQLWorkspaceDirectory(WorkspaceDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name FROM workspaces WHERE id=%s", (workspace_id,))
            r = fetchone(cur)
            if not r:
                return None
            return Workspace(id=r["id"], name=r["name"])

    def list_members(self, workspace_id: str) -> Sequence[WorkspaceMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id
                FROM workspace_members
                WHERE workspace_id=%s
                ORDER BY joined_at ASC, member_id ASC
                """,
                (workspace_id,),
            )
            return [WorkspaceMember(member_id=r["member_id"]) for r in fetchall(cur)]


class MySQLUserDirectory(UserDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[UserRef]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, username, email FROM users WHERE id=%s", (user_id,))
            r = fetchone(cur)
            if not r:
                return None
            return UserRef(id=r["id"], username=r["username"], email=r.get("email"))
