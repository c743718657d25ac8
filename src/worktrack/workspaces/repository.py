from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import TaskRef, UserRef, Workspace, WorkspaceMember


class TaskDirectory(Protocol):
    """Read-only lookup of tasks provided by the surrounding system."""

    def resolve_task(self, task_id: str, workspace_id: str) -> Optional[TaskRef]:
        raise NotImplementedError


class WorkspaceDirectory(Protocol):
    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        raise NotImplementedError

    def list_members(self, workspace_id: str) -> Sequence[WorkspaceMember]:
        raise NotImplementedError


class UserDirectory(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserRef]:
        raise NotImplementedError
