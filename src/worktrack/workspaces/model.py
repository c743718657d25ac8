from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TaskRef:
    """Task as seen by time tracking (owned by the project/task subsystem)."""

    id: str
    title: str
    project_id: Optional[str]
    project_name: Optional[str] = None


@dataclass(frozen=True)
class Workspace:
    id: str
    name: str


@dataclass(frozen=True)
class WorkspaceMember:
    member_id: str


@dataclass(frozen=True)
class UserRef:
    id: str
    username: str
    email: Optional[str] = None
