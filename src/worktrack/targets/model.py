from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import TargetStatus


@dataclass(frozen=True)
class Target:
    id: str
    workspace_id: str
    user_id: str
    title: str
    current_value: float
    target_value: float
    deadline: datetime
    status: TargetStatus
    updated_at: datetime
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatusDecision:
    status: TargetStatus
    reason: str
    should_update: bool


@dataclass(frozen=True)
class TargetStatusUpdate:
    target_id: str
    current_status: TargetStatus
    new_status: TargetStatus
    reason: str

    def to_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "status_change": f"{self.current_status.value} → {self.new_status.value}",
            "reason": self.reason,
        }


@dataclass(frozen=True)
class BatchUpdateResult:
    updates: list[TargetStatusUpdate] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.updates)

    @property
    def message(self) -> str:
        if not self.updates and not self.errors:
            return "No status changes needed"
        return f"Batch update completed: {self.updated_count} targets updated"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "updated_count": self.updated_count,
            "updates": [u.to_dict() for u in self.updates],
            "errors": [dict(e) for e in self.errors],
        }
