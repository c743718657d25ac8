from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TargetStatus
from .model import Target


class TargetRepository(Protocol):
    def list_by_status(self, statuses: Sequence[TargetStatus]) -> Sequence[Target]:
        raise NotImplementedError

    def update_status(
        self,
        target_id: str,
        *,
        expected_status: TargetStatus,
        new_status: TargetStatus,
        updated_at: datetime,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        """Conditional write: only applies while the stored status is still ``expected_status``."""

        raise NotImplementedError
