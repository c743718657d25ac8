from __future__ import annotations

from ..common.clock import Clock, SystemClock
from ..core.enums import TargetStatus
from ..core.logging import get_logger
from .model import BatchUpdateResult, TargetStatusUpdate
from .repository import TargetRepository
from .status import calculate_target_status

logger = get_logger(__name__)

SWEPT_STATUSES = (TargetStatus.ACTIVE, TargetStatus.FAILED)


class TargetService:
    def __init__(self, targets: TargetRepository, *, clock: Clock | None = None):
        self._targets = targets
        self._clock = clock or SystemClock()

    def batch_update(self) -> BatchUpdateResult:
        """Recompute the status of every active or failed target.

        Best effort per target: a failing record is logged and reported, the
        sweep carries on with the rest.
        """

        now = self._clock.now()
        updates: list[TargetStatusUpdate] = []
        errors: list[dict] = []

        for target in self._targets.list_by_status(SWEPT_STATUSES):
            try:
                decision = calculate_target_status(
                    current_value=target.current_value,
                    target_value=target.target_value,
                    deadline=target.deadline,
                    current_status=target.status,
                    now=now,
                )
                if not decision.should_update:
                    continue

                applied = self._targets.update_status(
                    target.id,
                    expected_status=target.status,
                    new_status=decision.status,
                    updated_at=now,
                    completed_at=now if decision.status == TargetStatus.COMPLETED else None,
                )
                if not applied:
                    logger.info("Target %s changed since it was read; skipped", target.id)
                    continue

                updates.append(
                    TargetStatusUpdate(
                        target_id=target.id,
                        current_status=target.status,
                        new_status=decision.status,
                        reason=decision.reason,
                    )
                )
            except Exception as exc:
                logger.exception("Target %s status update failed", target.id)
                errors.append({"target_id": target.id, "error": str(exc)})

        logger.info("Target sweep finished: updated=%d errors=%d", len(updates), len(errors))
        return BatchUpdateResult(updates=updates, errors=errors)
