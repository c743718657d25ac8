from __future__ import annotations

from datetime import datetime

from ..common.datetime_utils import ensure_utc
from ..core.enums import TargetStatus
from .model import StatusDecision


def calculate_target_status(
    *,
    current_value: float,
    target_value: float,
    deadline: datetime,
    current_status: TargetStatus,
    now: datetime,
) -> StatusDecision:
    """Decide a target's status from its progress and deadline.

    Reaching the target value always wins, even after the deadline.
    """

    is_completed = current_value >= target_value
    is_overdue = ensure_utc(now) > ensure_utc(deadline)

    if is_completed:
        if current_status == TargetStatus.COMPLETED:
            return StatusDecision(TargetStatus.COMPLETED, "Already completed", False)
        if current_status == TargetStatus.FAILED:
            return StatusDecision(TargetStatus.COMPLETED, "Target completed after deadline", True)
        return StatusDecision(TargetStatus.COMPLETED, "Target value reached", True)

    if is_overdue and current_status == TargetStatus.ACTIVE:
        return StatusDecision(TargetStatus.FAILED, "Deadline passed without reaching target", True)

    if current_status == TargetStatus.FAILED and not is_overdue:
        return StatusDecision(TargetStatus.ACTIVE, "Deadline extended, target reactivated", True)

    return StatusDecision(current_status, "No change required", False)

