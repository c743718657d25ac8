from __future__ import annotations

from enum import Enum


class TargetStatus(str, Enum):
    """Lifecycle of a tracked goal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class Timeframe(str, Enum):
    """Windows understood by the dashboard and filtered entry listings."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"
