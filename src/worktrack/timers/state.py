"""Per-user timer state as a tagged variant.

A user is either ``Idle`` or ``Running`` exactly one timer; there is no stored
paused state (pausing is stop now, resume later).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .model import ActiveTimer


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Running:
    timer: ActiveTimer


UserTimerState = Union[Idle, Running]


def state_of(timer: Optional[ActiveTimer]) -> UserTimerState:
    if timer is None:
        return Idle()
    return Running(timer)
