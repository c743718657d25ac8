from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import NOW
from worktrack.container import assemble
from worktrack.core.enums import TargetStatus
from worktrack.targets.model import Target
from worktrack.targets import status
from worktrack.targets.status import calculate_target_status

PAST = NOW - timedelta(days=1)
FUTURE = NOW + timedelta(days=1)


def _target(target_id, *, current, goal=100, deadline=FUTURE, status=TargetStatus.ACTIVE) -> Target:
    return Target(
        id=target_id,
        workspace_id="ws_1",
        user_id="u1",
        title=f"Target {target_id}",
        current_value=current,
        target_value=goal,
        deadline=deadline,
        status=status,
        updated_at=PAST,
    )


@pytest.mark.parametrize(
    "current,deadline,status,expected,reason,changed",
    [
        (100, FUTURE, TargetStatus.ACTIVE, TargetStatus.COMPLETED, "Target value reached", True),
        (120, PAST, TargetStatus.ACTIVE, TargetStatus.COMPLETED, "Target value reached", True),
        (100, PAST, TargetStatus.FAILED, TargetStatus.COMPLETED, "Target completed after deadline", True),
        (100, PAST, TargetStatus.COMPLETED, TargetStatus.COMPLETED, "Already completed", False),
        (50, PAST, TargetStatus.ACTIVE, TargetStatus.FAILED, "Deadline passed without reaching target", True),
        (50, FUTURE, TargetStatus.FAILED, TargetStatus.ACTIVE, "Deadline extended, target reactivated", True),
        (50, FUTURE, TargetStatus.ACTIVE, TargetStatus.ACTIVE, "No change required", False),
        (50, PAST, TargetStatus.FAILED, TargetStatus.FAILED, "No change required", False),
    ],
)
def test_calculate_target_status(current, deadline, status, expected, reason, changed):
    decision = calculate_target_status(
        current_value=current,
        target_value=100,
        deadline=deadline,
        current_status=status,
        now=NOW,
    )

    assert decision.status == expected
    assert decision.reason == reason
    assert decision.should_update is changed


def test_deadline_equal_to_now_is_not_overdue():
    decision = calculate_target_status(
        current_value=0, target_value=1, deadline=NOW, current_status=TargetStatus.ACTIVE, now=NOW
    )

    assert decision.should_update is False


def test_status_module_only_defines_the_sweep_decision():
    defined = [
        name
        for name, value in vars(status).items()
        if callable(value) and getattr(value, "__module__", None) == status.__name__
    ]

    assert defined == ["calculate_target_status"]


def test_batch_update_applies_changes(container, targets_repo, clock):
    targets_repo.items.update(
        {
            "done": _target("done", current=100),
            "late": _target("late", current=10, deadline=PAST),
            "extended": _target("extended", current=10, status=TargetStatus.FAILED),
            "steady": _target("steady", current=10),
        }
    )

    result = container.target_service.batch_update()

    assert result.updated_count == 3
    assert targets_repo.items["done"].status == TargetStatus.COMPLETED
    assert targets_repo.items["done"].completed_at == clock.now()
    assert targets_repo.items["late"].status == TargetStatus.FAILED
    assert targets_repo.items["late"].completed_at is None
    assert targets_repo.items["extended"].status == TargetStatus.ACTIVE
    assert targets_repo.items["steady"].updated_at == PAST

    data = result.to_dict()
    assert data["message"] == "Batch update completed: 3 targets updated"
    assert {"target_id": "done", "status_change": "active → completed", "reason": "Target value reached"} in data["updates"]
    assert data["errors"] == []


def test_batch_update_skips_completed_targets(container, targets_repo):
    targets_repo.items["closed"] = _target("closed", current=0, deadline=PAST, status=TargetStatus.COMPLETED)

    result = container.target_service.batch_update()

    assert result.updated_count == 0
    assert result.message == "No status changes needed"
    assert targets_repo.items["closed"].status == TargetStatus.COMPLETED


def test_batch_update_isolates_failures(container, targets_repo):
    targets_repo.items.update(
        {
            "broken": _target("broken", current=100),
            "fine": _target("fine", current=100),
        }
    )
    targets_repo.fail_on.add("broken")

    result = container.target_service.batch_update()

    assert [u.target_id for u in result.updates] == ["fine"]
    assert result.errors == [{"target_id": "broken", "error": "connection lost"}]
    assert targets_repo.items["fine"].status == TargetStatus.COMPLETED
    assert targets_repo.items["broken"].status == TargetStatus.ACTIVE


def test_batch_update_ignores_targets_changed_concurrently(clock, entries_repo, timers_repo, attendance_repo, directory):
    class RacingTargets:
        def __init__(self):
            self.target = _target("raced", current=100)

        def list_by_status(self, statuses):
            return [self.target]

        def update_status(self, target_id, **kwargs):
            return False

    container = assemble(
        entries=entries_repo,
        timers=timers_repo,
        attendance=attendance_repo,
        targets=RacingTargets(),
        tasks=directory,
        workspaces=directory,
        users=directory,
        clock=clock,
    )

    result = container.target_service.batch_update()

    assert result.updated_count == 0
    assert result.errors == []
