from __future__ import annotations

import pytest

from conftest import NOW, WS, make_entry
from worktrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from worktrack.timers.locks import UserLockRegistry
from worktrack.timers.model import ActiveTimer
from worktrack.timers.service import TimerService
from worktrack.timers.state import Idle, Running


@pytest.fixture
def timers(container):
    return container.timer_service


def test_start_creates_timer_without_entry(timers, timers_repo, entries_repo):
    timer = timers.start(user_id="u1", workspace_id=WS, task_id="t1", description="  draft  ")

    assert timers_repo.get_for_user("u1") == timer
    assert timer.entry_id is None
    assert timer.previous_duration == 0
    assert timer.start_time == NOW
    assert timer.task_title == "Landing page"
    assert timer.project_name == "Website"
    assert timer.description == "draft"
    assert entries_repo.items == {}


def test_start_uses_placeholder_for_unnamed_project(timers):
    timer = timers.start(user_id="u1", workspace_id=WS, task_id="t2")

    assert timer.project_name == "Unknown Project"


def test_start_unknown_task_is_not_found(timers, timers_repo):
    with pytest.raises(NotFoundError):
        timers.start(user_id="u1", workspace_id=WS, task_id="nope")

    assert timers_repo.by_user == {}


def test_start_task_from_other_workspace_is_not_found(timers):
    with pytest.raises(NotFoundError):
        timers.start(user_id="u1", workspace_id="ws_other", task_id="t1")


def test_start_requires_task_id(timers):
    with pytest.raises(ValidationError):
        timers.start(user_id="u1", workspace_id=WS, task_id="  ")


def test_stop_then_resume_accumulates_duration(timers, clock, entries_repo):
    first = timers.start(user_id="u1", workspace_id=WS, task_id="t1")
    clock.advance(100)
    entry = timers.stop(timer_id=first.id, user_id="u1", workspace_id=WS)
    assert entry.duration == 100

    resumed = timers.resume(entry_id=entry.id, user_id="u1", workspace_id=WS)
    assert resumed.entry_id == entry.id
    assert resumed.previous_duration == 100
    assert entries_repo.get(entry.id).is_running is True

    clock.advance(60)
    stopped = timers.stop(timer_id=resumed.id, user_id="u1", workspace_id=WS)

    stored = entries_repo.get(entry.id)
    assert stopped.id == entry.id
    assert stored.duration == 160
    assert stored.is_running is False
    assert stored.end_time == clock.now()
    assert stored.start_time == NOW
    assert stored.resumed_at == NOW.replace(second=40, minute=1)
    assert len(entries_repo.items) == 1


def test_start_while_running_force_stops_previous(timers, clock, timers_repo, entries_repo):
    timers.start(user_id="u1", workspace_id=WS, task_id="t1")
    clock.advance(30)

    second = timers.start(user_id="u1", workspace_id=WS, task_id="t2")

    assert timers_repo.get_for_user("u1") == second
    (forced,) = entries_repo.items.values()
    assert forced.task_id == "t1"
    assert forced.duration == 30
    assert forced.end_time == clock.now()
    assert forced.is_running is False


def test_resume_another_entry_force_stops_into_its_entry(timers, clock, entries_repo):
    entries_repo.seed(make_entry("e1", duration=500), make_entry("e2", task_id="t2", duration=20))

    timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)
    clock.advance(45)
    timers.resume(entry_id="e2", user_id="u1", workspace_id=WS)

    assert entries_repo.get("e1").duration == 545
    assert entries_repo.get("e1").is_running is False
    assert entries_repo.get("e2").is_running is True


def test_resume_the_running_entry_keeps_accumulating(timers, clock, entries_repo):
    entries_repo.seed(make_entry("e1", duration=100))

    timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)
    clock.advance(50)
    again = timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)
    assert again.previous_duration == 150

    clock.advance(10)
    timers.stop(timer_id=again.id, user_id="u1", workspace_id=WS)

    assert entries_repo.get("e1").duration == 160


def test_resume_entry_of_other_user_is_not_found(timers, entries_repo, timers_repo):
    entries_repo.seed(make_entry("e1", user_id="u2", duration=10))

    with pytest.raises(NotFoundError):
        timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)

    assert timers_repo.by_user == {}


def test_resume_entry_in_other_workspace_is_not_found(timers, entries_repo):
    entries_repo.seed(make_entry("e1", workspace_id="ws_2"))

    with pytest.raises(NotFoundError):
        timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)


def test_stop_without_active_timer_changes_nothing(timers, entries_repo, timers_repo):
    entries_repo.seed(make_entry("e1", duration=10))

    with pytest.raises(NotFoundError):
        timers.stop(timer_id="timer_missing", user_id="u1", workspace_id=WS)

    assert entries_repo.writes == 0
    assert list(entries_repo.items) == ["e1"]
    assert timers_repo.by_user == {}


def test_stop_someone_elses_timer_is_not_found(timers, timers_repo):
    other = timers.start(user_id="u2", workspace_id=WS, task_id="t1")

    with pytest.raises(NotFoundError):
        timers.stop(timer_id=other.id, user_id="u1", workspace_id=WS)

    assert timers_repo.get_for_user("u2") == other


def test_stop_with_mismatched_workspace_is_not_found(timers):
    timer = timers.start(user_id="u1", workspace_id=WS, task_id="t1")

    with pytest.raises(NotFoundError):
        timers.stop(timer_id=timer.id, user_id="u1", workspace_id="ws_2")


def _legacy_timer(**overrides) -> ActiveTimer:
    values = dict(
        id="timer_legacy",
        user_id="u1",
        task_id="t1",
        workspace_id=WS,
        start_time=NOW,
        created_at=NOW,
        previous_duration=40,
    )
    values.update(overrides)
    return ActiveTimer(**values)


def test_stop_legacy_timer_creates_entry(timers, clock, timers_repo, entries_repo):
    timers_repo.add(_legacy_timer())
    clock.advance(20)

    entry = timers.stop(timer_id="timer_legacy", user_id="u1")

    assert entry.duration == 60
    assert entry.start_time == NOW
    assert entry.end_time == clock.now()
    assert entries_repo.get(entry.id) == entry
    assert timers_repo.by_user == {}


def test_stop_timer_whose_entry_vanished_falls_back_to_new_entry(timers, clock, timers_repo, entries_repo):
    timers_repo.add(_legacy_timer(entry_id="e_deleted", previous_duration=90))
    clock.advance(10)

    entry = timers.stop(timer_id="timer_legacy", user_id="u1")

    assert entry.id != "e_deleted"
    assert entry.duration == 100
    assert list(entries_repo.items) == [entry.id]


def test_get_elapsed(timers, clock, entries_repo):
    assert timers.get_elapsed("u1") == 0
    assert isinstance(timers.get_state("u1"), Idle)

    entries_repo.seed(make_entry("e1", duration=300))
    timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)
    clock.advance(25)

    assert isinstance(timers.get_state("u1"), Running)
    assert timers.get_elapsed("u1") == 325
    assert entries_repo.get("e1").duration == 300


def test_elapsed_is_never_negative(timers, clock, timers_repo):
    timers_repo.add(_legacy_timer(start_time=clock.advance(60), previous_duration=0))
    clock.advance(-120)

    assert timers.get_elapsed("u1") == 0


def test_timer_operations_conflict_while_user_lock_is_held(timers_repo, entries_repo, directory, clock):
    locks = UserLockRegistry(timeout=0.01)
    service = TimerService(timers_repo, entries_repo, directory, clock=clock, locks=locks)

    with locks.hold("u1"):
        with pytest.raises(ConflictError):
            service.start(user_id="u1", workspace_id=WS, task_id="t1")
        # other users are unaffected
        service.start(user_id="u2", workspace_id=WS, task_id="t1")

    assert timers_repo.get_for_user("u1") is None
    assert not locks.is_held("u1")


def test_timer_to_dict_reports_live_totals(timers, clock):
    timer = timers.start(user_id="u1", workspace_id=WS, task_id="t1")
    clock.advance(90)

    data = timer.to_dict(now=clock.now())

    assert data["elapsed_time"] == 90
    assert data["total_duration"] == 90
    assert data["start_time"] == "2024-03-13T09:00:00Z"


class _StaleTimerReads:
    """A second worker's view of the timer store: ``get`` answers from a snapshot taken earlier."""

    def __init__(self, inner):
        self._inner = inner
        self._snapshot = dict(inner.by_user)

    def get(self, timer_id, *, user_id):
        t = self._snapshot.get(user_id)
        return t if t is not None and t.id == timer_id else None

    def __getattr__(self, name):
        return getattr(self._inner, name)


def _second_worker(timers_repo, entries_repo, directory, clock):
    # Each worker process has its own lock registry; only storage is shared.
    stale = _StaleTimerReads(timers_repo)
    return TimerService(stale, entries_repo, directory, clock=clock, locks=UserLockRegistry(timeout=0.05))


def test_two_workers_stopping_a_resumed_timer_record_it_once(timers, clock, timers_repo, entries_repo, directory):
    entries_repo.seed(make_entry("e1", duration=100))
    resumed = timers.resume(entry_id="e1", user_id="u1", workspace_id=WS)
    other = _second_worker(timers_repo, entries_repo, directory, clock)

    clock.advance(60)
    first = timers.stop(timer_id=resumed.id, user_id="u1", workspace_id=WS)
    assert first.duration == 160
    writes = entries_repo.writes

    clock.advance(30)
    with pytest.raises(NotFoundError):
        other.stop(timer_id=resumed.id, user_id="u1", workspace_id=WS)

    assert entries_repo.get("e1").duration == 160
    assert entries_repo.get("e1").is_running is False
    assert entries_repo.writes == writes
    assert timers_repo.by_user == {}


def test_two_workers_stopping_a_fresh_timer_create_one_entry(timers, clock, timers_repo, entries_repo, directory):
    started = timers.start(user_id="u1", workspace_id=WS, task_id="t1")
    other = _second_worker(timers_repo, entries_repo, directory, clock)

    clock.advance(45)
    entry = timers.stop(timer_id=started.id, user_id="u1", workspace_id=WS)
    with pytest.raises(NotFoundError):
        other.stop(timer_id=started.id, user_id="u1", workspace_id=WS)

    assert list(entries_repo.items) == [entry.id]
    assert entry.duration == 45


def test_force_stop_of_an_already_closed_timer_writes_nothing(timers, clock, timers_repo, entries_repo, directory):
    started = timers.start(user_id="u1", workspace_id=WS, task_id="t1")
    other = _second_worker(timers_repo, entries_repo, directory, clock)
    clock.advance(20)
    timers.stop(timer_id=started.id, user_id="u1", workspace_id=WS)

    # The second worker still believes the first timer is running.
    stale_state = Running(started)
    assert other._collapse(stale_state, clock.now()) is None
    assert len(entries_repo.items) == 1
