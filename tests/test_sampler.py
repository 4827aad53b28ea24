"""Tests for the activity sampler and idle detector."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from devtracker.events import FocusedDocument
from devtracker.sampler import ActivitySampler, ActivityState


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def record_time() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sampler(clock: FakeClock, record_time: MagicMock) -> ActivitySampler:
    sampler = ActivitySampler(record_time, clock=clock)
    sampler.set_focus(FocusedDocument("/code/alpha", "python", "src/app.py"))
    return sampler


class TestActivityState:
    """Tests for the Active/Idle decision."""

    def test_active_at_start(self, sampler: ActivitySampler):
        assert sampler.state is ActivityState.ACTIVE

    def test_active_just_below_threshold(self, sampler: ActivitySampler, clock: FakeClock):
        clock.advance(299.9)
        assert sampler.is_active()

    def test_idle_at_threshold(self, sampler: ActivitySampler, clock: FakeClock):
        clock.advance(300)
        assert sampler.state is ActivityState.IDLE

    def test_activity_reactivates_immediately(self, sampler: ActivitySampler, clock: FakeClock):
        clock.advance(1000)
        assert not sampler.is_active()

        sampler.on_activity()
        assert sampler.is_active()
        assert sampler.idle_seconds() == 0

    def test_custom_threshold(self, clock: FakeClock, record_time: MagicMock):
        sampler = ActivitySampler(record_time, idle_threshold=10, clock=clock)
        clock.advance(10)
        assert sampler.state is ActivityState.IDLE


class TestTick:
    """Tests for crediting time per tick."""

    def test_active_tick_credits_one_second(self, sampler: ActivitySampler, record_time: MagicMock):
        assert sampler.tick() == 1
        record_time.assert_called_once_with("/code/alpha", "python", "src/app.py", 1)

    def test_idle_after_301_seconds_credits_nothing(
        self, sampler: ActivitySampler, clock: FakeClock, record_time: MagicMock
    ):
        clock.advance(301)
        assert sampler.tick() == 0
        record_time.assert_not_called()

    def test_first_tick_after_activity_credits_one_second(
        self, sampler: ActivitySampler, clock: FakeClock, record_time: MagicMock
    ):
        clock.advance(301)
        sampler.tick()

        sampler.on_activity()
        clock.advance(1)
        assert sampler.tick() == 1
        record_time.assert_called_once_with("/code/alpha", "python", "src/app.py", 1)

    def test_no_catch_up_for_long_gaps(
        self, sampler: ActivitySampler, clock: FakeClock, record_time: MagicMock
    ):
        # The tick arrives 45 seconds late but the user is still active
        clock.advance(45)
        assert sampler.tick() == 1
        assert record_time.call_args.args[3] == 1

    def test_no_focus_credits_nothing(self, sampler: ActivitySampler, record_time: MagicMock):
        sampler.set_focus(None)
        assert sampler.tick() == 0
        record_time.assert_not_called()

    def test_focus_without_project_credits_nothing(
        self, sampler: ActivitySampler, record_time: MagicMock
    ):
        sampler.set_focus(FocusedDocument(project_root="", language_id="python"))
        assert sampler.tick() == 0
        record_time.assert_not_called()

    def test_missing_language_defaults_to_unknown(
        self, sampler: ActivitySampler, record_time: MagicMock
    ):
        sampler.set_focus(FocusedDocument("/code/alpha", "", "notes"))
        sampler.tick()
        record_time.assert_called_once_with("/code/alpha", "unknown", "notes", 1)

    def test_tracks_last_known_project(self, sampler: ActivitySampler):
        assert sampler.last_known_project is None
        sampler.tick()
        assert sampler.last_known_project == "/code/alpha"

        sampler.set_focus(None)
        sampler.tick()
        assert sampler.last_known_project == "/code/alpha"

    def test_focus_provider_resolved_each_tick(self, clock: FakeClock, record_time: MagicMock):
        documents = iter([
            FocusedDocument("/a", "go", "main.go"),
            None,
            FocusedDocument("/b", "rust", "lib.rs"),
        ])
        sampler = ActivitySampler(record_time, clock=clock, focus_provider=lambda: next(documents))

        assert [sampler.tick(), sampler.tick(), sampler.tick()] == [1, 0, 1]
        assert [c.args[0] for c in record_time.call_args_list] == ["/a", "/b"]

    def test_sixty_active_ticks_credit_sixty_seconds(
        self, sampler: ActivitySampler, clock: FakeClock, record_time: MagicMock
    ):
        total = 0
        for _ in range(60):
            clock.advance(1)
            total += sampler.tick()
        assert total == 60
        assert record_time.call_count == 60
