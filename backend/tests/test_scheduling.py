"""
Tests for the fixed review schedule and checkpoint classification.
"""
from datetime import datetime, timedelta, timezone

import pytest

from revision_hub.scheduling import (
    REVIEW_OFFSETS,
    CheckpointStatus,
    ScheduledCheckpoint,
    as_utc,
    classify,
    days_until,
    is_due_today,
    resolve_timezone,
    schedule_checkpoints,
)

UTC = timezone.utc


class TestScheduleCheckpoints:

    def test_four_checkpoints_at_fixed_offsets(self):
        created = datetime(2024, 1, 1, tzinfo=UTC)
        checkpoints = schedule_checkpoints(created)

        assert [c.offset_days for c in checkpoints] == [1, 3, 7, 21]
        assert [c.due_date for c in checkpoints] == [
            datetime(2024, 1, 2, tzinfo=UTC),
            datetime(2024, 1, 4, tzinfo=UTC),
            datetime(2024, 1, 8, tzinfo=UTC),
            datetime(2024, 1, 22, tzinfo=UTC),
        ]
        assert all(c.completed_at is None for c in checkpoints)

    def test_due_dates_keep_time_of_day(self):
        created = datetime(2024, 3, 10, 15, 45, tzinfo=UTC)
        for c in schedule_checkpoints(created):
            assert c.due_date - created == timedelta(days=c.offset_days)

    def test_naive_created_at_is_treated_as_utc(self):
        checkpoints = schedule_checkpoints(datetime(2024, 1, 1))
        assert checkpoints[0].due_date == datetime(2024, 1, 2, tzinfo=UTC)

    def test_offsets_are_unique_and_ascending(self):
        assert list(REVIEW_OFFSETS) == sorted(set(REVIEW_OFFSETS))


class TestClassify:

    def test_completed_wins_over_overdue(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, tzinfo=UTC), completed_at=datetime(2024, 1, 5, tzinfo=UTC))
        assert classify(c, datetime(2024, 2, 1, tzinfo=UTC)) is CheckpointStatus.COMPLETED

    def test_overdue_when_due_date_passed(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, tzinfo=UTC))
        assert classify(c, datetime(2024, 1, 2, 0, 0, 1, tzinfo=UTC)) is CheckpointStatus.OVERDUE

    def test_pending_at_exact_due_instant(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, tzinfo=UTC))
        assert classify(c, datetime(2024, 1, 2, tzinfo=UTC)) is CheckpointStatus.PENDING

    def test_mixed_naive_and_aware(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2))
        assert classify(c, datetime(2024, 1, 1, tzinfo=UTC)) is CheckpointStatus.PENDING


class TestIsDueToday:

    def test_same_calendar_day(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, 0, 0, tzinfo=UTC))
        assert is_due_today(c, datetime(2024, 1, 2, 23, 59, tzinfo=UTC))

    def test_due_earlier_today_still_counts(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, 8, 0, tzinfo=UTC))
        now = datetime(2024, 1, 2, 18, 0, tzinfo=UTC)
        assert classify(c, now) is CheckpointStatus.OVERDUE
        assert is_due_today(c, now)

    def test_completed_is_never_due(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, tzinfo=UTC), completed_at=datetime(2024, 1, 2, tzinfo=UTC))
        assert not is_due_today(c, datetime(2024, 1, 2, 12, tzinfo=UTC))

    def test_other_day(self):
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, tzinfo=UTC))
        assert not is_due_today(c, datetime(2024, 1, 1, 23, 59, tzinfo=UTC))
        assert not is_due_today(c, datetime(2024, 1, 3, tzinfo=UTC))

    def test_calendar_day_follows_given_timezone(self):
        # 2024-01-02 03:00 UTC is still 2024-01-01 at UTC-5
        c = ScheduledCheckpoint(1, datetime(2024, 1, 2, 3, 0, tzinfo=UTC))
        now = datetime(2024, 1, 1, 20, 0, tzinfo=UTC)
        assert not is_due_today(c, now)
        assert is_due_today(c, now, timezone(timedelta(hours=-5)))


class TestHelpers:

    def test_days_until_rounds_up(self):
        c = ScheduledCheckpoint(3, datetime(2024, 1, 4, tzinfo=UTC))
        assert days_until(c, datetime(2024, 1, 1, tzinfo=UTC)) == 3
        assert days_until(c, datetime(2024, 1, 1, 1, tzinfo=UTC)) == 3
        assert days_until(c, datetime(2024, 1, 3, 23, tzinfo=UTC)) == 1
        assert days_until(c, datetime(2024, 1, 4, tzinfo=UTC)) == 0

    def test_as_utc_converts_offsets(self):
        local = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(local) == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        assert as_utc(local).tzinfo is UTC

    @pytest.mark.parametrize("name", [None, "", "UTC", "utc"])
    def test_resolve_timezone_defaults_to_utc(self, name):
        assert resolve_timezone(name) is UTC
