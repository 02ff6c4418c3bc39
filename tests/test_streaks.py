"""Tests for the daily streak tracker."""

import random
from datetime import date, datetime, timedelta, timezone

from progress_engine.gamification.streaks import advance_streak
from progress_engine.models.progress import LearningStreak


class TestAdvanceStreak:
    def test_next_day_continues(self):
        streak = LearningStreak(current=3, longest=5, last_active_date=date(2024, 1, 5))
        assert advance_streak(streak, date(2024, 1, 6)) == LearningStreak(
            current=4, longest=5, last_active_date=date(2024, 1, 6)
        )

    def test_gap_resets(self):
        streak = LearningStreak(current=3, longest=5, last_active_date=date(2024, 1, 5))
        assert advance_streak(streak, date(2024, 1, 10)) == LearningStreak(
            current=1, longest=5, last_active_date=date(2024, 1, 10)
        )

    def test_same_day_is_unchanged(self):
        streak = LearningStreak(current=3, longest=5, last_active_date=date(2024, 1, 5))
        assert advance_streak(streak, streak.last_active_date) is streak

    def test_time_of_day_is_ignored(self):
        streak = LearningStreak(current=3, longest=5, last_active_date=date(2024, 1, 5))
        late = datetime(2024, 1, 5, 23, 59, tzinfo=timezone.utc)
        assert advance_streak(streak, late) is streak
        early = datetime(2024, 1, 6, 0, 1, tzinfo=timezone.utc)
        assert advance_streak(streak, early).current == 4

    def test_continuing_past_longest_raises_it(self):
        streak = LearningStreak(current=5, longest=5, last_active_date=date(2024, 1, 5))
        advanced = advance_streak(streak, date(2024, 1, 6))
        assert advanced.current == 6
        assert advanced.longest == 6

    def test_earlier_date_resets(self):
        streak = LearningStreak(current=3, longest=5, last_active_date=date(2024, 1, 5))
        assert advance_streak(streak, date(2024, 1, 4)).current == 1

    def test_first_activity_starts_streak(self):
        advanced = advance_streak(LearningStreak(), date(2024, 1, 5))
        assert advanced == LearningStreak(current=1, longest=1, last_active_date=date(2024, 1, 5))

    def test_longest_never_below_current(self):
        rng = random.Random(7)
        streak = LearningStreak()
        day = date(2024, 1, 1)
        for _ in range(500):
            day = day + timedelta(days=rng.choice([0, 1, 1, 1, 2, 5]))
            streak = advance_streak(streak, day)
            assert streak.longest >= streak.current
