"""Daily learning streak tracking."""

from datetime import date, datetime, timedelta
from typing import Union

from progress_engine.models.progress import LearningStreak


def as_day(value: Union[date, datetime]) -> date:
    """Drop the time of day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def advance_streak(streak: LearningStreak, today: Union[date, datetime]) -> LearningStreak:
    """Advance a streak for activity on ``today``.

    Same-day activity leaves the streak untouched. Activity on the day after
    the last active date extends it; anything else starts a new streak of one.
    Call once per session: crossing midnight mid-session and calling again
    counts a second day.
    """
    today = as_day(today)
    last = streak.last_active_date

    if last == today:
        return streak

    if last is not None and today - last == timedelta(days=1):
        current = streak.current + 1
        return LearningStreak(
            current=current,
            longest=max(streak.longest, current),
            last_active_date=today,
        )

    return LearningStreak(
        current=1,
        longest=max(streak.longest, 1),
        last_active_date=today,
    )
