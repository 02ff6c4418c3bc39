"""Read-only projections for dashboards."""

from datetime import date, datetime
from typing import Optional, Sequence, Union

from pydantic import BaseModel

from progress_engine.gamification.points_engine import level_bounds, round_half_up
from progress_engine.gamification.streaks import as_day
from progress_engine.models.progress import ProgressState


class ProgressSummary(BaseModel):
    """Aggregated figures shown on the learner dashboard."""

    completed_concepts: int
    total_concepts: int
    completed_projects: int
    total_projects: int
    progress_percentage: int
    level: int
    experience: int
    current_level_xp: int
    next_level_xp: int
    minutes_today: int
    daily_goal_progress: float
    current_streak: int
    longest_streak: int


def minutes_logged_on(state: ProgressState, day: date) -> int:
    """Time recorded on concepts and projects last touched on ``day``."""
    records = list(state.concepts.values()) + list(state.projects.values())
    return sum(r.time_spent for r in records if r.last_accessed.date() == day)


def daily_goal_progress(state: ProgressState, today: Union[date, datetime]) -> float:
    """Share of the daily goal reached today, as a percentage capped at 100."""
    goal = state.preferences.daily_goal_minutes
    if goal <= 0:
        return 100.0
    minutes = minutes_logged_on(state, as_day(today))
    return min(minutes / goal * 100, 100.0)


def summarize(
    state: ProgressState,
    today: Union[date, datetime],
    thresholds: Optional[Sequence[int]] = None
) -> ProgressSummary:
    """Build the dashboard summary for a state."""
    completed_concepts = sum(1 for c in state.concepts.values() if c.completed)
    completed_projects = sum(1 for p in state.projects.values() if p.completed)
    total_concepts = len(state.concepts)
    total_projects = len(state.projects)

    denominator = max(total_concepts, 1) + max(total_projects, 1)
    percentage = round_half_up((completed_concepts + completed_projects) / denominator * 100)

    current_level_xp, next_level_xp = level_bounds(state.level, thresholds)

    return ProgressSummary(
        completed_concepts=completed_concepts,
        total_concepts=total_concepts,
        completed_projects=completed_projects,
        total_projects=total_projects,
        progress_percentage=percentage,
        level=state.level,
        experience=state.experience,
        current_level_xp=current_level_xp,
        next_level_xp=next_level_xp,
        minutes_today=minutes_logged_on(state, as_day(today)),
        daily_goal_progress=daily_goal_progress(state, today),
        current_streak=state.streak.current,
        longest_streak=state.streak.longest,
    )
