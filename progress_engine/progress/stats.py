"""Stats snapshot derived from learner state."""

from progress_engine.models.gamification import StatsSnapshot
from progress_engine.models.progress import ProgressState

PERFECT_SCORE = 100


def derive_stats(state: ProgressState) -> StatsSnapshot:
    """Collapse a progress state into the counters badges are checked against.

    Every tracked concept counts as a skill whose level is the concept score.
    """
    concepts = state.concepts.values()

    return StatsSnapshot(
        lessons_completed=sum(1 for c in concepts if c.completed),
        quizzes_completed=state.activity.quizzes_completed,
        perfect_scores=sum(1 for c in concepts if c.score == PERFECT_SCORE),
        perfect_quiz_streak=state.activity.perfect_quiz_streak,
        current_streak=state.streak.current,
        longest_streak=state.streak.longest,
        total_time_spent=state.total_time_spent,
        projects_completed=sum(1 for p in state.projects.values() if p.completed),
        lines_of_code=state.activity.lines_of_code,
        error_free_sessions=state.activity.error_free_sessions,
        experience=state.experience,
        level=state.level,
        skill_levels={c.concept_id: float(c.score) for c in concepts},
        last_active_date=state.streak.last_active_date,
    )
