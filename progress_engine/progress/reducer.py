"""Progress store transition function.

``apply`` is the only way a ``ProgressState`` changes. It never performs I/O;
persistence and unlock notifications are driven by whoever observes the
returned state. Experience only grows and ``level`` is recomputed from it on
every transition that touches experience, so the two cannot drift apart.
"""

from typing import Callable, Dict, Optional, Type

from progress_engine.gamification.points_engine import ExperienceRules
from progress_engine.gamification.streaks import advance_streak
from progress_engine.models.progress import (
    ActivityCounters,
    ConceptProgress,
    LearningStreak,
    Preferences,
    ProgressState,
    ProjectProgress,
)
from progress_engine.progress.actions import (
    AddAchievement,
    AddTimeSpent,
    ImportProgress,
    RecordActivity,
    ResetProgress,
    StartSession,
    UpdateConceptProgress,
    UpdatePreferences,
    UpdateProjectProgress,
    UpdateStreak,
    changes,
)
from progress_engine.progress.stats import PERFECT_SCORE


def default_state(**overrides) -> ProgressState:
    """State of a learner who has not done anything yet."""
    return ProgressState(**overrides)


def _gain_experience(state: ProgressState, gain: int, rules: ExperienceRules, **updates) -> ProgressState:
    experience = state.experience + max(gain, 0)
    return state.model_copy(update={
        **updates,
        "experience": experience,
        "level": rules.level_of(experience),
    })


def _update_concept(state: ProgressState, action: UpdateConceptProgress, rules: ExperienceRules) -> ProgressState:
    before = state.concepts.get(action.concept_id) or ConceptProgress(
        concept_id=action.concept_id,
        last_accessed=action.at,
    )
    after = ConceptProgress.model_validate({
        **before.model_dump(),
        **changes(action, "concept_id"),
        "last_accessed": action.at,
    })

    return _gain_experience(
        state,
        rules.concept_gain(before, after),
        rules,
        concepts={**state.concepts, action.concept_id: after},
    )


def _update_project(state: ProgressState, action: UpdateProjectProgress, rules: ExperienceRules) -> ProgressState:
    before = state.projects.get(action.project_id) or ProjectProgress(
        project_id=action.project_id,
        last_accessed=action.at,
    )
    after = ProjectProgress.model_validate({
        **before.model_dump(),
        **changes(action, "project_id"),
        "last_accessed": action.at,
    })

    return _gain_experience(
        state,
        rules.project_gain(before, after),
        rules,
        projects={**state.projects, action.project_id: after},
    )


def _add_achievement(state: ProgressState, action: AddAchievement, rules: ExperienceRules) -> ProgressState:
    # Sole guard for "at most once"
    if state.has_achievement(action.achievement.id):
        return state

    return _gain_experience(
        state,
        rules.achievement_reward(action.achievement.rarity),
        rules,
        achievements=[*state.achievements, action.achievement],
    )


def _update_streak(state: ProgressState, action: UpdateStreak, rules: ExperienceRules) -> ProgressState:
    merged = {**state.streak.model_dump(), **changes(action)}
    merged["longest"] = max(merged["longest"], merged["current"])
    return state.model_copy(update={"streak": LearningStreak.model_validate(merged)})


def _add_time_spent(state: ProgressState, action: AddTimeSpent, rules: ExperienceRules) -> ProgressState:
    return state.model_copy(update={
        "total_time_spent": state.total_time_spent + max(action.minutes, 0),
    })


def _record_activity(state: ProgressState, action: RecordActivity, rules: ExperienceRules) -> ProgressState:
    activity = state.activity
    quizzes = activity.quizzes_completed
    perfect_streak = activity.perfect_quiz_streak

    if action.quiz_score is not None:
        quizzes += 1
        perfect_streak = perfect_streak + 1 if action.quiz_score >= PERFECT_SCORE else 0

    updated = ActivityCounters(
        quizzes_completed=quizzes,
        perfect_quiz_streak=perfect_streak,
        best_perfect_quiz_streak=max(activity.best_perfect_quiz_streak, perfect_streak),
        lines_of_code=activity.lines_of_code + max(action.lines_of_code, 0),
        error_free_sessions=activity.error_free_sessions + (1 if action.error_free_session else 0),
    )
    return state.model_copy(update={"activity": updated})


def _update_preferences(state: ProgressState, action: UpdatePreferences, rules: ExperienceRules) -> ProgressState:
    preferences = Preferences.model_validate({**state.preferences.model_dump(), **changes(action)})
    return state.model_copy(update={"preferences": preferences})


def _start_session(state: ProgressState, action: StartSession, rules: ExperienceRules) -> ProgressState:
    return state.model_copy(update={
        "streak": advance_streak(state.streak, action.at),
        "last_session_date": action.at,
    })


def _reset(state: ProgressState, action: ResetProgress, rules: ExperienceRules) -> ProgressState:
    return default_state(last_session_date=action.at)


def _import(state: ProgressState, action: ImportProgress, rules: ExperienceRules) -> ProgressState:
    imported = action.state
    return imported.model_copy(update={"level": rules.level_of(imported.experience)})


_HANDLERS: Dict[Type, Callable] = {
    UpdateConceptProgress: _update_concept,
    UpdateProjectProgress: _update_project,
    AddAchievement: _add_achievement,
    UpdateStreak: _update_streak,
    AddTimeSpent: _add_time_spent,
    RecordActivity: _record_activity,
    UpdatePreferences: _update_preferences,
    StartSession: _start_session,
    ResetProgress: _reset,
    ImportProgress: _import,
}


def apply(state: ProgressState, action, rules: Optional[ExperienceRules] = None) -> ProgressState:
    """Return the state that results from applying ``action`` to ``state``."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported progress action: {type(action).__name__}")
    return handler(state, action, rules or ExperienceRules())
