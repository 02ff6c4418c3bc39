"""Transitions accepted by the progress reducer."""

from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from progress_engine.models.progress import (
    Difficulty,
    ProgressState,
    UnlockedAchievement,
    utcnow,
)


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)

    at: datetime = Field(default_factory=utcnow)


class UpdateConceptProgress(_Action):
    """Merge changes into a concept record, creating it if needed."""

    kind: Literal["update_concept_progress"] = "update_concept_progress"
    concept_id: str
    completed: Optional[bool] = None
    time_spent: Optional[int] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)
    exercises_completed: Optional[List[str]] = None
    notes_count: Optional[int] = None


class UpdateProjectProgress(_Action):
    """Merge changes into a project record, creating it if needed."""

    kind: Literal["update_project_progress"] = "update_project_progress"
    project_id: str
    started: Optional[bool] = None
    completed: Optional[bool] = None
    time_spent: Optional[int] = None
    completed_steps: Optional[List[str]] = None
    difficulty: Optional[Difficulty] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)


class AddAchievement(_Action):
    kind: Literal["add_achievement"] = "add_achievement"
    achievement: UnlockedAchievement


class UpdateStreak(_Action):
    kind: Literal["update_streak"] = "update_streak"
    current: Optional[int] = Field(default=None, ge=0)
    longest: Optional[int] = Field(default=None, ge=0)
    last_active_date: Optional[date] = None


class AddTimeSpent(_Action):
    kind: Literal["add_time_spent"] = "add_time_spent"
    minutes: int


class RecordActivity(_Action):
    """Practice counters reported by quizzes and the code playground."""

    kind: Literal["record_activity"] = "record_activity"
    quiz_score: Optional[int] = Field(default=None, ge=0, le=100)
    lines_of_code: int = 0
    error_free_session: bool = False


class UpdatePreferences(_Action):
    kind: Literal["update_preferences"] = "update_preferences"
    daily_goal_minutes: Optional[int] = None
    notifications: Optional[bool] = None
    tracking_enabled: Optional[bool] = None


class StartSession(_Action):
    kind: Literal["start_session"] = "start_session"


class ResetProgress(_Action):
    kind: Literal["reset"] = "reset"


class ImportProgress(_Action):
    kind: Literal["import"] = "import"
    state: ProgressState


Action = Annotated[
    Union[
        UpdateConceptProgress,
        UpdateProjectProgress,
        AddAchievement,
        UpdateStreak,
        AddTimeSpent,
        RecordActivity,
        UpdatePreferences,
        StartSession,
        ResetProgress,
        ImportProgress,
    ],
    Field(discriminator="kind"),
]


def changes(action: _Action, *identity: str) -> dict:
    """Fields an update action actually sets."""
    return action.model_dump(exclude_none=True, exclude={"kind", "at", *identity})
