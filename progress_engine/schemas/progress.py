"""Request and response bodies for the progress API."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from progress_engine.models.gamification import UnlockEvent
from progress_engine.models.progress import Difficulty, ProgressState


class ConceptProgressUpdate(BaseModel):
    completed: Optional[bool] = None
    time_spent: Optional[int] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)
    exercises_completed: Optional[List[str]] = None
    notes_count: Optional[int] = None


class ProjectProgressUpdate(BaseModel):
    started: Optional[bool] = None
    completed: Optional[bool] = None
    time_spent: Optional[int] = None
    completed_steps: Optional[List[str]] = None
    difficulty: Optional[Difficulty] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)


class StreakUpdate(BaseModel):
    current: Optional[int] = Field(default=None, ge=0)
    longest: Optional[int] = Field(default=None, ge=0)
    last_active_date: Optional[date] = None


class TimeSpentCreate(BaseModel):
    minutes: int


class ActivityCreate(BaseModel):
    quiz_score: Optional[int] = Field(default=None, ge=0, le=100)
    lines_of_code: int = 0
    error_free_session: bool = False


class PreferencesUpdate(BaseModel):
    daily_goal_minutes: Optional[int] = None
    notifications: Optional[bool] = None
    tracking_enabled: Optional[bool] = None


class ImportRequest(BaseModel):
    data: str


class ImportResponse(BaseModel):
    success: bool


class TransitionResponse(BaseModel):
    """State after a transition and the badges it unlocked."""

    state: ProgressState
    unlocked: List[UnlockEvent] = Field(default_factory=list)
