"""Learner progress state models."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from progress_engine.core.config import settings


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    """Difficulty tiers for hands-on projects."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ConceptProgress(BaseModel):
    """Progress on a single learning unit."""

    model_config = ConfigDict(frozen=True)

    concept_id: str
    completed: bool = False
    time_spent: int = 0  # minutes
    last_accessed: datetime = Field(default_factory=utcnow)
    score: int = Field(default=0, ge=0, le=100)
    exercises_completed: List[str] = Field(default_factory=list)
    notes_count: int = 0


class ProjectProgress(BaseModel):
    """Progress on a hands-on project."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    started: bool = False
    completed: bool = False
    time_spent: int = 0  # minutes
    last_accessed: datetime = Field(default_factory=utcnow)
    completed_steps: List[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.BEGINNER
    score: int = Field(default=0, ge=0, le=100)


class LearningStreak(BaseModel):
    """Consecutive active calendar days."""

    model_config = ConfigDict(frozen=True)

    current: int = 0
    longest: int = 0
    last_active_date: Optional[date] = None


class Preferences(BaseModel):
    """Learner preferences."""

    model_config = ConfigDict(frozen=True)

    daily_goal_minutes: int = Field(default_factory=lambda: settings.DAILY_GOAL_MINUTES)
    notifications: bool = True
    tracking_enabled: bool = True


class ActivityCounters(BaseModel):
    """Raw practice counters that are not tied to a single unit."""

    model_config = ConfigDict(frozen=True)

    quizzes_completed: int = 0
    perfect_quiz_streak: int = 0
    best_perfect_quiz_streak: int = 0
    lines_of_code: int = 0
    error_free_sessions: int = 0


class UnlockedAchievement(BaseModel):
    """An achievement held by the learner."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    icon: str = ""
    category: str
    rarity: str
    unlocked_at: datetime


class ProgressState(BaseModel):
    """Aggregate progress of one learner.

    ``level`` is derived from ``experience`` by the reducer; it is stored only
    so exports are self-describing.
    """

    model_config = ConfigDict(frozen=True)

    concepts: Dict[str, ConceptProgress] = Field(default_factory=dict)
    projects: Dict[str, ProjectProgress] = Field(default_factory=dict)
    achievements: List[UnlockedAchievement] = Field(default_factory=list)
    streak: LearningStreak = Field(default_factory=LearningStreak)
    activity: ActivityCounters = Field(default_factory=ActivityCounters)
    total_time_spent: int = Field(default=0, ge=0)  # minutes
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    last_session_date: datetime = Field(default_factory=utcnow)
    preferences: Preferences = Field(default_factory=Preferences)

    def has_achievement(self, achievement_id: str) -> bool:
        """Check whether an achievement id is already unlocked."""
        return any(a.id == achievement_id for a in self.achievements)
