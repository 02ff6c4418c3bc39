"""Gamification models."""

from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Rarity(str, Enum):
    """Achievement rarity tiers, in ascending order."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class BadgeCategory(str, Enum):
    """Badge categories."""
    LEARNING = "learning"
    ACHIEVEMENT = "achievement"
    MILESTONE = "milestone"
    SPECIAL = "special"
    COMMUNITY = "community"


class RequirementKind(str, Enum):
    """Requirement kinds the badge engine knows how to evaluate."""
    COMPLETE_LESSONS = "complete_lessons"
    QUIZ_STREAK = "quiz_streak"
    PERFECT_SCORE = "perfect_score"
    TIME_SPENT = "time_spent"
    PROJECTS_COMPLETED = "projects_completed"
    HELP_OTHERS = "help_others"
    DAILY_STREAK = "daily_streak"
    SKILL_MASTERY = "skill_mastery"
    CODE_LINES = "code_lines"
    ERROR_FREE_SESSIONS = "error_free_sessions"
    REACH_LEVEL = "reach_level"
    EARN_EXPERIENCE = "earn_experience"


class Requirement(BaseModel):
    """Condition attached to an achievement definition.

    ``kind`` is kept as a plain string so catalogues may name kinds this
    engine does not evaluate yet; those are never met.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    target: float = Field(gt=0)
    skill_id: Optional[str] = None
    consecutive: bool = False
    score_threshold: Optional[int] = None
    timeframe: Optional[str] = None
    difficulty: Optional[str] = None


class AchievementDefinition(BaseModel):
    """Catalogue entry for an unlockable achievement."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str = ""
    rarity: Rarity
    category: BadgeCategory
    requirement: Requirement


class StatsSnapshot(BaseModel):
    """Read-only counters a badge pass is evaluated against."""

    model_config = ConfigDict(frozen=True)

    lessons_completed: int = 0
    quizzes_completed: int = 0
    perfect_scores: int = 0
    perfect_quiz_streak: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_time_spent: int = 0  # minutes
    projects_completed: int = 0
    lines_of_code: int = 0
    error_free_sessions: int = 0
    experience: int = 0
    level: int = 1
    skill_levels: Dict[str, float] = Field(default_factory=dict)
    last_active_date: Optional[date] = None


class UnlockEvent(BaseModel):
    """Emitted exactly once when a learner first earns an achievement."""

    model_config = ConfigDict(frozen=True)

    badge_id: str
    learner_id: str
    unlocked_at: datetime
    stats: StatsSnapshot
    xp_gained: int


class BadgeProgress(BaseModel):
    """Progress towards a single badge."""

    current: float
    total: float
    percentage: int
    unlocked: bool


class BadgeStats(BaseModel):
    """Summary of a learner's badge collection."""

    total: int
    unlocked: int
    by_rarity: Dict[Rarity, int]
    by_category: Dict[BadgeCategory, int]
    total_xp_from_badges: int
