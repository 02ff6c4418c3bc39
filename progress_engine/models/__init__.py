"""Data models for the Progress Engine."""

from progress_engine.models.progress import (
    ActivityCounters,
    ConceptProgress,
    Difficulty,
    LearningStreak,
    Preferences,
    ProgressState,
    ProjectProgress,
    UnlockedAchievement,
)
from progress_engine.models.gamification import (
    AchievementDefinition,
    BadgeCategory,
    BadgeProgress,
    BadgeStats,
    Rarity,
    Requirement,
    RequirementKind,
    StatsSnapshot,
    UnlockEvent,
)

__all__ = [
    "ActivityCounters",
    "ConceptProgress",
    "Difficulty",
    "LearningStreak",
    "Preferences",
    "ProgressState",
    "ProjectProgress",
    "UnlockedAchievement",
    "AchievementDefinition",
    "BadgeCategory",
    "BadgeProgress",
    "BadgeStats",
    "Rarity",
    "Requirement",
    "RequirementKind",
    "StatsSnapshot",
    "UnlockEvent",
]
