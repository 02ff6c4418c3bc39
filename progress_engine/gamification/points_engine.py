"""Experience calculation and leveling."""

from bisect import bisect_right
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from progress_engine.core.config import settings
from progress_engine.models.gamification import Rarity
from progress_engine.models.progress import ConceptProgress, Difficulty, ProjectProgress

# Experience added past the last threshold before the "next level" marker
FINAL_LEVEL_SPAN = 1000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (12.5 -> 13)."""
    return math.floor(value + 0.5)


def level_of(experience: int, thresholds: Optional[Sequence[int]] = None) -> int:
    """Map cumulative experience to a level, saturating at the last threshold."""
    thresholds = thresholds or settings.LEVEL_THRESHOLDS
    return max(bisect_right(thresholds, max(experience, 0)), 1)


def level_bounds(level: int, thresholds: Optional[Sequence[int]] = None) -> Tuple[int, int]:
    """Experience needed for the given level and for the one after it."""
    thresholds = thresholds or settings.LEVEL_THRESHOLDS
    index = min(max(level, 1), len(thresholds)) - 1
    current = thresholds[index]
    if index + 1 < len(thresholds):
        return current, thresholds[index + 1]
    return current, thresholds[-1] + FINAL_LEVEL_SPAN


def _default_completion_bonus() -> Dict[Difficulty, int]:
    return {
        Difficulty.BEGINNER: settings.XP_PROJECT_COMPLETED_BEGINNER,
        Difficulty.INTERMEDIATE: settings.XP_PROJECT_COMPLETED_INTERMEDIATE,
        Difficulty.ADVANCED: settings.XP_PROJECT_COMPLETED_ADVANCED,
    }


def _default_rarity_rewards() -> Dict[Rarity, int]:
    return {
        Rarity.COMMON: settings.XP_RARITY_COMMON,
        Rarity.UNCOMMON: settings.XP_RARITY_UNCOMMON,
        Rarity.RARE: settings.XP_RARITY_RARE,
        Rarity.EPIC: settings.XP_RARITY_EPIC,
        Rarity.LEGENDARY: settings.XP_RARITY_LEGENDARY,
    }


@dataclass(frozen=True)
class ExperienceRules:
    """Reward constants used when progress changes."""

    concept_completed: int = field(default_factory=lambda: settings.XP_CONCEPT_COMPLETED)
    concept_per_minute: int = field(default_factory=lambda: settings.XP_CONCEPT_PER_MINUTE)
    project_started: int = field(default_factory=lambda: settings.XP_PROJECT_STARTED)
    project_completed: Dict[Difficulty, int] = field(default_factory=_default_completion_bonus)
    project_per_minute: int = field(default_factory=lambda: settings.XP_PROJECT_PER_MINUTE)
    rarity_rewards: Dict[Rarity, int] = field(default_factory=_default_rarity_rewards)
    level_thresholds: Tuple[int, ...] = field(
        default_factory=lambda: tuple(settings.LEVEL_THRESHOLDS)
    )

    def level_of(self, experience: int) -> int:
        return level_of(experience, self.level_thresholds)

    def concept_gain(self, before: ConceptProgress, after: ConceptProgress) -> int:
        """Experience earned by moving a concept from ``before`` to ``after``."""
        gain = 0
        if not before.completed and after.completed:
            gain += self.concept_completed
        gain += minutes_added(before.time_spent, after.time_spent) * self.concept_per_minute
        return gain

    def project_gain(self, before: ProjectProgress, after: ProjectProgress) -> int:
        """Experience earned by moving a project from ``before`` to ``after``."""
        gain = 0
        if not before.started and after.started:
            gain += self.project_started
        if not before.completed and after.completed:
            gain += self.project_completed.get(after.difficulty, 0)
        gain += minutes_added(before.time_spent, after.time_spent) * self.project_per_minute
        return gain

    def achievement_reward(self, rarity) -> int:
        """Experience granted for unlocking an achievement of this rarity."""
        return self.rarity_rewards.get(Rarity(rarity), 0)


def minutes_added(previous: int, current: int) -> int:
    """Newly added minutes; a decrease contributes nothing."""
    return max(current - previous, 0)
