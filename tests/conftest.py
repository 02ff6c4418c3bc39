"""Shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from progress_engine.gamification.badge_engine import BadgeEngine
from progress_engine.gamification.catalogue import Catalogue
from progress_engine.gamification.points_engine import ExperienceRules
from progress_engine.models.gamification import (
    AchievementDefinition,
    BadgeCategory,
    Rarity,
    Requirement,
)
from progress_engine.models.progress import Difficulty
from progress_engine.progress.persistence import InMemoryStore
from progress_engine.progress.session import LearnerSession

LEVEL_THRESHOLDS = (0, 100, 250, 500, 1000, 1750, 2750, 4000, 5500, 7500, 10000)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


def definition(badge_id, kind, target, rarity=Rarity.COMMON, category=BadgeCategory.LEARNING, **qualifiers):
    return AchievementDefinition(
        id=badge_id,
        name=badge_id.replace("-", " ").title(),
        description=f"{kind} >= {target}",
        rarity=rarity,
        category=category,
        requirement=Requirement(kind=kind, target=target, **qualifiers),
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def rules():
    return ExperienceRules(
        concept_completed=50,
        concept_per_minute=2,
        project_started=25,
        project_completed={
            Difficulty.BEGINNER: 100,
            Difficulty.INTERMEDIATE: 200,
            Difficulty.ADVANCED: 300,
        },
        project_per_minute=3,
        rarity_rewards={
            Rarity.COMMON: 10,
            Rarity.UNCOMMON: 15,
            Rarity.RARE: 25,
            Rarity.EPIC: 50,
            Rarity.LEGENDARY: 100,
        },
        level_thresholds=LEVEL_THRESHOLDS,
    )


@pytest.fixture
def small_catalogue():
    return Catalogue([
        definition("first-lesson", "complete_lessons", 1),
        definition("five-lessons", "complete_lessons", 5, rarity=Rarity.RARE),
        definition("first-project", "projects_completed", 1, rarity=Rarity.UNCOMMON),
        definition("helper", "help_others", 1, category=BadgeCategory.COMMUNITY),
    ])


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def engine(small_catalogue, rules, clock):
    return BadgeEngine(small_catalogue, rules=rules, clock=clock)


@pytest.fixture
def session(store, engine, rules, clock):
    return LearnerSession("learner-1", store, engine, rules=rules, clock=clock)


@pytest.fixture
def make_definition():
    return definition
