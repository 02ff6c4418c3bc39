"""Tests for leveling and experience rewards."""

import pytest

from progress_engine.gamification.points_engine import (
    FINAL_LEVEL_SPAN,
    level_bounds,
    level_of,
    minutes_added,
    round_half_up,
)
from progress_engine.models.gamification import Rarity
from progress_engine.models.progress import ConceptProgress, Difficulty, ProjectProgress

THRESHOLDS = (0, 100, 250, 500, 1000, 1750, 2750, 4000, 5500, 7500, 10000)


class TestLevelOf:
    def test_zero_experience_is_level_one(self):
        assert level_of(0, THRESHOLDS) == 1

    @pytest.mark.parametrize("experience,level", [
        (99, 1),
        (100, 2),
        (249, 2),
        (250, 3),
        (999, 4),
        (1000, 5),
        (9999, 10),
    ])
    def test_threshold_boundaries(self, experience, level):
        assert level_of(experience, THRESHOLDS) == level

    def test_saturates_at_last_level(self):
        assert level_of(10000, THRESHOLDS) == 11
        assert level_of(10 ** 9, THRESHOLDS) == 11

    def test_monotonic(self):
        levels = [level_of(xp, THRESHOLDS) for xp in range(0, 12000, 7)]
        assert levels == sorted(levels)

    def test_negative_experience_is_level_one(self):
        assert level_of(-50, THRESHOLDS) == 1

    def test_uses_configured_table_by_default(self):
        assert level_of(0) == 1


class TestLevelBounds:
    def test_first_level(self):
        assert level_bounds(1, THRESHOLDS) == (0, 100)

    def test_middle_level(self):
        assert level_bounds(4, THRESHOLDS) == (500, 1000)

    def test_final_level_extends_past_last_threshold(self):
        assert level_bounds(11, THRESHOLDS) == (10000, 10000 + FINAL_LEVEL_SPAN)


class TestExperienceRules:
    def test_concept_completion_and_minutes(self, rules):
        before = ConceptProgress(concept_id="generics")
        after = before.model_copy(update={"completed": True, "time_spent": 10})
        assert rules.concept_gain(before, after) == 70

    def test_concept_completion_counts_once(self, rules):
        before = ConceptProgress(concept_id="generics", completed=True, time_spent=10)
        after = before.model_copy(update={"time_spent": 15})
        assert rules.concept_gain(before, after) == 10

    def test_decreasing_time_grants_nothing(self, rules):
        before = ConceptProgress(concept_id="generics", time_spent=30)
        after = before.model_copy(update={"time_spent": 5})
        assert rules.concept_gain(before, after) == 0

    @pytest.mark.parametrize("difficulty,bonus", [
        (Difficulty.BEGINNER, 100),
        (Difficulty.INTERMEDIATE, 200),
        (Difficulty.ADVANCED, 300),
    ])
    def test_project_completion_scales_with_difficulty(self, rules, difficulty, bonus):
        before = ProjectProgress(project_id="event-bus", started=True, difficulty=difficulty)
        after = before.model_copy(update={"completed": True})
        assert rules.project_gain(before, after) == bonus

    def test_project_start_and_minutes(self, rules):
        before = ProjectProgress(project_id="event-bus")
        after = before.model_copy(update={"started": True, "time_spent": 4})
        assert rules.project_gain(before, after) == 25 + 4 * 3

    def test_achievement_reward_by_rarity(self, rules):
        assert rules.achievement_reward(Rarity.COMMON) == 10
        assert rules.achievement_reward("legendary") == 100

    def test_minutes_added_clamps(self):
        assert minutes_added(10, 25) == 15
        assert minutes_added(25, 10) == 0


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [
        (12.5, 13),
        (0.5, 1),
        (2.5, 3),
        (2.4, 2),
        (99.6, 100),
    ])
    def test_halves_go_up(self, value, expected):
        assert round_half_up(value) == expected
