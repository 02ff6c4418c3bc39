"""Achievement catalogue."""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from progress_engine.models.gamification import (
    AchievementDefinition,
    BadgeCategory,
    Rarity,
    Requirement,
    RequirementKind,
)


class BadgeNotFoundError(LookupError):
    """Raised when a badge id is not part of the catalogue."""

    def __init__(self, badge_id: str):
        super().__init__(f"Badge with id {badge_id} not found")
        self.badge_id = badge_id


class Catalogue:
    """Immutable, ordered collection of achievement definitions.

    Iteration order is the order definitions were supplied in, which is also
    the order unlocks are granted and announced in.
    """

    def __init__(self, definitions: Iterable[AchievementDefinition]):
        self._definitions: Tuple[AchievementDefinition, ...] = tuple(definitions)
        self._by_id: Dict[str, AchievementDefinition] = {}
        for definition in self._definitions:
            if definition.id in self._by_id:
                raise ValueError(f"Duplicate badge id {definition.id}")
            self._by_id[definition.id] = definition

    def __iter__(self) -> Iterator[AchievementDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, badge_id: object) -> bool:
        return badge_id in self._by_id

    def get(self, badge_id: str) -> AchievementDefinition:
        """Look up a definition by id."""
        try:
            return self._by_id[badge_id]
        except KeyError:
            raise BadgeNotFoundError(badge_id) from None

    def definitions(self) -> List[AchievementDefinition]:
        return list(self._definitions)

    def by_category(self, category) -> List[AchievementDefinition]:
        category = BadgeCategory(category)
        return [d for d in self._definitions if d.category == category]

    def by_rarity(self, rarity) -> List[AchievementDefinition]:
        rarity = Rarity(rarity)
        return [d for d in self._definitions if d.rarity == rarity]

    def with_definition(self, definition: AchievementDefinition) -> "Catalogue":
        """Return a new catalogue with ``definition`` appended."""
        return Catalogue(self._definitions + (definition,))


def _badge(
    badge_id: str,
    name: str,
    description: str,
    icon: str,
    rarity: Rarity,
    category: BadgeCategory,
    kind: RequirementKind,
    target: float,
    **qualifiers
) -> AchievementDefinition:
    return AchievementDefinition(
        id=badge_id,
        name=name,
        description=description,
        icon=icon,
        rarity=rarity,
        category=category,
        requirement=Requirement(kind=kind.value, target=target, **qualifiers),
    )


DEFAULT_DEFINITIONS: List[AchievementDefinition] = [
    # Learning
    _badge("first-lesson", "First Steps", "Complete your very first lesson", "👶",
           Rarity.COMMON, BadgeCategory.LEARNING, RequirementKind.COMPLETE_LESSONS, 1),
    _badge("dedicated-learner", "Dedicated Learner", "Complete 10 lessons", "📚",
           Rarity.COMMON, BadgeCategory.LEARNING, RequirementKind.COMPLETE_LESSONS, 10),
    _badge("knowledge-seeker", "Knowledge Seeker", "Complete 50 lessons", "🔍",
           Rarity.UNCOMMON, BadgeCategory.LEARNING, RequirementKind.COMPLETE_LESSONS, 50),
    _badge("typescript-scholar", "TypeScript Scholar", "Complete 100 lessons", "🎓",
           Rarity.RARE, BadgeCategory.MILESTONE, RequirementKind.COMPLETE_LESSONS, 100),

    # Quizzes
    _badge("quiz-novice", "Quiz Novice", "Score 100% on your first concept", "🎯",
           Rarity.COMMON, BadgeCategory.ACHIEVEMENT, RequirementKind.PERFECT_SCORE, 1),
    _badge("quiz-master", "Quiz Master", "Score 100% on 10 concepts", "🏆",
           Rarity.RARE, BadgeCategory.ACHIEVEMENT, RequirementKind.PERFECT_SCORE, 10),
    _badge("perfectionist", "Perfectionist", "Score 100% on 5 consecutive quizzes", "💎",
           Rarity.EPIC, BadgeCategory.ACHIEVEMENT, RequirementKind.QUIZ_STREAK, 5,
           consecutive=True, score_threshold=100),

    # Streaks
    _badge("consistent-learner", "Consistent Learner", "Maintain a 7-day learning streak", "🔥",
           Rarity.UNCOMMON, BadgeCategory.MILESTONE, RequirementKind.DAILY_STREAK, 7),
    _badge("streak-warrior", "Streak Warrior", "Maintain a 30-day learning streak", "⚡",
           Rarity.EPIC, BadgeCategory.MILESTONE, RequirementKind.DAILY_STREAK, 30),
    _badge("unstoppable", "Unstoppable", "Maintain a 100-day learning streak", "🌟",
           Rarity.LEGENDARY, BadgeCategory.MILESTONE, RequirementKind.DAILY_STREAK, 100),

    # Time invested (minutes)
    _badge("dedicated-hours", "Dedicated Hours", "Spend 5 hours learning", "⏰",
           Rarity.RARE, BadgeCategory.LEARNING, RequirementKind.TIME_SPENT, 5 * 60),
    _badge("time-investment", "Time Investment", "Spend 25 hours learning", "📖",
           Rarity.EPIC, BadgeCategory.LEARNING, RequirementKind.TIME_SPENT, 25 * 60),
    _badge("scholar", "Scholar", "Spend 50 hours learning", "🦉",
           Rarity.LEGENDARY, BadgeCategory.LEARNING, RequirementKind.TIME_SPENT, 50 * 60),

    # Projects
    _badge("builder", "Builder", "Complete your first project", "🏗️",
           Rarity.UNCOMMON, BadgeCategory.ACHIEVEMENT, RequirementKind.PROJECTS_COMPLETED, 1),
    _badge("architect", "Architect", "Complete 5 projects", "🏛️",
           Rarity.RARE, BadgeCategory.ACHIEVEMENT, RequirementKind.PROJECTS_COMPLETED, 5),

    # Code quality
    _badge("clean-coder", "Clean Coder", "Write 1000 lines of practice code", "✨",
           Rarity.UNCOMMON, BadgeCategory.ACHIEVEMENT, RequirementKind.CODE_LINES, 1000),
    _badge("error-free", "Error Free", "Complete 10 coding sessions without any errors", "✅",
           Rarity.RARE, BadgeCategory.ACHIEVEMENT, RequirementKind.ERROR_FREE_SESSIONS, 10),

    # Community (no signal wired yet, never unlocks)
    _badge("helper", "Helper", "Help 5 fellow learners in the community", "🤝",
           Rarity.UNCOMMON, BadgeCategory.COMMUNITY, RequirementKind.HELP_OTHERS, 5),
    _badge("mentor", "Mentor", "Help 25 fellow learners in the community", "👨‍🏫",
           Rarity.EPIC, BadgeCategory.COMMUNITY, RequirementKind.HELP_OTHERS, 25),

    # Levels and experience
    _badge("rising-star", "Rising Star", "Reach level 5", "⭐",
           Rarity.RARE, BadgeCategory.MILESTONE, RequirementKind.REACH_LEVEL, 5),
    _badge("expert", "Expert", "Reach level 10", "🌠",
           Rarity.EPIC, BadgeCategory.MILESTONE, RequirementKind.REACH_LEVEL, 10),
    _badge("xp-collector", "XP Collector", "Earn 1000 experience", "💰",
           Rarity.UNCOMMON, BadgeCategory.MILESTONE, RequirementKind.EARN_EXPERIENCE, 1000),

    # Ultimate
    _badge("typescript-master", "TypeScript Master", "Achieve mastery in all tracked skills", "🧙",
           Rarity.LEGENDARY, BadgeCategory.MILESTONE, RequirementKind.SKILL_MASTERY, 100),
]


def default_catalogue(extra: Optional[Iterable[AchievementDefinition]] = None) -> Catalogue:
    """Build the built-in catalogue, optionally extended."""
    return Catalogue(list(DEFAULT_DEFINITIONS) + list(extra or []))
