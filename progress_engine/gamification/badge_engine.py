"""Badge awarding and tracking engine."""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import structlog

from progress_engine.gamification.catalogue import Catalogue, default_catalogue
from progress_engine.gamification.points_engine import ExperienceRules, round_half_up
from progress_engine.models.gamification import (
    BadgeCategory,
    BadgeProgress,
    BadgeStats,
    Rarity,
    Requirement,
    RequirementKind,
    StatsSnapshot,
    UnlockEvent,
)
from progress_engine.models.progress import utcnow

logger = structlog.get_logger()

UnlockListener = Callable[[UnlockEvent], None]


def _skill_level(requirement: Requirement, stats: StatsSnapshot) -> float:
    if requirement.skill_id is not None:
        return stats.skill_levels.get(requirement.skill_id, 0.0)
    if not stats.skill_levels:
        return 0.0
    return sum(stats.skill_levels.values()) / len(stats.skill_levels)


# Each evaluable kind reads exactly one signal from the snapshot. help_others
# has no signal until community interactions are tracked.
_SIGNALS: Dict[str, Callable[[Requirement, StatsSnapshot], float]] = {
    RequirementKind.COMPLETE_LESSONS.value: lambda r, s: s.lessons_completed,
    RequirementKind.QUIZ_STREAK.value: lambda r, s: s.perfect_quiz_streak,
    RequirementKind.PERFECT_SCORE.value: lambda r, s: s.perfect_scores,
    RequirementKind.TIME_SPENT.value: lambda r, s: s.total_time_spent,
    RequirementKind.PROJECTS_COMPLETED.value: lambda r, s: s.projects_completed,
    RequirementKind.DAILY_STREAK.value: lambda r, s: s.current_streak,
    RequirementKind.SKILL_MASTERY.value: _skill_level,
    RequirementKind.CODE_LINES.value: lambda r, s: s.lines_of_code,
    RequirementKind.ERROR_FREE_SESSIONS.value: lambda r, s: s.error_free_sessions,
    RequirementKind.REACH_LEVEL.value: lambda r, s: s.level,
    RequirementKind.EARN_EXPERIENCE.value: lambda r, s: s.experience,
}


def current_value(requirement: Requirement, stats: StatsSnapshot) -> float:
    """Value of the signal a requirement is measured against (0 if unknown)."""
    signal = _SIGNALS.get(requirement.kind)
    if signal is None:
        return 0
    return signal(requirement, stats)


def requirement_met(requirement: Requirement, stats: StatsSnapshot) -> bool:
    """Check a requirement against a snapshot. Unknown kinds are never met."""
    if requirement.kind not in _SIGNALS:
        return False
    return current_value(requirement, stats) >= requirement.target


class BadgeEngine:
    """Engine for checking and awarding badges.

    The catalogue is shared, read-only data. Unlocks are tracked per learner
    by this instance, so every host process owns its own engine.
    """

    def __init__(
        self,
        catalogue: Optional[Catalogue] = None,
        rules: Optional[ExperienceRules] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.catalogue = catalogue if catalogue is not None else default_catalogue()
        self.rules = rules or ExperienceRules()
        self.clock = clock
        self._unlocks: Dict[str, Dict[str, datetime]] = {}
        self._listeners: List[UnlockListener] = []

    # ── Listeners ────────────────────────────────────────────────

    def subscribe(self, listener: UnlockListener) -> None:
        """Register a callback invoked synchronously for every unlock."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: UnlockListener) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Unlock records ───────────────────────────────────────────

    def has_badge(self, learner_id: str, badge_id: str) -> bool:
        return badge_id in self._unlocks.get(learner_id, {})

    def unlocked_badges(self, learner_id: str) -> List[str]:
        """Unlocked badge ids in unlock order."""
        return list(self._unlocks.get(learner_id, {}))

    def unlocked_at(self, learner_id: str, badge_id: str) -> Optional[datetime]:
        return self._unlocks.get(learner_id, {}).get(badge_id)

    def export_learner(self, learner_id: str) -> List[Tuple[str, datetime]]:
        """Unlock records of a learner as ``(badge_id, unlocked_at)`` pairs."""
        return list(self._unlocks.get(learner_id, {}).items())

    def import_learner(self, learner_id: str, records: Iterable[Tuple[str, datetime]]) -> None:
        """Replace a learner's unlock records."""
        unlocks: Dict[str, datetime] = {}
        for badge_id, unlocked_at in records:
            unlocks.setdefault(badge_id, unlocked_at)
        self._unlocks[learner_id] = unlocks

    def reset_learner(self, learner_id: str) -> None:
        self._unlocks.pop(learner_id, None)

    # ── Awarding ─────────────────────────────────────────────────

    def award(
        self,
        learner_id: str,
        badge_id: str,
        stats: StatsSnapshot,
        notify: bool = True
    ) -> Optional[UnlockEvent]:
        """Grant a badge once. Returns None when the learner already holds it.

        With ``notify=False`` the caller is expected to announce the event
        through :meth:`notify` once the grant has been recorded on its side.
        """
        definition = self.catalogue.get(badge_id)

        if self.has_badge(learner_id, badge_id):
            return None

        unlocked_at = self.clock()
        self._unlocks.setdefault(learner_id, {})[badge_id] = unlocked_at

        event = UnlockEvent(
            badge_id=badge_id,
            learner_id=learner_id,
            unlocked_at=unlocked_at,
            stats=stats,
            xp_gained=self.rules.achievement_reward(definition.rarity),
        )

        logger.info(
            "Badge awarded",
            learner_id=learner_id,
            badge_id=badge_id,
            xp_gained=event.xp_gained
        )

        if notify:
            self.notify(event)
        return event

    def notify(self, event: UnlockEvent) -> None:
        """Call every listener with ``event``. A failing listener does not stop the others."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Unlock listener failed",
                    learner_id=event.learner_id,
                    badge_id=event.badge_id,
                    error=str(e)
                )

    def check_unlocks(
        self,
        learner_id: str,
        stats: StatsSnapshot,
        notify: bool = True
    ) -> List[UnlockEvent]:
        """Grant every badge whose requirement is newly met, in catalogue order."""
        events = []

        for definition in self.catalogue:
            if self.has_badge(learner_id, definition.id):
                continue

            if requirement_met(definition.requirement, stats):
                event = self.award(learner_id, definition.id, stats, notify=notify)
                if event is not None:
                    events.append(event)

        return events

    # ── Read projections ─────────────────────────────────────────

    def progress_towards(self, learner_id: str, badge_id: str, stats: StatsSnapshot) -> BadgeProgress:
        """Progress bar data for one badge."""
        definition = self.catalogue.get(badge_id)
        total = definition.requirement.target

        if self.has_badge(learner_id, badge_id):
            return BadgeProgress(current=total, total=total, percentage=100, unlocked=True)

        current = current_value(definition.requirement, stats)
        percentage = min(round_half_up(current / total * 100), 100)
        return BadgeProgress(current=current, total=total, percentage=percentage, unlocked=False)

    def stats_for(self, learner_id: str) -> BadgeStats:
        """Summary of a learner's collection."""
        by_rarity = {rarity: 0 for rarity in Rarity}
        by_category = {category: 0 for category in BadgeCategory}
        total_xp = 0

        for badge_id in self.unlocked_badges(learner_id):
            if badge_id not in self.catalogue:
                continue
            definition = self.catalogue.get(badge_id)
            by_rarity[definition.rarity] += 1
            by_category[definition.category] += 1
            total_xp += self.rules.achievement_reward(definition.rarity)

        return BadgeStats(
            total=len(self.catalogue),
            unlocked=len(self.unlocked_badges(learner_id)),
            by_rarity=by_rarity,
            by_category=by_category,
            total_xp_from_badges=total_xp,
        )
