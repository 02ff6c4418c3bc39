"""Per-learner progress sessions.

A session owns the in-memory state of one learner. Every dispatched action
runs through the reducer, then through a badge pass, and the result is written
back to the store. The in-memory state stays authoritative when a write fails.

Sessions opened with ``autosave=False`` leave the write to :meth:`LearnerSession.flush`,
which the HTTP layer awaits so store I/O runs off the event loop.
"""

import asyncio
from collections import OrderedDict
from datetime import datetime
from typing import Callable, List, Optional

from fastapi.concurrency import run_in_threadpool
import structlog

from progress_engine.core.config import settings
from progress_engine.gamification.badge_engine import BadgeEngine, UnlockListener
from progress_engine.gamification.points_engine import ExperienceRules
from progress_engine.models.gamification import BadgeProgress, BadgeStats, StatsSnapshot, UnlockEvent
from progress_engine.models.progress import ProgressState, UnlockedAchievement, utcnow
from progress_engine.progress.actions import (
    AddAchievement,
    AddTimeSpent,
    ImportProgress,
    RecordActivity,
    ResetProgress,
    StartSession,
    UpdateConceptProgress,
    UpdatePreferences,
    UpdateProjectProgress,
    UpdateStreak,
)
from progress_engine.progress.persistence import (
    KeyValueStore,
    export_state,
    import_state,
    load_state,
    save_state,
    storage_key,
)
from progress_engine.progress.projections import ProgressSummary, summarize
from progress_engine.progress.reducer import apply, default_state
from progress_engine.progress.stats import derive_stats

logger = structlog.get_logger()


class LearnerSession:
    """Hosts the progress state and badge unlocks of a single learner."""

    def __init__(
        self,
        learner_id: str,
        store: KeyValueStore,
        engine: BadgeEngine,
        rules: Optional[ExperienceRules] = None,
        clock: Callable[[], datetime] = utcnow,
        autosave: bool = True
    ):
        self.learner_id = learner_id
        self.store = store
        self.engine = engine
        self.rules = rules or engine.rules
        self.clock = clock
        self.autosave = autosave
        self.key = storage_key(learner_id)
        self._flush_lock: Optional[asyncio.Lock] = None

        state = load_state(store, self.key)
        if state is None:
            state = default_state(last_session_date=clock())
        else:
            state = self._relevel(state)
        self.state: ProgressState = state
        self._sync_unlocks()

        logger.info(
            "Learner session opened",
            learner_id=learner_id,
            level=self.state.level,
            experience=self.state.experience
        )

    # ── Dispatch ─────────────────────────────────────────────────

    def dispatch(self, action) -> List[UnlockEvent]:
        """Apply an action, grant newly earned badges and persist the result."""
        self._warn_on_clamped_time(action)

        self.state = apply(self.state, action, self.rules)
        if isinstance(action, (ResetProgress, ImportProgress)):
            self._sync_unlocks()

        events = self._resolve_unlocks()
        if self.autosave:
            self.save()

        # Listeners only see grants already recorded in the state
        for event in events:
            self.engine.notify(event)
        return events

    def save(self) -> bool:
        return save_state(self.store, self.key, self.state)

    async def flush(self) -> bool:
        """Write the current state from a worker thread.

        Writes of one session are serialized, so the store never ends up with
        an older state than the last flushed one.
        """
        if self._flush_lock is None:
            self._flush_lock = asyncio.Lock()

        async with self._flush_lock:
            return await run_in_threadpool(save_state, self.store, self.key, self.state)

    def _relevel(self, state: ProgressState) -> ProgressState:
        level = self.rules.level_of(state.experience)
        if level != state.level:
            logger.warning(
                "Stored level out of step with experience",
                learner_id=self.learner_id,
                stored=state.level,
                level=level
            )
            state = state.model_copy(update={"level": level})
        return state

    def _resolve_unlocks(self) -> List[UnlockEvent]:
        """Run badge passes until no new badge is granted.

        Granting adds experience, which can satisfy level or experience
        badges, so another pass follows every productive one. Each productive
        pass grants at least one badge the learner did not hold, hence the
        catalogue size bounds the number of passes.
        """
        events: List[UnlockEvent] = []

        for _ in range(len(self.engine.catalogue) + 1):
            granted = self.engine.check_unlocks(self.learner_id, self.stats(), notify=False)
            if not granted:
                break

            for event in granted:
                definition = self.engine.catalogue.get(event.badge_id)
                achievement = UnlockedAchievement(
                    id=definition.id,
                    name=definition.name,
                    description=definition.description,
                    icon=definition.icon,
                    category=definition.category.value,
                    rarity=definition.rarity.value,
                    unlocked_at=event.unlocked_at,
                )
                self.state = apply(
                    self.state,
                    AddAchievement(achievement=achievement, at=event.unlocked_at),
                    self.rules
                )
            events.extend(granted)

        return events

    def _sync_unlocks(self) -> None:
        self.engine.import_learner(
            self.learner_id,
            [(a.id, a.unlocked_at) for a in self.state.achievements]
        )

    def _warn_on_clamped_time(self, action) -> None:
        previous = None
        if isinstance(action, UpdateConceptProgress):
            previous = self.state.concepts.get(action.concept_id)
        elif isinstance(action, UpdateProjectProgress):
            previous = self.state.projects.get(action.project_id)
        elif isinstance(action, AddTimeSpent) and action.minutes < 0:
            logger.warning(
                "Negative time ignored",
                learner_id=self.learner_id,
                minutes=action.minutes
            )
            return

        if previous is not None and action.time_spent is not None and action.time_spent < previous.time_spent:
            logger.warning(
                "Time spent decreased, no experience granted",
                learner_id=self.learner_id,
                previous=previous.time_spent,
                current=action.time_spent
            )

    # ── Transitions ──────────────────────────────────────────────

    def update_concept(self, concept_id: str, **changes) -> List[UnlockEvent]:
        return self.dispatch(UpdateConceptProgress(concept_id=concept_id, at=self.clock(), **changes))

    def update_project(self, project_id: str, **changes) -> List[UnlockEvent]:
        return self.dispatch(UpdateProjectProgress(project_id=project_id, at=self.clock(), **changes))

    def update_streak(self, **changes) -> List[UnlockEvent]:
        return self.dispatch(UpdateStreak(at=self.clock(), **changes))

    def add_time_spent(self, minutes: int) -> List[UnlockEvent]:
        return self.dispatch(AddTimeSpent(minutes=minutes, at=self.clock()))

    def record_activity(self, **counters) -> List[UnlockEvent]:
        return self.dispatch(RecordActivity(at=self.clock(), **counters))

    def update_preferences(self, **changes) -> List[UnlockEvent]:
        return self.dispatch(UpdatePreferences(at=self.clock(), **changes))

    def start_session(self) -> List[UnlockEvent]:
        return self.dispatch(StartSession(at=self.clock()))

    def reset(self) -> List[UnlockEvent]:
        return self.dispatch(ResetProgress(at=self.clock()))

    # ── Export / import ──────────────────────────────────────────

    def export(self) -> str:
        return export_state(self.state)

    def import_(self, text: str) -> bool:
        """Replace the state with exported text. Leaves state untouched on failure."""
        state = import_state(text)
        if state is None:
            logger.warning("Progress import failed", learner_id=self.learner_id)
            return False

        self.dispatch(ImportProgress(state=state, at=self.clock()))
        logger.info("Progress imported", learner_id=self.learner_id)
        return True

    # ── Read projections ─────────────────────────────────────────

    def stats(self) -> StatsSnapshot:
        return derive_stats(self.state)

    def summary(self) -> ProgressSummary:
        return summarize(self.state, self.clock(), self.rules.level_thresholds)

    def progress_towards(self, badge_id: str) -> BadgeProgress:
        return self.engine.progress_towards(self.learner_id, badge_id, self.stats())

    def badge_stats(self) -> BadgeStats:
        return self.engine.stats_for(self.learner_id)


class SessionRegistry:
    """Keeps recently used learner sessions around a shared badge engine.

    At most ``max_sessions`` sessions stay open; the least recently used one is
    closed when another learner needs room. A closed learner is reloaded from
    the store on their next request.
    """

    def __init__(
        self,
        store: KeyValueStore,
        engine: Optional[BadgeEngine] = None,
        clock: Callable[[], datetime] = utcnow,
        autosave: bool = True,
        max_sessions: Optional[int] = None
    ):
        self.store = store
        self.clock = clock
        self.autosave = autosave
        self.max_sessions = max_sessions or settings.MAX_CACHED_SESSIONS
        self.engine = engine or BadgeEngine(clock=clock)
        self._sessions: "OrderedDict[str, LearnerSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, learner_id: object) -> bool:
        return learner_id in self._sessions

    def get(self, learner_id: str) -> LearnerSession:
        """Return the learner's session, opening it on first use."""
        session = self._sessions.get(learner_id)
        if session is not None:
            self._sessions.move_to_end(learner_id)
            return session

        session = LearnerSession(
            learner_id,
            self.store,
            self.engine,
            clock=self.clock,
            autosave=self.autosave
        )
        self._sessions[learner_id] = session

        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            self.engine.reset_learner(evicted)
            logger.debug("Learner session closed", learner_id=evicted)

        return session

    def subscribe(self, listener: UnlockListener) -> None:
        self.engine.subscribe(listener)

    def unsubscribe(self, listener: UnlockListener) -> None:
        self.engine.unsubscribe(listener)
