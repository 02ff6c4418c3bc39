"""Tests for learner sessions."""

import asyncio

from progress_engine.gamification.badge_engine import BadgeEngine
from progress_engine.gamification.catalogue import Catalogue
from progress_engine.models.gamification import Rarity
from progress_engine.progress.persistence import InMemoryStore, export_state, import_state, storage_key
from progress_engine.progress.reducer import default_state
from progress_engine.progress.session import LearnerSession, SessionRegistry


class TestDispatch:
    def test_completion_unlocks_badge(self, session):
        assert session.stats().lessons_completed == 0
        assert session.engine.check_unlocks("learner-1", session.stats()) == []

        events = session.update_concept("generics", completed=True, time_spent=10)

        assert [e.badge_id for e in events] == ["first-lesson"]
        assert session.state.experience == 70 + 10
        assert [a.id for a in session.state.achievements] == ["first-lesson"]
        assert session.state.level == 1

    def test_unchanged_stats_unlock_nothing_again(self, session):
        session.update_concept("generics", completed=True)
        assert session.update_concept("generics", notes_count=1) == []
        assert len(session.state.achievements) == 1

    def test_state_persisted_after_every_transition(self, session, store):
        session.add_time_spent(15)
        assert store.load(storage_key("learner-1")) == export_state(session.state)

    def test_listener_receives_events(self, session):
        received = []
        session.engine.subscribe(received.append)
        session.update_project("event-bus", started=True, completed=True)
        assert [e.badge_id for e in received] == ["first-project"]


    def test_failing_listener_keeps_grant_and_reward(self, session, store):
        def broken(event):
            raise RuntimeError("toast renderer gone")

        session.engine.subscribe(broken)
        events = session.update_concept("generics", completed=True)
        session.engine.unsubscribe(broken)

        assert [e.badge_id for e in events] == ["first-lesson"]
        assert session.state.has_achievement("first-lesson")
        assert session.state.experience == 50 + 10
        saved = import_state(store.load(storage_key("learner-1")))
        assert saved.has_achievement("first-lesson")

    def test_listener_sees_grant_already_in_state(self, session):
        held = []
        session.engine.subscribe(lambda event: held.append(session.state.has_achievement(event.badge_id)))
        session.update_concept("generics", completed=True)
        assert held == [True]


class TestFeedbackTermination:
    def test_reward_chain_resolves_in_one_dispatch(self, store, rules, clock, make_definition):
        catalogue = Catalogue([
            make_definition("xp-150", "earn_experience", 150, rarity=Rarity.RARE),
            make_definition("first-lesson", "complete_lessons", 1, rarity=Rarity.LEGENDARY),
            make_definition("level-2", "reach_level", 2),
        ])
        engine = BadgeEngine(catalogue, rules=rules, clock=clock)
        session = LearnerSession("learner-1", store, engine, rules=rules, clock=clock)

        events = session.update_concept("generics", completed=True)

        # 50 for the concept, +100 legendary, then +25 and +10 from the chained badges
        assert [e.badge_id for e in events] == ["first-lesson", "xp-150", "level-2"]
        assert session.state.experience == 185
        assert session.state.level == 2
        assert session.update_concept("generics", notes_count=1) == []

    def test_unreachable_badges_do_not_loop(self, session):
        session.update_concept("generics", completed=True)
        assert not session.engine.has_badge("learner-1", "helper")


class TestLoad:
    def test_restores_persisted_state(self, session, store, engine, rules, clock):
        session.update_concept("generics", completed=True, score=100)
        reopened = LearnerSession("learner-1", store, BadgeEngine(engine.catalogue, rules=rules, clock=clock),
                                  rules=rules, clock=clock)
        assert reopened.state == session.state
        assert reopened.engine.unlocked_badges("learner-1") == ["first-lesson"]
        assert reopened.update_concept("generics", notes_count=3) == []

    def test_malformed_blob_falls_back_to_default(self, store, engine, rules, clock):
        store.save(storage_key("learner-1"), "{not json")
        session = LearnerSession("learner-1", store, engine, rules=rules, clock=clock)
        assert session.state == default_state(last_session_date=clock.now)

    def test_wrong_shape_falls_back_to_default(self, store, engine, rules, clock):
        store.save(storage_key("learner-1"), '{"experience": -5}')
        session = LearnerSession("learner-1", store, engine, rules=rules, clock=clock)
        assert session.state.experience == 0


    def test_level_recomputed_from_experience(self, store, engine, rules, clock):
        store.save(storage_key("learner-1"), '{"experience": 600, "level": 1}')
        session = LearnerSession("learner-1", store, engine, rules=rules, clock=clock)
        assert session.state.experience == 600
        assert session.state.level == 4


class TestExportImport:
    def test_round_trip(self, session, store, engine, rules, clock):
        session.start_session()
        session.update_concept("generics", completed=True, time_spent=12, score=100)
        session.update_project("event-bus", started=True, completed_steps=["s1", "s2"])
        session.record_activity(quiz_score=100, lines_of_code=40)
        exported = session.export()

        other = LearnerSession("learner-2", store, engine, rules=rules, clock=clock)
        assert other.import_(exported) is True
        assert other.state == session.state
        assert other.engine.unlocked_badges("learner-2") == session.engine.unlocked_badges("learner-1")

    def test_failed_import_leaves_state(self, session):
        session.update_concept("generics", completed=True)
        before = session.state
        assert session.import_("definitely not progress") is False
        assert session.state is before

    def test_reset_allows_badges_again(self, session):
        session.update_concept("generics", completed=True)
        session.reset()
        assert session.state.achievements == []
        assert session.engine.unlocked_badges("learner-1") == []
        events = session.update_concept("generics", completed=True)
        assert [e.badge_id for e in events] == ["first-lesson"]


class TestStreaks:
    def test_session_start_per_day(self, session, clock):
        session.start_session()
        session.start_session()
        assert session.state.streak.current == 1
        clock.advance(days=1)
        session.start_session()
        assert session.state.streak.current == 2
        clock.advance(days=3)
        session.start_session()
        assert session.state.streak.current == 1
        assert session.state.streak.longest == 2


class TestRegistry:
    def test_one_session_per_learner(self, store, engine, clock):
        registry = SessionRegistry(store, engine, clock=clock)
        assert registry.get("a") is registry.get("a")
        assert registry.get("a") is not registry.get("b")

    def test_subscribe_delegates_to_engine(self, store, engine, clock):
        registry = SessionRegistry(store, engine, clock=clock)
        received = []
        registry.subscribe(received.append)
        registry.get("a").update_concept("generics", completed=True)
        registry.unsubscribe(received.append)
        registry.get("b").update_concept("generics", completed=True)
        assert [(e.learner_id, e.badge_id) for e in received] == [("a", "first-lesson")]

    def test_least_recently_used_session_is_closed(self, store, engine, clock):
        registry = SessionRegistry(store, engine, clock=clock, max_sessions=2)
        first = registry.get("a")
        first.update_concept("generics", completed=True)
        registry.get("b")
        registry.get("a")
        registry.get("c")

        assert len(registry) == 2
        assert "b" not in registry
        assert registry.get("a") is first

    def test_closed_learner_reloads_from_store(self, store, engine, clock):
        registry = SessionRegistry(store, engine, clock=clock, max_sessions=1)
        first = registry.get("a")
        first.update_concept("generics", completed=True)
        registry.get("b")

        reopened = registry.get("a")
        assert reopened is not first
        assert reopened.state == first.state
        assert engine.unlocked_badges("a") == ["first-lesson"]
        assert reopened.update_concept("generics", notes_count=1) == []


class TestDeferredSave:
    def test_nothing_written_until_flush(self, engine, rules, clock):
        store = InMemoryStore()
        session = LearnerSession("learner-1", store, engine, rules=rules, clock=clock, autosave=False)
        session.update_concept("generics", completed=True)
        assert store.load(storage_key("learner-1")) is None

        assert asyncio.run(session.flush()) is True
        assert store.load(storage_key("learner-1")) == export_state(session.state)

    def test_registry_passes_autosave_on(self, store, engine, clock):
        registry = SessionRegistry(store, engine, clock=clock, autosave=False)
        assert registry.get("a").autosave is False
