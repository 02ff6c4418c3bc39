"""Tests for persistence adapters and serialization."""

from datetime import date, datetime, timezone

import pytest

from progress_engine.core.database import build_engine, build_session_factory, init_db
from progress_engine.models.progress import ConceptProgress, LearningStreak, ProgressState
from progress_engine.progress.persistence import (
    InMemoryStore,
    SQLAlchemyStore,
    export_state,
    import_state,
    load_state,
    save_state,
    storage_key,
)

NOW = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sql_store():
    engine = build_engine("sqlite://")
    init_db(engine)
    return SQLAlchemyStore(build_session_factory(engine))


@pytest.fixture
def state():
    return ProgressState(
        concepts={
            "generics": ConceptProgress(
                concept_id="generics",
                completed=True,
                time_spent=12,
                last_accessed=NOW,
                score=100,
                exercises_completed=["g1", "g2"],
            )
        },
        streak=LearningStreak(current=2, longest=4, last_active_date=date(2024, 1, 5)),
        total_time_spent=40,
        experience=74,
        last_session_date=NOW,
    )


class TestSerialization:
    def test_export_is_lossless(self, state):
        assert import_state(export_state(state)) == state

    @pytest.mark.parametrize("text", ["", "null", "[]", "{broken", '{"level": 0}'])
    def test_import_rejects_malformed(self, text):
        assert import_state(text) is None


class TestInMemoryStore:
    def test_missing_key(self):
        assert InMemoryStore().load("nope") is None

    def test_save_and_load(self, state):
        store = InMemoryStore()
        assert save_state(store, "k", state) is True
        assert load_state(store, "k") == state

    def test_malformed_blob_is_absent(self):
        store = InMemoryStore()
        store.save("k", "garbage")
        assert load_state(store, "k") is None


class TestSQLAlchemyStore:
    def test_missing_key(self, sql_store):
        assert sql_store.load("nope") is None

    def test_save_and_overwrite(self, sql_store):
        assert sql_store.save("k", "one") is True
        assert sql_store.save("k", "two") is True
        assert sql_store.load("k") == "two"

    def test_state_round_trip(self, sql_store, state):
        key = storage_key("learner-1")
        save_state(sql_store, key, state)
        assert load_state(sql_store, key) == state


def test_storage_key_is_prefixed():
    assert storage_key("learner-1").endswith(":learner-1")
