"""Persistence adapters and state serialization."""

from typing import Dict, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
import structlog

from progress_engine.core.config import settings
from progress_engine.models.progress import ProgressState
from progress_engine.models.storage import StateBlob

logger = structlog.get_logger()


class KeyValueStore(Protocol):
    """Opaque blob storage the engine persists learner state into."""

    def load(self, key: str) -> Optional[str]:
        ...

    def save(self, key: str, blob: str) -> bool:
        ...


class InMemoryStore:
    """Store that keeps blobs in process memory."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def save(self, key: str, blob: str) -> bool:
        self._blobs[key] = blob
        return True


class SQLAlchemyStore:
    """Store backed by the ``state_blobs`` table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            try:
                return db.execute(
                    select(StateBlob.blob).where(StateBlob.key == key)
                ).scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error("Failed to load state", key=key, error=str(e))
                return None

    def save(self, key: str, blob: str) -> bool:
        with self.session_factory() as db:
            try:
                row = db.get(StateBlob, key)
                if row is None:
                    db.add(StateBlob(key=key, blob=blob))
                else:
                    row.blob = blob
                db.commit()
                return True
            except SQLAlchemyError as e:
                logger.error("Failed to save state", key=key, error=str(e))
                db.rollback()
                return False


def storage_key(learner_id: str) -> str:
    """Key a learner's state is stored under."""
    return f"{settings.STORAGE_KEY_PREFIX}:{learner_id}"


def export_state(state: ProgressState) -> str:
    """Lossless text form of a state."""
    return state.model_dump_json(indent=2)


def import_state(text: str) -> Optional[ProgressState]:
    """Parse exported text. Returns None when it is not a valid state."""
    try:
        return ProgressState.model_validate_json(text)
    except ValidationError:
        return None


def load_state(store: KeyValueStore, key: str) -> Optional[ProgressState]:
    """Read a stored state. Missing and malformed blobs both yield None."""
    blob = store.load(key)
    if blob is None:
        return None

    state = import_state(blob)
    if state is None:
        logger.warning("Discarding malformed stored state", key=key)
    return state


def save_state(store: KeyValueStore, key: str, state: ProgressState) -> bool:
    """Write a state; failures are reported, not raised."""
    saved = store.save(key, export_state(state))
    if not saved:
        logger.warning("State not persisted", key=key)
    return saved
