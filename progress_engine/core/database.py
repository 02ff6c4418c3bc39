"""Database engine and session management."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import structlog

from progress_engine.core.config import settings

logger = structlog.get_logger()

Base = declarative_base()


def build_engine(url: Optional[str] = None) -> Engine:
    """Create a SQLAlchemy engine for the configured database."""
    url = url or settings.DATABASE_URL
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite only exists on a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to an engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create tables that do not exist yet."""
    # Import models so they register with Base.metadata
    from progress_engine.models import storage  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized", url=engine.url.render_as_string(hide_password=True))
