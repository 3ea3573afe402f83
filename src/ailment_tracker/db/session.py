"""Engine and session factory for the document store."""

import logging
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ailment_tracker.config import get_settings
from ailment_tracker.db.base import Base

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url)


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    # Registers AilmentRecord on Base.metadata
    import ailment_tracker.sqlalchemy.ailments  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database tables ensured on %s", engine.url.render_as_string())


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    engine = make_engine(get_settings().database_url)
    init_db(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
