"""Pytest configuration and fixtures."""

import asyncio
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from ailment_tracker.api.operations import AilmentOperations
from ailment_tracker.db.session import init_db, make_engine
from ailment_tracker.helpers.ailment_helpers import sample_ailments
from ailment_tracker.models.ailment import Ailment
from ailment_tracker.services.ailment_service import AilmentService
from ailment_tracker.services.events import EventBroker
from ailment_tracker.store.document_store import AilmentStore
from ailment_tracker.utils.cache import AilmentCache


@pytest.fixture
def ailments() -> list[Ailment]:
    """Migraine (id "1") and Type 2 Diabetes (id "2"), fully populated."""
    return sample_ailments()


@pytest.fixture
def migraine(ailments) -> Ailment:
    return ailments[0]


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite:///:memory:")
    init_db(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> AilmentStore:
    return AilmentStore(session_factory)


@pytest.fixture
def cache(tmp_path: Path) -> AilmentCache:
    return AilmentCache(cache_dir=tmp_path / "cache", ttl=300)


@pytest.fixture
def service(store, cache) -> AilmentService:
    return AilmentService(store, cache)


@pytest.fixture
def broker() -> EventBroker:
    return EventBroker()


@pytest.fixture
def operations(service, broker) -> AilmentOperations:
    return AilmentOperations(service, broker)


async def _settle(turns: int = 5) -> None:
    for _ in range(turns):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine that lets scheduled callbacks and spawned tasks run a few loop turns."""
    return _settle
