import os

# settings and the engine are built at import time
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import json
import uuid
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from ingestion_core.main import app as fastapi_app
from ingestion_core.api.deps import get_db
from ingestion_core.infra.db import Base, make_engine, make_session_factory
from ingestion_core.infra.uow import SqlAlchemyUoW
from ingestion_core.domain.entities.feature_set import FeatureSet, feature_set_ref
from ingestion_core.domain.entities.source import Source
from ingestion_core.domain.entities.store import Store
from ingestion_core.domain.enums import SourceType, StoreType

KAFKA_CONFIG = json.dumps({"bootstrap_servers": "kafka:9092", "topic": "feast-features"})
REDIS_CONFIG = json.dumps({"host": "redis", "port": 6379})
FEATURE_SET_SPEC = json.dumps({
    "entities": [{"name": "driver_id", "value_type": "INT64"}],
    "features": [
        {"name": "trips_today", "value_type": "INT32"},
        {"name": "rating", "value_type": "FLOAT"},
    ],
    "max_age_seconds": 3600,
})


@pytest.fixture
def make_source():
    def _make(source_id: str = "kafka-1", config: str = KAFKA_CONFIG) -> Source:
        return Source(id=source_id, type=SourceType.KAFKA, config=config, is_default=True)

    return _make


@pytest.fixture
def make_store():
    def _make(name: str = "online", config: str = REDIS_CONFIG, subscriptions=("driver:*",)) -> Store:
        return Store(name=name, type=StoreType.REDIS, config=config, subscriptions=tuple(subscriptions))

    return _make


@pytest.fixture
def make_feature_set():
    def _make(name: str, project: str = "driver", spec: str = FEATURE_SET_SPEC) -> FeatureSet:
        return FeatureSet(id=feature_set_ref(project, name), project=project, name=name, spec=spec)

    return _make


@pytest.fixture
def session_factory():
    """
    Свежая in-memory SQLite на каждый тест.
    """
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    try:
        yield make_session_factory(engine)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def uow(db_session):
    return SqlAlchemyUoW(db_session)


@pytest.fixture
def seed_references(uow, make_source, make_store, make_feature_set):
    """
    Регистрирует source, store и три feature set'а.

    Возвращает: (source, store, [feature_sets])
    """
    source = make_source()
    store = make_store()
    feature_sets = [make_feature_set(n) for n in ("trips", "ratings", "locations")]

    uow.sources.add(source)
    uow.stores.add(store)
    for fs in feature_sets:
        uow.feature_sets.add(fs)
    uow.commit()

    return source, store, feature_sets


@pytest.fixture
def job_id():
    return f"job-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def app(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """
    HTTP client поверх ASGI приложения (без реального поднятия сервера).
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
