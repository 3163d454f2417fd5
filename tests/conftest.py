# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from snapgram.core.security import Identity, create_identity_token
from snapgram.db.session import Base
from snapgram.db.session import get_db as app_get_session
from snapgram.main import app as fastapi_app
from snapgram.repositories import InMemoryRelationStore, SqlRelationStore
from snapgram.repositories.records import UserRecord
from snapgram.services.storage import LocalObjectStorage, get_storage

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def auth_headers(external_id: str, display_name: str | None = None) -> dict[str, str]:
    """Return an Authorization header for the given external identity."""
    token = create_identity_token(external_id, display_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session: Session) -> SqlRelationStore:
    """SQL-backed store sharing the session used by the app under test."""
    return SqlRelationStore(db_session)


@pytest.fixture()
def memory_store() -> InMemoryRelationStore:
    return InMemoryRelationStore()


@pytest.fixture()
def media_storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path / "media", "/media")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    media_storage: LocalObjectStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_storage] = lambda: media_storage
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_storage, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def at() -> Callable[[int], datetime]:
    """Return a factory for deterministic timestamps, ``minutes`` after a fixed base."""

    def _at(minutes: int) -> datetime:
        return BASE_TIME + timedelta(minutes=minutes)

    return _at


@pytest.fixture()
def alice_identity() -> Identity:
    return Identity(external_id="user_alice", display_name="Alice")


@pytest.fixture()
def bob_identity() -> Identity:
    return Identity(external_id="user_bob", display_name="Bob")


@pytest.fixture()
def alice(store: SqlRelationStore, alice_identity: Identity) -> UserRecord:
    """Persist the primary test user."""
    return store.create_user(alice_identity.external_id, alice_identity.display_name)


@pytest.fixture()
def bob(store: SqlRelationStore, bob_identity: Identity) -> UserRecord:
    """Persist the secondary test user."""
    return store.create_user(bob_identity.external_id, bob_identity.display_name)


@pytest.fixture()
def alice_headers(alice: UserRecord) -> dict[str, str]:
    return auth_headers(alice.external_identity_id, alice.display_name)


@pytest.fixture()
def bob_headers(bob: UserRecord) -> dict[str, str]:
    return auth_headers(bob.external_identity_id, bob.display_name)


@pytest.fixture()
def headers_for() -> Callable[..., dict[str, str]]:
    """Expose :func:`auth_headers` to tests that need ad-hoc identities."""
    return auth_headers


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES
