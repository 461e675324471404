# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SHARED_SECRET", "test-shared-secret")
os.environ.setdefault("VALIDITY_WINDOW_BUCKETS", "3")
os.environ.setdefault("MAX_VOTES", "1")
os.environ.setdefault("MAX_DEVICES_PER_PROJECT", "3")
os.environ.setdefault("BASE_URL", "https://poll.example.test")

from expo_poll.api.v1.dependencies import get_key_rotator, get_payload_codec  # noqa: E402
from expo_poll.core.settings import Settings  # noqa: E402
from expo_poll.db.session import Base  # noqa: E402
from expo_poll.db.session import get_db as app_get_session  # noqa: E402
from expo_poll.main import app as fastapi_app  # noqa: E402
from expo_poll.models import Team  # noqa: E402
from expo_poll.schemas.payload import VoteAuthorizationPayload  # noqa: E402
from expo_poll.services.key_rotation import KeyRotator  # noqa: E402
from expo_poll.services.payload_codec import PayloadCodec  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_SECRET = "s1"
BUCKET_WIDTH = 10
START_BUCKET = 1000


class FakeClock:
    """Settable wall clock for driving bucket arithmetic in tests."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def at_bucket(self, bucket: int, offset: float = 0.5) -> None:
        self.now = bucket * BUCKET_WIDTH + offset


@pytest.fixture(scope="session")
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

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(START_BUCKET * BUCKET_WIDTH + 0.5)


@pytest.fixture()
def key_rotator(clock: FakeClock) -> KeyRotator:
    return KeyRotator(TEST_SECRET, BUCKET_WIDTH, clock=clock)


@pytest.fixture()
def codec() -> PayloadCodec:
    return PayloadCodec(TEST_SECRET)


@pytest.fixture()
def team(db_session: Session) -> Iterator[Team]:
    """Persist the team whose project is voted on."""
    team = Team(id=42, project_title="Solar Sorter")
    db_session.add(team)
    db_session.commit()
    yield team


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    key_rotator: KeyRotator,
    codec: PayloadCodec,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_key_rotator] = lambda: key_rotator
    app.dependency_overrides[get_payload_codec] = lambda: codec
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with the test environment."""
    return Settings()  # type: ignore[call-arg]


@pytest.fixture()
def mint_token(key_rotator: KeyRotator, codec: PayloadCodec) -> Callable[..., str]:
    """Return a helper sealing a payload the way a display device does."""

    def _mint(
        bucket: int = START_BUCKET,
        *,
        project_id: int = 42,
        fingerprint: str = "dev-A",
        ip: str = "1.2.3.4",
        bucket_secret: str | None = None,
    ) -> str:
        payload = VoteAuthorizationPayload(
            project_id=project_id,
            bucket=bucket,
            bucket_secret=bucket_secret if bucket_secret is not None else key_rotator.key_hex_for(bucket),
            device_fingerprint=fingerprint,
            device_address=ip,
        )
        return codec.encode(payload)

    return _mint
