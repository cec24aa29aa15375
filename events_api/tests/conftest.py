import datetime as dt

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from events_api.core.config import Settings
from events_api.core.security import create_access_token, hash_password
from events_api.database.db import Database
from events_api.main import create_app
from events_api.models.events import Event
from events_api.models.users import User
from events_api.tests.helpers import TEST_PASSWORD, in_days


@pytest.fixture
def settings() -> Settings:
    # Minimum bcrypt cost keeps the suite fast
    return Settings(jwt_secret="test-secret", bcrypt_rounds=4, event_lock_blocking_timeout=10)


@pytest.fixture
def database(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database: Database):
    session: Session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def client(settings: Settings, database: Database, redis_client):
    app = create_app(settings=settings, database=database, redis_client=redis_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session: Session):
    def _make(name: str = "Alice", email: str = "alice@x.com", password: str = TEST_PASSWORD) -> User:
        user = User(name=name, email=email, password=hash_password(password, rounds=4))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db_session: Session):
    def _make(
        title: str = "Meetup",
        *,
        when: dt.datetime | None = None,
        location: str = "Hall A",
        capacity: int = 10,
    ) -> Event:
        event = Event(title=title, datetime=when or in_days(7), location=location, capacity=capacity)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make


@pytest.fixture
def auth_headers(settings: Settings):
    def _headers(user_id: int) -> dict[str, str]:
        token = create_access_token(user_id, secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)
        return {"Authorization": f"Bearer {token}"}

    return _headers
