"""Shared fixtures: in-memory SQLite, captured notifications, API client."""

import os

# Configure before any application module reads its environment.
os.environ["SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105
os.environ["ALGORITHM"] = "HS256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"
for _name in ("SMTP_SERVER", "SMTP_USER", "SMTP_PASSWORD", "DIRECT_LINE_SECRET"):
    os.environ.pop(_name, None)

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import create_db_and_tables, get_db
from main import app
from models.users_models import Base
from services.users_services import UserService, get_notification_sender


class SentCodes:
    """Notification sender double that records (email, code) pairs."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None

    def __call__(self, email: str, code: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((email, code))

    def last_code_for(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Iterator[Session]:
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def sent_codes() -> SentCodes:
    return SentCodes()


@pytest.fixture
def user_service(db_session, sent_codes) -> UserService:
    return UserService(db_session, send_code=sent_codes)


@pytest.fixture
def client(db_session, sent_codes) -> Iterator[TestClient]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = lambda: sent_codes
    yield TestClient(app)
    app.dependency_overrides.clear()
