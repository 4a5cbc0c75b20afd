import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("PRPAL_SECRET_KEY", "test-secret-key")
os.environ["APP_ENV"] = "test"
os.environ["QUEUE_MODE"] = "request"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DRIVER"] = "console"
os.environ["PRPAL_API_KEY"] = "test_api_key"
os.environ["FORCE_DUMMY_DATA"] = "false"
os.environ["PULL_REQUEST_DATA_PROVIDER"] = ""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from prpal.config import db
from prpal.models.conversation_message import ConversationMessage  # noqa: F401
from prpal.models.llm_api_key import LlmApiKey  # noqa: F401
from prpal.models.pull_request import PullRequest  # noqa: F401
from prpal.models.pull_request_review import PullRequestReview  # noqa: F401
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.models.user_session import UserSession  # noqa: F401
from prpal.tests.unit.helpers import FakeLLMClient, RecordingBroadcaster, make_review


@pytest.fixture
def engine(monkeypatch):
    """An in-memory database shared by the test and any code under test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def user(session):
    user = User(email_address="reviewer@example.com", password_digest="")
    user.set_password("password123")
    return user.save(session)


@pytest.fixture
def other_user(session):
    user = User(email_address="someone-else@example.com", password_digest="")
    user.set_password("password123")
    return user.save(session)


@pytest.fixture
def repository(session, user):
    return Repository(owner="acme", name="widgets", user_id=user.id).save(session)


@pytest.fixture
def review(session, user, repository):
    return make_review(session, user, repository, 123)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def live_updates():
    return RecordingBroadcaster()
