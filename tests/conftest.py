"""
Shared fixtures: in-memory SQLite, a scripted model gateway and an authenticated user.
Settings are read at import time, so the environment is set before any app import.
"""
import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GEMINI_API_KEY"] = ""
os.environ["VERTEX_PROJECT_ID"] = ""
os.environ["COMPILER_TOKEN"] = "compiler-token"
os.environ["COMPILER_SUBMIT_URL"] = "https://compiler.test/submit"
os.environ["COMPILER_STATUS_URL"] = "https://compiler.test/status"
os.environ["JOB_SEARCH_URL"] = "https://jobs.test/search"
os.environ["JOB_DETAILS_URL"] = "https://jobs.test/details"
os.environ["JOB_SEARCH_BEARER_TOKEN"] = "bearer-token"

import pytest
from fastapi.testclient import TestClient

from app.auth import create_access_token, hash_password
from app.database import Base, SessionLocal, engine, get_db
from app.main import app
from app.models.user import User, UserRole
from app.routers.ai import get_model_gateway
from app.services.analysis_keys import AnalysisTask, FailureKind
from app.services.model_gateway import ModelReply


class FakeGateway:
    """Stands in for ModelGateway: replies per task, records every call."""

    def __init__(self):
        self.replies: dict[AnalysisTask, ModelReply] = {}
        self.calls: list[tuple[AnalysisTask, dict]] = []

    def reply(self, task: AnalysisTask, text: str) -> None:
        self.replies[task] = ModelReply(text=text)

    def fail(self, task: AnalysisTask) -> None:
        self.replies[task] = ModelReply(failure=FailureKind.UPSTREAM_UNAVAILABLE, detail="quota exceeded")

    def invoke(self, task: AnalysisTask, payload: dict) -> ModelReply:
        self.calls.append((task, payload))
        return self.replies.get(task) or ModelReply(
            failure=FailureKind.UPSTREAM_UNAVAILABLE, detail="no reply scripted"
        )

    def count(self, task: AnalysisTask) -> int:
        return sum(1 for t, _ in self.calls if t == task)


class FakeRedis:
    """Async subset of redis.asyncio.Redis used by RedisAnalysisCache."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(db_session, gateway):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db_session, username: str, email: str, role: str = UserRole.USER.value) -> User:
    user = User(username=username, email=email, password=hash_password("secret123"), role=role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, "alice", "alice@example.com")


@pytest.fixture
def other_user(db_session):
    return _make_user(db_session, "bob", "bob@example.com")


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "admin", "admin@example.com", role=UserRole.ADMIN.value)


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
def auth_headers(user):
    return bearer(user)


@pytest.fixture
def headers_for():
    return bearer
