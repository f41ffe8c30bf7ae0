import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from qsuite.core.database import get_database
from qsuite.core.dependencies import get_ai_service, get_auth_service
from qsuite.core.security import create_access_token
from qsuite.models.database import Base
from qsuite.repositories.implementations.jwt_auth_service import JWTAuthService
from qsuite.repositories.interfaces.ai_service import IAIService

TEST_JWT_SECRET = "qsuite-test-secret-0123456789abcdef"
TEST_AUDIENCE = "authenticated"

VALID_REPLY = json.dumps({
    "testCases": [
        {
            "name": "Login succeeds",
            "description": "Valid user can log in",
            "scenarios": ["Open the login page", "Submit valid credentials"],
            "category": "Functional",
            "tags": ["auth"]
        },
        {
            "name": "Login fails",
            "scenarios": "Submit a wrong password"
        }
    ]
})


class FakeAIService(IAIService):
    """In-memory provider that records every call"""

    name = "fake"

    def __init__(self, reply=VALID_REPLY, error=None, configured=True):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, system_prompt, user_prompt, *, temperature, top_p, max_tokens, json_output=False):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "top_p": top_p,
            "max_tokens": max_tokens,
            "json_output": json_output,
        })
        if self.error is not None:
            raise self.error
        return self.reply


def auth_header(user_id: str = "user-1", email: str = "qa@example.com") -> dict:
    token = create_access_token(user_id, email=email, secret=TEST_JWT_SECRET, audience=TEST_AUDIENCE)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def fake_ai():
    return FakeAIService()


@pytest.fixture
def test_app(session_factory, fake_ai):
    """The application with database, provider and auth overridden"""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    auth_service = JWTAuthService(secret=TEST_JWT_SECRET, audience=TEST_AUDIENCE)

    app.dependency_overrides[get_database] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: fake_ai
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def test_client(test_app):
    """Synchronous test client for simple tests"""
    return TestClient(test_app)


@pytest.fixture
def auth_headers():
    return auth_header()


@pytest.fixture
def auth_header_for():
    """Build an Authorization header for any user id"""
    return auth_header


@pytest.fixture
def access_token():
    return create_access_token("user-1", secret=TEST_JWT_SECRET, audience=TEST_AUDIENCE)
