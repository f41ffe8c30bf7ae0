import json

import pytest

from qsuite.core.dependencies import get_interaction_log
from qsuite.core.exceptions import PersistenceError, ProviderError
from qsuite.models.database import AIInteractionModel
from qsuite.repositories.interfaces.interaction_log_repository import IInteractionLogRepository

GENERATE_URL = "/api/v1/ai/generate-tests"


class FailingInteractionLog(IInteractionLogRepository):
    async def append(self, entry):
        raise PersistenceError("database is locked", operation="append")


def test_generate_returns_normalized_test_cases(test_client, fake_ai, auth_headers):
    response = test_client.post(GENERATE_URL, json={"requirements": "  User login  "}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 2
    assert data["degraded"] is False
    first, second = data["testCases"]
    assert first == {
        "name": "Login succeeds",
        "description": "Valid user can log in",
        "scenarios": ["Open the login page", "Submit valid credentials"],
        "category": "Functional",
        "tags": ["auth"],
    }
    assert second["description"] == "Test case to validate login fails"
    assert second["scenarios"] == ["Submit a wrong password"]
    assert second["category"] == "AI Generated"
    assert second["tags"] == ["ai-generated"]


def test_generate_calls_provider_with_generation_parameters(test_client, fake_ai, auth_headers):
    test_client.post(
        GENERATE_URL,
        json={"requirements": "Checkout with saved card", "context": {"fileId": 42, "format": "gherkin"}},
        headers=auth_headers,
    )

    assert len(fake_ai.calls) == 1
    call = fake_ai.calls[0]
    assert '"testCases"' in call["system_prompt"]
    assert call["user_prompt"].startswith("Generate test cases for: Checkout with saved card")
    assert "Related file id: 42" in call["user_prompt"]
    assert "Preferred format: gherkin" in call["user_prompt"]
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 1500
    assert call["json_output"] is True


def test_missing_authorization_never_calls_provider(test_client, fake_ai):
    response = test_client.post(GENERATE_URL, json={"requirements": "User login"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "No authorization header", "testCases": []}
    assert len(fake_ai.calls) == 0


def test_invalid_token_is_rejected(test_client, fake_ai):
    response = test_client.post(
        GENERATE_URL,
        json={"requirements": "User login"},
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert len(fake_ai.calls) == 0


def test_authorization_is_checked_before_configuration(test_client, fake_ai):
    fake_ai.configured = False

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"})

    assert response.status_code == 401


def test_missing_provider_key_is_a_configuration_error(test_client, fake_ai, auth_headers):
    fake_ai.configured = False

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "fake API key not configured"
    assert data["testCases"] == []
    assert len(fake_ai.calls) == 0


def test_blank_requirements_are_rejected(test_client, fake_ai, auth_headers):
    for body in ({"requirements": "   "}, {}):
        response = test_client.post(GENERATE_URL, json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Requirements must not be empty"
    assert len(fake_ai.calls) == 0


def test_provider_error_is_surfaced_without_retry(test_client, fake_ai, auth_headers):
    fake_ai.error = ProviderError("OpenAI API error: Rate limit reached", provider="openai", provider_status=429)

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "error": "OpenAI API error: Rate limit reached",
        "testCases": [],
    }
    assert len(fake_ai.calls) == 1


def test_unparseable_reply_is_salvaged_and_flagged(test_client, fake_ai, auth_headers):
    fake_ai.reply = "Test Case 1: Login\n1. Enter credentials\n2. Submit\nExpect dashboard"

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["degraded"] is True
    assert data["count"] == 1
    assert data["testCases"][0]["name"] == "Login"
    assert data["testCases"][0]["scenarios"] == ["Enter credentials", "Submit"]


def test_empty_reply_still_returns_one_case(test_client, fake_ai, auth_headers):
    fake_ai.reply = "   "

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)

    data = response.json()
    assert response.status_code == 200
    assert data["count"] == 1
    assert data["testCases"][0]["name"] == "Generated Test Case"


def test_interaction_is_logged(test_client, session_factory, auth_headers):
    test_client.post(GENERATE_URL, json={"requirements": "  User login  "}, headers=auth_headers)

    db = session_factory()
    try:
        rows = db.query(AIInteractionModel).all()
    finally:
        db.close()
    assert len(rows) == 1
    assert rows[0].user_id == "user-1"
    assert rows[0].message == "User login"
    assert rows[0].context_type == "test_generation"
    assert [case["name"] for case in json.loads(rows[0].response)] == ["Login succeeds", "Login fails"]


def test_logging_failure_does_not_fail_request(test_app, test_client, auth_headers):
    test_app.dependency_overrides[get_interaction_log] = lambda: FailingInteractionLog()

    response = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["count"] == 2


def test_users_are_resolved_from_token(test_client, session_factory, auth_header_for):
    test_client.post(GENERATE_URL, json={"requirements": "Search"}, headers=auth_header_for("user-2"))

    db = session_factory()
    try:
        assert [row.user_id for row in db.query(AIInteractionModel).all()] == ["user-2"]
    finally:
        db.close()


def test_preflight_is_answered_unconditionally(test_client):
    response = test_client.options(GENERATE_URL)

    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-headers"] == "authorization, x-client-info, apikey, content-type"


def test_all_responses_carry_cors_headers(test_client, auth_headers):
    ok = test_client.post(GENERATE_URL, json={"requirements": "User login"}, headers=auth_headers)
    denied = test_client.post(GENERATE_URL, json={"requirements": "User login"})

    for response in (ok, denied):
        assert response.headers["access-control-allow-origin"] == "*"
        assert "authorization" in response.headers["access-control-allow-headers"]


@pytest.mark.parametrize(
    "body",
    [
        {"requirements": None},
        {"requirements": 5},
        {"requirements": "User login", "context": {"fileId": {"id": 1}}},
        ["User login"],
    ],
)
def test_malformed_bodies_get_the_error_envelope(test_client, fake_ai, auth_headers, body):
    response = test_client.post(GENERATE_URL, json=body, headers=auth_headers)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"]
    assert data["testCases"] == []
    assert fake_ai.calls == []


def test_invalid_json_gets_the_error_envelope(test_client, fake_ai, auth_headers):
    response = test_client.post(
        GENERATE_URL,
        content="requirements=User login",
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["testCases"] == []
    assert fake_ai.calls == []


def test_malformed_body_is_checked_after_authorization(test_client):
    response = test_client.post(GENERATE_URL, json={"requirements": None})

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "No authorization header", "testCases": []}
