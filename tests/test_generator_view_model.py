import httpx
import pytest

from qsuite.client.api_client import ClientError, QSuiteClient
from qsuite.client.view_model import GeneratorError, GeneratorState, GeneratorViewModel
from qsuite.core.exceptions import ProviderError

GENERATED = {
    "success": True,
    "count": 2,
    "degraded": False,
    "testCases": [
        {"name": "Login succeeds", "description": "d", "scenarios": ["s1"], "category": "Functional", "tags": ["auth"]},
        {"name": "Login fails", "description": "d", "scenarios": ["s2"], "category": "Functional", "tags": ["auth"]},
    ],
}


def _app_client(test_app, access_token):
    return QSuiteClient("http://test", access_token, transport=httpx.ASGITransport(app=test_app))


class FlakyBackend:
    """Mock transport handler whose bulk endpoint fails a set number of times"""

    def __init__(self, bulk_failures=1):
        self.bulk_failures = bulk_failures
        self.bulk_payloads = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/ai/generate-tests"):
            return httpx.Response(200, json=GENERATED)
        if request.url.path.endswith("/test-cases/bulk"):
            self.bulk_payloads.append(request.content)
            if self.bulk_failures:
                self.bulk_failures -= 1
                return httpx.Response(500, json={"success": False, "error": "Failed to create test cases"})
            return httpx.Response(201, json={"success": True, "count": 1, "categoryId": 7, "testCases": []})
        return httpx.Response(404, json={"detail": "Not Found"})


def _mock_client(handler):
    return QSuiteClient("http://test", "token", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_generate_review_and_save_against_the_service(test_app, access_token):
    view_model = GeneratorViewModel(_app_client(test_app, access_token))

    cases = await view_model.submit("User login")

    assert view_model.state == GeneratorState.REVIEW
    assert [case.name for case in cases] == ["Login succeeds", "Login fails"]
    assert all(item.selected for item in view_model.items)

    view_model.toggle(1)
    created = await view_model.confirm()

    assert created == 1
    assert view_model.state == GeneratorState.DONE
    assert view_model.category_id is not None
    categories = await view_model.client.list_categories()
    assert [category.name for category in categories] == ["AI Generated"]


@pytest.mark.asyncio
async def test_generation_failure_keeps_previous_state(test_app, fake_ai, access_token):
    fake_ai.error = ProviderError("OpenAI API error: Rate limit reached", provider="openai", provider_status=429)
    view_model = GeneratorViewModel(_app_client(test_app, access_token))

    with pytest.raises(GeneratorError, match="Rate limit reached"):
        await view_model.submit("User login")

    assert view_model.state == GeneratorState.IDLE
    assert view_model.error == "OpenAI API error: Rate limit reached"
    assert view_model.items == []


@pytest.mark.asyncio
async def test_failed_save_keeps_selection_for_retry():
    backend = FlakyBackend(bulk_failures=1)
    view_model = GeneratorViewModel(_mock_client(backend))
    await view_model.submit("User login")
    view_model.clear_selection()
    view_model.toggle(0)

    with pytest.raises(GeneratorError, match="Failed to create test cases"):
        await view_model.confirm(new_category_name="Auth")

    assert view_model.state == GeneratorState.REVIEW
    assert view_model.error == "Failed to create test cases"
    assert [case.name for case in view_model.selected] == ["Login succeeds"]

    assert await view_model.confirm(new_category_name="Auth") == 1
    assert view_model.state == GeneratorState.DONE
    assert view_model.category_id == 7
    assert view_model.error is None
    assert len(backend.bulk_payloads) == 2
    assert backend.bulk_payloads[0] == backend.bulk_payloads[1]


@pytest.mark.asyncio
async def test_confirm_requires_a_selection():
    backend = FlakyBackend(bulk_failures=0)
    view_model = GeneratorViewModel(_mock_client(backend))
    await view_model.submit("User login")
    view_model.clear_selection()

    with pytest.raises(GeneratorError, match="Select at least one test case"):
        await view_model.confirm()

    assert view_model.state == GeneratorState.REVIEW
    assert backend.bulk_payloads == []


@pytest.mark.asyncio
async def test_blank_requirements_are_not_submitted():
    backend = FlakyBackend()
    view_model = GeneratorViewModel(_mock_client(backend))

    with pytest.raises(GeneratorError):
        await view_model.submit("   ")

    assert view_model.state == GeneratorState.IDLE


@pytest.mark.asyncio
async def test_confirm_before_generation_is_rejected():
    view_model = GeneratorViewModel(_mock_client(FlakyBackend()))

    with pytest.raises(GeneratorError, match="generate test cases first"):
        await view_model.confirm()


@pytest.mark.asyncio
async def test_reset_returns_to_idle():
    view_model = GeneratorViewModel(_mock_client(FlakyBackend(bulk_failures=0)))
    await view_model.submit("User login")
    await view_model.confirm()

    view_model.reset()

    assert view_model.state == GeneratorState.IDLE
    assert view_model.items == []
    assert view_model.created_count == 0


@pytest.mark.asyncio
async def test_client_reports_detail_messages():
    client = _mock_client(FlakyBackend())

    with pytest.raises(ClientError) as exc_info:
        await client._request("GET", "/unknown")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Not Found"


class BrokenBulkBackend(FlakyBackend):
    """Bulk endpoint answers 2xx with a body that is not a bulk-create response"""

    def __init__(self, body):
        super().__init__(bulk_failures=0)
        self.body = body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/test-cases/bulk") and self.body is not None:
            body, self.body = self.body, None
            self.bulk_payloads.append(request.content)
            if isinstance(body, str):
                return httpx.Response(201, text=body)
            return httpx.Response(201, json=body)
        return super().__call__(request)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>proxy</html>", {"success": True}])
async def test_unexpected_save_response_is_retryable(body):
    view_model = GeneratorViewModel(_mock_client(BrokenBulkBackend(body)))
    await view_model.submit("User login")

    with pytest.raises(GeneratorError, match="Unexpected response from server"):
        await view_model.confirm()

    assert view_model.state == GeneratorState.REVIEW
    assert view_model.error == "Unexpected response from server"
    assert len(view_model.selected) == 2

    assert await view_model.confirm() == 1
    assert view_model.state == GeneratorState.DONE


@pytest.mark.asyncio
async def test_unexpected_generate_response_keeps_idle_state():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="upstream timeout")

    view_model = GeneratorViewModel(_mock_client(handler))

    with pytest.raises(GeneratorError, match="Unexpected response from server"):
        await view_model.submit("User login")

    assert view_model.state == GeneratorState.IDLE
