from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError
import structlog

from qsuite.models.schemas import (
    BulkCreateTestCasesRequest,
    BulkCreateTestCasesResponse,
    Category,
    GenerateTestsRequest,
    GenerateTestsResponse,
    GenerationContext,
    NormalizedTestCase,
)

logger = structlog.get_logger()

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class ClientError(Exception):
    """A QSuite API call failed; ``message`` is the server's error reason"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class QSuiteClient:
    """Async HTTP client for the QSuite AI service"""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        api_prefix: str = "/api/v1",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.access_token = access_token
        self.timeout = timeout
        self.transport = transport

    async def generate_tests(
        self, requirements: str, context_id: Optional[Union[int, str]] = None
    ) -> GenerateTestsResponse:
        context = GenerationContext(file_id=context_id) if context_id is not None else None
        payload = GenerateTestsRequest(requirements=requirements, context=context)
        data = await self._request("POST", "/ai/generate-tests", json=payload.model_dump(by_alias=True, exclude_none=True))
        return self._parse(GenerateTestsResponse, data)

    async def create_test_cases(
        self,
        test_cases: List[NormalizedTestCase],
        category_id: Optional[int] = None,
        new_category_name: Optional[str] = None,
    ) -> BulkCreateTestCasesResponse:
        payload = BulkCreateTestCasesRequest(
            test_cases=test_cases,
            category_id=category_id,
            new_category_name=new_category_name,
        )
        data = await self._request(
            "POST", "/test-cases/bulk", json=payload.model_dump(by_alias=True, exclude_none=True)
        )
        return self._parse(BulkCreateTestCasesResponse, data)

    async def list_categories(self) -> List[Category]:
        data = await self._request("GET", "/categories")
        if not isinstance(data, list):
            raise ClientError("Unexpected response from server")
        return [self._parse(Category, item) for item in data]

    def _parse(self, model: Type[ResponseModel], data: Any) -> ResponseModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("QSuite API response failed validation", model=model.__name__, error=str(e))
            raise ClientError("Unexpected response from server") from e

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("QSuite API request failed", method=method, path=path, error=str(e))
            raise ClientError(f"Request failed: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                logger.error("QSuite API returned a non-JSON body", method=method, path=path,
                             status_code=response.status_code)
                raise ClientError("Unexpected response from server", status_code=response.status_code) from e

        message = f"HTTP {response.status_code}"
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get("error") or body.get("detail") or message
        except ValueError:
            pass
        if not isinstance(message, str):
            message = str(message)
        logger.warning("QSuite API returned an error", method=method, path=path,
                       status_code=response.status_code, error=message)
        raise ClientError(message, status_code=response.status_code)
