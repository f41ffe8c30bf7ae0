from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
import structlog

from qsuite.core.exceptions import QSuiteError
from qsuite.core.dependencies import get_chat_service, get_generation_service
from qsuite.models.schemas import (
    ChatErrorResponse,
    ChatResponse,
    GenerateTestsErrorResponse,
    GenerateTestsResponse,
)
from qsuite.services.chat_service import ChatService
from qsuite.services.generation_service import GenerationService

logger = structlog.get_logger()

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post(
    "/generate-tests",
    response_model=GenerateTestsResponse,
    responses={
        400: {"model": GenerateTestsErrorResponse},
        401: {"model": GenerateTestsErrorResponse},
        500: {"model": GenerateTestsErrorResponse},
        502: {"model": GenerateTestsErrorResponse},
    },
)
async def generate_tests(
    request: Request,
    authorization: Optional[str] = Header(None),
    service: GenerationService = Depends(get_generation_service),
):
    """Generate test cases from free-text requirements using the AI provider.

    The JSON body (GenerateTestsRequest) is validated by the service after the
    caller is authenticated, so malformed bodies get this endpoint's envelope.
    """
    try:
        return await service.generate(authorization, await request.body())
    except QSuiteError as e:
        logger.error("Test case generation failed", error=e.message, error_code=e.error_code)
        return JSONResponse(
            status_code=e.status_code,
            content=GenerateTestsErrorResponse(error=e.message).model_dump(by_alias=True),
        )
    except Exception as e:
        logger.error("Test case generation failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=GenerateTestsErrorResponse(error="Internal server error").model_dump(by_alias=True),
        )


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ChatErrorResponse},
        401: {"model": ChatErrorResponse},
        500: {"model": ChatErrorResponse},
        502: {"model": ChatErrorResponse},
    },
)
async def chat(
    request: Request,
    authorization: Optional[str] = Header(None),
    service: ChatService = Depends(get_chat_service),
):
    """Ask the QSuite assistant a product question (JSON body: ChatRequest)"""
    try:
        return await service.chat(authorization, await request.body())
    except QSuiteError as e:
        logger.error("AI chat failed", error=e.message, error_code=e.error_code)
        return JSONResponse(
            status_code=e.status_code,
            content=ChatErrorResponse(error=e.message).model_dump(by_alias=True, mode="json"),
        )
    except Exception as e:
        logger.error("AI chat failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ChatErrorResponse(error="Internal server error").model_dump(by_alias=True, mode="json"),
        )
