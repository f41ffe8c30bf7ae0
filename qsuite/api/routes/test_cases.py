from typing import List, Optional
from fastapi import APIRouter, Depends, status
import structlog

from qsuite.models.schemas import (
    AuthenticatedUser,
    BulkCreateTestCasesRequest,
    BulkCreateTestCasesResponse,
    Category,
    PersistedTestCase,
)
from qsuite.services.test_case_service import TestCaseService
from qsuite.core.dependencies import get_current_user, get_test_case_service

logger = structlog.get_logger()

router = APIRouter(tags=["test-cases"])


@router.get("/categories", response_model=List[Category])
async def list_categories(
    user: AuthenticatedUser = Depends(get_current_user),
    service: TestCaseService = Depends(get_test_case_service)
):
    """List the caller's categories"""
    return await service.list_categories(user)


@router.get("/test-cases", response_model=List[PersistedTestCase])
async def list_test_cases(
    category_id: Optional[int] = None,
    user: AuthenticatedUser = Depends(get_current_user),
    service: TestCaseService = Depends(get_test_case_service)
):
    """List the caller's test cases, optionally for one category"""
    return await service.list_test_cases(user, category_id)


@router.post("/test-cases/bulk", response_model=BulkCreateTestCasesResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_test_cases(
    request: BulkCreateTestCasesRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: TestCaseService = Depends(get_test_case_service)
):
    """Persist confirmed AI-generated test cases (all or nothing)"""
    logger.info("Creating test cases", user_id=user.id, count=len(request.test_cases))
    return await service.create_test_cases(user, request)
