from fastapi import APIRouter
from qsuite.api.routes import ai, test_cases, health

api_router = APIRouter()

# Include all route modules
api_router.include_router(health.router)
api_router.include_router(ai.router)
api_router.include_router(test_cases.router)
