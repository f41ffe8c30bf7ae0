from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.orm import Session
import structlog
from qsuite.config.settings import settings
from qsuite.core.database import get_database

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str


@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version="1.0.0",
        environment=settings.environment
    )


@router.get("/readiness")
async def readiness_check(db: Session = Depends(get_database)):
    """Readiness check endpoint"""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error("Database readiness check failed", error=str(e))
        database = "error"

    provider = settings.ai_provider.lower()
    api_key = settings.gemini_api_key if provider == "gemini" else settings.openai_api_key
    checks = {
        "database": database,
        "ai_provider": "ok" if api_key else "not_configured",
        "auth": "ok" if settings.jwt_secret else "not_configured",
    }

    all_ok = all(check == "ok" for check in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "provider": provider,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc)
    }
