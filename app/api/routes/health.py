"""Liveness, readiness and a summary of what this instance is configured for."""

from typing import Optional

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AppSettings, DB
from app.core.config import Settings
from app.utils.envelopes import api_success

router = APIRouter(tags=["health"])


async def _database_error(db: AsyncSession) -> Optional[str]:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return str(exc)
    return None


def _storage_configured(settings: Settings) -> bool:
    return bool(
        settings.AZURE_STORAGE_CONN_STRING
        or (settings.AZURE_STORAGE_ACCOUNT and settings.AZURE_STORAGE_KEY)
    )


@router.get("/health", response_model=dict)
async def health_check(db: DB, settings: AppSettings):
    error = await _database_error(db)
    return api_success(
        {
            "status": "ok" if error is None else "degraded",
            "service": settings.APP_NAME,
            "database": "healthy" if error is None else f"unhealthy: {error}",
            "storage_configured": _storage_configured(settings),
            "payments_configured": bool(settings.PAYMENT_FUNCTION_URL),
            "subscriptions_enabled": settings.ENABLE_SUBSCRIPTIONS,
        }
    )


@router.get("/health/ready", response_model=dict)
async def readiness_check(db: DB):
    """Ready once the database answers."""
    return api_success({"ready": await _database_error(db) is None})


@router.get("/health/live", response_model=dict)
async def liveness_check():
    return api_success({"alive": True})
