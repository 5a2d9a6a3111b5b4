"""FastAPI dependencies for authentication, database sessions and services."""

import uuid
from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.context import AppContext
from app.core.security import decode_access_token
from app.models.models import Profile
from app.services.listing_service import ListingService
from app.services.payment_service import PaymentService
from app.services.profile_service import ProfileService
from app.services.scenario_resolver import Scenario
from app.services.subscription_service import SubscriptionService

security = HTTPBearer(auto_error=False)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings(context: Annotated[AppContext, Depends(get_context)]) -> Settings:
    return context.settings


async def get_db(context: Annotated[AppContext, Depends(get_context)]) -> AsyncIterator[AsyncSession]:
    async with context.session() as session:
        yield session


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Get the current user's profile from the platform-issued JWT.

    The profile row is created on the first authenticated request.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise credentials_exception

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise credentials_exception

    return await ProfileService.get_or_create(db, user_id, payload)


# Convenience type aliases
CurrentUser = Annotated[Profile, Depends(get_current_user)]
DB = Annotated[AsyncSession, Depends(get_db)]
Ctx = Annotated[AppContext, Depends(get_context)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_scenario(current_user: CurrentUser, db: DB, settings: AppSettings) -> Scenario:
    """Scenario of the current user, recomputed per request."""
    _, scenario = await SubscriptionService.get_scenario(db, current_user.id, settings)
    return scenario


def get_listing_service(context: Ctx) -> ListingService:
    return ListingService(context.storage, context.settings)


def get_payment_service(context: Ctx) -> PaymentService:
    return PaymentService(context.http_client, context.settings)


CurrentScenario = Annotated[Scenario, Depends(get_scenario)]
Listings = Annotated[ListingService, Depends(get_listing_service)]
Payments = Annotated[PaymentService, Depends(get_payment_service)]
