from fastapi import APIRouter, Query, status

from app.api.deps import CurrentUser, DB
from app.schemas.support import SupportCreateRequest
from app.services.support_service import SupportService
from app.utils.envelopes import api_success

router = APIRouter(tags=["support"])


@router.post("/support/messages", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_support_message(
    payload: SupportCreateRequest,
    current_user: CurrentUser,
    db: DB,
):
    """Create a new support message for the authenticated user."""
    support_service = SupportService(db)
    support_message = await support_service.create_support_message(
        full_name=payload.full_name,
        subject=payload.subject,
        message=payload.message,
        user_id=current_user.id,
    )
    return api_success(SupportService.to_response(support_message).model_dump())


@router.get("/support/messages", response_model=dict)
async def list_support_messages(
    current_user: CurrentUser,
    db: DB,
    limit: int = Query(100, ge=1, le=200),
):
    support_service = SupportService(db)
    messages = await support_service.get_user_support_messages(current_user.id, limit)
    return api_success({"messages": [SupportService.to_response(item).model_dump() for item in messages]})
