"""Subscription, quota and payment routes."""

from fastapi import APIRouter, Query, status

from app.api.deps import AppSettings, CurrentScenario, CurrentUser, DB, Payments
from app.database.subscription_repo import SubscriptionRepository
from app.schemas.payments import PaymentRequest
from app.schemas.subscriptions import QuotaCheckRequest
from app.services.payment_service import to_transaction_response
from app.services.subscription_service import SubscriptionService
from app.utils.envelopes import api_success

router = APIRouter(tags=["subscriptions"])


@router.get("/subscriptions/plans", response_model=dict)
async def list_plans(settings: AppSettings):
    """Get all available subscription plans."""
    plans = SubscriptionService.list_plans(settings)
    return api_success({"plans": [plan.model_dump() for plan in plans]})


@router.get("/subscriptions/me", response_model=dict)
async def get_my_subscription(current_user: CurrentUser, db: DB, settings: AppSettings):
    """Get current user's subscription, usage and resolved access scenario."""
    subscription, scenario = await SubscriptionService.get_scenario(db, current_user.id, settings)
    return api_success(SubscriptionService.build_subscription_me(subscription, scenario, settings).model_dump())


@router.post("/subscriptions/check", response_model=dict)
async def check_quota(payload: QuotaCheckRequest, scenario: CurrentScenario):
    """Ask whether an action is allowed before starting any uploads."""
    return api_success(SubscriptionService.check(scenario, payload).model_dump())


@router.post("/subscriptions/payments", response_model=dict, status_code=status.HTTP_201_CREATED)
async def pay_for_plan(payload: PaymentRequest, current_user: CurrentUser, db: DB, payments: Payments):
    """Charge a mobile-money wallet and activate the chosen plan."""
    activation = await payments.process_payment(db, current_user.id, payload)
    return api_success(activation.model_dump())


@router.get("/subscriptions/payments", response_model=dict)
async def list_my_payments(
    current_user: CurrentUser,
    db: DB,
    limit: int = Query(50, ge=1, le=200),
):
    """Payment history of the current user, most recent first."""
    transactions = await SubscriptionRepository.list_payment_transactions(db, current_user.id, limit=limit)
    return api_success({"payments": [to_transaction_response(item).model_dump() for item in transactions]})
