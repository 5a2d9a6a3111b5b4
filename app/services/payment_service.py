"""Mobile-money payments for subscription plans.

The MTN/Orange calls themselves live behind a payment function reached over
HTTPS. This service validates the wallet number, records each attempt in
``payment_transactions`` and activates the subscription once the charge
succeeds.
"""

import logging
import uuid
from typing import Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.models.models import PaymentTransaction
from app.models.subscription_enums import PaymentMethod, PaymentStatus
from app.schemas.payments import PaymentRequest, PaymentResult, PaymentTransactionResponse, SubscriptionActivation
from app.services.notification_service import NotificationService
from app.services.plan_catalog import PlanCatalog
from app.services.subscription_service import SubscriptionService
from app.utils.datetime import as_utc, utc_now
from app.utils.exceptions import (
    PaymentFailedException,
    SubscriptionActivationFailedException,
    ValidationException,
)
from app.utils.phone import clean_phone_number, is_valid_phone_number, matches_payment_method

logger = logging.getLogger(__name__)

_OPERATOR_NAMES = {PaymentMethod.MTN: "MTN Mobile Money", PaymentMethod.ORANGE: "Orange Money"}


def to_transaction_response(transaction: PaymentTransaction) -> PaymentTransactionResponse:
    return PaymentTransactionResponse(
        id=str(transaction.id),
        plan_name=transaction.plan_name,
        amount=transaction.amount,
        currency=transaction.currency,
        payment_method=PaymentMethod(transaction.payment_method).value,
        status=PaymentStatus(transaction.status).value,
        provider_reference=transaction.provider_reference,
        message=transaction.message,
        created_at=as_utc(transaction.created_at) if transaction.created_at else utc_now(),
        completed_at=as_utc(transaction.completed_at) if transaction.completed_at else None,
    )


class PaymentService:
    """Charges a wallet through the payment function, then activates the plan."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = http_client
        self._settings = settings

    @staticmethod
    def validate_wallet(phone_number: str, payment_method: PaymentMethod) -> str:
        """Return the cleaned number or raise ``ValidationException``."""
        if not is_valid_phone_number(phone_number):
            raise ValidationException("Please enter a valid phone number")
        if not matches_payment_method(phone_number, PaymentMethod(payment_method).value):
            raise ValidationException(
                f"This number is not a valid {_OPERATOR_NAMES[PaymentMethod(payment_method)]} number"
            )
        return clean_phone_number(phone_number)

    async def _call_payment_function(self, payload: dict) -> PaymentResult:
        if not self._settings.PAYMENT_FUNCTION_URL:
            raise PaymentFailedException("Payments are not configured")

        headers = {}
        if self._settings.PAYMENT_FUNCTION_KEY:
            headers["Authorization"] = f"Bearer {self._settings.PAYMENT_FUNCTION_KEY}"

        try:
            response = await self._client.post(
                self._settings.PAYMENT_FUNCTION_URL,
                json=payload,
                headers=headers,
                timeout=self._settings.PAYMENT_TIMEOUT_SECONDS,
            )
        except httpx.RequestError as exc:
            logger.exception("Error calling payment function")
            raise PaymentFailedException("Could not reach the payment service. Please try again.") from exc

        if response.status_code >= 500:
            logger.error(
                "Payment function returned %s: %s",
                response.status_code,
                response.text[:200],
            )
            raise PaymentFailedException("The payment service is unavailable. Please try again.")

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Payment function returned %s with a non-JSON body", response.status_code)
            raise PaymentFailedException("The payment service returned an invalid response.") from exc

        if not response.is_success and not (isinstance(body, dict) and "success" in body):
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning("Payment function rejected the request with %s", response.status_code)
            raise PaymentFailedException(error or "Payment failed")

        try:
            return PaymentResult.model_validate(body)
        except ValidationError as exc:
            logger.error("Unexpected payment function response: %s", str(body)[:200])
            raise PaymentFailedException("The payment service returned an invalid response.") from exc

    async def process_payment(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        request: PaymentRequest,
    ) -> SubscriptionActivation:
        """
        Charge the wallet and activate the subscription.

        Raises:
            ValidationException: wallet number invalid for the chosen operator
            PaymentFailedException: provider declined or was unreachable
            SubscriptionActivationFailedException: charge succeeded, activation did not
        """
        plan = PlanCatalog(self._settings).get_plan(request.plan_name)
        phone_number = self.validate_wallet(request.phone_number, request.payment_method)

        transaction = PaymentTransaction(
            user_id=user_id,
            plan_name=plan.name,
            amount=plan.price,
            currency=self._settings.SUBSCRIPTION_CURRENCY,
            payment_method=request.payment_method,
            phone_number=phone_number,
            status=PaymentStatus.PROCESSING,
        )
        db.add(transaction)
        await db.commit()
        transaction_ref = str(transaction.id)

        payload = {
            "user_id": str(user_id),
            "phone_number": phone_number,
            "amount": float(plan.price),
            "payment_method": PaymentMethod(request.payment_method).value,
            "plan_type": plan.name,
            "transaction_id": transaction_ref,
        }
        logger.info(
            "Processing payment",
            extra={"transaction_id": transaction_ref, "plan": plan.name, "user_id": str(user_id)},
        )

        try:
            result = await self._call_payment_function(payload)
        except PaymentFailedException as exc:
            await self._mark(db, transaction, PaymentStatus.FAILED, exc.message)
            raise

        if not result.success:
            message = result.error or result.message or "Payment failed"
            await self._mark(db, transaction, PaymentStatus.FAILED, message, result)
            raise PaymentFailedException(message)

        await self._mark(db, transaction, PaymentStatus.COMPLETED, result.message or "Payment completed", result)

        try:
            await NotificationService.notify_subscription_activated(
                db, user_id, plan.display_name, plan.max_posts_per_month
            )
            subscription = await SubscriptionService.activate_subscription(
                db, user_id, plan.name, transaction.id, self._settings
            )
        except Exception as exc:
            await db.rollback()
            logger.exception(
                "Subscription activation failed after successful payment",
                extra={"transaction_id": transaction_ref, "user_id": str(user_id)},
            )
            raise SubscriptionActivationFailedException(
                details={"transaction_id": transaction_ref, "provider_reference": result.provider_reference}
            ) from exc

        return SubscriptionActivation(
            subscription_id=str(subscription.id),
            plan_name=plan.name,
            start_date=as_utc(subscription.start_date),
            end_date=as_utc(subscription.end_date),
            transaction=to_transaction_response(transaction),
        )

    @staticmethod
    async def _mark(
        db: AsyncSession,
        transaction: PaymentTransaction,
        status: PaymentStatus,
        message: str,
        result: Optional[PaymentResult] = None,
    ) -> None:
        transaction.status = status
        transaction.message = message
        if result is not None:
            transaction.provider_transaction_id = result.transaction_id
            transaction.provider_reference = result.provider_reference
        if status == PaymentStatus.COMPLETED:
            transaction.completed_at = utc_now()
        await db.commit()
        logger.info(
            "Payment %s",
            status.value,
            extra={"transaction_id": str(transaction.id), "provider_reference": transaction.provider_reference},
        )
