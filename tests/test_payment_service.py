import json

import httpx
import pytest

from app.database.subscription_repo import SubscriptionRepository
from app.models import PaymentMethod, PaymentStatus, SubscriptionStatus
from app.schemas.payments import PaymentRequest
from app.services.notification_service import NotificationService
from app.services.payment_service import PaymentService
from app.services.subscription_service import SubscriptionService
from app.utils.exceptions import (
    PaymentFailedException,
    SubscriptionActivationFailedException,
    ValidationException,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _request(plan="standard", method=PaymentMethod.MTN, phone="+237 670 000 000"):
    return PaymentRequest(plan_name=plan, payment_method=method, phone_number=phone)


async def test_successful_payment_activates_subscription(session, settings, profile):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(
            200, json={"success": True, "transactionId": "tx-1", "providerReference": "MTN-42", "message": "Paid"}
        )

    async with _client(handler) as client:
        activation = await PaymentService(client, settings).process_payment(session, profile.id, _request())

    body = json.loads(calls[0].content)
    assert calls[0].headers["Authorization"] == "Bearer test-key"
    assert body["phone_number"] == "+237670000000"
    assert body["plan_type"] == "standard"
    assert body["amount"] == 5000.0

    assert activation.plan_name == "standard"
    assert activation.transaction.status == "completed"
    assert activation.transaction.provider_reference == "MTN-42"

    subscription = await SubscriptionRepository.get_current_subscription(session, profile.id)
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert str(subscription.payment_transaction_id) == activation.transaction.id
    assert await NotificationService.unread_count(session, profile.id) == 1


async def test_declined_payment_is_recorded_as_failed(session, settings, profile):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Insufficient balance"})

    async with _client(handler) as client:
        with pytest.raises(PaymentFailedException) as exc_info:
            await PaymentService(client, settings).process_payment(session, profile.id, _request())

    assert exc_info.value.message == "Insufficient balance"
    transactions = await SubscriptionRepository.list_payment_transactions(session, profile.id)
    assert [t.status for t in transactions] == [PaymentStatus.FAILED]
    assert await SubscriptionRepository.get_current_subscription(session, profile.id) is None


async def test_provider_outage_is_payment_failure(session, settings, profile):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    async with _client(handler) as client:
        with pytest.raises(PaymentFailedException):
            await PaymentService(client, settings).process_payment(session, profile.id, _request())


async def test_rejected_request_without_success_flag_is_failed(session, settings, profile):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Unauthorized"})

    async with _client(handler) as client:
        with pytest.raises(PaymentFailedException) as exc_info:
            await PaymentService(client, settings).process_payment(session, profile.id, _request())

    assert exc_info.value.message == "Unauthorized"
    transactions = await SubscriptionRepository.list_payment_transactions(session, profile.id)
    assert [t.status for t in transactions] == [PaymentStatus.FAILED]


@pytest.mark.parametrize(
    ("status_code", "body"),
    [
        (400, {"text": "<html>Bad Request</html>"}),
        (200, {"json": {"unexpected": True}}),
    ],
)
async def test_unreadable_response_is_failed(session, settings, profile, status_code, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **body)

    async with _client(handler) as client:
        with pytest.raises(PaymentFailedException):
            await PaymentService(client, settings).process_payment(session, profile.id, _request())

    transactions = await SubscriptionRepository.list_payment_transactions(session, profile.id)
    assert [t.status for t in transactions] == [PaymentStatus.FAILED]
    assert await SubscriptionRepository.get_current_subscription(session, profile.id) is None


async def test_wrong_operator_is_rejected_before_any_charge(session, settings, profile):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("payment function must not be called")

    async with _client(handler) as client:
        with pytest.raises(ValidationException) as exc_info:
            await PaymentService(client, settings).process_payment(
                session, profile.id, _request(method=PaymentMethod.ORANGE)
            )

    assert "Orange Money" in exc_info.value.message
    assert await SubscriptionRepository.list_payment_transactions(session, profile.id) == []


async def test_activation_failure_after_charge(session, settings, profile, monkeypatch):
    async def fail(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(SubscriptionService, "activate_subscription", staticmethod(fail))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "providerReference": "OM-7"})

    async with _client(handler) as client:
        with pytest.raises(SubscriptionActivationFailedException) as exc_info:
            await PaymentService(client, settings).process_payment(
                session, profile.id, _request(method=PaymentMethod.ORANGE, phone="+237690000000")
            )

    assert exc_info.value.status_code == 502
    assert exc_info.value.details["provider_reference"] == "OM-7"
    transactions = await SubscriptionRepository.list_payment_transactions(session, profile.id)
    assert transactions[0].status == PaymentStatus.COMPLETED
    assert await NotificationService.unread_count(session, profile.id) == 0
