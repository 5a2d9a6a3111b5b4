import json
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.config import Settings
from app.core.security import create_access_token
from app.main import create_app
from app.models import Base, SubscriptionPlan, SubscriptionStatus, UserSubscription
from app.services.plan_catalog import PlanCatalog

from .conftest import FakeStorage, _AsyncSessionWrapper

RENTAL = {
    "title": "Studio near campus",
    "description": "Furnished studio",
    "property_type": "studio",
    "price": "60000",
    "city": "Buea",
}


class _Context(SimpleNamespace):
    async def init(self) -> None:
        pass

    async def dispose(self) -> None:
        pass


def _build_client(settings: Settings):
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    sync_session = sessionmaker(bind=engine, expire_on_commit=False)()
    storage = FakeStorage()
    app = create_app(_Context(settings=settings, storage=storage, http_client=None))

    async def _get_db():
        yield _AsyncSessionWrapper(sync_session)

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app), sync_session, storage, engine


@pytest.fixture
def api():
    client, sync_session, storage, engine = _build_client(Settings(ENABLE_SUBSCRIPTIONS=True))
    yield SimpleNamespace(client=client, session=sync_session, storage=storage)
    sync_session.close()
    engine.dispose()


@pytest.fixture
def free_api():
    client, sync_session, storage, engine = _build_client(Settings(ENABLE_SUBSCRIPTIONS=False))
    yield SimpleNamespace(client=client, session=sync_session, storage=storage)
    sync_session.close()
    engine.dispose()


def _auth(user_id: uuid.UUID) -> dict[str, str]:
    token = create_access_token({"sub": str(user_id), "email": "user@example.com"})
    return {"Authorization": f"Bearer {token}"}


def _subscribe(api, user_id: uuid.UUID, status=SubscriptionStatus.ACTIVE, end_date=None, posts_used=0) -> None:
    """Insert a profile-less subscription; the profile is created on the first request."""
    plan = PlanCatalog(Settings()).get_plan("standard")
    now = datetime.now(timezone.utc)
    plan_row = SubscriptionPlan(
        name=plan.name,
        display_name=plan.display_name,
        max_posts_per_month=plan.max_posts_per_month,
        max_images_per_post=plan.max_images_per_post,
        max_videos_per_post=plan.max_videos_per_post,
        has_analytics=False,
        has_verified_badge=False,
        price=plan.price,
        grace_period_days=plan.grace_period_days,
        is_active=True,
    )
    api.session.add(plan_row)
    api.session.flush()
    api.session.add(
        UserSubscription(
            user_id=user_id,
            plan_id=plan_row.id,
            status=status,
            start_date=now - timedelta(days=1),
            end_date=end_date or now + timedelta(days=20),
            posts_used_this_month=posts_used,
            current_month_start=now - timedelta(days=1),
        )
    )
    api.session.commit()


def test_root_and_health(api):
    root = api.client.get("/")
    assert root.status_code == 200
    assert root.json()["success"] is True

    health = api.client.get("/health")
    assert health.json()["data"]["database"] == "healthy"
    assert health.json()["data"]["subscriptions_enabled"] is True
    assert health.json()["data"]["payments_configured"] is False
    assert api.client.get("/health/ready").json()["data"]["ready"] is True


def test_plans_are_public(api):
    response = api.client.get("/subscriptions/plans")

    assert response.status_code == 200
    plans = response.json()["data"]["plans"]
    assert [plan["name"] for plan in plans] == ["standard", "premium"]


def test_missing_token_is_unauthorized(api):
    response = api.client.get("/subscriptions/me")

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "HTTP_401"


def test_me_without_subscription(api):
    response = api.client.get("/subscriptions/me", headers=_auth(uuid.uuid4()))

    assert response.status_code == 200
    scenario = response.json()["data"]["scenario"]
    assert scenario["kind"] == "no_subscription"
    assert scenario["can_post"] is False


def test_check_endpoint_reports_denial(api):
    response = api.client.post(
        "/subscriptions/check", json={"action": "create_post"}, headers=_auth(uuid.uuid4())
    )

    assert response.status_code == 200
    assert response.json()["data"] == {
        "allowed": False,
        "reason": "POST_QUOTA_EXHAUSTED",
        "message": "Subscribe to start creating listings and reach thousands of potential customers!",
    }


def test_create_listing_denied_without_subscription(api):
    response = api.client.post(
        "/listings/rentals",
        data={"payload": json.dumps(RENTAL)},
        files=[("files", ("a.jpg", b"img", "image/jpeg"))],
        headers=_auth(uuid.uuid4()),
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "POST_QUOTA_EXHAUSTED"
    assert api.storage.completed == []


def test_create_listing_with_media(api):
    user_id = uuid.uuid4()
    _subscribe(api, user_id)

    response = api.client.post(
        "/listings/rentals",
        data={"payload": json.dumps(RENTAL)},
        files=[
            ("files", ("a.jpg", b"one", "image/jpeg")),
            ("files", ("b.jpg", b"two", "image/jpeg")),
        ],
        headers=_auth(user_id),
    )

    assert response.status_code == 201
    listing = response.json()["data"]
    assert [item["display_order"] for item in listing["media"]] == [0, 1]

    me = api.client.get("/subscriptions/me", headers=_auth(user_id)).json()["data"]
    assert me["usage"]["posts_used"] == 1

    mine = api.client.get("/listings/mine", headers=_auth(user_id)).json()["data"]["listings"]
    assert [item["id"] for item in mine] == [listing["id"]]


def test_locked_user_cannot_open_dashboard(api):
    user_id = uuid.uuid4()
    _subscribe(api, user_id, SubscriptionStatus.EXPIRED, end_date=datetime.now(timezone.utc) - timedelta(days=30))

    response = api.client.get("/dashboard/overview", headers=_auth(user_id))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "DASHBOARD_UNAVAILABLE"


def test_analytics_require_premium(api):
    user_id = uuid.uuid4()
    _subscribe(api, user_id)

    assert api.client.get("/dashboard/overview", headers=_auth(user_id)).status_code == 200
    response = api.client.get("/dashboard/analytics", headers=_auth(user_id))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ANALYTICS_UNAVAILABLE"


def test_video_too_long_is_unprocessable(free_api):
    response = free_api.client.post(
        "/listings/cars",
        data={
            "payload": json.dumps({**RENTAL, "condition": "good"}),
            "durations": "42",
        },
        files=[("files", ("clip.mp4", b"video", "video/mp4"))],
        headers=_auth(uuid.uuid4()),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "MEDIA_TOO_LONG"


def test_free_access_mode_allows_posting(free_api):
    response = free_api.client.post(
        "/listings/electronics",
        data={"payload": json.dumps({**RENTAL, "title": "Laptop", "condition": "like_new"})},
        headers=_auth(uuid.uuid4()),
    )

    assert response.status_code == 201
    assert response.json()["data"]["details"]["condition"] == "like_new"


def test_unknown_domain_and_listing(api):
    user = _auth(uuid.uuid4())

    assert api.client.get("/listings/boats").status_code == 404
    missing = api.client.get(f"/listings/rentals/{uuid.uuid4()}", headers=user)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


def test_bad_payload_json(free_api):
    response = free_api.client.post(
        "/listings/rentals",
        data={"payload": "not json"},
        headers=_auth(uuid.uuid4()),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_public_listings_page_hides_pending(free_api):
    free_api.client.post(
        "/listings/rentals",
        data={"payload": json.dumps(RENTAL)},
        headers=_auth(uuid.uuid4()),
    )

    response = free_api.client.get("/listings/rentals", params={"city": "buea", "limit": 5})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["listings"] == []
    assert data["limit"] == 5
    assert data["offset"] == 0
    assert data["has_more"] is False
