"""Shared pytest fixtures for database-backed service and route tests."""

from __future__ import annotations

import re
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.models import Base, Profile, SubscriptionStatus, UserSubscription
from app.services.plan_catalog import PlanCatalog
from app.services.subscription_service import SubscriptionService

_ORDER_PATTERN = re.compile(r"_(\d+)\.\w+$")


class _AsyncSessionWrapper:
    """Async facade over a sync SQLite session."""

    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def delete(self, obj) -> None:
        self._sync.delete(obj)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def refresh(self, obj) -> None:
        self._sync.refresh(obj)

    async def close(self) -> None:
        self._sync.close()


class FakeStorage:
    """In-memory stand-in for the blob storage service."""

    def __init__(self, delays: Optional[dict[int, float]] = None, fail_paths: tuple[str, ...] = ()) -> None:
        self.delays = delays or {}
        self.fail_paths = fail_paths
        self.objects: dict[tuple[str, str], bytes] = {}
        self.completed: list[str] = []
        self.deleted: list[str] = []
        self._lock = threading.Lock()

    def upload_object(self, bucket: str, path: str, content_type: Optional[str], data: bytes) -> str:
        # Listing media paths end with "<stamp>_<order>.<ext>"
        match = _ORDER_PATTERN.search(path)
        if match:
            time.sleep(self.delays.get(int(match.group(1)), 0))
        if any(marker in path for marker in self.fail_paths):
            raise OSError("upload failed")
        url = f"https://cdn.test/{bucket}/{path}"
        with self._lock:
            self.objects[(bucket, path)] = data
            self.completed.append(url)
        return url

    def delete_by_url(self, bucket: str, url: str) -> bool:
        with self._lock:
            self.deleted.append(url)
            path = url.split(f"/{bucket}/", 1)[1]
            return self.objects.pop((bucket, path), None) is not None


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENABLE_SUBSCRIPTIONS=True,
        DATABASE_URL="sqlite:///:memory:",
        CDN_BASE_URL="https://cdn.test",
        PAYMENT_FUNCTION_URL="https://payments.test/process-payment",
        PAYMENT_FUNCTION_KEY="test-key",
        WRITE_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest_asyncio.fixture
async def profile(session) -> Profile:
    user = Profile(id=uuid.uuid4(), email="seller@example.com", full_name="Seller", phone_number="+237670000000")
    session.add(user)
    await session.commit()
    return user


async def make_subscription(
    session,
    settings: Settings,
    user_id: uuid.UUID,
    plan_name: str = "standard",
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    end_date: Optional[datetime] = None,
    posts_used: int = 0,
    month_start: Optional[datetime] = None,
) -> UserSubscription:
    plan_row = await SubscriptionService.ensure_plan_row(session, PlanCatalog(settings).get_plan(plan_name))
    start = month_start or datetime.now(timezone.utc) - timedelta(days=1)
    subscription = UserSubscription(
        user_id=user_id,
        plan_id=plan_row.id,
        status=status,
        start_date=start,
        end_date=end_date or datetime.now(timezone.utc) + timedelta(days=20),
        posts_used_this_month=posts_used,
        current_month_start=start,
    )
    session.add(subscription)
    await session.commit()
    return subscription
