from datetime import datetime, timezone
from types import SimpleNamespace

from app.database.subscription_repo import SubscriptionRepository
from app.services.usage_accountant import UsageAccountant

from .conftest import make_subscription


def _counters(month_start, posts=4):
    return SimpleNamespace(
        id="sub-1",
        posts_used_this_month=posts,
        images_used_this_month=7,
        videos_used_this_month=1,
        current_month_start=month_start,
        last_quota_reset=None,
    )


def test_next_cycle_is_calendar_month_with_day_clamp():
    jan_31 = datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)
    assert UsageAccountant.next_cycle_start(jan_31) == datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)

    dec_15 = datetime(2025, 12, 15, tzinfo=timezone.utc)
    assert UsageAccountant.next_cycle_start(dec_15) == datetime(2026, 1, 15, tzinfo=timezone.utc)


def test_no_reset_within_cycle():
    subscription = _counters(datetime(2026, 3, 1, tzinfo=timezone.utc))

    UsageAccountant.reset_if_new_cycle(subscription, datetime(2026, 3, 31, 23, 59, tzinfo=timezone.utc))

    assert subscription.posts_used_this_month == 4
    assert subscription.last_quota_reset is None


def test_reset_at_boundary_is_idempotent():
    subscription = _counters(datetime(2026, 1, 31, tzinfo=timezone.utc))
    now = datetime(2026, 2, 28, 0, 0, tzinfo=timezone.utc)

    UsageAccountant.reset_if_new_cycle(subscription, now)
    UsageAccountant.reset_if_new_cycle(subscription, now)

    assert subscription.posts_used_this_month == 0
    assert subscription.images_used_this_month == 0
    assert subscription.videos_used_this_month == 0
    assert subscription.current_month_start == now
    assert subscription.last_quota_reset == now


def test_reset_accepts_naive_month_start():
    subscription = _counters(datetime(2026, 1, 10))

    UsageAccountant.reset_if_new_cycle(subscription, datetime(2026, 3, 1, tzinfo=timezone.utc))

    assert subscription.posts_used_this_month == 0


async def test_record_post_created_increments_by_one(session, settings, profile):
    subscription = await make_subscription(session, settings, profile.id, posts_used=2)

    await UsageAccountant.record_post_created(session, subscription.id, images=3, videos=1)
    await session.commit()

    fresh = await SubscriptionRepository.get_current_subscription(session, profile.id)
    assert fresh.posts_used_this_month == 3
    assert fresh.images_used_this_month == 3
    assert fresh.videos_used_this_month == 1


async def test_record_media_added_leaves_post_counter(session, settings, profile):
    subscription = await make_subscription(session, settings, profile.id, posts_used=2)

    await UsageAccountant.record_media_added(session, subscription.id, images=2)
    await session.commit()

    fresh = await SubscriptionRepository.get_current_subscription(session, profile.id)
    assert fresh.posts_used_this_month == 2
    assert fresh.images_used_this_month == 2
