from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.models.subscription_enums import SubscriptionStatus
from app.services.plan_catalog import PlanLimits
from app.services.quota_guard import Action, DenialReason, UsageCounts, check_action
from app.services.scenario_resolver import ScenarioKind, resolve_scenario

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

STANDARD_20 = PlanLimits(
    name="standard",
    display_name="Standard",
    max_posts_per_month=20,
    max_images_per_post=5,
    max_videos_per_post=1,
    grace_period_days=7,
)
PREMIUM = PlanLimits(
    name="premium",
    display_name="Premium",
    max_posts_per_month=20,
    max_images_per_post=10,
    max_videos_per_post=2,
    has_analytics=True,
    grace_period_days=7,
)


def _subscription(status=SubscriptionStatus.ACTIVE, end_days=10, posts_used=0, plan=STANDARD_20):
    return SimpleNamespace(
        status=status,
        end_date=NOW + timedelta(days=end_days),
        posts_used_this_month=posts_used,
        plan=plan,
    )


def test_active_with_one_post_left():
    scenario = resolve_scenario(_subscription(posts_used=19), NOW, True)

    assert scenario.kind == ScenarioKind.ACTIVE
    assert scenario.can_post is True
    assert scenario.posts_remaining == 1
    assert scenario.warning_message == "Active! 1 posts remaining."


def test_active_with_full_quota_denies_create_post():
    scenario = resolve_scenario(_subscription(posts_used=20), NOW, True)

    assert scenario.kind == ScenarioKind.ACTIVE
    assert scenario.can_post is False
    decision = check_action(scenario, Action.CREATE_POST, UsageCounts.from_scenario(scenario))
    assert decision.allowed is False
    assert decision.reason == DenialReason.POST_QUOTA_EXHAUSTED


def test_expired_three_days_is_grace_period():
    scenario = resolve_scenario(_subscription(SubscriptionStatus.EXPIRED, end_days=-3), NOW, True)

    assert scenario.kind == ScenarioKind.GRACE_PERIOD
    assert scenario.can_edit_listings is True
    assert scenario.can_post is False
    assert scenario.has_dashboard_access is True
    assert scenario.days_expired == 3
    assert scenario.grace_days_remaining == 4


def test_expired_eight_days_is_locked():
    scenario = resolve_scenario(_subscription(SubscriptionStatus.EXPIRED, end_days=-8), NOW, True)

    assert scenario.kind == ScenarioKind.LOCKED
    assert scenario.can_edit_listings is False
    assert scenario.has_dashboard_access is False
    assert scenario.listings_should_be_live is False


def test_no_subscription():
    scenario = resolve_scenario(None, NOW, True)

    assert scenario.kind == ScenarioKind.NO_SUBSCRIPTION
    assert scenario.has_dashboard_access is False
    assert scenario.can_post is False
    assert scenario.can_edit_listings is False


@pytest.mark.parametrize(
    "subscription",
    [None, _subscription(SubscriptionStatus.EXPIRED, end_days=-400), _subscription(posts_used=20)],
)
def test_disabled_subscriptions_ignore_record(subscription):
    free = PlanLimits(name="free_access", max_posts_per_month=999, max_images_per_post=5, max_videos_per_post=1)

    scenario = resolve_scenario(subscription, NOW, False, free)

    assert scenario.kind == ScenarioKind.SUBSCRIPTIONS_DISABLED
    assert scenario.can_post is True
    assert scenario.posts_used == 0
    assert scenario.posts_remaining == 999
    assert scenario.image_limit_per_post == 5
    assert scenario.video_limit_per_post == 1


def test_grace_boundary_is_inclusive():
    on_boundary = resolve_scenario(_subscription(SubscriptionStatus.EXPIRED, end_days=-7), NOW, True)
    day_after = resolve_scenario(_subscription(SubscriptionStatus.EXPIRED, end_days=-8), NOW, True)

    assert on_boundary.kind == ScenarioKind.GRACE_PERIOD
    assert on_boundary.grace_days_remaining == 0
    assert day_after.kind == ScenarioKind.LOCKED


def test_partial_day_after_boundary_is_still_grace():
    subscription = _subscription(SubscriptionStatus.EXPIRED)
    subscription.end_date = NOW - timedelta(days=7, hours=23)

    assert resolve_scenario(subscription, NOW, True).kind == ScenarioKind.GRACE_PERIOD


def test_active_status_past_end_date_is_judged_as_expired():
    scenario = resolve_scenario(_subscription(SubscriptionStatus.ACTIVE, end_days=-2), NOW, True)
    assert scenario.kind == ScenarioKind.GRACE_PERIOD


@pytest.mark.parametrize("status", [SubscriptionStatus.CANCELLED, SubscriptionStatus.PENDING])
def test_cancelled_and_pending_are_locked(status):
    scenario = resolve_scenario(_subscription(status, end_days=10), NOW, True)
    assert scenario.kind == ScenarioKind.LOCKED
    assert scenario.can_post is False


def test_analytics_follow_plan():
    standard = resolve_scenario(_subscription(), NOW, True)
    premium = resolve_scenario(_subscription(plan=PREMIUM), NOW, True)
    premium_grace = resolve_scenario(_subscription(SubscriptionStatus.EXPIRED, end_days=-1, plan=PREMIUM), NOW, True)

    assert standard.has_analytics_access is False
    assert premium.has_analytics_access is True
    assert premium.video_limit_per_post == 2
    assert premium_grace.has_analytics_access is True


def test_naive_timestamps_are_treated_as_utc():
    subscription = _subscription(SubscriptionStatus.EXPIRED)
    subscription.end_date = (NOW - timedelta(days=3)).replace(tzinfo=None)

    scenario = resolve_scenario(subscription, NOW, True)

    assert scenario.kind == ScenarioKind.GRACE_PERIOD
    assert scenario.days_expired == 3
