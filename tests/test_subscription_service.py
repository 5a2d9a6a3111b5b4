from datetime import timedelta

from app.core.config import Settings
from app.database.subscription_repo import SubscriptionRepository
from app.models import SubscriptionStatus
from app.schemas.subscriptions import QuotaCheckRequest
from app.services.quota_guard import Action
from app.services.scenario_resolver import ScenarioKind, resolve_scenario
from app.services.subscription_service import SubscriptionService
from app.utils.datetime import as_utc, utc_now

from .conftest import make_subscription


async def test_lazy_reset_is_committed(session, settings, profile):
    month_start = utc_now() - timedelta(days=40)
    await make_subscription(session, settings, profile.id, posts_used=6, month_start=month_start)

    subscription = await SubscriptionService.get_current_subscription(session, profile.id)
    assert subscription.posts_used_this_month == 0

    await session.rollback()
    fresh = await SubscriptionRepository.get_current_subscription(session, profile.id)
    assert fresh.posts_used_this_month == 0
    assert as_utc(fresh.current_month_start) > month_start


async def test_scenario_for_active_subscription(session, settings, profile):
    await make_subscription(session, settings, profile.id, posts_used=9)

    subscription, scenario = await SubscriptionService.get_scenario(session, profile.id, settings)

    assert subscription is not None
    assert scenario.kind == ScenarioKind.ACTIVE
    assert scenario.posts_remaining == 1

    me = SubscriptionService.build_subscription_me(subscription, scenario, settings)
    assert me.status == "active"
    assert me.scenario.quota_percentage == 90
    assert me.usage.posts_used == 9


async def test_disabled_mode_ignores_subscription(session, profile):
    disabled = Settings(ENABLE_SUBSCRIPTIONS=False)
    await make_subscription(
        session,
        disabled,
        profile.id,
        status=SubscriptionStatus.EXPIRED,
        end_date=utc_now() - timedelta(days=60),
    )

    subscription, scenario = await SubscriptionService.get_scenario(session, profile.id, disabled)

    assert subscription is None
    assert scenario.kind == ScenarioKind.SUBSCRIPTIONS_DISABLED
    assert scenario.can_post is True
    assert scenario.max_posts == 999


async def test_activate_creates_then_renews(session, settings, profile):
    first = await SubscriptionService.activate_subscription(session, profile.id, "standard", None, settings)
    assert first.status == SubscriptionStatus.ACTIVE
    assert first.posts_used_this_month == 0

    first.posts_used_this_month = 8
    await session.commit()

    renewed = await SubscriptionService.activate_subscription(session, profile.id, "premium", None, settings)

    assert renewed.id == first.id
    assert renewed.plan.name == "premium"
    assert renewed.posts_used_this_month == 0
    assert as_utc(renewed.end_date) > as_utc(renewed.start_date) + timedelta(days=27)


def test_list_plans_features_premium(settings):
    plans = SubscriptionService.list_plans(settings)

    assert [plan.name for plan in plans] == ["standard", "premium"]
    assert plans[1].featured is True
    assert plans[0].currency == "XAF"
    analytics = next(feature for feature in plans[0].features if feature.label == "Analytics dashboard")
    assert analytics.available is False


def test_check_reports_denial_reason():
    response = SubscriptionService.check(
        resolve_scenario(None, utc_now(), True),
        QuotaCheckRequest(action=Action.CREATE_POST),
    )

    assert response.allowed is False
    assert response.reason == "POST_QUOTA_EXHAUSTED"
    assert response.message.startswith("Subscribe")
