import pytest
from pydantic import ValidationError

from app.services.quota_guard import (
    Action,
    Decision,
    DenialReason,
    UsageCounts,
    check_action,
    check_dashboard_access,
    check_media_additions,
    validate_image,
    validate_video,
)
from app.services.scenario_resolver import Scenario, ScenarioKind
from app.utils.exceptions import MediaValidationException, QuotaDeniedException

MB = 1024 * 1024

ACTIVE = Scenario(
    kind=ScenarioKind.ACTIVE,
    plan_name="standard",
    can_post=True,
    can_edit_listings=True,
    has_dashboard_access=True,
    listings_should_be_live=True,
    posts_used=3,
    max_posts=10,
    posts_remaining=7,
    image_limit_per_post=5,
    video_limit_per_post=1,
)
GRACE = ACTIVE.model_copy(update={"kind": ScenarioKind.GRACE_PERIOD, "can_post": False, "posts_remaining": 0})
LOCKED = Scenario(kind=ScenarioKind.LOCKED, warning_message="Expired 9 days ago. Renew to restore your listings.")


def test_create_post_allowed_under_quota():
    assert check_action(ACTIVE, Action.CREATE_POST, UsageCounts.from_scenario(ACTIVE)).allowed


def test_create_post_denied_when_usage_meets_cap_even_if_scenario_allows():
    decision = check_action(ACTIVE, Action.CREATE_POST, UsageCounts(posts_used=10, max_posts=10))

    assert decision.allowed is False
    assert decision.reason == DenialReason.POST_QUOTA_EXHAUSTED
    assert "10 listings" in decision.message


def test_create_post_denied_in_grace_period():
    decision = check_action(GRACE, Action.CREATE_POST, UsageCounts.from_scenario(GRACE))

    assert decision.reason == DenialReason.POST_QUOTA_EXHAUSTED
    assert "Grace period" in decision.message


def test_edit_allowed_in_grace_denied_when_locked():
    assert check_action(GRACE, Action.EDIT_LISTING, UsageCounts()).allowed

    decision = check_action(LOCKED, Action.EDIT_LISTING, UsageCounts())
    assert decision.reason == DenialReason.EDITING_DISABLED


@pytest.mark.parametrize(
    "action, counts, allowed",
    [
        (Action.ADD_IMAGE, UsageCounts(images_attached=4), True),
        (Action.ADD_IMAGE, UsageCounts(images_attached=5), False),
        (Action.ADD_VIDEO, UsageCounts(videos_attached=0), True),
        (Action.ADD_VIDEO, UsageCounts(videos_attached=1), False),
    ],
)
def test_media_limits(action, counts, allowed):
    decision = check_action(ACTIVE, action, counts)
    assert decision.allowed is allowed
    if not allowed:
        assert decision.reason == DenialReason.MEDIA_LIMIT_REACHED


def test_check_media_additions_counts_existing_items():
    assert check_media_additions(ACTIVE, new_images=2, new_videos=0, existing_images=3).allowed

    decision = check_media_additions(ACTIVE, new_images=3, new_videos=0, existing_images=3)
    assert decision.reason == DenialReason.MEDIA_LIMIT_REACHED

    decision = check_media_additions(ACTIVE, new_images=0, new_videos=2)
    assert decision.reason == DenialReason.MEDIA_LIMIT_REACHED
    assert "1 video per listing" in decision.message


def test_validate_video_ceilings():
    assert validate_video(19 * MB, 29.5, max_size_mb=20, max_duration_seconds=30).allowed
    assert validate_video(21 * MB, 10, 20, 30).reason == DenialReason.MEDIA_TOO_LARGE
    assert validate_video(MB, 31, 20, 30).reason == DenialReason.MEDIA_TOO_LONG
    # Unknown duration is only checked for size
    assert validate_video(MB, None, 20, 30).allowed


def test_validate_image_ceiling():
    assert validate_image(5 * MB, 5).allowed
    assert validate_image(5 * MB + 1, 5).reason == DenialReason.MEDIA_TOO_LARGE


def test_raise_for_denial_maps_reasons_to_exceptions():
    Decision.allow().raise_for_denial()

    with pytest.raises(QuotaDeniedException) as quota_exc:
        Decision.deny(DenialReason.POST_QUOTA_EXHAUSTED, "full").raise_for_denial()
    assert quota_exc.value.status_code == 403
    assert quota_exc.value.code == "POST_QUOTA_EXHAUSTED"

    with pytest.raises(MediaValidationException) as media_exc:
        Decision.deny(DenialReason.MEDIA_TOO_LONG, "long").raise_for_denial()
    assert media_exc.value.status_code == 422


def test_denied_decision_requires_a_reason():
    with pytest.raises(ValidationError):
        Decision(allowed=False, message="no reason given")


def test_dashboard_access():
    assert check_dashboard_access(GRACE).allowed
    assert check_dashboard_access(LOCKED).reason == DenialReason.DASHBOARD_UNAVAILABLE
    assert check_dashboard_access(ACTIVE, analytics=True).reason == DenialReason.ANALYTICS_UNAVAILABLE
