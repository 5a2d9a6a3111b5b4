"""Quota guard: allow/deny decisions for listing actions.

Every check here is pure. Nothing mutates counters; the usage accountant
does that after a successful write. Denials are meant to be raised before
any upload or database write happens.
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.services.scenario_resolver import Scenario, ScenarioKind
from app.utils.exceptions import MediaValidationException, QuotaDeniedException

_BYTES_PER_MB = 1024 * 1024


class Action(str, enum.Enum):
    CREATE_POST = "create_post"
    ADD_IMAGE = "add_image"
    ADD_VIDEO = "add_video"
    EDIT_LISTING = "edit_listing"


class DenialReason(str, enum.Enum):
    POST_QUOTA_EXHAUSTED = "POST_QUOTA_EXHAUSTED"
    MEDIA_LIMIT_REACHED = "MEDIA_LIMIT_REACHED"
    EDITING_DISABLED = "EDITING_DISABLED"
    MEDIA_TOO_LARGE = "MEDIA_TOO_LARGE"
    MEDIA_TOO_LONG = "MEDIA_TOO_LONG"
    DASHBOARD_UNAVAILABLE = "DASHBOARD_UNAVAILABLE"
    ANALYTICS_UNAVAILABLE = "ANALYTICS_UNAVAILABLE"


_MEDIA_VALIDATION_REASONS = {DenialReason.MEDIA_TOO_LARGE, DenialReason.MEDIA_TOO_LONG}


class UsageCounts(BaseModel):
    """Counters the guard compares against scenario limits."""

    model_config = ConfigDict(frozen=True)

    posts_used: int = Field(default=0, ge=0)
    max_posts: int = Field(default=0, ge=0)
    images_attached: int = Field(default=0, ge=0)
    videos_attached: int = Field(default=0, ge=0)

    @classmethod
    def from_scenario(cls, scenario: Scenario, images_attached: int = 0, videos_attached: int = 0) -> "UsageCounts":
        return cls(
            posts_used=scenario.posts_used,
            max_posts=scenario.max_posts,
            images_attached=images_attached,
            videos_attached=videos_attached,
        )


class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[DenialReason] = None
    message: str = ""

    @model_validator(mode="after")
    def _denial_has_reason(self) -> "Decision":
        if not self.allowed and self.reason is None:
            raise ValueError("a denied decision needs a reason")
        return self

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason, message: str) -> "Decision":
        return cls(allowed=False, reason=reason, message=message)

    def raise_for_denial(self) -> None:
        """Raise the matching application exception when the decision is a denial."""
        if self.allowed:
            return
        if self.reason in _MEDIA_VALIDATION_REASONS:
            raise MediaValidationException(self.reason.value, self.message)
        raise QuotaDeniedException(self.reason.value, self.message)


def _post_denied_message(scenario: Scenario, counts: UsageCounts) -> str:
    if scenario.kind == ScenarioKind.NO_SUBSCRIPTION:
        return "Subscribe to start creating listings and reach thousands of potential customers!"
    if scenario.kind == ScenarioKind.GRACE_PERIOD:
        return (
            f"Your subscription expired {scenario.days_expired} days ago. "
            f"Grace period: {scenario.grace_days_remaining} days remaining. "
            "Renew now to post new listings!"
        )
    if scenario.kind == ScenarioKind.LOCKED:
        return f"{scenario.warning_message} New listings require an active subscription."
    return (
        f"You've used all {counts.max_posts} listings for this month. "
        "Your quota will reset next month, or upgrade your plan for more listings."
    )


def _media_denied_message(media_name: str, limit: int) -> str:
    if limit == 0:
        return f"Your current access does not include {media_name} uploads."
    plural = media_name if limit == 1 else f"{media_name}s"
    return f"You can attach at most {limit} {plural} per listing. Remove one to add another."


def check_action(scenario: Scenario, action: Action, counts: UsageCounts) -> Decision:
    """Decide whether ``action`` is permitted under ``scenario``."""
    action = Action(action)

    if action == Action.CREATE_POST:
        if not scenario.can_post or counts.posts_used >= counts.max_posts:
            return Decision.deny(DenialReason.POST_QUOTA_EXHAUSTED, _post_denied_message(scenario, counts))
        return Decision.allow()

    if action == Action.ADD_IMAGE:
        if counts.images_attached >= scenario.image_limit_per_post:
            return Decision.deny(
                DenialReason.MEDIA_LIMIT_REACHED,
                _media_denied_message("image", scenario.image_limit_per_post),
            )
        return Decision.allow()

    if action == Action.ADD_VIDEO:
        if counts.videos_attached >= scenario.video_limit_per_post:
            return Decision.deny(
                DenialReason.MEDIA_LIMIT_REACHED,
                _media_denied_message("video", scenario.video_limit_per_post),
            )
        return Decision.allow()

    if not scenario.can_edit_listings:
        return Decision.deny(
            DenialReason.EDITING_DISABLED,
            f"{scenario.warning_message} You can no longer edit listings. Renew now to restore full access!".strip(),
        )
    return Decision.allow()


def check_media_additions(
    scenario: Scenario,
    new_images: int,
    new_videos: int,
    existing_images: int = 0,
    existing_videos: int = 0,
) -> Decision:
    """Check a batch of media as if each item were added to the form one at a time."""
    for offset in range(new_images):
        decision = check_action(
            scenario, Action.ADD_IMAGE, UsageCounts(images_attached=existing_images + offset)
        )
        if not decision.allowed:
            return decision
    for offset in range(new_videos):
        decision = check_action(
            scenario, Action.ADD_VIDEO, UsageCounts(videos_attached=existing_videos + offset)
        )
        if not decision.allowed:
            return decision
    return Decision.allow()


def validate_image(size_bytes: int, max_size_mb: int) -> Decision:
    if size_bytes > max_size_mb * _BYTES_PER_MB:
        return Decision.deny(
            DenialReason.MEDIA_TOO_LARGE,
            f"Image is too large ({size_bytes / _BYTES_PER_MB:.1f}MB). Maximum is {max_size_mb}MB.",
        )
    return Decision.allow()


def validate_video(
    size_bytes: int,
    duration_seconds: Optional[float],
    max_size_mb: int,
    max_duration_seconds: int,
) -> Decision:
    """Size and duration ceilings for videos, separate from the quota state machine."""
    if duration_seconds is not None and duration_seconds > max_duration_seconds:
        return Decision.deny(
            DenialReason.MEDIA_TOO_LONG,
            f"Video is too long ({round(duration_seconds)}s). Maximum is {max_duration_seconds}s. "
            "Please upload a shorter video.",
        )
    if size_bytes > max_size_mb * _BYTES_PER_MB:
        return Decision.deny(
            DenialReason.MEDIA_TOO_LARGE,
            f"Video file is too large ({size_bytes / _BYTES_PER_MB:.1f}MB). Maximum is {max_size_mb}MB. "
            "Please upload a smaller video.",
        )
    return Decision.allow()


def check_dashboard_access(scenario: Scenario, analytics: bool = False) -> Decision:
    if not scenario.has_dashboard_access:
        return Decision.deny(
            DenialReason.DASHBOARD_UNAVAILABLE,
            scenario.warning_message or "An active subscription is required to open the dashboard.",
        )
    if analytics and not scenario.has_analytics_access:
        return Decision.deny(
            DenialReason.ANALYTICS_UNAVAILABLE,
            "Analytics are available on the Premium plan.",
        )
    return Decision.allow()
