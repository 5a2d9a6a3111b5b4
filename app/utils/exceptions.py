from typing import Any, Optional


class AppException(Exception):
    """Error that maps onto the JSON error envelope.

    Subclasses set ``code``, ``status_code`` and ``default_message``; any of
    them can still be overridden per instance.
    """

    code: str = "APP_ERROR"
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Any] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class DatabaseException(AppException):
    """A write failed and was rolled back."""

    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "Database error occurred"


class ForbiddenException(AppException):
    """The caller does not own the resource."""

    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"


class AlreadyReviewedException(AppException):
    code = "ALREADY_REVIEWED"
    status_code = 409
    default_message = "You have already reviewed this listing"


class QuotaDeniedException(AppException):
    """Raised when the quota guard refuses an action.

    ``reason`` becomes the error code (POST_QUOTA_EXHAUSTED, MEDIA_LIMIT_REACHED,
    EDITING_DISABLED, DASHBOARD_UNAVAILABLE, ANALYTICS_UNAVAILABLE).
    """

    status_code = 403

    def __init__(self, reason: str, message: str, details: Optional[Any] = None):
        super().__init__(message, details, code=reason)


class MediaValidationException(AppException):
    """A file failed its size or duration ceiling (MEDIA_TOO_LARGE, MEDIA_TOO_LONG)."""

    status_code = 422

    def __init__(self, reason: str, message: str, details: Optional[Any] = None):
        super().__init__(message, details, code=reason)


class PaymentFailedException(AppException):
    code = "PAYMENT_FAILED"
    status_code = 402
    default_message = "Payment failed"


class SubscriptionActivationFailedException(AppException):
    """The charge went through but the subscription row could not be written."""

    code = "SUBSCRIPTION_ACTIVATION_FAILED"
    status_code = 502
    default_message = (
        "Your payment was successful but we could not activate your subscription. "
        "Please contact support with your transaction reference."
    )


class WriteOutcomeUnknownException(AppException):
    """A write sequence timed out and may or may not have been applied."""

    code = "WRITE_OUTCOME_UNKNOWN"
    status_code = 504
    default_message = "The request timed out. Please check your listings before trying again."


class UploadFailedException(AppException):
    code = "UPLOAD_FAILED"
    status_code = 502
    default_message = "Media upload failed. Please try again."
