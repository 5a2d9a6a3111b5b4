"""Subscription-related enums.

This module contains enums used by subscription and payment models:
- SubscriptionStatus: Status of a user's subscription record
- PaymentMethod: Mobile-money wallet used to pay
- PaymentStatus: Lifecycle of a payment attempt
"""

import enum


class SubscriptionStatus(str, enum.Enum):
    """Status of a subscription."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    PENDING = "pending"


class PaymentMethod(str, enum.Enum):
    """Mobile-money wallet."""

    MTN = "mtn"
    ORANGE = "orange"


class PaymentStatus(str, enum.Enum):
    """Status of a payment transaction."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
