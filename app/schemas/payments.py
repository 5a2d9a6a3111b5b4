"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.subscription_enums import PaymentMethod


class PaymentRequest(BaseModel):
    """Pay for a plan with a mobile-money wallet."""

    plan_name: str = Field(..., description="standard or premium")
    payment_method: PaymentMethod
    phone_number: str = Field(..., min_length=9, max_length=20)


class PaymentResult(BaseModel):
    """Response of the payment edge function."""

    success: bool
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    provider_reference: Optional[str] = Field(None, alias="providerReference")
    message: str = ""
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class PaymentTransactionResponse(BaseModel):
    id: str
    plan_name: str
    amount: Decimal
    currency: str
    payment_method: str
    status: str
    provider_reference: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class SubscriptionActivation(BaseModel):
    subscription_id: str
    plan_name: str
    start_date: datetime
    end_date: datetime
    transaction: PaymentTransactionResponse
