"""Support contact schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SupportCreateRequest(BaseModel):
    """Request to create a support message."""

    full_name: str = Field(..., min_length=1, max_length=255, description="Full name of the user")
    subject: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000, description="Message from the user")


class SupportResponse(BaseModel):
    """Support message response model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    subject: Optional[str] = None
    message: str
    status: str
    created_at: datetime
