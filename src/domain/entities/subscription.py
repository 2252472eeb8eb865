"""
Subscription Entity

Billing state of a clinic, mirrored from the payment provider.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now


class Subscription(SQLModel, table=True):
    """
    Subscription entity.

    Business Rules:
    - One subscription per clinic (clinic_id unique)
    - Updated by subscription webhooks, located by external_subscription_id
    - status follows the provider vocabulary (active, trialing, past_due,
      canceled, incomplete, ...)
    """

    __tablename__ = "subscriptions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    clinic_id: UUID = Field(foreign_key="clinics.id", unique=True, index=True)
    external_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    external_subscription_id: Optional[str] = Field(
        default=None, max_length=255, unique=True, index=True
    )

    plan: str = Field(max_length=32)
    status: str = Field(max_length=32)
    current_period_end: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
