"""
Payment Entity

Paid invoices of a clinic, as reported by the payment provider.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now


class Payment(SQLModel, table=True):
    """
    Payment entity - one row per paid invoice.

    Business Rules:
    - external_invoice_id is unique; a replayed invoice updates nothing
    - amount_cents is the provider's amount_paid in the smallest currency unit
    """

    __tablename__ = "payments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    clinic_id: UUID = Field(foreign_key="clinics.id", index=True)
    external_invoice_id: str = Field(max_length=255, unique=True, index=True)
    external_subscription_id: Optional[str] = Field(default=None, max_length=255)

    amount_cents: int = Field(default=0)
    currency: Optional[str] = Field(default=None, max_length=8)
    paid_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
