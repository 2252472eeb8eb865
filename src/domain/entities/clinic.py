"""
Clinic Entity

Tenant root: every clinical record is scoped to a clinic.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utc_now

if TYPE_CHECKING:
    from .membership import Membership


class Clinic(SQLModel, table=True):
    """
    Clinic entity - created once per successful signup payment.

    Business Rules:
    - owner_user_id is unique: provisioning inserts the clinic only if the
      owner has none yet
    - subscription_status / current_period_end mirror the subscription row
    """

    __tablename__ = "clinics"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)

    owner_user_id: Optional[UUID] = Field(
        default=None, foreign_key="users.id", unique=True, index=True
    )
    whatsapp_number: Optional[str] = Field(default=None, max_length=512)

    subscription_status: str = Field(default="inactive", max_length=32)
    current_period_end: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    # Relationships
    memberships: list["Membership"] = Relationship(back_populates="clinic")

    __table_args__ = (Index("idx_clinic_subscription_status", "subscription_status"),)
