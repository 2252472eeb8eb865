"""
Membership Entity

Links User to Clinic with a role.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utc_now
from .enums import MembershipRole, MembershipStatus

if TYPE_CHECKING:
    from .user import User
    from .clinic import Clinic


class Membership(SQLModel, table=True):
    """
    Membership entity - links User to Clinic with a role.

    Business Rules:
    - (user_id, clinic_id) must be unique
    - Signup provisioning creates the admin membership
    - Revoked memberships block access
    """

    __tablename__ = "memberships"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    clinic_id: UUID = Field(foreign_key="clinics.id", nullable=False, index=True)

    role: MembershipRole = Field(nullable=False)
    status: MembershipStatus = Field(default=MembershipStatus.active)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    # Relationships
    user: "User" = Relationship(back_populates="memberships")
    clinic: "Clinic" = Relationship(back_populates="memberships")

    __table_args__ = (
        Index("idx_membership_user_clinic", "user_id", "clinic_id", unique=True),
        Index("idx_membership_status", "status"),
    )
