"""
Profile Entity

Per-user profile inside a clinic (the admin profile at signup).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now
from .enums import MembershipRole


class Profile(SQLModel, table=True):
    """
    Profile entity.

    Business Rules:
    - One profile per user (user_id unique)
    - phone stays encrypted; document only kept as its lookup hash
    """

    __tablename__ = "profiles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", unique=True, index=True)
    clinic_id: UUID = Field(foreign_key="clinics.id", index=True)

    full_name: str = Field(max_length=255)
    role: MembershipRole = Field(default=MembershipRole.admin)

    document_hash: Optional[str] = Field(default=None, max_length=64)
    phone: Optional[str] = Field(default=None, max_length=512)
    phone_verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    payment_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
