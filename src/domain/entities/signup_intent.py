"""
SignupIntent Entity

A provisional signup that has not yet produced a paying tenant.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now
from src.domain.validation import DocumentType
from .enums import SignupIntentStatus, TERMINAL_INTENT_STATUSES


class SignupIntent(SQLModel, table=True):
    """
    SignupIntent entity - one prospective clinic signup attempt.

    Business Rules:
    - document_number and phone are AES-GCM blobs, never plaintext
    - document_hash / phone_hash are HMACs of the normalized values and are
      only used for exact-match duplicate detection
    - otp_hash holds the HMAC of the current OTP, never the OTP itself
    - At most one active intent per email / document / phone, enforced by
      CreateSignupIntentUseCase (no storage-level uniqueness)
    """

    __tablename__ = "signup_intents"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255, nullable=False, index=True)
    clinic_name: str = Field(max_length=255)
    admin_name: str = Field(max_length=255)

    # PII (encrypted) + lookup hashes
    document_type: DocumentType = Field(default=DocumentType.cpf)
    document_number: str = Field(max_length=512)
    document_hash: str = Field(max_length=64, index=True)
    phone: str = Field(max_length=512)
    phone_hash: str = Field(max_length=64, index=True)

    # Verification state
    email_verified: bool = Field(default=False)
    phone_verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    document_validated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # OTP sub-state
    otp_hash: Optional[str] = Field(default=None, max_length=64)
    otp_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    otp_attempts: int = Field(default=0)
    otp_locked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    otp_lockout_count: int = Field(default=0)
    otp_last_sent_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    otp_send_count: int = Field(default=0)
    otp_send_window_start: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # Lifecycle
    status: SignupIntentStatus = Field(default=SignupIntentStatus.PENDING)
    plan: Optional[str] = Field(default=None, max_length=32)
    checkout_session_id: Optional[str] = Field(default=None, max_length=255, index=True)
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", index=True)
    clinic_id: Optional[UUID] = Field(default=None, foreign_key="clinics.id")
    blocked_reason: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_signup_intent_status", "status"),
        Index("idx_signup_intent_created_at", "created_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_INTENT_STATUSES

    @property
    def phone_verified(self) -> bool:
        return self.phone_verified_at is not None

