"""
ProvisioningJob Entity

Progress record for one checkout session's tenant provisioning.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now
from .enums import ProvisioningJobStatus


class ProvisioningJob(SQLModel, table=True):
    """
    ProvisioningJob entity - read by clients polling for readiness.

    Business Rules:
    - One job per checkout session (re-driven in place on retries)
    - payload keeps the checkout session so an admin can reprocess
    - status=done only after clinic, profile, membership and subscription exist
    """

    __tablename__ = "provisioning_jobs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    checkout_session_id: str = Field(max_length=255, unique=True, index=True)
    event_id: Optional[str] = Field(default=None, max_length=255)
    intent_id: Optional[UUID] = Field(default=None, index=True)
    user_id: Optional[UUID] = Field(default=None)
    clinic_id: Optional[UUID] = Field(default=None)
    external_customer_id: Optional[str] = Field(default=None, max_length=255)
    external_subscription_id: Optional[str] = Field(default=None, max_length=255)

    status: ProvisioningJobStatus = Field(default=ProvisioningJobStatus.received)
    error_message: Optional[str] = Field(default=None, max_length=1000)
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_provisioning_job_status", "status"),)
