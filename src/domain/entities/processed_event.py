"""
ProcessedEvent Entity

Idempotency guard for payment-provider webhook events.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now


class ProcessedEvent(SQLModel, table=True):
    """
    ProcessedEvent entity - one row per handled payment event id.

    Business Rules:
    - Append-only (never updated)
    - event_id is unique; the INSERT is the serialization point between
      concurrent deliveries of the same event
    - Inserted in the same transaction as the provisioning writes, so a
      rolled-back attempt leaves no row and the redelivery is processed
    """

    __tablename__ = "processed_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_id: str = Field(max_length=255, unique=True, index=True, nullable=False)
    event_type: str = Field(max_length=100)

    processed_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
