"""
Provisioning Use Case DTOs
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProcessPaymentEventResponse(BaseModel):
    """status: processed | duplicate | ignored"""

    status: str
    event_id: str
    event_type: str
    job_id: Optional[str] = None


class ProvisioningJobInfo(BaseModel):
    job_id: str
    status: str
    error_message: Optional[str] = None
    updated_at: datetime


class SubscriptionInfo(BaseModel):
    status: str
    plan: str
    current_period_end: Optional[datetime] = None


class ProvisioningStatusResponse(BaseModel):
    ready: bool
    clinic_id: Optional[str] = None
    job: Optional[ProvisioningJobInfo] = None
    subscription: Optional[SubscriptionInfo] = None
