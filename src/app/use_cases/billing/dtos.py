"""
Billing Use Case DTOs
"""

from typing import Optional

from pydantic import BaseModel


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: Optional[str]
    plan: str
    reused: bool
    completed: bool = False


class BillingPortalResponse(BaseModel):
    url: str
