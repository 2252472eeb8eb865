"""
Billing Use Cases

Checkout and billing portal sessions.
"""

from .create_checkout_session_use_case import CreateCheckoutSessionUseCase
from .create_billing_portal_session_use_case import CreateBillingPortalSessionUseCase
from .dtos import BillingPortalResponse, CheckoutSessionResponse

__all__ = [
    # Use Cases
    "CreateCheckoutSessionUseCase",
    "CreateBillingPortalSessionUseCase",
    # DTOs - Responses
    "CheckoutSessionResponse",
    "BillingPortalResponse",
]
