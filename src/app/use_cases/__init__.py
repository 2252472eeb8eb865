"""
Use Cases

Organized into domain folders:
- signup/: Signup intent creation and verification
- billing/: Checkout and billing portal sessions
- provisioning/: Payment webhooks and provisioning status
- admin/: Operator actions

Import from subdirectories for better organization.
"""

from .signup import (
    CreateSignupIntentUseCase,
    RefreshEmailVerificationUseCase,
    VerifyEmailUseCase,
    ResendVerificationEmailUseCase,
    SendPhoneOtpUseCase,
    VerifyPhoneOtpUseCase,
)
from .billing import (
    CreateCheckoutSessionUseCase,
    CreateBillingPortalSessionUseCase,
)
from .provisioning import (
    ProcessPaymentEventUseCase,
    GetProvisioningStatusUseCase,
)
from .admin import (
    BlockSignupIntentUseCase,
    ExpireStaleIntentsUseCase,
    ReprocessProvisioningJobUseCase,
)

__all__ = [
    # Signup
    "CreateSignupIntentUseCase",
    "RefreshEmailVerificationUseCase",
    "VerifyEmailUseCase",
    "ResendVerificationEmailUseCase",
    "SendPhoneOtpUseCase",
    "VerifyPhoneOtpUseCase",
    # Billing
    "CreateCheckoutSessionUseCase",
    "CreateBillingPortalSessionUseCase",
    # Provisioning
    "ProcessPaymentEventUseCase",
    "GetProvisioningStatusUseCase",
    # Admin
    "BlockSignupIntentUseCase",
    "ExpireStaleIntentsUseCase",
    "ReprocessProvisioningJobUseCase",
]
