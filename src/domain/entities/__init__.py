"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    ACTIVE_SUBSCRIPTION_STATUSES,
    TERMINAL_INTENT_STATUSES,
    MembershipRole,
    MembershipStatus,
    ProvisioningJobStatus,
    SignupIntentStatus,
    UserStatus,
)

# Export all entities
from .user import User
from .clinic import Clinic
from .profile import Profile
from .membership import Membership
from .subscription import Subscription
from .payment import Payment
from .signup_intent import SignupIntent
from .processed_event import ProcessedEvent
from .provisioning_job import ProvisioningJob
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "ACTIVE_SUBSCRIPTION_STATUSES",
    "TERMINAL_INTENT_STATUSES",
    "MembershipRole",
    "MembershipStatus",
    "ProvisioningJobStatus",
    "SignupIntentStatus",
    "UserStatus",
    # Entities
    "User",
    "Clinic",
    "Profile",
    "Membership",
    "Subscription",
    "Payment",
    "SignupIntent",
    "ProcessedEvent",
    "ProvisioningJob",
    "AuditEvent",
]
