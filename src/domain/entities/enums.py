"""
Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class MembershipRole(str, Enum):
    """User role within a clinic"""

    admin = "admin"
    dentist = "dentist"
    receptionist = "receptionist"


class MembershipStatus(str, Enum):
    """Membership status"""

    active = "active"
    revoked = "revoked"


class SignupIntentStatus(str, Enum):
    """
    Signup intent lifecycle.

    Advances forward only. BLOCKED and EXPIRED are absorbing; CONVERTED is
    the successful end state.
    """

    PENDING = "PENDING"
    PENDING_VERIFICATIONS = "PENDING_VERIFICATIONS"
    VERIFIED = "VERIFIED"
    CHECKOUT_STARTED = "CHECKOUT_STARTED"
    CONVERTED = "CONVERTED"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


TERMINAL_INTENT_STATUSES = frozenset(
    {
        SignupIntentStatus.CONVERTED,
        SignupIntentStatus.BLOCKED,
        SignupIntentStatus.EXPIRED,
    }
)


class ProvisioningJobStatus(str, Enum):
    """Provisioning progress, one step per tenant sub-resource"""

    received = "received"
    user_ok = "user_ok"
    clinic_ok = "clinic_ok"
    profile_ok = "profile_ok"
    membership_ok = "membership_ok"
    subscription_ok = "subscription_ok"
    done = "done"
    failed = "failed"


ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})
