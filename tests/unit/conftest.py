from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.use_cases.signup.settings import SignupSettings
from src.domain.entities import SignupIntent, SignupIntentStatus
from src.domain.security import encrypt, hmac_sha256

TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
TEST_HMAC_SECRET = "unit-test-hmac-secret"
NOW = datetime(2025, 3, 10, 12, 0, 0)

REPOSITORY_METHODS = {
    "users": ["get_by_email", "get_by_id", "create", "update", "get_by_verification_token"],
    "clinics": ["get_by_id", "get_by_owner_user_id", "create", "update"],
    "profiles": ["get_by_user_id", "get_by_payment_customer_id", "create", "update"],
    "memberships": ["get_by_user_and_clinic", "get_by_user_id", "create"],
    "subscriptions": [
        "get_by_clinic_id",
        "get_by_external_subscription_id",
        "get_by_external_customer_id",
        "create",
        "update",
    ],
    "signup_intents": [
        "get_by_id",
        "get_by_checkout_session_id",
        "find_active_by_email",
        "find_active_by_document_hash",
        "find_active_by_phone_hash",
        "list_stale",
        "create",
        "update",
    ],
    "processed_events": ["add"],
    "payments": ["get_by_external_invoice_id", "create"],
    "provisioning_jobs": [
        "get_by_id",
        "get_by_checkout_session_id",
        "get_latest_by_intent_id",
        "create",
        "update",
    ],
    "audit_events": ["create"],
}


async def _echo(entity, *args, **kwargs):
    return entity


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with every repository; create/update echo their argument"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    for repo_name, methods in REPOSITORY_METHODS.items():
        repo = MagicMock()
        for method in methods:
            if method in ("create", "update"):
                setattr(repo, method, AsyncMock(side_effect=_echo))
            else:
                setattr(repo, method, AsyncMock(return_value=None))
        setattr(uow, repo_name, repo)

    uow.memberships.get_by_user_id.return_value = []
    uow.signup_intents.list_stale.return_value = []
    uow.processed_events.add.return_value = True
    return uow


@pytest.fixture
def settings():
    return SignupSettings(
        encryption_key=TEST_ENCRYPTION_KEY,
        hmac_secret=TEST_HMAC_SECRET,
        app_url="https://app.test",
        prices={"monthly": "price_monthly", "trial": "price_trial", "annual": "price_annual"},
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def make_intent():
    def _make(**overrides):
        phone = overrides.pop("plain_phone", "+5511987654321")
        fields = dict(
            id=uuid4(),
            email="owner@clinic.com",
            clinic_name="Clínica Sorriso",
            admin_name="Ana Souza",
            document_number=encrypt(TEST_ENCRYPTION_KEY, "52998224725"),
            document_hash=hmac_sha256(TEST_HMAC_SECRET, "52998224725"),
            phone=encrypt(TEST_ENCRYPTION_KEY, phone),
            phone_hash=hmac_sha256(TEST_HMAC_SECRET, phone),
            document_validated_at=NOW,
            status=SignupIntentStatus.PENDING_VERIFICATIONS,
            user_id=uuid4(),
            created_at=NOW,
            updated_at=NOW,
        )
        fields.update(overrides)
        return SignupIntent(**fields)

    return _make
