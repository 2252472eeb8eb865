"""
Unit tests for SendPhoneOtpUseCase and VerifyPhoneOtpUseCase
"""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.services.message_sender import MessageDeliveryError
from src.app.use_cases.signup import SendPhoneOtpUseCase, VerifyPhoneOtpUseCase
from src.domain.entities import SignupIntentStatus, User
from src.domain.security import hash_otp
from tests.unit.conftest import NOW, TEST_HMAC_SECRET


def _sender(configured=True):
    sender = MagicMock()
    sender.is_configured = configured
    sender.send_message = AsyncMock()
    return sender


def _with_otp(intent, otp="123456", **overrides):
    intent.otp_hash = hash_otp(TEST_HMAC_SECRET, otp)
    intent.otp_expires_at = NOW + timedelta(minutes=5)
    intent.otp_last_sent_at = NOW - timedelta(minutes=5)
    for key, value in overrides.items():
        setattr(intent, key, value)
    return intent


# ============================================================================
# SendPhoneOtpUseCase
# ============================================================================


@pytest.mark.asyncio
async def test_send_otp_stores_hash_and_sends(mock_uow, settings, clock, make_intent):
    """Test a fresh code is hashed, counted and sent to the decrypted phone"""
    intent = make_intent()
    mock_uow.signup_intents.get_by_id.return_value = intent
    sender = _sender()

    result = await SendPhoneOtpUseCase(mock_uow, settings, sender, clock=clock).execute(
        intent.id, ip="10.0.0.1"
    )

    assert result.is_ok()
    assert result.value.expires_at == NOW + timedelta(minutes=10)
    assert result.value.resend_available_at == NOW + timedelta(seconds=60)
    assert result.value.dev_otp is None

    phone, body = sender.send_message.call_args[0]
    assert phone == "+5511987654321"
    code = body.split("é ")[1][:6]
    assert intent.otp_hash == hash_otp(TEST_HMAC_SECRET, code)
    assert intent.otp_send_count == 1
    assert intent.otp_last_sent_at == NOW
    assert intent.otp_attempts == 0
    assert mock_uow.audit_events.create.call_args[0][0].action == "signup.otp.sent"
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_send_otp_dev_echo(mock_uow, settings, clock, make_intent):
    """Test the code is echoed when no SMS provider is configured outside production"""
    intent = make_intent()
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(
        mock_uow, settings, _sender(configured=False), clock=clock
    ).execute(intent.id)

    assert result.is_ok()
    assert result.value.dev_otp is not None
    assert intent.otp_hash == hash_otp(TEST_HMAC_SECRET, result.value.dev_otp)


@pytest.mark.asyncio
async def test_send_otp_no_echo_in_production(mock_uow, settings, clock, make_intent):
    settings.app_env = "production"
    intent = make_intent()
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(
        mock_uow, settings, _sender(configured=False), clock=clock
    ).execute(intent.id)

    assert result.is_ok()
    assert result.value.dev_otp is None


@pytest.mark.asyncio
async def test_send_otp_cooldown(mock_uow, settings, clock, make_intent):
    intent = make_intent(otp_last_sent_at=NOW - timedelta(seconds=30))
    mock_uow.signup_intents.get_by_id.return_value = intent
    sender = _sender()

    result = await SendPhoneOtpUseCase(mock_uow, settings, sender, clock=clock).execute(intent.id)

    assert result.is_err()
    assert result.error.code == "OTP_COOLDOWN"
    sender.send_message.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_send_otp_window_limit(mock_uow, settings, clock, make_intent):
    """Test the sixth send inside the window is refused"""
    intent = make_intent(
        otp_send_count=5,
        otp_send_window_start=NOW - timedelta(hours=2),
        otp_last_sent_at=NOW - timedelta(minutes=10),
    )
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(mock_uow, settings, _sender(), clock=clock).execute(
        intent.id
    )

    assert result.is_err()
    assert result.error.code == "OTP_SEND_LIMIT"


@pytest.mark.asyncio
async def test_send_otp_window_resets(mock_uow, settings, clock, make_intent):
    intent = make_intent(
        otp_send_count=5,
        otp_send_window_start=NOW - timedelta(hours=25),
        otp_last_sent_at=NOW - timedelta(hours=20),
    )
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(mock_uow, settings, _sender(), clock=clock).execute(
        intent.id
    )

    assert result.is_ok()
    assert intent.otp_send_count == 1
    assert intent.otp_send_window_start == NOW


@pytest.mark.asyncio
async def test_send_otp_while_locked(mock_uow, settings, clock, make_intent):
    intent = make_intent(otp_locked_until=NOW + timedelta(minutes=3))
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(mock_uow, settings, _sender(), clock=clock).execute(
        intent.id
    )

    assert result.is_err()
    assert result.error.code == "OTP_LOCKED"


@pytest.mark.asyncio
async def test_send_otp_phone_already_verified(mock_uow, settings, clock, make_intent):
    intent = make_intent(phone_verified_at=NOW)
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await SendPhoneOtpUseCase(mock_uow, settings, _sender(), clock=clock).execute(
        intent.id
    )

    assert result.error.code == "PHONE_ALREADY_VERIFIED"


@pytest.mark.asyncio
async def test_send_otp_delivery_failure_counts_send(mock_uow, settings, clock, make_intent):
    """Test a failed delivery still consumes the send and is reported"""
    intent = make_intent()
    mock_uow.signup_intents.get_by_id.return_value = intent
    sender = _sender()
    sender.send_message.side_effect = MessageDeliveryError("twilio down")

    result = await SendPhoneOtpUseCase(mock_uow, settings, sender, clock=clock).execute(intent.id)

    assert result.is_err()
    assert result.error.code == "MESSAGE_DELIVERY_FAILED"
    assert intent.otp_send_count == 1
    mock_uow.commit.assert_called_once()


# ============================================================================
# VerifyPhoneOtpUseCase
# ============================================================================


@pytest.mark.asyncio
async def test_verify_otp_success_marks_verified(mock_uow, settings, clock, make_intent):
    """Test a correct code verifies the phone and completes verifications"""
    intent = _with_otp(make_intent(email_verified=True))
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, " 123456 "
    )

    assert result.is_ok()
    assert result.value.phone_verified is True
    assert result.value.status == SignupIntentStatus.VERIFIED.value
    assert intent.phone_verified_at == NOW
    assert intent.otp_hash is None
    assert mock_uow.audit_events.create.call_args[0][0].action == "signup.phone.verified"
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_verify_otp_refreshes_email_flag(mock_uow, settings, clock, make_intent):
    intent = _with_otp(make_intent())
    mock_uow.signup_intents.get_by_id.return_value = intent
    mock_uow.users.get_by_id.return_value = User(
        id=intent.user_id, email=intent.email, password_hash="x", email_verified=True
    )

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "123456"
    )

    assert result.is_ok()
    assert result.value.email_verified is True
    assert intent.status == SignupIntentStatus.VERIFIED


@pytest.mark.asyncio
async def test_verify_otp_invalid_counts_attempt(mock_uow, settings, clock, make_intent):
    intent = _with_otp(make_intent(), otp_attempts=1)
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "000000"
    )

    assert result.is_err()
    assert result.error.code == "OTP_INVALID"
    assert result.error.details == {"attempts_remaining": 3}
    assert intent.otp_attempts == 2
    assert intent.phone_verified_at is None
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_verify_otp_fifth_failure_locks(mock_uow, settings, clock, make_intent):
    intent = _with_otp(make_intent(), otp_attempts=4)
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "000000"
    )

    assert result.is_err()
    assert result.error.code == "OTP_LOCKED"
    assert intent.otp_locked_until == NOW + timedelta(minutes=15)
    assert intent.otp_lockout_count == 1
    assert intent.status == SignupIntentStatus.PENDING_VERIFICATIONS
    assert mock_uow.audit_events.create.call_args[0][0].action == "signup.otp.locked"


@pytest.mark.asyncio
async def test_verify_otp_third_lockout_blocks_intent(mock_uow, settings, clock, make_intent):
    """Test repeated lockouts block the intent for good"""
    intent = _with_otp(make_intent(), otp_attempts=4, otp_lockout_count=2)
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "000000"
    )

    assert result.error.code == "OTP_LOCKED"
    assert intent.status == SignupIntentStatus.BLOCKED
    assert intent.blocked_reason == "otp_lockouts"


@pytest.mark.asyncio
async def test_verify_otp_while_locked_rejects_correct_code(
    mock_uow, settings, clock, make_intent
):
    intent = _with_otp(
        make_intent(), otp_attempts=5, otp_locked_until=NOW + timedelta(minutes=10)
    )
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "123456"
    )

    assert result.error.code == "OTP_LOCKED"
    assert intent.phone_verified_at is None
    assert intent.otp_lockout_count == 0
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_verify_otp_expired(mock_uow, settings, clock, make_intent):
    intent = _with_otp(make_intent(), otp_expires_at=NOW - timedelta(seconds=1))
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "123456"
    )

    assert result.error.code == "OTP_EXPIRED"
    mock_uow.signup_intents.update.assert_not_called()


@pytest.mark.asyncio
async def test_verify_otp_never_sent(mock_uow, settings, clock, make_intent):
    intent = make_intent()
    mock_uow.signup_intents.get_by_id.return_value = intent

    result = await VerifyPhoneOtpUseCase(mock_uow, settings, clock=clock).execute(
        intent.id, "123456"
    )

    assert result.error.code == "OTP_EXPIRED"
