"""
Verify Phone OTP Use Case

Checks a submitted code against the stored OTP state.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import SignupIntentStatus
from src.domain.security import OtpStatus, compute_otp_verification

from .dtos import VerifyPhoneOtpResponse
from .settings import SignupSettings
from .state import advance_status, load_active_intent, record_audit, sync_verification_status

logger = logging.getLogger(__name__)


class VerifyPhoneOtpUseCase:
    """
    Business Rules:
    - The decision comes from compute_otp_verification; attempts and lock
      are persisted whatever the outcome
    - A newly applied lock counts as one lockout; after N lockouts (3) the
      intent is BLOCKED
    - On success: phone_verified_at set, OTP state cleared, email flag
      refreshed from the user, VERIFIED when everything is verified
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SignupSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.clock = clock

    async def execute(
        self,
        intent_id: UUID,
        otp: str,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[VerifyPhoneOtpResponse]:
        now = self.clock()
        settings = self.settings

        async with self.uow:
            intent, error = await load_active_intent(self.uow, intent_id)
            if error:
                return Return.err(error)

            if intent.phone_verified:
                return Return.err(
                    Error("PHONE_ALREADY_VERIFIED", "Telefone já verificado.")
                )

            was_locked = intent.otp_locked_until is not None and now < intent.otp_locked_until

            verification = compute_otp_verification(
                now=now,
                otp_hash=intent.otp_hash,
                otp=otp.strip(),
                attempts=intent.otp_attempts,
                expires_at=intent.otp_expires_at,
                locked_until=intent.otp_locked_until,
                secret=settings.hmac_secret,
                max_attempts=settings.otp_max_attempts,
                lockout_minutes=settings.otp_lockout_minutes,
            )

            if verification.status == OtpStatus.expired:
                return Return.err(
                    Error("OTP_EXPIRED", "Código expirado. Solicite um novo código.")
                )

            intent.otp_attempts = verification.attempts
            intent.otp_locked_until = verification.locked_until
            intent.updated_at = now

            if verification.status == OtpStatus.locked:
                if not was_locked:
                    intent.otp_lockout_count += 1
                    if intent.otp_lockout_count >= settings.otp_lockouts_before_block:
                        advance_status(intent, SignupIntentStatus.BLOCKED, now)
                        intent.blocked_reason = "otp_lockouts"
                        logger.warning(f"Intent {intent.id} blocked after repeated OTP lockouts")
                    await self.uow.signup_intents.update(intent)
                    await record_audit(
                        self.uow,
                        "signup.otp.locked",
                        intent=intent,
                        ip=ip,
                        user_agent=user_agent,
                        lockout_count=intent.otp_lockout_count,
                    )
                    await self.uow.commit()
                return Return.err(
                    Error(
                        "OTP_LOCKED",
                        "Muitas tentativas. Aguarde alguns minutos e tente novamente.",
                        {"locked_until": verification.locked_until.isoformat()},
                    )
                )

            if verification.status == OtpStatus.invalid:
                await self.uow.signup_intents.update(intent)
                await self.uow.commit()
                return Return.err(
                    Error(
                        "OTP_INVALID",
                        "Código inválido.",
                        {"attempts_remaining": settings.otp_max_attempts - verification.attempts},
                    )
                )

            intent.phone_verified_at = now
            intent.otp_hash = None
            intent.otp_expires_at = None
            intent.otp_attempts = 0
            intent.otp_locked_until = None

            if not intent.email_verified and intent.user_id is not None:
                user = await self.uow.users.get_by_id(intent.user_id)
                if user is not None and user.email_verified:
                    intent.email_verified = True

            sync_verification_status(intent, now, settings.require_phone_verification)
            intent = await self.uow.signup_intents.update(intent)

            await record_audit(
                self.uow, "signup.phone.verified", intent=intent, ip=ip, user_agent=user_agent
            )

            await self.uow.commit()

            return Return.ok(
                VerifyPhoneOtpResponse(
                    intent_id=str(intent.id),
                    status=intent.status.value,
                    phone_verified=True,
                    email_verified=intent.email_verified,
                )
            )
