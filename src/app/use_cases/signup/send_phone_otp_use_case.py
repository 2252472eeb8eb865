"""
Send Phone OTP Use Case

Issues a one-time password to the intent's phone number.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.message_sender import MessageDeliveryError, MessageSender
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.security import decrypt, generate_otp, hash_otp

from .dtos import SendPhoneOtpResponse
from .settings import SignupSettings
from .state import load_active_intent, record_audit

logger = logging.getLogger(__name__)


class SendPhoneOtpUseCase:
    """
    Business Rules:
    - Terminal intents and already verified phones are rejected
    - No new code while a lockout is running
    - Resend cooldown (60s) between sends
    - At most N sends per rolling window (5 per 24h)
    - Every send resets attempts and lock and replaces the previous code
    - Only the HMAC of the code is stored
    - Without a real SMS provider outside production the code is echoed
      back as dev_otp
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SignupSettings,
        message_sender: MessageSender,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.message_sender = message_sender
        self.clock = clock

    async def execute(
        self,
        intent_id: UUID,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[SendPhoneOtpResponse]:
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

            if intent.otp_locked_until is not None and now < intent.otp_locked_until:
                return Return.err(
                    Error(
                        "OTP_LOCKED",
                        "Muitas tentativas. Aguarde alguns minutos e tente novamente.",
                        {"locked_until": intent.otp_locked_until.isoformat()},
                    )
                )

            if intent.otp_last_sent_at is not None:
                available_at = intent.otp_last_sent_at + timedelta(
                    seconds=settings.otp_resend_cooldown_seconds
                )
                if now < available_at:
                    return Return.err(
                        Error(
                            "OTP_COOLDOWN",
                            "Aguarde antes de solicitar um novo código.",
                            {"retry_at": available_at.isoformat()},
                        )
                    )

            window = timedelta(hours=settings.otp_send_window_hours)
            if (
                intent.otp_send_window_start is None
                or now - intent.otp_send_window_start >= window
            ):
                intent.otp_send_window_start = now
                intent.otp_send_count = 0

            if intent.otp_send_count >= settings.otp_max_send_per_window:
                return Return.err(
                    Error(
                        "OTP_SEND_LIMIT",
                        "Limite de envios atingido. Tente novamente mais tarde.",
                        {"retry_at": (intent.otp_send_window_start + window).isoformat()},
                    )
                )

            phone = decrypt(settings.encryption_key, intent.phone)

            otp = generate_otp(settings.otp_length)
            expires_at = now + timedelta(minutes=settings.otp_expiry_minutes)
            intent.otp_hash = hash_otp(settings.hmac_secret, otp)
            intent.otp_expires_at = expires_at
            intent.otp_attempts = 0
            intent.otp_locked_until = None
            intent.otp_send_count += 1
            intent.otp_last_sent_at = now
            intent.updated_at = now
            await self.uow.signup_intents.update(intent)

            await record_audit(
                self.uow,
                "signup.otp.sent",
                intent=intent,
                ip=ip,
                user_agent=user_agent,
                send_count=intent.otp_send_count,
            )

            await self.uow.commit()

        body = (
            f"Seu código de verificação é {otp}. "
            f"Ele expira em {settings.otp_expiry_minutes} minutos."
        )
        try:
            await self.message_sender.send_message(phone, body)
        except MessageDeliveryError:
            logger.error(f"OTP delivery failed for intent {intent_id}")
            return Return.err(
                Error(
                    "MESSAGE_DELIVERY_FAILED",
                    "Não foi possível enviar o código. Tente novamente.",
                )
            )

        dev_otp = None
        if not self.message_sender.is_configured and not settings.is_production:
            logger.info(f"[dev] OTP for intent {intent_id}: {otp}")
            dev_otp = otp

        return Return.ok(
            SendPhoneOtpResponse(
                status="sent",
                expires_at=expires_at,
                resend_available_at=now
                + timedelta(seconds=settings.otp_resend_cooldown_seconds),
                dev_otp=dev_otp,
            )
        )
