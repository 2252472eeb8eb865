"""
Resend Verification Email Use Case

Issues a fresh confirmation link for the user bound to an intent.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.email_sender import EmailDeliveryError, EmailSender
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now

from .dtos import ResendVerificationResponse
from .settings import SignupSettings
from .state import load_active_intent

logger = logging.getLogger(__name__)


class ResendVerificationEmailUseCase:
    """
    Business Rules:
    - New token replaces the old one (invalidates previous links)
    - Already verified email returns success without sending
    - Delivery failure surfaces as MESSAGE_DELIVERY_FAILED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: SignupSettings,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.settings = settings
        self.email_sender = email_sender
        self.clock = clock

    async def execute(self, intent_id: UUID) -> Result[ResendVerificationResponse]:
        async with self.uow:
            intent, error = await load_active_intent(self.uow, intent_id)
            if error:
                return Return.err(error)

            user = await self.uow.users.get_by_id(intent.user_id) if intent.user_id else None
            if user is None:
                return Return.err(Error("INVALID_STATE", "Cadastro sem usuário vinculado."))

            if user.email_verified:
                return Return.ok(ResendVerificationResponse(
                    status="already_verified",
                    message="E-mail já confirmado."
                ))

            token = secrets.token_urlsafe(32)
            user.email_verification_token = token
            user.email_verification_expires_at = self.clock() + timedelta(
                hours=self.settings.email_verification_ttl_hours
            )
            await self.uow.users.update(user)
            await self.uow.commit()
            email = user.email

        try:
            await self.email_sender.send_verification_email(
                email, self.settings.verification_link(token)
            )
        except EmailDeliveryError:
            logger.error(f"Verification email resend failed for intent {intent_id}")
            return Return.err(
                Error("MESSAGE_DELIVERY_FAILED", "Não foi possível enviar o e-mail. Tente novamente.")
            )

        return Return.ok(ResendVerificationResponse(
            status="sent",
            message="Enviamos um novo link de verificação."
        ))
