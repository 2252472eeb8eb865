"""
Verify Email Use Case

Handles the confirmation link sent at signup.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now

from .dtos import VerifyEmailResponse
from .settings import SignupSettings
from .state import record_audit, sync_verification_status


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - Token must match user's email_verification_token
    - Token must not be expired
    - Sets email_verified = True and clears the token (single-use)
    - The user's active signup intent is updated in the same transaction
    - Already verified users return success
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

    async def execute(self, token: str) -> Result[VerifyEmailResponse]:
        """
        Execute email verification use case.

        Errors:
            - INVALID_TOKEN: Token not found
            - TOKEN_EXPIRED: Token has expired
        """
        async with self.uow:
            user = await self.uow.users.get_by_verification_token(token)

            if user is None:
                return Return.err(
                    Error("INVALID_TOKEN", "Link de verificação inválido.")
                )

            if user.email_verified:
                return Return.ok(VerifyEmailResponse(
                    status="verified",
                    message="E-mail já confirmado."
                ))

            now = self.clock()
            if (
                user.email_verification_expires_at is None
                or now > user.email_verification_expires_at
            ):
                return Return.err(
                    Error(
                        "TOKEN_EXPIRED",
                        "O link de verificação expirou. Solicite um novo e-mail."
                    )
                )

            user.email_verified = True
            user.email_verified_at = now
            user.email_verification_token = None
            user.email_verification_expires_at = None
            await self.uow.users.update(user)

            intent = await self.uow.signup_intents.find_active_by_email(user.email)
            if intent is not None and intent.user_id == user.id:
                intent.email_verified = True
                intent.updated_at = now
                sync_verification_status(
                    intent, now, self.settings.require_phone_verification
                )
                await self.uow.signup_intents.update(intent)

            await record_audit(
                self.uow, "signup.email.verified", intent=intent, user_id=user.id
            )

            await self.uow.commit()

            return Return.ok(VerifyEmailResponse(
                status="verified",
                message="E-mail confirmado com sucesso."
            ))
