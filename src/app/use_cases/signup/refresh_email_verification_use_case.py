"""
Refresh Email Verification Use Case

Pulls the email confirmation state from the identity record into the intent.
"""

from datetime import datetime
from typing import Callable
from uuid import UUID

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now

from .dtos import IntentStatusResponse
from .settings import SignupSettings
from .state import load_active_intent, sync_verification_status


class RefreshEmailVerificationUseCase:
    """
    Business Rules:
    - Reads the bound user's email_verified flag
    - Only ever sets intent.email_verified, never clears it
    - Advances to VERIFIED when the other verifications are already done
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

    async def execute(self, intent_id: UUID) -> Result[IntentStatusResponse]:
        async with self.uow:
            intent, error = await load_active_intent(self.uow, intent_id)
            if error:
                return Return.err(error)

            if not intent.email_verified and intent.user_id is not None:
                user = await self.uow.users.get_by_id(intent.user_id)
                if user is not None and user.email_verified:
                    now = self.clock()
                    intent.email_verified = True
                    intent.updated_at = now
                    sync_verification_status(
                        intent, now, self.settings.require_phone_verification
                    )
                    intent = await self.uow.signup_intents.update(intent)
                    await self.uow.commit()

            return Return.ok(
                IntentStatusResponse(
                    intent_id=str(intent.id),
                    status=intent.status.value,
                    email_verified=intent.email_verified,
                    phone_verified=intent.phone_verified,
                )
            )
