"""
Use Case: Block Signup Intent

Operator fraud flag: moves an active intent to BLOCKED.
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.state import INTENT_NOT_FOUND, advance_status, record_audit
from src.domain.base import utc_now
from src.domain.entities import SignupIntentStatus


class BlockSignupIntentResponse(BaseModel):
    """Response DTO for BlockSignupIntentUseCase"""

    intent_id: str
    status: str
    blocked_reason: Optional[str]


class BlockSignupIntentUseCase:
    """
    Block a signup intent.

    Idempotent: blocking an already blocked intent succeeds unchanged.
    Converted and expired intents cannot be blocked.
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(
        self, intent_id: UUID, reason: str = "manual"
    ) -> Result[BlockSignupIntentResponse]:
        async with self.uow:
            intent = await self.uow.signup_intents.get_by_id(intent_id)
            if intent is None:
                return Return.err(INTENT_NOT_FOUND)

            if intent.status == SignupIntentStatus.BLOCKED:
                return Return.ok(
                    BlockSignupIntentResponse(
                        intent_id=str(intent.id),
                        status=intent.status.value,
                        blocked_reason=intent.blocked_reason,
                    )
                )

            if not advance_status(intent, SignupIntentStatus.BLOCKED, self.clock()):
                return Return.err(
                    Error(
                        "INVALID_STATE",
                        f"Intent in status {intent.status.value} cannot be blocked",
                    )
                )

            intent.blocked_reason = (reason or "manual")[:255]
            await self.uow.signup_intents.update(intent)
            await record_audit(
                self.uow, "signup.intent.blocked", intent=intent, reason=intent.blocked_reason
            )
            await self.uow.commit()

            return Return.ok(
                BlockSignupIntentResponse(
                    intent_id=str(intent.id),
                    status=intent.status.value,
                    blocked_reason=intent.blocked_reason,
                )
            )
