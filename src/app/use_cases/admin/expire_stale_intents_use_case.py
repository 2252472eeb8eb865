"""
Use Case: Expire Stale Signup Intents

Periodic sweep entry point. Intents that saw no activity within the TTL are
marked EXPIRED, which releases their email / document / phone for a new
signup. Deleting old rows is left to the data retention job.
"""

from datetime import datetime, timedelta
from typing import Callable, List

from pydantic import BaseModel

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.signup.state import advance_status
from src.domain.base import utc_now
from src.domain.entities import AuditEvent, SignupIntentStatus


class ExpireStaleIntentsResponse(BaseModel):
    """Response DTO for ExpireStaleIntentsUseCase"""

    expired: int
    intent_ids: List[str]


class ExpireStaleIntentsUseCase:
    def __init__(
        self, uow: UnitOfWork, ttl_days: int = 7, clock: Callable[[], datetime] = utc_now
    ):
        self.uow = uow
        self.ttl_days = ttl_days
        self.clock = clock

    async def execute(self, limit: int = 500) -> Result[ExpireStaleIntentsResponse]:
        now = self.clock()
        cutoff = now - timedelta(days=self.ttl_days)

        async with self.uow:
            stale = await self.uow.signup_intents.list_stale(cutoff, limit=limit)
            expired_ids = []
            for intent in stale:
                if advance_status(intent, SignupIntentStatus.EXPIRED, now):
                    await self.uow.signup_intents.update(intent)
                    expired_ids.append(str(intent.id))

            if expired_ids:
                await self.uow.audit_events.create(
                    AuditEvent(
                        action="signup.intents.expired",
                        event_metadata={"count": len(expired_ids), "cutoff": cutoff.isoformat()},
                    )
                )
                await self.uow.commit()

        return Return.ok(
            ExpireStaleIntentsResponse(expired=len(expired_ids), intent_ids=expired_ids)
        )
