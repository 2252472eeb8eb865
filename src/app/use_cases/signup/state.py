"""
Signup intent lifecycle helpers shared by the signup and billing use cases.
"""

from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from libs.result import Error
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, SignupIntent, SignupIntentStatus

STATUS_RANK = {
    SignupIntentStatus.PENDING: 0,
    SignupIntentStatus.PENDING_VERIFICATIONS: 1,
    SignupIntentStatus.VERIFIED: 2,
    SignupIntentStatus.CHECKOUT_STARTED: 3,
    SignupIntentStatus.CONVERTED: 4,
}

INTENT_NOT_FOUND = Error("INTENT_NOT_FOUND", "Cadastro não encontrado.")
INTENT_UNAVAILABLE = Error(
    "INTENT_UNAVAILABLE", "Este cadastro não está mais disponível. Inicie um novo cadastro."
)


def advance_status(intent: SignupIntent, target: SignupIntentStatus, now: datetime) -> bool:
    """
    Move the intent forward to `target`.

    Terminal intents never move; BLOCKED and EXPIRED are reachable from any
    active status, the rest only forward.
    """
    if not intent.is_active:
        return False
    if target in (SignupIntentStatus.BLOCKED, SignupIntentStatus.EXPIRED):
        intent.status = target
        intent.updated_at = now
        return True
    if STATUS_RANK[target] <= STATUS_RANK[intent.status]:
        return False
    intent.status = target
    intent.updated_at = now
    return True


def sync_verification_status(
    intent: SignupIntent, now: datetime, require_phone_verification: bool = True
) -> None:
    """Advance to VERIFIED once every verification is in place"""
    phone_ok = intent.phone_verified or not require_phone_verification
    if intent.email_verified and phone_ok and intent.document_validated_at is not None:
        advance_status(intent, SignupIntentStatus.VERIFIED, now)
    else:
        advance_status(intent, SignupIntentStatus.PENDING_VERIFICATIONS, now)


async def load_active_intent(
    uow: UnitOfWork, intent_id: UUID
) -> Tuple[Optional[SignupIntent], Optional[Error]]:
    intent = await uow.signup_intents.get_by_id(intent_id)
    if intent is None:
        return None, INTENT_NOT_FOUND
    if not intent.is_active:
        return None, INTENT_UNAVAILABLE
    return intent, None


async def record_audit(
    uow: UnitOfWork,
    action: str,
    *,
    intent: Optional[SignupIntent] = None,
    user_id: Optional[UUID] = None,
    clinic_id: Optional[UUID] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    **metadata,
) -> None:
    event_metadata = {k: v for k, v in metadata.items() if v is not None}
    if ip:
        event_metadata["ip"] = ip
    if user_agent:
        event_metadata["user_agent"] = user_agent[:255]
    await uow.audit_events.create(
        AuditEvent(
            intent_id=intent.id if intent else None,
            user_id=user_id or (intent.user_id if intent else None),
            clinic_id=clinic_id or (intent.clinic_id if intent else None),
            action=action,
            event_metadata=event_metadata or None,
        )
    )
