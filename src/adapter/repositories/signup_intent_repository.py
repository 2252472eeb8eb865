from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.signup_intent_repository import ISignupIntentRepository
from src.domain.entities import SignupIntent, TERMINAL_INTENT_STATUSES


class SignupIntentRepository(ISignupIntentRepository):
    """SignupIntent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _active(self):
        return select(SignupIntent).where(
            col(SignupIntent.status).not_in(list(TERMINAL_INTENT_STATUSES))
        )

    async def get_by_id(self, intent_id: UUID) -> Optional[SignupIntent]:
        """Get intent by ID"""
        stmt = select(SignupIntent).where(SignupIntent.id == intent_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_checkout_session_id(self, session_id: str) -> Optional[SignupIntent]:
        """Get intent bound to a checkout session"""
        stmt = select(SignupIntent).where(SignupIntent.checkout_session_id == session_id)
        result = await self.session.exec(stmt)
        return result.first()

    async def find_active_by_email(self, email: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for an email"""
        stmt = (
            self._active()
            .where(SignupIntent.email == email)
            .order_by(col(SignupIntent.created_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def find_active_by_document_hash(self, document_hash: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for a document hash"""
        stmt = (
            self._active()
            .where(SignupIntent.document_hash == document_hash)
            .order_by(col(SignupIntent.created_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def find_active_by_phone_hash(self, phone_hash: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for a phone hash"""
        stmt = (
            self._active()
            .where(SignupIntent.phone_hash == phone_hash)
            .order_by(col(SignupIntent.created_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def list_stale(self, updated_before: datetime, limit: int = 500) -> List[SignupIntent]:
        """Non-terminal intents not updated since the cutoff"""
        stmt = (
            self._active()
            .where(col(SignupIntent.updated_at) < updated_before)
            .order_by(col(SignupIntent.updated_at))
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, intent: SignupIntent) -> SignupIntent:
        """Create a new intent"""
        self.session.add(intent)
        await self.session.flush()
        await self.session.refresh(intent)
        return intent

    async def update(self, intent: SignupIntent) -> SignupIntent:
        """Update existing intent"""
        self.session.add(intent)
        await self.session.flush()
        await self.session.refresh(intent)
        return intent
