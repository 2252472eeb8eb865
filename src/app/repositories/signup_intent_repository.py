from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import SignupIntent


class ISignupIntentRepository(ABC):
    """SignupIntent repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, intent_id: UUID) -> Optional[SignupIntent]:
        """Get intent by ID"""
        pass

    @abstractmethod
    async def get_by_checkout_session_id(self, session_id: str) -> Optional[SignupIntent]:
        """Get intent bound to a checkout session"""
        pass

    @abstractmethod
    async def find_active_by_email(self, email: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for an email"""
        pass

    @abstractmethod
    async def find_active_by_document_hash(self, document_hash: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for a document hash"""
        pass

    @abstractmethod
    async def find_active_by_phone_hash(self, phone_hash: str) -> Optional[SignupIntent]:
        """Most recent non-terminal intent for a phone hash"""
        pass

    @abstractmethod
    async def list_stale(self, updated_before: datetime, limit: int = 500) -> List[SignupIntent]:
        """Non-terminal intents not updated since the cutoff"""
        pass

    @abstractmethod
    async def create(self, intent: SignupIntent) -> SignupIntent:
        """Create a new intent"""
        pass

    @abstractmethod
    async def update(self, intent: SignupIntent) -> SignupIntent:
        """Update existing intent"""
        pass
