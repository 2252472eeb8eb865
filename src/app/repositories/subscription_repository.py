from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import Subscription


class ISubscriptionRepository(ABC):
    """Subscription repository interface - application layer"""

    @abstractmethod
    async def get_by_clinic_id(self, clinic_id: UUID) -> Optional[Subscription]:
        """Get subscription of a clinic"""
        pass

    @abstractmethod
    async def get_by_external_subscription_id(
        self, external_subscription_id: str
    ) -> Optional[Subscription]:
        """Get subscription by payment provider subscription ID"""
        pass

    @abstractmethod
    async def get_by_external_customer_id(self, external_customer_id: str) -> Optional[Subscription]:
        """Get subscription by payment provider customer ID"""
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """Create a new subscription"""
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """Update existing subscription"""
        pass
