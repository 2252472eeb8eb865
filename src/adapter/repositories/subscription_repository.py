from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.subscription_repository import ISubscriptionRepository
from src.domain.entities import Subscription


class SubscriptionRepository(ISubscriptionRepository):
    """Subscription repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_clinic_id(self, clinic_id: UUID) -> Optional[Subscription]:
        """Get subscription of a clinic"""
        stmt = select(Subscription).where(Subscription.clinic_id == clinic_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_external_subscription_id(
        self, external_subscription_id: str
    ) -> Optional[Subscription]:
        """Get subscription by payment provider subscription ID"""
        stmt = select(Subscription).where(
            Subscription.external_subscription_id == external_subscription_id
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_external_customer_id(self, external_customer_id: str) -> Optional[Subscription]:
        """Get subscription by payment provider customer ID"""
        stmt = (
            select(Subscription)
            .where(Subscription.external_customer_id == external_customer_id)
            .order_by(Subscription.created_at)
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def create(self, subscription: Subscription) -> Subscription:
        """Create a new subscription"""
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        """Update existing subscription"""
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription
