from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.profile_repository import IProfileRepository
from src.domain.entities import MembershipRole, Profile


class ProfileRepository(IProfileRepository):
    """Profile repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: UUID) -> Optional[Profile]:
        """Get profile by user ID"""
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_payment_customer_id(self, customer_id: str) -> Optional[Profile]:
        """Get admin profile by payment provider customer ID"""
        stmt = (
            select(Profile)
            .where(Profile.payment_customer_id == customer_id)
            .where(Profile.role == MembershipRole.admin)
            .order_by(Profile.created_at)
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def create(self, profile: Profile) -> Profile:
        """Create a new profile"""
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def update(self, profile: Profile) -> Profile:
        """Update existing profile"""
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile
