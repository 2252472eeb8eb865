from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.clinic_repository import IClinicRepository
from src.domain.entities import Clinic


class ClinicRepository(IClinicRepository):
    """Clinic repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, clinic_id: UUID) -> Optional[Clinic]:
        """Get clinic by ID"""
        stmt = select(Clinic).where(Clinic.id == clinic_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_owner_user_id(self, user_id: UUID) -> Optional[Clinic]:
        """Get the clinic owned by a user"""
        stmt = select(Clinic).where(Clinic.owner_user_id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, clinic: Clinic) -> Clinic:
        """Create a new clinic"""
        self.session.add(clinic)
        await self.session.flush()
        await self.session.refresh(clinic)
        return clinic

    async def update(self, clinic: Clinic) -> Clinic:
        """Update existing clinic"""
        self.session.add(clinic)
        await self.session.flush()
        await self.session.refresh(clinic)
        return clinic
