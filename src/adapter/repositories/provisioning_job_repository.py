from typing import Optional
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.provisioning_job_repository import IProvisioningJobRepository
from src.domain.entities import ProvisioningJob


class ProvisioningJobRepository(IProvisioningJobRepository):
    """ProvisioningJob repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, job_id: UUID) -> Optional[ProvisioningJob]:
        """Get job by ID"""
        stmt = select(ProvisioningJob).where(ProvisioningJob.id == job_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_checkout_session_id(self, session_id: str) -> Optional[ProvisioningJob]:
        """Get job for a checkout session"""
        stmt = select(ProvisioningJob).where(ProvisioningJob.checkout_session_id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_latest_by_intent_id(self, intent_id: UUID) -> Optional[ProvisioningJob]:
        """Most recently updated job for an intent"""
        stmt = (
            select(ProvisioningJob)
            .where(ProvisioningJob.intent_id == intent_id)
            .order_by(col(ProvisioningJob.updated_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def create(self, job: ProvisioningJob) -> ProvisioningJob:
        """Create a new job"""
        self.session.add(job)
        await self.session.flush()
        await self.session.refresh(job)
        return job

    async def update(self, job: ProvisioningJob) -> ProvisioningJob:
        """Update existing job"""
        self.session.add(job)
        await self.session.flush()
        await self.session.refresh(job)
        return job
