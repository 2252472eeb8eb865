from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import ProvisioningJob


class IProvisioningJobRepository(ABC):
    """ProvisioningJob repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, job_id: UUID) -> Optional[ProvisioningJob]:
        """Get job by ID"""
        pass

    @abstractmethod
    async def get_by_checkout_session_id(self, session_id: str) -> Optional[ProvisioningJob]:
        """Get job for a checkout session"""
        pass

    @abstractmethod
    async def get_latest_by_intent_id(self, intent_id: UUID) -> Optional[ProvisioningJob]:
        """Most recently updated job for an intent"""
        pass

    @abstractmethod
    async def create(self, job: ProvisioningJob) -> ProvisioningJob:
        """Create a new job"""
        pass

    @abstractmethod
    async def update(self, job: ProvisioningJob) -> ProvisioningJob:
        """Update existing job"""
        pass
