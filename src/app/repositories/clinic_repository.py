from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import Clinic


class IClinicRepository(ABC):
    """Clinic repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, clinic_id: UUID) -> Optional[Clinic]:
        """Get clinic by ID"""
        pass

    @abstractmethod
    async def get_by_owner_user_id(self, user_id: UUID) -> Optional[Clinic]:
        """Get the clinic owned by a user"""
        pass

    @abstractmethod
    async def create(self, clinic: Clinic) -> Clinic:
        """Create a new clinic"""
        pass

    @abstractmethod
    async def update(self, clinic: Clinic) -> Clinic:
        """Update existing clinic"""
        pass
