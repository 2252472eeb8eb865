from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities import Payment


class IPaymentRepository(ABC):
    """Payment repository interface - application layer"""

    @abstractmethod
    async def get_by_external_invoice_id(self, external_invoice_id: str) -> Optional[Payment]:
        """Get payment by payment provider invoice ID"""
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """Create a new payment"""
        pass
