from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.payment_repository import IPaymentRepository
from src.domain.entities import Payment


class PaymentRepository(IPaymentRepository):
    """Payment repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_external_invoice_id(self, external_invoice_id: str) -> Optional[Payment]:
        """Get payment by payment provider invoice ID"""
        stmt = select(Payment).where(Payment.external_invoice_id == external_invoice_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, payment: Payment) -> Payment:
        """Create a new payment"""
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment
