from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.processed_event_repository import IProcessedEventRepository
from src.domain.entities import ProcessedEvent


class ProcessedEventRepository(IProcessedEventRepository):
    """ProcessedEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, event: ProcessedEvent) -> bool:
        """Insert the event id; the unique index decides concurrent races"""
        self.session.add(event)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True
