from abc import ABC, abstractmethod

from src.domain.entities import ProcessedEvent


class IProcessedEventRepository(ABC):
    """ProcessedEvent repository interface - application layer"""

    @abstractmethod
    async def add(self, event: ProcessedEvent) -> bool:
        """
        Record an event id.

        Returns False when the id is already recorded (unique violation).
        Must be the first write of the unit of work: a violation rolls the
        transaction back.
        """
        pass
