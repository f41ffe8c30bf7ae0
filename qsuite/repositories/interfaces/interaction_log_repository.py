from abc import ABC, abstractmethod
from qsuite.models.schemas import InteractionLogEntry


class IInteractionLogRepository(ABC):
    """Append-only store for AI interaction records"""

    @abstractmethod
    async def append(self, entry: InteractionLogEntry) -> None:
        pass
