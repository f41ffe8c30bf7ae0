from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from qsuite.core.exceptions import PersistenceError
from qsuite.repositories.interfaces.interaction_log_repository import IInteractionLogRepository
from qsuite.models.database import AIInteractionModel
from qsuite.models.schemas import InteractionLogEntry


class SQLInteractionLogRepository(IInteractionLogRepository):
    """Writes interaction log entries to the ai_interactions table"""

    def __init__(self, db: Session):
        self.db = db

    async def append(self, entry: InteractionLogEntry) -> None:
        row = AIInteractionModel(
            user_id=entry.user_id,
            message=entry.message,
            response=entry.response,
            context_type=entry.context_type,
            created_at=entry.created_at,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Failed to write interaction log", operation="append") from e
