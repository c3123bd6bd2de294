"""Repository backing the reminder scheduler's task -> instants mapping."""

import logging
from datetime import datetime
from typing import Set
from sqlalchemy.orm import Session

from wizardlydo.database.models import ScheduledReminderDB

logger = logging.getLogger(__name__)


class ScheduledReminderRepository:
    """Database-backed ReminderStore.

    Only the reminder scheduler writes through this repository.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: str) -> Set[datetime]:
        """Instants currently scheduled for a task."""
        rows = self.db.query(ScheduledReminderDB.remind_at).filter(
            ScheduledReminderDB.task_id == task_id
        ).all()
        return {row[0] for row in rows}

    def replace(self, task_id: str, instants: Set[datetime]) -> None:
        """Make the stored instants for a task equal to ``instants``."""
        current = self.get(task_id)
        try:
            stale = current - set(instants)
            if stale:
                self.db.query(ScheduledReminderDB).filter(
                    ScheduledReminderDB.task_id == task_id,
                    ScheduledReminderDB.remind_at.in_(list(stale)),
                ).delete(synchronize_session=False)
            for instant in sorted(set(instants) - current):
                self.db.add(ScheduledReminderDB(task_id=task_id, remind_at=instant))
            self.db.commit()
            logger.debug(f"Stored {len(instants)} reminders for task {task_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to store reminders for task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, task_id: str) -> None:
        """Forget every reminder stored for a task."""
        try:
            self.db.query(ScheduledReminderDB).filter(
                ScheduledReminderDB.task_id == task_id
            ).delete(synchronize_session=False)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete reminders for task {task_id}: {type(e).__name__}: {str(e)}")
            raise

