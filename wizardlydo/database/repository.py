"""Repository layer for task database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from wizardlydo.engine.errors import TaskNotFoundError
from wizardlydo.models.task import Task
from wizardlydo.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self, task_id: str) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.deleted_at.is_(None),
        ).first()

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, task_id: str, user_id: Optional[str] = None) -> Optional[Task]:
        """Get an active task by ID, optionally scoped to a user."""
        query = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.deleted_at.is_(None),
        )
        if user_id is not None:
            query = query.filter(TaskDB.user_id == user_id)
        task_db = query.first()
        return task_db.to_pydantic() if task_db else None

    def get_open(self, user_id: str) -> List[Task]:
        """Get all open (not completed, not deleted) tasks for a user."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.is_completed.is_(False),
            TaskDB.deleted_at.is_(None),
        ).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update(self, task: Task) -> Task:
        """Update an existing task (user_id must match task.user_id)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task.id,
            TaskDB.user_id == task.user_id,
            TaskDB.deleted_at.is_(None),
        ).first()
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.title = task.title
        task_db.description = task.description
        task_db.category = task.category
        task_db.priority = enum_to_value(task.priority)
        task_db.due_at = task.due_at
        task_db.is_completed = task.is_completed
        task_db.completed_at = task.completed_at
        task_db.updated_at = task.updated_at

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, task: Task) -> Task:
        """Create the task if it is new, otherwise update it.

        Raises:
            TaskNotFoundError: If the ID belongs to a deleted task or to another user
        """
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task.id).first()
        if task_db is None:
            return self.create(task)
        if task_db.deleted_at is not None or task_db.user_id != task.user_id:
            raise TaskNotFoundError(task.id)
        return self.update(task)

    def delete(self, task_id: str) -> bool:
        """Soft-delete a task by ID."""
        task_db = self._active(task_id)
        if not task_db:
            return False

        try:
            task_db.deleted_at = datetime.utcnow()
            self.db.commit()
            logger.debug(f"Soft-deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise

