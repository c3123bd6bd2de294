"""Task creation factory for WizardlyDo.

This module centralizes task creation logic to ensure consistent default
values across the API and tests.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from wizardlydo.models.task import Task, Priority


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary."""
    return {
        "description": None,
        "due_at": None,
        "priority": Priority.MEDIUM,
        "is_completed": False,
        "completed_at": None,
        "category": None,
    }


def create_task_base(
    user_id: str,
    title: str,
    description: Optional[str] = None,
    due_at: Optional[datetime] = None,
    priority: Optional[Priority] = None,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    Args:
        user_id: User ID who owns this task (required)
        title: Task title (required)
        description: Task description
        due_at: Due instant
        priority: Task priority (defaults to MEDIUM)
        category: Free-form category
        now: Creation timestamp (defaults to utcnow)

    Returns:
        Task object with defaults applied
    """
    now = now or datetime.utcnow()
    defaults = create_task_defaults()

    return Task(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=title,
        description=description if description is not None else defaults["description"],
        due_at=due_at if due_at is not None else defaults["due_at"],
        priority=priority if priority is not None else defaults["priority"],
        is_completed=defaults["is_completed"],
        completed_at=defaults["completed_at"],
        category=category if category is not None else defaults["category"],
        created_at=now,
        updated_at=now,
    )
