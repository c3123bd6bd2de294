"""SQLAlchemy database models for WizardlyDo."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint

from typing import Union, TypeVar, Type
from wizardlydo.database.database import Base
from wizardlydo.models.task import Priority

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner (and wizard) association
    user_id = Column(String, nullable=False, index=True)

    # Basic fields
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, nullable=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)

    # Lifecycle
    due_at = Column(DateTime, nullable=True, index=True)
    is_completed = Column(Boolean, nullable=False, default=False, index=True)
    completed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from wizardlydo.models.task import Task

        return Task(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            due_at=self.due_at,
            priority=value_to_enum(self.priority, Priority, Priority.MEDIUM),
            is_completed=self.is_completed,
            completed_at=self.completed_at,
            category=self.category,
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            due_at=task.due_at,
            priority=enum_to_value(task.priority),
            is_completed=task.is_completed,
            completed_at=task.completed_at,
            category=task.category,
            created_at=task.created_at,
            updated_at=task.updated_at,
            deleted_at=task.deleted_at,
        )


class WizardDB(Base):
    """Database model for a user's wizard."""

    __tablename__ = "wizards"

    # Primary key (one wizard per user)
    user_id = Column(String, primary_key=True)

    name = Column(String, nullable=False, default="")

    # Progression
    level = Column(Integer, nullable=False, default=1)
    experience = Column(Integer, nullable=False, default=0)
    health = Column(Integer, nullable=False)
    max_health = Column(Integer, nullable=False)
    stamina = Column(Integer, nullable=False)
    max_stamina = Column(Integer, nullable=False)

    # Streaks and revival
    consecutive_tasks_completed = Column(Integer, nullable=False, default=0)
    total_tasks_completed = Column(Integer, nullable=False, default=0)
    revival_progress = Column(Integer, nullable=False, default=0)
    last_task_completed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from wizardlydo.models.wizard import WizardState
        return WizardState(
            user_id=self.user_id,
            name=self.name,
            level=self.level,
            experience=self.experience,
            health=self.health,
            max_health=self.max_health,
            stamina=self.stamina,
            max_stamina=self.max_stamina,
            consecutive_tasks_completed=self.consecutive_tasks_completed,
            total_tasks_completed=self.total_tasks_completed,
            revival_progress=self.revival_progress,
            last_task_completed_at=self.last_task_completed_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, wizard):
        """Create database model from Pydantic model."""
        return cls(
            user_id=wizard.user_id,
            name=wizard.name,
            level=wizard.level,
            experience=wizard.experience,
            health=wizard.health,
            max_health=wizard.max_health,
            stamina=wizard.stamina,
            max_stamina=wizard.max_stamina,
            consecutive_tasks_completed=wizard.consecutive_tasks_completed,
            total_tasks_completed=wizard.total_tasks_completed,
            revival_progress=wizard.revival_progress,
            last_task_completed_at=wizard.last_task_completed_at,
            created_at=wizard.created_at,
            updated_at=wizard.updated_at,
        )


class ScheduledReminderDB(Base):
    """One reminder instant currently scheduled for a task."""

    __tablename__ = "scheduled_reminders"
    __table_args__ = (
        UniqueConstraint("task_id", "remind_at", name="uq_scheduled_reminder_task_instant"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    remind_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
