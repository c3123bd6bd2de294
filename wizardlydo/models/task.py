"""Task data model for WizardlyDo."""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field


class Priority(str, Enum):
    """Task priority enumeration (ordered low to high)."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this task (and its wizard)")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    due_at: Optional[datetime] = Field(None, description="Due instant (UTC, naive)")
    priority: Priority = Field(Priority.MEDIUM, description="Task priority")
    is_completed: bool = Field(False, description="Whether the task has been completed")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    category: Optional[str] = Field(None, description="Free-form task category")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
