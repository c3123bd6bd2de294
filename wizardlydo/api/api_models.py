"""Request/response models for the WizardlyDo API."""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from wizardlydo.models.events import WizardEvent
from wizardlydo.models.reminder import ReminderDiff
from wizardlydo.models.task import Task, Priority
from wizardlydo.models.wizard import WizardState


def _to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class WizardCreateRequest(BaseModel):
    """Request model for creating a user's wizard."""
    user_id: str = Field(..., min_length=1, description="Owning user ID")
    name: str = Field("", description="Wizard display name")


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""
    user_id: str = Field(..., min_length=1, description="Owning user ID")
    title: str = Field(..., min_length=1, description="Task title")
    description: Optional[str] = None
    due_at: Optional[datetime] = Field(None, description="Due instant (timezone-aware values are converted to UTC)")
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None

    @field_validator("due_at")
    @classmethod
    def _normalize_due_at(cls, v, info):
        return _to_naive_utc(v)


class TaskUpdateRequest(BaseModel):
    """Request model for editing a task. Only provided fields are changed."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_at: Optional[datetime] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None

    @field_validator("due_at")
    @classmethod
    def _normalize_due_at(cls, v, info):
        return _to_naive_utc(v)


class TaskResponse(BaseModel):
    """Response for task create/edit."""
    task: Task
    reminders: ReminderDiff


class CompletionResponse(BaseModel):
    """Response for task completion."""
    task: Task
    wizard: WizardState
    events: List[WizardEvent]


class OverdueCheckResponse(BaseModel):
    """Response for an overdue sweep."""
    wizard: WizardState
    events: List[WizardEvent]


class DeleteResponse(BaseModel):
    """Response for task deletion."""
    task_id: str
    cancelled: List[datetime]


class RemindersResponse(BaseModel):
    """Reminder instants currently scheduled for a task."""
    task_id: str
    instants: List[datetime]
