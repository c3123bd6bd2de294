"""Reminder data models for WizardlyDo."""

from datetime import datetime
from typing import List
from pydantic import BaseModel, Field


class ReminderPlan(BaseModel):
    """Future reminder instants computed for one task."""

    task_id: str = Field(..., description="Task the plan belongs to")
    instants: List[datetime] = Field(
        default_factory=list,
        description="Ascending, duplicate-free instants strictly after planning time",
    )


class ReminderDiff(BaseModel):
    """Changes applied to a task's scheduled reminders."""

    task_id: str = Field(..., description="Task the diff belongs to")
    scheduled: List[datetime] = Field(default_factory=list, description="Instants newly scheduled")
    cancelled: List[datetime] = Field(default_factory=list, description="Instants cancelled")

    @property
    def is_empty(self) -> bool:
        return not self.scheduled and not self.cancelled
