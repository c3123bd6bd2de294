"""Wizard data model for WizardlyDo.

The wizard is the per-user character whose stats move with task outcomes.
A wizard is dead whenever its health is 0; while dead, completed tasks count
towards ``revival_progress`` instead of granting stats.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class WizardState(BaseModel):
    """Snapshot of one wizard's progression stats."""

    user_id: str = Field(..., description="Owning user ID (also the wizard ID)")
    name: str = Field("", description="Wizard display name")
    level: int = Field(1, ge=1, description="Current level")
    experience: int = Field(0, ge=0, description="Experience accumulated within the current level")
    health: int = Field(..., ge=0, description="Current health")
    max_health: int = Field(..., ge=1, description="Health cap for the current level")
    stamina: int = Field(..., ge=0, description="Current stamina")
    max_stamina: int = Field(..., ge=1, description="Stamina cap for the current level")
    consecutive_tasks_completed: int = Field(0, ge=0, description="Completions since the last missed task")
    total_tasks_completed: int = Field(0, ge=0, description="Lifetime completions")
    revival_progress: int = Field(0, ge=0, description="Completions counted towards revival while dead")
    last_task_completed_at: Optional[datetime] = Field(None, description="Timestamp of the last completion")
    created_at: datetime = Field(..., description="Wizard creation timestamp")
    updated_at: datetime = Field(..., description="Wizard last update timestamp")

    @property
    def is_alive(self) -> bool:
        return self.health > 0
