"""Data models for WizardlyDo."""

from wizardlydo.models.task import Task, Priority
from wizardlydo.models.wizard import WizardState
from wizardlydo.models.events import WizardEvent, WizardEventType
from wizardlydo.models.reminder import ReminderPlan, ReminderDiff

__all__ = [
    "Task",
    "Priority",
    "WizardState",
    "WizardEvent",
    "WizardEventType",
    "ReminderPlan",
    "ReminderDiff",
]
