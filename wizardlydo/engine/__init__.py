"""Progression and reminder engine for WizardlyDo."""

from wizardlydo.engine.clock import Clock, SystemClock, FixedClock
from wizardlydo.engine.errors import EngineError, TaskNotFoundError, WizardNotFoundError, PersistenceError
from wizardlydo.engine.wizard_state import TaskCompleted, TaskOverdue, TaskDeleted, apply_event, new_wizard
from wizardlydo.engine.reminder_planner import plan_reminders
from wizardlydo.engine.reminder_scheduler import ReminderScheduler, InMemoryReminderStore, LoggingReminderDispatcher
from wizardlydo.engine.orchestrator import Orchestrator, days_overdue

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "EngineError",
    "TaskNotFoundError",
    "WizardNotFoundError",
    "PersistenceError",
    "TaskCompleted",
    "TaskOverdue",
    "TaskDeleted",
    "apply_event",
    "new_wizard",
    "plan_reminders",
    "ReminderScheduler",
    "InMemoryReminderStore",
    "LoggingReminderDispatcher",
    "Orchestrator",
    "days_overdue",
]
