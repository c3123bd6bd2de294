"""Orchestrator for WizardlyDo.

The façade the surrounding application calls for every task lifecycle event.
It derives the wizard event from the stored task and the current time, runs
the wizard state machine, persists the results, and re-plans the task's
reminders. Wizard events are returned for the presentation layer to render.

All collaborators (stores, scheduler, clock, progression constants) are
passed in at construction; the orchestrator keeps no state of its own beyond
the per-wizard locks that serialize mutations of one wizard.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, List, Optional, Protocol

from wizardlydo.config import ProgressionConfig
from wizardlydo.engine.clock import Clock, SystemClock
from wizardlydo.engine.errors import EngineError, PersistenceError, TaskNotFoundError, WizardNotFoundError
from wizardlydo.engine.locks import KeyedLocks
from wizardlydo.engine.reminder_scheduler import ReminderScheduler
from wizardlydo.engine.wizard_state import TaskCompleted, TaskOverdue, apply_event, new_wizard
from wizardlydo.engine import progression
from wizardlydo.models.events import WizardEvent
from wizardlydo.models.reminder import ReminderDiff
from wizardlydo.models.task import Task
from wizardlydo.models.wizard import WizardState

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    def get(self, task_id: str) -> Optional[Task]: ...

    def get_open(self, user_id: str) -> List[Task]: ...

    def save(self, task: Task) -> Task: ...

    def delete(self, task_id: str) -> bool: ...


class WizardStore(Protocol):
    def get(self, user_id: str) -> Optional[WizardState]: ...

    def save(self, wizard: WizardState) -> WizardState: ...


@contextmanager
def _persistence(action: str) -> Iterator[None]:
    """Report store failures as PersistenceError, keeping the original as the cause."""
    try:
        yield
    except EngineError:
        raise
    except Exception as e:
        logger.error(f"Failed to {action}: {type(e).__name__}: {str(e)}")
        raise PersistenceError(f"Failed to {action}") from e


def days_overdue(task: Task, now: datetime) -> int:
    """Whole days a task is overdue; a partial day does not count.

    Returns 0 when the task has no due date, is completed, or is not yet due.
    """
    if task.due_at is None or task.is_completed or now <= task.due_at:
        return 0
    return (now - task.due_at) // timedelta(days=1)


class Orchestrator:
    """Entry point for task lifecycle events."""

    def __init__(
        self,
        wizards: WizardStore,
        tasks: TaskStore,
        scheduler: Optional[ReminderScheduler] = None,
        clock: Optional[Clock] = None,
        config: Optional[ProgressionConfig] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.wizards = wizards
        self.tasks = tasks
        self.scheduler = scheduler or ReminderScheduler()
        self.clock = clock or SystemClock()
        self.config = config or progression.DEFAULT_CONFIG
        self._wizard_locks = locks if locks is not None else KeyedLocks()

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.clock.now()

    def _load_task(self, task_id: str) -> Task:
        with _persistence(f"load task {task_id}"):
            stored = self.tasks.get(task_id)
        if stored is None or stored.is_deleted:
            raise TaskNotFoundError(task_id)
        return stored

    def _load_wizard(self, wizard_id: str) -> WizardState:
        with _persistence(f"load wizard {wizard_id}"):
            wizard = self.wizards.get(wizard_id)
        if wizard is None:
            raise WizardNotFoundError(wizard_id)
        return wizard

    def create_wizard(self, user_id: str, name: str = "", now: Optional[datetime] = None) -> WizardState:
        """Create the level-1 wizard for a new user (returns the existing one if present)."""
        now = self._now(now)
        with self._wizard_locks.hold(user_id):
            with _persistence(f"load wizard {user_id}"):
                existing = self.wizards.get(user_id)
            if existing is not None:
                return existing
            with _persistence(f"create wizard {user_id}"):
                created = self.wizards.save(new_wizard(user_id, name, self.config, now))
            logger.info(f"Created wizard for user {user_id}")
            return created

    def current_wizard_state(self, wizard_id: str) -> WizardState:
        """Read-only view of a wizard's current state."""
        return self._load_wizard(wizard_id)

    def handle_task_upserted(self, task: Task, now: Optional[datetime] = None) -> ReminderDiff:
        """Persist a created or edited task and bring its reminders up to date."""
        now = self._now(now)
        with _persistence(f"save task {task.id}"):
            saved = self.tasks.save(task)
        return self.scheduler.on_task_upserted(saved, now)

    def handle_task_completed(self, task: Task, now: Optional[datetime] = None) -> List[WizardEvent]:
        """Complete a task: reward (or revive) the wizard and cancel the task's reminders.

        Completing an already-completed task grants nothing and returns no events.
        """
        now = self._now(now)
        with self._wizard_locks.hold(task.user_id):
            stored = self._load_task(task.id)
            if stored.is_completed:
                logger.debug(f"Task {stored.id} already completed; no progression applied")
                self.scheduler.on_task_upserted(stored, now)
                return []

            wizard = self._load_wizard(stored.user_id)
            result = apply_event(wizard, TaskCompleted(priority=stored.priority), self.config, now)
            completed = stored.model_copy(update={"is_completed": True, "completed_at": now, "updated_at": now})

            with _persistence(f"save completion of task {stored.id}"):
                completed = self.tasks.save(completed)
                try:
                    self.wizards.save(result.state)
                except Exception:
                    # The task and the wizard are stored together or not at all.
                    self.tasks.save(stored)
                    raise

        self.scheduler.on_task_upserted(completed, now)
        return result.events

    def handle_task_overdue_check(self, task: Task, now: Optional[datetime] = None) -> List[WizardEvent]:
        """Damage the wizard if the task is past due and still open.

        Intended to be invoked periodically (for example daily) per open task.
        """
        now = self._now(now)
        with self._wizard_locks.hold(task.user_id):
            stored = self._load_task(task.id)
            days = days_overdue(stored, now)
            if days == 0:
                return []

            wizard = self._load_wizard(stored.user_id)
            result = apply_event(wizard, TaskOverdue(priority=stored.priority, days_overdue=days), self.config, now)
            with _persistence(f"save wizard {wizard.user_id}"):
                self.wizards.save(result.state)

        logger.debug(f"Task {stored.id} overdue by {days} day(s)")
        self.scheduler.on_task_upserted(stored, now)
        return result.events

    def run_overdue_sweep(self, user_id: str, now: Optional[datetime] = None) -> List[WizardEvent]:
        """Run the overdue check over every open task of a user."""
        now = self._now(now)
        self._load_wizard(user_id)
        with _persistence(f"list open tasks for user {user_id}"):
            open_tasks = self.tasks.get_open(user_id)

        events: List[WizardEvent] = []
        for task in sorted(open_tasks, key=lambda t: (t.due_at or datetime.max, t.id)):
            events.extend(self.handle_task_overdue_check(task, now))
        return events

    def handle_task_deleted(self, task_id: str) -> ReminderDiff:
        """Delete a task and cancel its reminders. The wizard is not affected."""
        self._load_task(task_id)
        with _persistence(f"delete task {task_id}"):
            self.tasks.delete(task_id)
        return self.scheduler.on_task_deleted(task_id)
