"""Reminder scheduling for WizardlyDo.

The scheduler owns the mapping from task ID to the reminder instants that are
currently scheduled for it, and is the only component that writes it. Each
task create/edit/complete re-plans the task and applies the plan as a diff:
instants no longer planned are cancelled, newly planned instants are
scheduled. Deleting a task cancels everything scheduled for it.

Actually firing (or cancelling) a notification is the dispatcher's job; the
scheduler only decides what should happen and when.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol, Sequence, Set

from wizardlydo.engine.locks import KeyedLocks
from wizardlydo.engine.reminder_planner import plan_reminders
from wizardlydo.models.constants import DEFAULT_REMINDER_OFFSETS
from wizardlydo.models.reminder import ReminderDiff
from wizardlydo.models.task import Task

logger = logging.getLogger(__name__)


class ReminderDispatcher(Protocol):
    """Boundary port that turns scheduling decisions into real timers."""

    def schedule_reminder(self, task: Task, instant: datetime) -> None: ...

    def cancel_reminder(self, task_id: str, instant: datetime) -> None: ...


class ReminderStore(Protocol):
    """Backing storage for the task ID -> scheduled instants mapping."""

    def get(self, task_id: str) -> Set[datetime]: ...

    def replace(self, task_id: str, instants: Set[datetime]) -> None: ...

    def delete(self, task_id: str) -> None: ...


class LoggingReminderDispatcher:
    """Dispatcher that only logs; used when no notification transport is wired in."""

    def schedule_reminder(self, task: Task, instant: datetime) -> None:
        logger.info(f"Reminder scheduled for task {task.id} at {instant.isoformat()}")

    def cancel_reminder(self, task_id: str, instant: datetime) -> None:
        logger.info(f"Reminder cancelled for task {task_id} at {instant.isoformat()}")


class InMemoryReminderStore:
    """Dictionary-backed ReminderStore."""

    def __init__(self):
        self._instants: Dict[str, Set[datetime]] = {}

    def get(self, task_id: str) -> Set[datetime]:
        return set(self._instants.get(task_id, ()))

    def replace(self, task_id: str, instants: Set[datetime]) -> None:
        self._instants[task_id] = set(instants)

    def delete(self, task_id: str) -> None:
        self._instants.pop(task_id, None)


class ReminderScheduler:
    """Keeps each task's scheduled reminders equal to its current plan."""

    def __init__(
        self,
        dispatcher: Optional[ReminderDispatcher] = None,
        store: Optional[ReminderStore] = None,
        offsets: Sequence[timedelta] = DEFAULT_REMINDER_OFFSETS,
        locks: Optional[KeyedLocks] = None,
    ):
        self.dispatcher = dispatcher or LoggingReminderDispatcher()
        self.store = store or InMemoryReminderStore()
        self.offsets = tuple(offsets)
        self._locks = locks if locks is not None else KeyedLocks()

    def scheduled_for(self, task_id: str) -> List[datetime]:
        """Instants currently scheduled for a task, ascending."""
        return sorted(self.store.get(task_id))

    def on_task_upserted(self, task: Task, now: datetime) -> ReminderDiff:
        """Re-plan a created/edited/completed task and apply the difference.

        Calling this twice with the same task and time schedules nothing the
        second time. The stored set is only replaced once every dispatch call
        has succeeded, so a failed dispatch is retried on the next upsert.
        """
        with self._locks.hold(task.id):
            plan = plan_reminders(task, now, self.offsets)
            current = self.store.get(task.id)
            wanted = set(plan.instants)

            diff = ReminderDiff(
                task_id=task.id,
                scheduled=sorted(wanted - current),
                cancelled=sorted(current - wanted),
            )
            if diff.is_empty:
                return diff

            for instant in diff.cancelled:
                self.dispatcher.cancel_reminder(task.id, instant)
            for instant in diff.scheduled:
                self.dispatcher.schedule_reminder(task, instant)

            if wanted:
                self.store.replace(task.id, wanted)
            else:
                self.store.delete(task.id)

            logger.debug(
                f"Reminders for task {task.id}: +{len(diff.scheduled)} -{len(diff.cancelled)}"
            )
            return diff

    def on_task_deleted(self, task_id: str) -> ReminderDiff:
        """Cancel every reminder scheduled for a task and forget it."""
        with self._locks.hold(task_id):
            current = self.store.get(task_id)
            diff = ReminderDiff(task_id=task_id, cancelled=sorted(current))
            for instant in diff.cancelled:
                self.dispatcher.cancel_reminder(task_id, instant)
            self.store.delete(task_id)
            if current:
                logger.debug(f"Cancelled {len(current)} reminders for deleted task {task_id}")
            return diff
