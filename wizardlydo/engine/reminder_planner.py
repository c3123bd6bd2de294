"""Reminder planning for WizardlyDo.

Computes the reminder instants for a task from its due instant. The plan is a
pure function of (task, now, offsets): recomputing it with the same inputs
always yields the same plan.
"""

from datetime import datetime, timedelta
from typing import Sequence

from wizardlydo.models.constants import DEFAULT_REMINDER_OFFSETS
from wizardlydo.models.reminder import ReminderPlan
from wizardlydo.models.task import Task


def plan_reminders(
    task: Task,
    now: datetime,
    offsets: Sequence[timedelta] = DEFAULT_REMINDER_OFFSETS,
) -> ReminderPlan:
    """Plan future reminders for a task.

    For each offset, the instant ``due_at - offset`` is kept only if it is
    strictly after ``now``. Past offsets are dropped silently. Offsets that
    land on the same instant collapse into one.

    Args:
        task: Task to plan for
        now: Planning time
        offsets: Non-negative offsets before the due instant

    Returns:
        ReminderPlan with ascending, duplicate-free instants (empty when the
        task has no due date, is completed, or is deleted)
    """
    if task.due_at is None or task.is_completed or task.is_deleted:
        return ReminderPlan(task_id=task.id)

    instants = set()
    for offset in offsets:
        # Negative offsets would fall after the due instant.
        instant = task.due_at - max(offset, timedelta(0))
        if instant > now:
            instants.add(instant)

    return ReminderPlan(task_id=task.id, instants=sorted(instants))
