"""Tests for the Orchestrator (task lifecycle -> wizard + reminders)."""

import threading
import uuid
import pytest
from datetime import datetime, timedelta

from wizardlydo.engine.clock import FixedClock
from wizardlydo.engine.errors import PersistenceError, TaskNotFoundError, WizardNotFoundError
from wizardlydo.engine.orchestrator import Orchestrator, days_overdue
from wizardlydo.engine.reminder_scheduler import InMemoryReminderStore, ReminderScheduler
from wizardlydo.models.events import WizardEventType
from wizardlydo.models.task import Task, Priority

NOW = datetime(2026, 3, 2, 9, 0, 0)


class DictTaskStore:
    """Minimal in-memory TaskStore."""

    def __init__(self):
        self.tasks = {}

    def get(self, task_id):
        return self.tasks.get(task_id)

    def get_open(self, user_id):
        return [t for t in self.tasks.values() if t.user_id == user_id and not t.is_completed and not t.is_deleted]

    def save(self, task):
        self.tasks[task.id] = task
        return task

    def delete(self, task_id):
        task = self.tasks.get(task_id)
        if task is None:
            return False
        self.tasks[task_id] = task.model_copy(update={"deleted_at": NOW})
        return True


class DictWizardStore:
    """Minimal in-memory WizardStore."""

    def __init__(self):
        self.wizards = {}

    def get(self, user_id):
        return self.wizards.get(user_id)

    def save(self, wizard):
        self.wizards[wizard.user_id] = wizard
        return wizard


class BrokenTaskStore(DictTaskStore):
    """TaskStore whose writes always fail."""

    def save(self, task):
        raise OSError("disk full")


class FlakyTaskStore(DictTaskStore):
    """TaskStore that fails the first write of a completed task."""

    def __init__(self):
        super().__init__()
        self.fail_next_completion = True

    def save(self, task):
        if task.is_completed and self.fail_next_completion:
            self.fail_next_completion = False
            raise OSError("connection reset")
        return super().save(task)


class FlakyWizardStore(DictWizardStore):
    """WizardStore whose next write fails once armed."""

    def __init__(self):
        super().__init__()
        self.fail_next = False

    def save(self, wizard):
        if self.fail_next:
            self.fail_next = False
            raise OSError("connection reset")
        return super().save(wizard)


def _task(base, **overrides):
    return Task(**{**base, "id": str(uuid.uuid4()), **overrides})


class TestDaysOverdue:
    """Test days_overdue()."""

    def test_not_due_yet(self, sample_task_base):
        task = Task(**{**sample_task_base, "due_at": NOW + timedelta(hours=1)})
        assert days_overdue(task, NOW) == 0

    def test_exactly_at_due_instant(self, sample_task_base):
        task = Task(**{**sample_task_base, "due_at": NOW})
        assert days_overdue(task, NOW) == 0

    def test_partial_day_does_not_count(self, sample_task_base):
        task = Task(**{**sample_task_base, "due_at": NOW - timedelta(hours=23, minutes=59)})
        assert days_overdue(task, NOW) == 0

    def test_whole_days(self, sample_task_base):
        task = Task(**{**sample_task_base, "due_at": NOW - timedelta(days=2)})
        assert days_overdue(task, NOW) == 2
        task = Task(**{**sample_task_base, "due_at": NOW - timedelta(days=2, seconds=1)})
        assert days_overdue(task, NOW) == 2

    def test_no_due_date_or_completed(self, sample_task, sample_task_base):
        assert days_overdue(sample_task, NOW) == 0
        done = Task(**{**sample_task_base, "due_at": NOW - timedelta(days=4), "is_completed": True})
        assert days_overdue(done, NOW) == 0


class TestWizardLifecycle:
    """Test wizard creation and lookup."""

    def test_create_wizard(self, orchestrator, test_user_id):
        """Creating a wizard persists a level-1 wizard."""
        created = orchestrator.create_wizard(test_user_id, "Merlin")

        assert created.level == 1
        assert created.name == "Merlin"
        assert orchestrator.current_wizard_state(test_user_id) == created

    def test_create_wizard_is_idempotent(self, orchestrator, test_user_id):
        """A second create returns the existing wizard unchanged."""
        first = orchestrator.create_wizard(test_user_id, "Merlin")
        second = orchestrator.create_wizard(test_user_id, "Gandalf")
        assert second == first

    def test_unknown_wizard(self, orchestrator):
        """Reading a wizard that does not exist raises WizardNotFoundError."""
        with pytest.raises(WizardNotFoundError):
            orchestrator.current_wizard_state("nobody")


class TestTaskUpserted:
    """Test task create/edit handling."""

    def test_upsert_saves_and_schedules(self, orchestrator, task_repository, dispatcher, task_due_in_five_days):
        """A new task is stored and its reminders scheduled."""
        diff = orchestrator.handle_task_upserted(task_due_in_five_days)

        assert task_repository.get(task_due_in_five_days.id) is not None
        assert len(diff.scheduled) == 4
        assert len(dispatcher.scheduled) == 4

    def test_edit_due_date_replans(self, orchestrator, clock, sample_task_base):
        """Moving the due date closer cancels the far reminders."""
        task = Task(**{**sample_task_base, "due_at": NOW + timedelta(days=3, hours=2)})
        orchestrator.handle_task_upserted(task)

        near = NOW + timedelta(minutes=10)
        diff = orchestrator.handle_task_upserted(task.model_copy(update={"due_at": near}))

        assert len(diff.cancelled) == 4
        assert diff.scheduled == [near]
        assert orchestrator.scheduler.scheduled_for(task.id) == [near]


class TestTaskCompleted:
    """Test task completion handling."""

    def test_completion_rewards_wizard(self, orchestrator, task_repository, test_user_id, sample_task_base):
        """Completing a HIGH task grants HIGH experience and cancels its reminders."""
        orchestrator.create_wizard(test_user_id)
        task = Task(**{**sample_task_base, "priority": Priority.HIGH, "due_at": NOW + timedelta(days=5)})
        orchestrator.handle_task_upserted(task)

        events = orchestrator.handle_task_completed(task)

        wizard = orchestrator.current_wizard_state(test_user_id)
        assert events == []
        assert wizard.experience == 37
        assert wizard.health == 100
        assert wizard.consecutive_tasks_completed == 1

        stored = task_repository.get(task.id)
        assert stored.is_completed
        assert stored.completed_at == NOW
        assert orchestrator.scheduler.scheduled_for(task.id) == []

    def test_completing_twice_grants_nothing(self, orchestrator, test_user_id, sample_task):
        """The second completion of the same task is ignored."""
        orchestrator.create_wizard(test_user_id)
        orchestrator.handle_task_upserted(sample_task)

        orchestrator.handle_task_completed(sample_task)
        assert orchestrator.handle_task_completed(sample_task) == []

        wizard = orchestrator.current_wizard_state(test_user_id)
        assert wizard.total_tasks_completed == 1
        assert wizard.experience == 25

    def test_completion_emits_level_up(self, orchestrator, wizard_repository, test_user_id, sample_task):
        """Events from the state machine are returned to the caller."""
        wizard = orchestrator.create_wizard(test_user_id)
        wizard_repository.save(wizard.model_copy(update={"experience": 990}))
        orchestrator.handle_task_upserted(sample_task)

        events = orchestrator.handle_task_completed(sample_task)

        assert [e.event_type for e in events] == [WizardEventType.LEVELED_UP.value]
        assert orchestrator.current_wizard_state(test_user_id).level == 2

    def test_unknown_task(self, orchestrator, test_user_id, sample_task):
        """Completing a task that was never stored raises TaskNotFoundError."""
        orchestrator.create_wizard(test_user_id)
        with pytest.raises(TaskNotFoundError):
            orchestrator.handle_task_completed(sample_task)

    def test_missing_wizard(self, orchestrator, sample_task):
        """Completing a task for a user without a wizard raises WizardNotFoundError."""
        orchestrator.handle_task_upserted(sample_task)
        with pytest.raises(WizardNotFoundError):
            orchestrator.handle_task_completed(sample_task)

    def test_dead_wizard_revives_after_three_completions(
        self, orchestrator, wizard_repository, test_user_id, sample_task_base
    ):
        """Three completions while dead revive the wizard at half health."""
        wizard = orchestrator.create_wizard(test_user_id)
        wizard_repository.save(wizard.model_copy(update={"health": 0}))

        all_events = []
        for _ in range(3):
            task = _task(sample_task_base)
            orchestrator.handle_task_upserted(task)
            all_events.extend(orchestrator.handle_task_completed(task))

        revived = orchestrator.current_wizard_state(test_user_id)
        assert revived.health == 50
        assert revived.revival_progress == 0
        assert revived.experience == 0
        assert [e.event_type for e in all_events] == [WizardEventType.REVIVED.value]


class TestOverdueCheck:
    """Test overdue handling."""

    def test_overdue_task_damages_wizard(self, orchestrator, test_user_id, sample_task_base):
        """A MEDIUM task just over a day late costs one day of damage."""
        orchestrator.create_wizard(test_user_id)
        task = Task(**{**sample_task_base, "due_at": NOW - timedelta(days=1, hours=1)})
        orchestrator.handle_task_upserted(task)

        events = orchestrator.handle_task_overdue_check(task)

        assert events == []
        assert orchestrator.current_wizard_state(test_user_id).health == 90

    def test_not_yet_due_does_nothing(self, orchestrator, test_user_id, task_due_in_five_days):
        orchestrator.create_wizard(test_user_id)
        orchestrator.handle_task_upserted(task_due_in_five_days)

        assert orchestrator.handle_task_overdue_check(task_due_in_five_days) == []
        assert orchestrator.current_wizard_state(test_user_id).health == 100

    def test_lethal_overdue(self, orchestrator, wizard_repository, test_user_id, sample_task_base):
        """Health 10 and a MEDIUM task 2 days overdue kills the wizard."""
        wizard = orchestrator.create_wizard(test_user_id)
        wizard_repository.save(wizard.model_copy(update={"health": 10}))
        task = Task(**{**sample_task_base, "due_at": NOW - timedelta(days=2)})
        orchestrator.handle_task_upserted(task)

        events = orchestrator.handle_task_overdue_check(task)

        assert [e.event_type for e in events] == [WizardEventType.DIED.value]
        assert orchestrator.current_wizard_state(test_user_id).health == 0

    def test_sweep_checks_every_open_task(self, orchestrator, clock, test_user_id, sample_task_base):
        """The sweep skips completed and future tasks."""
        orchestrator.create_wizard(test_user_id)
        late_low = _task(sample_task_base, priority=Priority.LOW, due_at=NOW - timedelta(days=1, hours=3))
        late_high = _task(sample_task_base, priority=Priority.HIGH, due_at=NOW - timedelta(days=1, hours=2))
        future = _task(sample_task_base, due_at=NOW + timedelta(days=1))
        done = _task(sample_task_base, due_at=NOW - timedelta(days=9), is_completed=True, completed_at=NOW)
        for task in (late_low, late_high, future, done):
            orchestrator.handle_task_upserted(task)

        orchestrator.run_overdue_sweep(test_user_id)

        assert orchestrator.current_wizard_state(test_user_id).health == 100 - 5 - 15

    def test_sweep_unknown_wizard(self, orchestrator):
        with pytest.raises(WizardNotFoundError):
            orchestrator.run_overdue_sweep("nobody")


class TestTaskDeleted:
    """Test task deletion handling."""

    def test_delete_cancels_reminders_and_keeps_wizard(
        self, orchestrator, task_repository, test_user_id, task_due_in_five_days
    ):
        orchestrator.create_wizard(test_user_id)
        scheduled = orchestrator.handle_task_upserted(task_due_in_five_days).scheduled
        before = orchestrator.current_wizard_state(test_user_id)

        diff = orchestrator.handle_task_deleted(task_due_in_five_days.id)

        assert diff.cancelled == scheduled
        assert task_repository.get(task_due_in_five_days.id) is None
        assert orchestrator.current_wizard_state(test_user_id) == before

    def test_delete_unknown_task(self, orchestrator):
        with pytest.raises(TaskNotFoundError):
            orchestrator.handle_task_deleted("missing")

    def test_deleted_task_cannot_be_completed(self, orchestrator, test_user_id, sample_task):
        orchestrator.create_wizard(test_user_id)
        orchestrator.handle_task_upserted(sample_task)
        orchestrator.handle_task_deleted(sample_task.id)

        with pytest.raises(TaskNotFoundError):
            orchestrator.handle_task_completed(sample_task)

    def test_deleted_task_id_cannot_be_upserted(self, orchestrator, task_repository, sample_task):
        """Re-saving a deleted task is reported as a missing task."""
        orchestrator.handle_task_upserted(sample_task)
        orchestrator.handle_task_deleted(sample_task.id)

        with pytest.raises(TaskNotFoundError):
            orchestrator.handle_task_upserted(sample_task.model_copy(update={"title": "Again"}))
        assert task_repository.get(sample_task.id) is None

    def test_other_users_task_id_cannot_be_upserted(self, orchestrator, task_repository, sample_task):
        orchestrator.handle_task_upserted(sample_task)

        with pytest.raises(TaskNotFoundError):
            orchestrator.handle_task_upserted(sample_task.model_copy(update={"user_id": "intruder"}))
        assert task_repository.get(sample_task.id).user_id == sample_task.user_id


class TestPersistenceFailures:
    """Store failures surface as PersistenceError."""

    def test_save_failure_is_wrapped(self, sample_task):
        orchestrator = Orchestrator(
            wizards=DictWizardStore(),
            tasks=BrokenTaskStore(),
            clock=FixedClock(NOW),
        )
        with pytest.raises(PersistenceError) as exc_info:
            orchestrator.handle_task_upserted(sample_task)
        assert isinstance(exc_info.value.__cause__, OSError)

    def _orchestrator(self, wizards, tasks):
        return Orchestrator(
            wizards=wizards,
            tasks=tasks,
            scheduler=ReminderScheduler(store=InMemoryReminderStore()),
            clock=FixedClock(NOW),
        )

    def test_failed_task_write_leaves_wizard_unrewarded(self, test_user_id, sample_task):
        """A completion whose task write fails can be retried without paying twice."""
        wizards = DictWizardStore()
        tasks = FlakyTaskStore()
        orchestrator = self._orchestrator(wizards, tasks)
        orchestrator.create_wizard(test_user_id)
        orchestrator.handle_task_upserted(sample_task)

        with pytest.raises(PersistenceError):
            orchestrator.handle_task_completed(sample_task)
        assert wizards.get(test_user_id).experience == 0
        assert not tasks.get(sample_task.id).is_completed

        orchestrator.handle_task_completed(sample_task)
        orchestrator.handle_task_completed(sample_task)

        wizard = wizards.get(test_user_id)
        assert wizard.experience == 25
        assert wizard.total_tasks_completed == 1

    def test_failed_wizard_write_reopens_task(self, test_user_id, sample_task):
        """If the wizard cannot be saved the task goes back to open."""
        wizards = FlakyWizardStore()
        tasks = DictTaskStore()
        orchestrator = self._orchestrator(wizards, tasks)
        orchestrator.create_wizard(test_user_id)
        orchestrator.handle_task_upserted(sample_task)

        wizards.fail_next = True
        with pytest.raises(PersistenceError) as exc_info:
            orchestrator.handle_task_completed(sample_task)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not tasks.get(sample_task.id).is_completed
        assert wizards.get(test_user_id).total_tasks_completed == 0

        orchestrator.handle_task_completed(sample_task)
        orchestrator.handle_task_completed(sample_task)

        assert tasks.get(sample_task.id).is_completed
        wizard = wizards.get(test_user_id)
        assert wizard.experience == 25
        assert wizard.total_tasks_completed == 1


class TestConcurrency:
    """Concurrent completions for one wizard are serialized."""

    def test_parallel_completions_are_all_counted(self, test_user_id, sample_task_base):
        tasks = DictTaskStore()
        orchestrator = Orchestrator(
            wizards=DictWizardStore(),
            tasks=tasks,
            scheduler=ReminderScheduler(store=InMemoryReminderStore()),
            clock=FixedClock(NOW),
        )
        orchestrator.create_wizard(test_user_id)
        batch = [_task(sample_task_base, priority=Priority.LOW) for _ in range(20)]
        for task in batch:
            orchestrator.handle_task_upserted(task)

        barrier = threading.Barrier(len(batch))

        def complete(task):
            barrier.wait()
            orchestrator.handle_task_completed(task)

        threads = [threading.Thread(target=complete, args=(task,)) for task in batch]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        wizard = orchestrator.current_wizard_state(test_user_id)
        assert wizard.total_tasks_completed == 20
        assert wizard.experience == 20 * 17
