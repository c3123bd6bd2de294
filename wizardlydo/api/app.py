"""FastAPI web application for WizardlyDo."""

import logging
from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy.orm import Session

from wizardlydo.api.api_models import (
    CompletionResponse,
    DeleteResponse,
    OverdueCheckResponse,
    RemindersResponse,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
    WizardCreateRequest,
)
from wizardlydo.config import ProgressionConfig
from wizardlydo.database.database import get_db
from wizardlydo.database.reminder_repository import ScheduledReminderRepository
from wizardlydo.database.repository import TaskRepository
from wizardlydo.database.wizard_repository import WizardRepository
from wizardlydo.engine.clock import Clock, SystemClock
from wizardlydo.engine.errors import EngineError, PersistenceError, TaskNotFoundError, WizardNotFoundError
from wizardlydo.engine.locks import KeyedLocks
from wizardlydo.engine.orchestrator import Orchestrator
from wizardlydo.engine.reminder_scheduler import LoggingReminderDispatcher, ReminderScheduler
from wizardlydo.models.task import Task
from wizardlydo.models.task_factory import create_task_base
from wizardlydo.models.wizard import WizardState

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="WizardlyDo API",
    description="To-do list where completing tasks levels up your wizard",
    version="0.1.0"
)

progression_config = ProgressionConfig.from_env()
reminder_dispatcher = LoggingReminderDispatcher()

# Shared across requests so concurrent requests on one wizard/task serialize.
wizard_locks = KeyedLocks()
reminder_locks = KeyedLocks()

system_clock = SystemClock()


def get_clock() -> Clock:
    """Clock dependency (overridden in tests)."""
    return system_clock


def get_orchestrator(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> Orchestrator:
    """Build an Orchestrator bound to the request's database session."""
    scheduler = ReminderScheduler(
        dispatcher=reminder_dispatcher,
        store=ScheduledReminderRepository(db),
        locks=reminder_locks,
    )
    return Orchestrator(
        wizards=WizardRepository(db),
        tasks=TaskRepository(db),
        scheduler=scheduler,
        clock=clock,
        config=progression_config,
        locks=wizard_locks,
    )


def _raise_http(e: EngineError) -> None:
    if isinstance(e, (TaskNotFoundError, WizardNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PersistenceError):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _get_task(orchestrator: Orchestrator, task_id: str) -> Task:
    task = orchestrator.tasks.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {task_id} not found")
    return task


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/wizards", response_model=WizardState, status_code=status.HTTP_201_CREATED)
def create_wizard(request: WizardCreateRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Create the wizard for a user (returns the existing wizard if there is one)."""
    try:
        return orchestrator.create_wizard(request.user_id, request.name)
    except EngineError as e:
        _raise_http(e)


@app.get("/wizards/{user_id}", response_model=WizardState)
def get_wizard(user_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Get a user's wizard."""
    try:
        return orchestrator.current_wizard_state(user_id)
    except EngineError as e:
        _raise_http(e)


@app.post("/wizards/{user_id}/overdue-check", response_model=OverdueCheckResponse)
def overdue_check(user_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Apply overdue damage for every open, past-due task of a user."""
    try:
        events = orchestrator.run_overdue_sweep(user_id)
        return OverdueCheckResponse(wizard=orchestrator.current_wizard_state(user_id), events=events)
    except EngineError as e:
        _raise_http(e)


@app.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(request: TaskCreateRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Create a task and schedule its reminders."""
    now = orchestrator.clock.now()
    task = create_task_base(
        user_id=request.user_id,
        title=request.title,
        description=request.description,
        due_at=request.due_at,
        priority=request.priority,
        category=request.category,
        now=now,
    )
    try:
        diff = orchestrator.handle_task_upserted(task, now)
        return TaskResponse(task=_get_task(orchestrator, task.id), reminders=diff)
    except EngineError as e:
        _raise_http(e)


@app.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(task_id: str, request: TaskUpdateRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Edit a task and re-plan its reminders."""
    existing = _get_task(orchestrator, task_id)
    now = orchestrator.clock.now()

    updates = request.model_dump(exclude_unset=True)
    if updates.get("title") is None:
        updates.pop("title", None)
    updates["updated_at"] = now
    updated = existing.model_copy(update=updates)
    # Re-validate so enum values stay consistent with a freshly built Task.
    updated = Task(**updated.model_dump())

    try:
        diff = orchestrator.handle_task_upserted(updated, now)
        return TaskResponse(task=_get_task(orchestrator, task_id), reminders=diff)
    except EngineError as e:
        _raise_http(e)


@app.post("/tasks/{task_id}/complete", response_model=CompletionResponse)
def complete_task(task_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Complete a task, updating the owner's wizard."""
    task = _get_task(orchestrator, task_id)
    try:
        events = orchestrator.handle_task_completed(task)
        return CompletionResponse(
            task=_get_task(orchestrator, task_id),
            wizard=orchestrator.current_wizard_state(task.user_id),
            events=events,
        )
    except EngineError as e:
        _raise_http(e)


@app.delete("/tasks/{task_id}", response_model=DeleteResponse)
def delete_task(task_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Delete a task and cancel its reminders."""
    try:
        diff = orchestrator.handle_task_deleted(task_id)
        return DeleteResponse(task_id=task_id, cancelled=diff.cancelled)
    except EngineError as e:
        _raise_http(e)


@app.get("/tasks/{task_id}/reminders", response_model=RemindersResponse)
def get_task_reminders(task_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Reminder instants currently scheduled for a task."""
    _get_task(orchestrator, task_id)
    return RemindersResponse(task_id=task_id, instants=orchestrator.scheduler.scheduled_for(task_id))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
