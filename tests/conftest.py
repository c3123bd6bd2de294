"""Pytest fixtures and configuration for WizardlyDo tests."""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from wizardlydo.database.database import Base, get_db
from wizardlydo.database.repository import TaskRepository
from wizardlydo.database.wizard_repository import WizardRepository
from wizardlydo.database.reminder_repository import ScheduledReminderRepository
from wizardlydo.engine.clock import FixedClock
from wizardlydo.engine.orchestrator import Orchestrator
from wizardlydo.engine.reminder_scheduler import ReminderScheduler
from wizardlydo.engine.wizard_state import new_wizard
from wizardlydo.models.task import Task, Priority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Fixed "now" shared by tests that need deterministic time
NOW = datetime(2026, 3, 2, 9, 0, 0)


class RecordingDispatcher:
    """ReminderDispatcher that records calls instead of firing notifications."""

    def __init__(self):
        self.scheduled = []
        self.cancelled = []

    def schedule_reminder(self, task, instant):
        self.scheduled.append((task.id, instant))

    def cancel_reminder(self, task_id, instant):
        self.cancelled.append((task_id, instant))

    def reset(self):
        self.scheduled.clear()
        self.cancelled.clear()


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Register models and create all tables
    from wizardlydo.database import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def wizard_repository(db_session: Session):
    """Create a WizardRepository instance for testing."""
    return WizardRepository(db_session)


@pytest.fixture
def reminder_repository(db_session: Session):
    """Create a ScheduledReminderRepository instance for testing."""
    return ScheduledReminderRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID (also the wizard ID)."""
    return "test-user-123"


@pytest.fixture
def clock():
    """Manually driven clock starting at NOW."""
    return FixedClock(NOW)


@pytest.fixture
def dispatcher():
    """Reminder dispatcher that records calls."""
    return RecordingDispatcher()


@pytest.fixture
def scheduler(dispatcher, reminder_repository):
    """ReminderScheduler backed by the test database."""
    return ReminderScheduler(dispatcher=dispatcher, store=reminder_repository)


@pytest.fixture
def orchestrator(wizard_repository, task_repository, scheduler, clock):
    """Orchestrator wired to the test database, recording dispatcher and fixed clock."""
    return Orchestrator(
        wizards=wizard_repository,
        tasks=task_repository,
        scheduler=scheduler,
        clock=clock,
    )


@pytest.fixture
def wizard(test_user_id):
    """A fresh level-1 wizard."""
    return new_wizard(test_user_id, "Merlin", now=NOW)


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "description": "Test description",
        "due_at": None,
        "priority": Priority.MEDIUM,
        "is_completed": False,
        "completed_at": None,
        "category": None,
        "created_at": NOW,
        "updated_at": NOW,
        "deleted_at": None,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def task_due_in_five_days(sample_task_base):
    """Create a task due five days after NOW (every default reminder is in the future)."""
    return Task(**{**sample_task_base, "due_at": NOW + timedelta(days=5)})


@pytest.fixture
def high_priority_task(sample_task_base):
    """Create a HIGH priority task."""
    return Task(**{**sample_task_base, "priority": Priority.HIGH})


@pytest.fixture
def test_client(db_session: Session, clock):
    """Create a FastAPI test client with overridden database and clock dependencies."""
    from wizardlydo.api.app import app, get_clock

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
