"""Exceptions surfaced by the engine to its callers.

Numeric edge cases never raise; only unknown identifiers and persistence
failures propagate.
"""


class EngineError(Exception):
    """Base class for engine failures reported to the caller."""


class TaskNotFoundError(EngineError, LookupError):
    """The referenced task does not exist (or was deleted)."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class WizardNotFoundError(EngineError, LookupError):
    """No wizard exists for the referenced user."""

    def __init__(self, wizard_id: str):
        super().__init__(f"Wizard {wizard_id} not found")
        self.wizard_id = wizard_id


class PersistenceError(EngineError):
    """Task or wizard state could not be loaded or saved."""
