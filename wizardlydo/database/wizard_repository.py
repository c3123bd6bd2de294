"""Repository for Wizard database operations."""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from wizardlydo.models.wizard import WizardState
from wizardlydo.database.models import WizardDB

logger = logging.getLogger(__name__)


class WizardRepository:
    """Repository for WizardState database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[WizardState]:
        """Get the wizard owned by a user."""
        wizard_db = self.db.query(WizardDB).filter(WizardDB.user_id == user_id).first()
        return wizard_db.to_pydantic() if wizard_db else None

    def save(self, wizard: WizardState) -> WizardState:
        """Create or update a wizard (upsert).

        Args:
            wizard: Wizard state to persist

        Returns:
            Persisted WizardState
        """
        wizard_db = self.db.query(WizardDB).filter(WizardDB.user_id == wizard.user_id).first()

        if wizard_db:
            wizard_db.name = wizard.name
            wizard_db.level = wizard.level
            wizard_db.experience = wizard.experience
            wizard_db.health = wizard.health
            wizard_db.max_health = wizard.max_health
            wizard_db.stamina = wizard.stamina
            wizard_db.max_stamina = wizard.max_stamina
            wizard_db.consecutive_tasks_completed = wizard.consecutive_tasks_completed
            wizard_db.total_tasks_completed = wizard.total_tasks_completed
            wizard_db.revival_progress = wizard.revival_progress
            wizard_db.last_task_completed_at = wizard.last_task_completed_at
            wizard_db.updated_at = wizard.updated_at
            action = "update"
        else:
            wizard_db = WizardDB.from_pydantic(wizard)
            self.db.add(wizard_db)
            action = "create"

        try:
            self.db.commit()
            self.db.refresh(wizard_db)
            logger.debug(
                f"Saved wizard {wizard.user_id} ({action}): level {wizard.level}, "
                f"health {wizard.health}/{wizard.max_health}"
            )
            return wizard_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to {action} wizard {wizard.user_id}: {type(e).__name__}: {str(e)}")
            raise
