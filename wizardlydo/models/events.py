"""WizardEvent data model for WizardlyDo."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class WizardEventType(str, Enum):
    """Wizard event type enumeration."""
    LEVELED_UP = "leveled_up"
    DIED = "died"
    REVIVED = "revived"


class WizardEvent(BaseModel):
    """Event emitted by the wizard state machine for the notification layer to render."""

    id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Event timestamp")
    event_type: WizardEventType = Field(..., description="Type of wizard event")
    user_id: str = Field(..., description="Wizard (owning user) this event relates to")
    level: Optional[int] = Field(None, description="Wizard level after the event")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional event details")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
