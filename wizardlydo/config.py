"""Runtime configuration for WizardlyDo.

Tunable progression constants live on ``ProgressionConfig`` so they can be
passed explicitly into the engine. ``from_env`` overlays environment
variables (optionally loaded from ``.env``) on top of the defaults.
"""

import os
from typing import Dict
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from wizardlydo.models.task import Priority
from wizardlydo.models import constants

load_dotenv()

ENV_PREFIX = "WIZARDLYDO_"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class ProgressionConfig(BaseModel):
    """Every tunable number used by the progression calculator and state machine."""

    max_level: int = Field(constants.MAX_LEVEL, ge=1)
    exp_per_level: int = Field(constants.EXP_PER_LEVEL, ge=1)

    base_health: int = Field(constants.BASE_HEALTH, ge=1)
    health_per_level: int = Field(constants.HEALTH_PER_LEVEL, ge=0)
    base_stamina: int = Field(constants.BASE_STAMINA, ge=1)
    stamina_per_level: int = Field(constants.STAMINA_PER_LEVEL, ge=0)
    initial_stamina_fraction: float = Field(constants.INITIAL_STAMINA_FRACTION, ge=0.0, le=1.0)
    level_up_stamina_bonus: int = Field(constants.LEVEL_UP_STAMINA_BONUS, ge=0)

    base_xp_gain: int = Field(constants.BASE_XP_GAIN, ge=1)
    base_health_gain: int = Field(constants.BASE_HEALTH_GAIN, ge=0)
    base_stamina_cost: int = Field(constants.BASE_STAMINA_COST, ge=0)
    completion_multipliers: Dict[Priority, Dict[str, float]] = Field(
        default_factory=lambda: {p: dict(m) for p, m in constants.COMPLETION_MULTIPLIERS.items()}
    )
    overdue_damage_per_day: Dict[Priority, int] = Field(
        default_factory=lambda: dict(constants.OVERDUE_DAMAGE_PER_DAY)
    )

    revival_threshold: int = Field(constants.REVIVAL_THRESHOLD, ge=1)
    revival_health_fraction: float = Field(constants.REVIVAL_HEALTH_FRACTION, gt=0.0, le=1.0)

    @classmethod
    def from_env(cls) -> "ProgressionConfig":
        """Build a config from ``WIZARDLYDO_*`` environment variables."""
        return cls(
            max_level=_env_int("MAX_LEVEL", constants.MAX_LEVEL),
            exp_per_level=_env_int("EXP_PER_LEVEL", constants.EXP_PER_LEVEL),
            revival_threshold=_env_int("REVIVAL_THRESHOLD", constants.REVIVAL_THRESHOLD),
            revival_health_fraction=_env_float("REVIVAL_HEALTH_FRACTION", constants.REVIVAL_HEALTH_FRACTION),
        )
