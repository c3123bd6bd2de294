"""Constants for WizardlyDo.

This module centralizes all magic numbers and default values used throughout the application.
"""

from datetime import timedelta

from wizardlydo.models.task import Priority


# Level caps
MAX_LEVEL = 30
EXP_PER_LEVEL = 1000

# Health / stamina caps
BASE_HEALTH = 100
HEALTH_PER_LEVEL = 20
BASE_STAMINA = 100
STAMINA_PER_LEVEL = 1
INITIAL_STAMINA_FRACTION = 0.5
LEVEL_UP_STAMINA_BONUS = 10

# Task completion rewards
BASE_XP_GAIN = 25
BASE_HEALTH_GAIN = 5
BASE_STAMINA_COST = 3

# Multipliers applied to the base rewards/costs, per priority
COMPLETION_MULTIPLIERS = {
    Priority.LOW: {"health": 0.5, "stamina": 1.0, "experience": 0.7},
    Priority.MEDIUM: {"health": 1.0, "stamina": 1.5, "experience": 1.0},
    Priority.HIGH: {"health": 1.5, "stamina": 2.0, "experience": 1.5},
}

# Overdue damage per elapsed overdue day
OVERDUE_DAMAGE_PER_DAY = {
    Priority.LOW: 5,
    Priority.MEDIUM: 10,
    Priority.HIGH: 15,
}

# Revival
REVIVAL_THRESHOLD = 3
REVIVAL_HEALTH_FRACTION = 0.5

# Reminder offsets before the due instant (0 = the due instant itself)
DEFAULT_REMINDER_OFFSETS = (
    timedelta(days=3),
    timedelta(days=1),
    timedelta(hours=1),
    timedelta(0),
)
