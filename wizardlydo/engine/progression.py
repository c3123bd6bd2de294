"""Progression formulas for WizardlyDo.

Pure functions mapping levels to stat caps and task outcomes to stat deltas.
Every function is deterministic and side-effect free; out-of-range levels are
clamped rather than rejected.
"""

from typing import NamedTuple, Optional

from wizardlydo.config import ProgressionConfig
from wizardlydo.models.task import Priority
from wizardlydo.models.wizard import WizardState


DEFAULT_CONFIG = ProgressionConfig()


class CompletionDeltas(NamedTuple):
    """Stat changes granted by completing one task."""
    health: int
    stamina: int
    experience: int


class LevelProgress(NamedTuple):
    """Experience progress within the current level."""
    experience: int
    threshold: int
    fraction: float


class RevivalProgress(NamedTuple):
    """Completed tasks counted towards revival."""
    completed: int
    needed: int


def _config(config: Optional[ProgressionConfig]) -> ProgressionConfig:
    return config if config is not None else DEFAULT_CONFIG


def clamp_level(level: int, config: Optional[ProgressionConfig] = None) -> int:
    """Clamp a level into [1, max_level]."""
    cfg = _config(config)
    return max(1, min(int(level), cfg.max_level))


def max_health(level: int, config: Optional[ProgressionConfig] = None) -> int:
    """Health cap for a level; constant above max_level."""
    cfg = _config(config)
    return cfg.base_health + (clamp_level(level, cfg) - 1) * cfg.health_per_level


def max_stamina(level: int, config: Optional[ProgressionConfig] = None) -> int:
    """Stamina cap for a level; constant above max_level."""
    cfg = _config(config)
    return cfg.base_stamina + (clamp_level(level, cfg) - 1) * cfg.stamina_per_level


def initial_stamina(config: Optional[ProgressionConfig] = None) -> int:
    """Stamina a new wizard starts with."""
    cfg = _config(config)
    return int(cfg.base_stamina * cfg.initial_stamina_fraction)


def experience_threshold(level: int, config: Optional[ProgressionConfig] = None) -> int:
    """Experience needed to advance past ``level``."""
    return _config(config).exp_per_level


def on_task_completed(priority: Priority, config: Optional[ProgressionConfig] = None) -> CompletionDeltas:
    """Deltas for completing a task of the given priority.

    Health never decreases on completion; stamina is spent; experience is
    gained. All three magnitudes grow with priority.
    """
    cfg = _config(config)
    multipliers = cfg.completion_multipliers[Priority(priority)]
    return CompletionDeltas(
        health=max(0, int(cfg.base_health_gain * multipliers["health"])),
        stamina=-max(0, int(cfg.base_stamina_cost * multipliers["stamina"])),
        experience=max(0, int(cfg.base_xp_gain * multipliers["experience"])),
    )


def on_task_overdue(priority: Priority, days_overdue: int, config: Optional[ProgressionConfig] = None) -> int:
    """Raw (non-positive) health delta for a task overdue by ``days_overdue`` days.

    The result does not depend on the wizard's current health; clamping is
    the state machine's job.
    """
    cfg = _config(config)
    per_day = cfg.overdue_damage_per_day[Priority(priority)]
    return -(per_day * max(0, int(days_overdue)))


def level_progress(state: WizardState, config: Optional[ProgressionConfig] = None) -> LevelProgress:
    """Experience progress towards the next level, for progress bars."""
    threshold = experience_threshold(state.level, config)
    fraction = min(1.0, state.experience / threshold) if threshold else 1.0
    return LevelProgress(experience=state.experience, threshold=threshold, fraction=fraction)


def revival_progress(state: WizardState, config: Optional[ProgressionConfig] = None) -> RevivalProgress:
    cfg = _config(config)
    completed = 0 if state.is_alive else min(state.revival_progress, cfg.revival_threshold)
    return RevivalProgress(completed=completed, needed=cfg.revival_threshold)


def is_unlocked(unlock_level: int, level: int) -> bool:
    """Level gate for cosmetic items: unlocked once the wizard reaches ``unlock_level``."""
    return level >= unlock_level
