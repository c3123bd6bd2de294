"""Wizard state machine for WizardlyDo.

A wizard is either Alive (health > 0) or Dead (health == 0, with
``revival_progress`` counting completed tasks). Task outcomes are applied as
events; every transition returns a new ``WizardState`` plus the wizard events
it produced (level-ups, death, revival).

Transitions are total over valid inputs. Corrupt stats (out-of-range level,
health above its cap, negative counters) are normalized by clamping before
the event is applied, never raised as errors.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, Field

from wizardlydo.config import ProgressionConfig
from wizardlydo.engine import progression
from wizardlydo.models.events import WizardEvent, WizardEventType
from wizardlydo.models.task import Priority
from wizardlydo.models.wizard import WizardState

logger = logging.getLogger(__name__)


class TaskCompleted(BaseModel):
    """A task owned by the wizard was completed."""
    priority: Priority = Field(..., description="Priority of the completed task")


class TaskOverdue(BaseModel):
    """A task owned by the wizard is past due."""
    priority: Priority = Field(..., description="Priority of the overdue task")
    days_overdue: int = Field(..., description="Whole days the task is overdue")


class TaskDeleted(BaseModel):
    """A task owned by the wizard was deleted (no stat effect)."""
    task_id: str = Field(..., description="Deleted task ID")


TaskOutcome = Union[TaskCompleted, TaskOverdue, TaskDeleted]


class TransitionResult:
    """Result of applying one event to a wizard."""

    def __init__(self, state: WizardState, events: Optional[List[WizardEvent]] = None):
        self.state = state
        self.events: List[WizardEvent] = events or []


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _config(config: Optional[ProgressionConfig]) -> ProgressionConfig:
    return config if config is not None else progression.DEFAULT_CONFIG


def _event(
    event_type: WizardEventType, state: WizardState, now: datetime, level: Optional[int] = None, **details
) -> WizardEvent:
    return WizardEvent(
        id=str(uuid.uuid4()),
        timestamp=now,
        event_type=event_type,
        user_id=state.user_id,
        level=state.level if level is None else level,
        details=details,
    )


def new_wizard(
    user_id: str,
    name: str = "",
    config: Optional[ProgressionConfig] = None,
    now: Optional[datetime] = None,
) -> WizardState:
    """Create a level-1 wizard with full health and initial stamina."""
    cfg = _config(config)
    now = now or datetime.utcnow()
    return WizardState(
        user_id=user_id,
        name=name,
        level=1,
        experience=0,
        health=progression.max_health(1, cfg),
        max_health=progression.max_health(1, cfg),
        stamina=progression.initial_stamina(cfg),
        max_stamina=progression.max_stamina(1, cfg),
        created_at=now,
        updated_at=now,
    )


def normalize_state(state: WizardState, config: Optional[ProgressionConfig] = None) -> WizardState:
    """Recompute derived caps for the wizard's level and clamp every stat into range."""
    cfg = _config(config)
    level = progression.clamp_level(state.level, cfg)
    cap_health = progression.max_health(level, cfg)
    cap_stamina = progression.max_stamina(level, cfg)
    return state.model_copy(
        update={
            "level": level,
            "experience": max(0, state.experience),
            "max_health": cap_health,
            "health": _clamp(state.health, 0, cap_health),
            "max_stamina": cap_stamina,
            "stamina": _clamp(state.stamina, 0, cap_stamina),
            "consecutive_tasks_completed": max(0, state.consecutive_tasks_completed),
            "total_tasks_completed": max(0, state.total_tasks_completed),
            "revival_progress": max(0, state.revival_progress),
        }
    )


def apply_event(
    state: WizardState,
    event: TaskOutcome,
    config: Optional[ProgressionConfig] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Apply a task outcome to a wizard.

    Args:
        state: Current wizard state (not mutated)
        event: TaskCompleted, TaskOverdue or TaskDeleted
        config: Progression constants (defaults when omitted)
        now: Timestamp for updated_at and emitted events

    Returns:
        TransitionResult with the new state and emitted wizard events
    """
    cfg = _config(config)
    now = now or datetime.utcnow()
    current = normalize_state(state, cfg)

    if isinstance(event, TaskCompleted):
        if current.is_alive:
            return _complete_while_alive(current, event, cfg, now)
        return _complete_while_dead(current, cfg, now)

    if isinstance(event, TaskOverdue):
        if not current.is_alive:
            return TransitionResult(current)
        return _overdue_while_alive(current, event, cfg, now)

    if isinstance(event, TaskDeleted):
        return TransitionResult(current)

    raise TypeError(f"Unsupported wizard event: {type(event).__name__}")


def _complete_while_alive(
    state: WizardState, event: TaskCompleted, cfg: ProgressionConfig, now: datetime
) -> TransitionResult:
    deltas = progression.on_task_completed(event.priority, cfg)

    level = state.level
    cap_health = state.max_health
    cap_stamina = state.max_stamina
    health = _clamp(state.health + deltas.health, 0, cap_health)
    stamina = _clamp(state.stamina + deltas.stamina, 0, cap_stamina)
    experience = max(0, state.experience + deltas.experience)

    leveled_to: List[int] = []
    while level < cfg.max_level and experience >= progression.experience_threshold(level, cfg):
        experience -= progression.experience_threshold(level, cfg)
        level += 1
        cap_health = progression.max_health(level, cfg)
        cap_stamina = progression.max_stamina(level, cfg)
        # Level-up restores health to the new cap and tops up stamina.
        health = cap_health
        stamina = _clamp(stamina + cfg.level_up_stamina_bonus, 0, cap_stamina)
        leveled_to.append(level)

    if level >= cfg.max_level:
        experience = min(experience, progression.experience_threshold(level, cfg))

    updated = state.model_copy(
        update={
            "level": level,
            "experience": experience,
            "health": health,
            "max_health": cap_health,
            "stamina": stamina,
            "max_stamina": cap_stamina,
            "consecutive_tasks_completed": state.consecutive_tasks_completed + 1,
            "total_tasks_completed": state.total_tasks_completed + 1,
            "last_task_completed_at": now,
            "updated_at": now,
        }
    )

    events = []
    for new_level in leveled_to:
        events.append(
            _event(
                WizardEventType.LEVELED_UP,
                updated,
                now,
                level=new_level,
                max_health=progression.max_health(new_level, cfg),
                max_stamina=progression.max_stamina(new_level, cfg),
            )
        )
        logger.info(f"Wizard {state.user_id} reached level {new_level}")

    if updated.health <= 0:
        updated = updated.model_copy(update={"health": 0, "revival_progress": 0, "consecutive_tasks_completed": 0})
        events.append(_event(WizardEventType.DIED, updated, now))
        logger.info(f"Wizard {state.user_id} died")

    return TransitionResult(updated, events)


def _complete_while_dead(state: WizardState, cfg: ProgressionConfig, now: datetime) -> TransitionResult:
    progress = state.revival_progress + 1
    update = {
        "revival_progress": progress,
        "total_tasks_completed": state.total_tasks_completed + 1,
        "last_task_completed_at": now,
        "updated_at": now,
    }

    if progress < cfg.revival_threshold:
        logger.debug(f"Wizard {state.user_id} revival progress {progress}/{cfg.revival_threshold}")
        return TransitionResult(state.model_copy(update=update))

    update["health"] = max(1, int(state.max_health * cfg.revival_health_fraction))
    update["revival_progress"] = 0
    update["consecutive_tasks_completed"] = 0
    revived = state.model_copy(update=update)
    logger.info(f"Wizard {state.user_id} revived with {revived.health}/{revived.max_health} health")
    return TransitionResult(revived, [_event(WizardEventType.REVIVED, revived, now, health=revived.health)])


def _overdue_while_alive(
    state: WizardState, event: TaskOverdue, cfg: ProgressionConfig, now: datetime
) -> TransitionResult:
    delta = progression.on_task_overdue(event.priority, event.days_overdue, cfg)
    health = _clamp(state.health + delta, 0, state.max_health)
    update = {
        "health": health,
        "consecutive_tasks_completed": 0,
        "updated_at": now,
    }
    if health > 0:
        return TransitionResult(state.model_copy(update=update))

    update["revival_progress"] = 0
    dead = state.model_copy(update=update)
    logger.info(f"Wizard {state.user_id} died after taking {-delta} damage")
    return TransitionResult(dead, [_event(WizardEventType.DIED, dead, now, damage=-delta)])
