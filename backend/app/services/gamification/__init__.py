# Gamification rule engine
from .catalog import new_snapshot
from .eligibility import EvaluationContext
from .engine import ProgressEngine
from .power_ups import PowerUpScheduler
from .quests import advance_quest, advance_quests, check_quest_progress
from . import rules

__all__ = [
    "ProgressEngine",
    "PowerUpScheduler",
    "EvaluationContext",
    "new_snapshot",
    "advance_quest",
    "advance_quests",
    "check_quest_progress",
    "rules",
]
