"""
Quest progress tracking
"""

import logging
from datetime import datetime
from typing import List, Tuple

from ...models.progress import ProgressSnapshot, Quest, QuestCategory

logger = logging.getLogger(__name__)


def advance_quest(quest: Quest, amount: int, now: datetime) -> bool:
    """
    Add ``amount`` to a quest's progress, clamped to its target.

    Returns True only on the call that completes the quest. Completed quests
    and non-positive amounts are left untouched.
    """
    if quest.completed or amount <= 0:
        return False

    quest.progress = min(quest.progress + amount, quest.target)
    if quest.progress >= quest.target:
        quest.completed = True
        quest.completed_at = now
        logger.info(f"Quest completed: {quest.id} (+{quest.reward} points)")
        return True
    return False


def advance_quests(
    snapshot: ProgressSnapshot, category: QuestCategory, amount: int, now: datetime
) -> Tuple[List[str], int]:
    """Advance every quest subscribed to ``category``; returns ids and reward"""
    completed, reward = [], 0
    for quest in snapshot.quests:
        if quest.category != category:
            continue
        if category == QuestCategory.STREAK:
            # Streak quests follow the best streak reached, resets never
            # move them back
            step = snapshot.streak - quest.progress
        else:
            step = amount
        if advance_quest(quest, step, now):
            completed.append(quest.id)
            reward += quest.reward
    return completed, reward


def check_quest_progress(
    snapshot: ProgressSnapshot, quest_id: str, amount: int, now: datetime
) -> int:
    """
    Advance a single quest by id, returning the reward owed.

    Only the quest is touched; the caller adds the reward to ``points``
    (``ProgressEngine.check_quest_progress`` does).
    """
    quest = snapshot.find_quest(quest_id)
    if quest is None:
        logger.debug(f"Ignoring progress for unknown quest {quest_id}")
        return 0
    return quest.reward if advance_quest(quest, amount, now) else 0
