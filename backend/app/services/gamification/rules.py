"""
Point, level and streak arithmetic

Everything here is a pure function of its arguments so the formulas can be
exercised without a snapshot or a store.
"""

import math
from datetime import date
from typing import Optional, Tuple

from ...models.events import FlashcardAction

STUDY_POINTS_PER_MINUTE = 5
STUDY_ABORT_PENALTY = -25
QUIZ_CORRECT_POINTS = 5
QUIZ_INCORRECT_POINTS = -1
QUIZ_REVEAL_POINTS = -10
FLASHCARD_GENERATED_POINTS = 3
FLASHCARD_REVIEW_POINTS = {
    FlashcardAction.SAVED: 2,
    FlashcardAction.KNOWN: 5,
    FlashcardAction.REVIEW: 1,
}

FIRST_LEVEL_THRESHOLD = 100
LEVEL_THRESHOLD_INCREMENT = 50


def study_session_points(duration_minutes: int, succeeded: bool) -> int:
    """Base points for a finished study session, before any multiplier"""
    if not succeeded:
        return STUDY_ABORT_PENALTY
    return duration_minutes * STUDY_POINTS_PER_MINUTE


def quiz_points(correct: int, incorrect: int, revealed: int) -> int:
    return (
        correct * QUIZ_CORRECT_POINTS
        + incorrect * QUIZ_INCORRECT_POINTS
        + revealed * QUIZ_REVEAL_POINTS
    )


def charged_reveals(reported: int, used: int) -> int:
    """Reveals to penalize: the larger of what the client reports and what was granted"""
    return max(reported, used)


def flashcard_generation_points(count: int) -> int:
    return count * FLASHCARD_GENERATED_POINTS


def flashcard_review_points(action: FlashcardAction) -> int:
    return FLASHCARD_REVIEW_POINTS[action]


def apply_multiplier(base: int, multiplier: float) -> int:
    """Scale a delta, flooring fractional results"""
    if multiplier == 1:
        return base
    return math.floor(base * multiplier)


def clamp_points(points: int) -> int:
    return max(0, points)


def points_to_advance(level: int) -> int:
    """Points needed to go from ``level`` to ``level + 1``"""
    return FIRST_LEVEL_THRESHOLD + (level - 1) * LEVEL_THRESHOLD_INCREMENT


def level_threshold(level: int) -> int:
    """Cumulative points at which ``level`` is reached"""
    return sum(points_to_advance(lvl) for lvl in range(1, level))


def level_for_points(total_points: int) -> int:
    """
    Level reached with ``total_points``.

    Level 2 needs 100 points, level 3 another 150, level 4 another 200 and
    so on.
    """
    level = 1
    used = 0
    while used + points_to_advance(level) <= total_points:
        used += points_to_advance(level)
        level += 1
    return level


def points_for_next_level(total_points: int) -> int:
    """Points still missing before the next level is reached"""
    level = level_for_points(total_points)
    return level_threshold(level + 1) - total_points


def next_streak(
    streak: int,
    last_study_date: Optional[date],
    today: date,
    protected: bool = False,
) -> Tuple[int, date]:
    """
    Streak after a study session completed on ``today``.

    Returns the new streak and the new last study date. A ``protected``
    streak (streak protector power-up) carries over a gap of several days.
    """
    if last_study_date is None:
        return 1, today

    gap = (today - last_study_date).days
    if gap <= 0:
        # Same day (or a clock that went backwards): never double count
        return streak, max(last_study_date, today)
    if gap == 1 or protected:
        return streak + 1, today
    return 1, today


def accumulate_daily_progress(
    daily_progress: int,
    progress_date: Optional[date],
    today: date,
    minutes: int,
    daily_goal: int,
) -> Tuple[int, bool]:
    """
    Add ``minutes`` to today's progress, capped at the goal.

    Returns the new progress and whether this call is the one that reached
    the goal.
    """
    before = daily_progress if progress_date == today else 0
    after = min(daily_goal, before + max(0, minutes))
    return after, before < daily_goal <= after
