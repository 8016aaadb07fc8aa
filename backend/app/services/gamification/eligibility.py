"""
Badge, achievement and challenge eligibility

Each unlockable item has a predicate over the current snapshot and an
``EvaluationContext`` of aggregates the snapshot does not hold itself
(quiz counts, longest session, ...). Evaluation only ever flips items from
not-earned to earned, so running it again on the same state is a no-op.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from ...models.progress import ProgressSnapshot
from ...models.history import HistoryEntryCreate, HistoryKind
from ...models.events import FlashcardAction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationContext:
    """Aggregates supplied by the history log, plus details of the event"""

    sessions_completed: int = 0
    quizzes_completed: int = 0
    perfect_quizzes: int = 0
    expert_quizzes: int = 0  # quizzes scored 90% or more
    longest_session_minutes: int = 0
    flashcards_created: int = 0
    flashcards_mastered: int = 0
    ai_questions_in_session: int = 0
    aborted_today: bool = False
    today: Optional[date] = None
    study_started_at: Optional[datetime] = None
    study_finished_at: Optional[datetime] = None
    quiz_duration_seconds: Optional[int] = None

    @classmethod
    def from_counts(cls, counts: Dict[str, int], today: Optional[date] = None):
        fields = {k: v for k, v in counts.items() if k in cls.__dataclass_fields__}
        return cls(today=today, **fields)

    def including(self, entry: HistoryEntryCreate) -> "EvaluationContext":
        """Context as it will be once ``entry`` has been appended to the log"""
        if entry.kind == HistoryKind.STUDY_SESSION:
            if not entry.completed:
                return replace(
                    self,
                    aborted_today=self.aborted_today
                    or entry.occurred_at.date() == self.today,
                )
            return replace(
                self,
                sessions_completed=self.sessions_completed + 1,
                longest_session_minutes=max(
                    self.longest_session_minutes, entry.duration_minutes
                ),
                study_finished_at=entry.occurred_at,
                study_started_at=entry.occurred_at
                - timedelta(minutes=entry.duration_minutes),
            )
        if entry.kind == HistoryKind.QUIZ:
            score = entry.score
            return replace(
                self,
                quizzes_completed=self.quizzes_completed + 1,
                perfect_quizzes=self.perfect_quizzes
                + (1 if score is not None and score >= 100 else 0),
                expert_quizzes=self.expert_quizzes
                + (1 if score is not None and score >= 90 else 0),
                quiz_duration_seconds=entry.duration_seconds,
            )
        if entry.kind == HistoryKind.AI_QUESTION:
            return replace(
                self, ai_questions_in_session=self.ai_questions_in_session + 1
            )
        if entry.kind == HistoryKind.FLASHCARDS_GENERATED:
            return replace(
                self, flashcards_created=self.flashcards_created + entry.item_count
            )
        if entry.kind == HistoryKind.FLASHCARD_REVIEW:
            mastered = (entry.metadata or {}).get("action") == FlashcardAction.KNOWN
            return replace(
                self, flashcards_mastered=self.flashcards_mastered + int(mastered)
            )
        return self


Predicate = Callable[[ProgressSnapshot, EvaluationContext], bool]


def _started_before(hour: int) -> Predicate:
    def predicate(snapshot: ProgressSnapshot, ctx: EvaluationContext) -> bool:
        return ctx.study_started_at is not None and ctx.study_started_at.hour < hour

    return predicate


def _quiz_faster_than(seconds: int) -> Predicate:
    def predicate(snapshot: ProgressSnapshot, ctx: EvaluationContext) -> bool:
        return (
            ctx.quiz_duration_seconds is not None
            and ctx.quiz_duration_seconds < seconds
        )

    return predicate


BADGE_RULES: Dict[str, Predicate] = {
    "first-quiz": lambda s, ctx: ctx.quizzes_completed >= 1,
    "streak-7": lambda s, ctx: s.streak >= 7,
    "points-100": lambda s, ctx: s.points >= 100,
    "perfect-score": lambda s, ctx: ctx.perfect_quizzes >= 1,
    "early-bird": _started_before(8),
    "night-owl": lambda s, ctx: (
        ctx.study_finished_at is not None and ctx.study_finished_at.hour >= 22
    ),
    "speed-demon": _quiz_faster_than(5 * 60),
    "scholar": lambda s, ctx: ctx.quizzes_completed >= 10,
    "first-flashcard": lambda s, ctx: ctx.flashcards_created >= 1,
    "flashcard-collector": lambda s, ctx: ctx.flashcards_created >= 10,
    "flashcard-hoarder": lambda s, ctx: ctx.flashcards_created >= 50,
    "flashcard-library": lambda s, ctx: ctx.flashcards_created >= 100,
    "knowledge-seeker": lambda s, ctx: ctx.flashcards_mastered >= 25,
    "knowledge-master": lambda s, ctx: ctx.flashcards_mastered >= 100,
}

ACHIEVEMENT_RULES: Dict[str, Predicate] = {
    "first-session": lambda s, ctx: ctx.sessions_completed >= 1,
    "marathon-study": lambda s, ctx: ctx.longest_session_minutes >= 120,
    "consistent-week": lambda s, ctx: s.streak >= 7,
    "quiz-expert": lambda s, ctx: ctx.expert_quizzes >= 5,
    "point-master": lambda s, ctx: s.points >= 1000,
    "ai-learning-pioneer": lambda s, ctx: ctx.flashcards_created >= 100,
}

CHALLENGE_RULES: Dict[str, Predicate] = {
    "speed-quiz": _quiz_faster_than(3 * 60),
    "perfect-day": lambda s, ctx: (
        ctx.today is not None
        and s.daily_goal_met_date == ctx.today
        and not ctx.aborted_today
    ),
    "ai-master": lambda s, ctx: ctx.ai_questions_in_session >= 5,
    "early-riser": _started_before(6),
}


def evaluate_badges(
    snapshot: ProgressSnapshot, ctx: EvaluationContext, now: datetime
) -> List[str]:
    """Earn every badge whose predicate now holds; returns the new ids"""
    earned = []
    for badge in snapshot.badges:
        if badge.earned:
            continue
        rule = BADGE_RULES.get(badge.id)
        if rule and rule(snapshot, ctx):
            badge.earned = True
            badge.earned_at = now
            earned.append(badge.id)
    return earned


def evaluate_achievements(
    snapshot: ProgressSnapshot, ctx: EvaluationContext, now: datetime
) -> Tuple[List[str], int]:
    """Earn achievements; returns the new ids and the reward points owed"""
    earned, reward = [], 0
    for achievement in snapshot.achievements:
        if achievement.earned:
            continue
        rule = ACHIEVEMENT_RULES.get(achievement.id)
        if rule and rule(snapshot, ctx):
            achievement.earned = True
            achievement.earned_at = now
            earned.append(achievement.id)
            reward += achievement.points
    return earned, reward


def evaluate_challenges(
    snapshot: ProgressSnapshot, ctx: EvaluationContext, now: datetime
) -> Tuple[List[str], int]:
    completed, reward = [], 0
    for challenge in snapshot.challenges:
        if challenge.completed:
            continue
        rule = CHALLENGE_RULES.get(challenge.id)
        if rule and rule(snapshot, ctx):
            challenge.completed = True
            challenge.completed_at = now
            completed.append(challenge.id)
            reward += challenge.reward
    return completed, reward
