"""
Progress rule engine

``ProgressEngine.apply`` is the single entry point turning a gamification
event into a new progress snapshot. It never mutates the snapshot it is
given: the event is applied to a deep copy which is returned in the
``EngineResult``. Rejected events (not enough points, reveal limit, ...)
return the original snapshot and a non-accepted outcome.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Optional

from ...config import Settings, get_settings
from ...models.progress import ProgressSnapshot, PowerUpType, QuestCategory
from ...models.events import (
    GamificationEvent,
    StudyCompleted,
    StudyAborted,
    QuizStarted,
    QuizSubmitted,
    PowerUpPurchased,
    RevealUsed,
    AIQuestionAsked,
    FlashcardsGenerated,
    FlashcardReviewed,
    FlashcardAction,
    Outcome,
    PointDelta,
    EngineResult,
)
from . import rules
from .eligibility import (
    EvaluationContext,
    evaluate_badges,
    evaluate_achievements,
    evaluate_challenges,
)
from .power_ups import PowerUpScheduler
from .quests import advance_quests, check_quest_progress

logger = logging.getLogger(__name__)

Handler = Callable[
    [ProgressSnapshot, GamificationEvent, EvaluationContext, datetime, PointDelta],
    Outcome,
]


class ProgressEngine:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        scheduler: Optional[PowerUpScheduler] = None,
    ):
        self.settings = settings or get_settings()
        self.scheduler = scheduler or PowerUpScheduler(
            self.settings.power_up_duration_minutes
        )
        self._handlers: Dict[str, Handler] = {
            "study_completed": self._study_completed,
            "study_aborted": self._study_aborted,
            "quiz_started": self._quiz_started,
            "quiz_submitted": self._quiz_submitted,
            "power_up_purchased": self._power_up_purchased,
            "reveal_used": self._reveal_used,
            "ai_question_asked": self._ai_question_asked,
            "flashcards_generated": self._flashcards_generated,
            "flashcard_reviewed": self._flashcard_reviewed,
        }

    # ============================================
    # ENTRY POINTS
    # ============================================

    def apply(
        self,
        snapshot: ProgressSnapshot,
        event: GamificationEvent,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """Apply one event and settle levels and unlocks"""
        now = now or datetime.now()
        context = self._context_for(context, now)
        handler = self._handlers.get(event.kind)
        if handler is None:
            return self._rejected(snapshot, Outcome.INVALID, f"Unknown event {event.kind}")

        working = self.refresh(snapshot, now)
        delta = PointDelta(level_before=snapshot.level, level_after=snapshot.level)

        outcome = handler(working, event, context, now, delta)
        if not outcome.accepted:
            logger.info(
                f"Rejected {event.kind} for {snapshot.user_id}: {outcome.value}"
            )
            return self._rejected(snapshot, outcome)

        self._settle(working, context, now, delta)
        working.updated_at = now
        delta.level_after = working.level
        delta.net = working.points - snapshot.points
        return EngineResult(outcome=outcome, snapshot=working, delta=delta)

    def evaluate(
        self,
        snapshot: ProgressSnapshot,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """Re-run level and unlock checks without an event"""
        now = now or datetime.now()
        context = self._context_for(context, now)
        working = self.refresh(snapshot, now)
        delta = PointDelta(level_before=snapshot.level, level_after=snapshot.level)
        self._settle(working, context, now, delta)
        delta.level_after = working.level
        delta.net = working.points - snapshot.points
        return EngineResult(outcome=Outcome.APPLIED, snapshot=working, delta=delta)

    def check_quest_progress(
        self,
        snapshot: ProgressSnapshot,
        quest_id: str,
        amount: int,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """
        Advance a single quest by id outside of an event.

        The reward of a quest completed here is added to ``points`` and the
        snapshot is settled like after any event. Unknown ids, completed
        quests and non-positive amounts change nothing.
        """
        now = now or datetime.now()
        context = self._context_for(context, now)
        working = self.refresh(snapshot, now)
        delta = PointDelta(level_before=snapshot.level, level_after=snapshot.level)

        reward = check_quest_progress(working, quest_id, amount, now)
        if reward:
            delta.completed_quests.append(quest_id)
            self._grant(working, reward, delta)

        self._settle(working, context, now, delta)
        working.updated_at = now
        delta.level_after = working.level
        delta.net = working.points - snapshot.points
        return EngineResult(outcome=Outcome.APPLIED, snapshot=working, delta=delta)

    def refresh(self, snapshot: ProgressSnapshot, now: datetime) -> ProgressSnapshot:
        """Copy of ``snapshot`` with expired power-ups and stale day reset"""
        working = snapshot.model_copy(deep=True)
        self.scheduler.refresh(working, now)
        self.roll_day(working, now.date())
        return working

    @staticmethod
    def roll_day(snapshot: ProgressSnapshot, today: date) -> None:
        if snapshot.daily_progress_date != today:
            snapshot.daily_progress = 0
            snapshot.daily_progress_date = today

    # ============================================
    # EVENT HANDLERS
    # ============================================

    def _study_completed(
        self,
        snapshot: ProgressSnapshot,
        event: StudyCompleted,
        context: EvaluationContext,
        now: datetime,
        delta: PointDelta,
    ) -> Outcome:
        today = now.date()
        minutes = event.duration_minutes

        self._add_activity_points(
            snapshot, rules.study_session_points(minutes, True), now, delta
        )

        protected = self.scheduler.is_active(snapshot, PowerUpType.STREAK, now)
        snapshot.streak, snapshot.last_study_date = rules.next_streak(
            snapshot.streak, snapshot.last_study_date, today, protected
        )
        snapshot.total_study_time += minutes

        credited = rules.apply_multiplier(
            minutes, self.scheduler.multiplier_for(snapshot, PowerUpType.TIME, now)
        )
        goal_hit = self._update_daily_progress(snapshot, credited, today, delta)

        self._advance(snapshot, QuestCategory.STUDY_MINUTES, credited, now, delta)
        self._advance(snapshot, QuestCategory.STREAK, 0, now, delta)
        if goal_hit:
            self._advance(snapshot, QuestCategory.DAILY_GOAL, 1, now, delta)
        return Outcome.APPLIED

    def _study_aborted(self, snapshot, event: StudyAborted, context, now, delta):
        self._add_activity_points(
            snapshot, rules.study_session_points(event.duration_minutes, False), now, delta
        )
        return Outcome.APPLIED

    def _quiz_started(self, snapshot, event: QuizStarted, context, now, delta):
        snapshot.coins = 0
        return Outcome.APPLIED

    def _quiz_submitted(self, snapshot, event: QuizSubmitted, context, now, delta):
        if event.revealed > self.settings.reveal_limit:
            return Outcome.INVALID
        # Reveals granted during the attempt are charged even if under-reported
        revealed = rules.charged_reveals(event.revealed, snapshot.coins)
        self._add_activity_points(
            snapshot,
            rules.quiz_points(event.correct, event.incorrect, revealed),
            now,
            delta,
        )
        snapshot.coins = 0
        self._advance(snapshot, QuestCategory.QUIZZES, 1, now, delta)
        return Outcome.APPLIED

    def _power_up_purchased(
        self, snapshot, event: PowerUpPurchased, context, now, delta
    ):
        cost = self.settings.power_up_cost
        if snapshot.points < cost:
            return Outcome.INSUFFICIENT_POINTS
        if self.scheduler.is_active(snapshot, event.power_up_type, now):
            return Outcome.ALREADY_ACTIVE

        outcome = self.scheduler.activate(snapshot, event.power_up_type, now)
        snapshot.points -= cost
        delta.base = delta.applied = -cost
        return outcome

    def _reveal_used(self, snapshot, event: RevealUsed, context, now, delta):
        if snapshot.coins >= self.settings.reveal_limit:
            return Outcome.LIMIT_REACHED
        snapshot.coins += 1
        return Outcome.GRANTED

    def _ai_question_asked(self, snapshot, event: AIQuestionAsked, context, now, delta):
        self._advance(snapshot, QuestCategory.AI_QUESTIONS, 1, now, delta)
        return Outcome.APPLIED

    def _flashcards_generated(
        self, snapshot, event: FlashcardsGenerated, context, now, delta
    ):
        self._add_activity_points(
            snapshot, rules.flashcard_generation_points(event.count), now, delta
        )
        self._advance(snapshot, QuestCategory.FLASHCARDS_CREATED, event.count, now, delta)
        return Outcome.APPLIED

    def _flashcard_reviewed(self, snapshot, event: FlashcardReviewed, context, now, delta):
        self._add_activity_points(
            snapshot, rules.flashcard_review_points(event.action), now, delta
        )
        if event.action == FlashcardAction.KNOWN:
            self._advance(snapshot, QuestCategory.FLASHCARDS_MASTERED, 1, now, delta)
        return Outcome.APPLIED

    # ============================================
    # HELPERS
    # ============================================

    def _context_for(
        self, context: Optional[EvaluationContext], now: datetime
    ) -> EvaluationContext:
        if context is None:
            return EvaluationContext(today=now.date())
        if context.today is None:
            return replace(context, today=now.date())
        return context

    def _rejected(
        self, snapshot: ProgressSnapshot, outcome: Outcome, message: Optional[str] = None
    ) -> EngineResult:
        return EngineResult(
            outcome=outcome,
            snapshot=snapshot,
            delta=PointDelta(level_before=snapshot.level, level_after=snapshot.level),
            message=message or outcome.value.replace("_", " "),
        )

    def _add_activity_points(
        self, snapshot: ProgressSnapshot, base: int, now: datetime, delta: PointDelta
    ) -> None:
        """Activity deltas are scaled by an active points power-up"""
        multiplier = self.scheduler.multiplier_for(snapshot, PowerUpType.POINTS, now)
        applied = rules.apply_multiplier(base, multiplier)
        delta.base += base
        delta.multiplier = multiplier
        delta.applied += applied
        snapshot.points = rules.clamp_points(snapshot.points + applied)

    def _grant(self, snapshot: ProgressSnapshot, reward: int, delta: PointDelta) -> None:
        """Rewards and bonuses are never multiplied"""
        if reward <= 0:
            return
        snapshot.points = rules.clamp_points(snapshot.points + reward)
        delta.bonus += reward

    def _advance(
        self,
        snapshot: ProgressSnapshot,
        category: QuestCategory,
        amount: int,
        now: datetime,
        delta: PointDelta,
    ) -> None:
        completed, reward = advance_quests(snapshot, category, amount, now)
        delta.completed_quests.extend(completed)
        self._grant(snapshot, reward, delta)

    def _update_daily_progress(
        self, snapshot: ProgressSnapshot, minutes: int, today: date, delta: PointDelta
    ) -> bool:
        progress, reached = rules.accumulate_daily_progress(
            snapshot.daily_progress,
            snapshot.daily_progress_date,
            today,
            minutes,
            snapshot.daily_goal,
        )
        snapshot.daily_progress = progress
        snapshot.daily_progress_date = today

        if self.settings.daily_goal_legacy_heuristic:
            goal_hit = delta.applied >= self.settings.legacy_daily_goal_points
        else:
            goal_hit = reached
        if goal_hit:
            snapshot.daily_goal_met_date = today
        return goal_hit

    def _apply_level_bonus(self, snapshot: ProgressSnapshot, delta: PointDelta) -> int:
        """
        Pay the level-up bonus for every level above the highest one already
        rewarded. The bonus can itself cross further thresholds, so repeat
        until the level is stable.
        """
        granted = 0
        while True:
            level = rules.level_for_points(snapshot.points)
            if level <= snapshot.highest_level:
                break
            bonus = (level - snapshot.highest_level) * self.settings.level_up_bonus
            logger.info(
                f"{snapshot.user_id} reached level {level} (+{bonus} bonus points)"
            )
            snapshot.highest_level = level
            self._grant(snapshot, bonus, delta)
            granted += bonus
        snapshot.level = rules.level_for_points(snapshot.points)
        return granted

    def _settle(
        self,
        snapshot: ProgressSnapshot,
        context: EvaluationContext,
        now: datetime,
        delta: PointDelta,
    ) -> None:
        while True:
            bonus = self._apply_level_bonus(snapshot, delta)
            badges = evaluate_badges(snapshot, context, now)
            achievements, achievement_reward = evaluate_achievements(
                snapshot, context, now
            )
            challenges, challenge_reward = evaluate_challenges(snapshot, context, now)

            unlocked = badges + achievements + challenges
            if unlocked:
                logger.info(f"{snapshot.user_id} unlocked {unlocked}")
                delta.earned.extend(unlocked)

            reward = achievement_reward + challenge_reward
            self._grant(snapshot, reward, delta)
            if not bonus and not reward:
                break
        snapshot.level = rules.level_for_points(snapshot.points)
