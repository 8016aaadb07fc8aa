"""
Progress service: loads a user's snapshot, runs the rule engine and stores
the result
"""

from typing import Any, Callable, Dict, List, Optional
from datetime import datetime
import logging

from pydantic import ValidationError

from app.config import Settings, get_settings
from app.database.progress import ProgressDatabase
from app.models.progress import Achievement, ProgressSnapshot, PowerUpType, Quest
from app.models.events import (
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
from app.services.gamification import EvaluationContext, ProgressEngine, new_snapshot
from app.services.gamification import catalog, rules

logger = logging.getLogger(__name__)


class ProgressService:
    def __init__(
        self,
        db_service,
        settings: Optional[Settings] = None,
        engine: Optional[ProgressEngine] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.progress_db = ProgressDatabase(db_service)
        self.settings = settings or get_settings()
        self.engine = engine or ProgressEngine(self.settings)
        self.clock = clock

    # ============================================
    # SNAPSHOT ACCESS
    # ============================================

    def get_snapshot(self, user_id: str, now: Optional[datetime] = None) -> ProgressSnapshot:
        """
        Current snapshot for a user.

        A user without a stored record gets the defaults, which are persisted
        right away. Expired power-ups and a stale daily progress are settled
        on every read.
        """
        now = now or self.clock()
        snapshot = self.progress_db.get_snapshot(user_id)
        if snapshot is None:
            snapshot = new_snapshot(
                user_id,
                daily_goal=self.settings.default_daily_goal,
                power_up_duration_minutes=self.settings.power_up_duration_minutes,
            )
            snapshot.daily_progress_date = now.date()
            snapshot.updated_at = now
            self.progress_db.upsert_snapshot(snapshot)
            logger.info(f"Created default progress for {user_id}")
            return snapshot

        snapshot = self.engine.refresh(snapshot, now)
        self._fill_catalog(snapshot)
        return snapshot

    def apply(
        self,
        user_id: str,
        event: GamificationEvent,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """Apply an event to the stored snapshot; accepted results are saved"""
        now = now or self.clock()
        snapshot = self.get_snapshot(user_id, now)
        result = self.engine.apply(snapshot, event, context, now)
        if result.accepted:
            self.progress_db.upsert_snapshot(result.snapshot)
            logger.debug(
                f"{event.kind} for {user_id}: {result.delta.net:+d} points, "
                f"level {result.delta.level_after}"
            )
        return result

    def push_snapshot(self, user_id: str, snapshot: ProgressSnapshot) -> ProgressSnapshot:
        """
        Store a client's full snapshot (last write wins).

        The owner is forced to ``user_id`` and derived values are recomputed,
        so a client cannot push a level its points do not support.
        """
        now = self.clock()
        sanitized = snapshot.model_copy(deep=True)
        sanitized.user_id = user_id
        sanitized.level = rules.level_for_points(sanitized.points)
        sanitized.highest_level = max(sanitized.highest_level, sanitized.level)
        sanitized.daily_progress = min(sanitized.daily_progress, sanitized.daily_goal)
        sanitized.coins = min(sanitized.coins, self.settings.reveal_limit)
        sanitized.updated_at = now
        self._fill_catalog(sanitized)

        self.progress_db.upsert_snapshot(sanitized)
        logger.info(f"Stored pushed progress for {user_id} ({sanitized.points} points)")
        return sanitized

    def set_daily_goal(self, user_id: str, daily_goal: int) -> EngineResult:
        if daily_goal < 1:
            return self.invalid_result(user_id, "Daily goal must be at least one minute")
        now = self.clock()
        snapshot = self.get_snapshot(user_id, now)
        snapshot.daily_goal = daily_goal
        snapshot.daily_progress = min(snapshot.daily_progress, daily_goal)
        snapshot.updated_at = now
        self.progress_db.upsert_snapshot(snapshot)
        return EngineResult(
            outcome=Outcome.APPLIED,
            snapshot=snapshot,
            delta=PointDelta(level_before=snapshot.level, level_after=snapshot.level),
        )

    def invalid_result(
        self, user_id: str, reason, now: Optional[datetime] = None
    ) -> EngineResult:
        """Rejection for malformed input; the stored snapshot is left as is"""
        if isinstance(reason, ValidationError):
            message = "; ".join(error["msg"] for error in reason.errors())
        else:
            message = str(reason)
        logger.info(f"Rejected invalid input for {user_id}: {message}")
        snapshot = self.get_snapshot(user_id, now)
        return EngineResult(
            outcome=Outcome.INVALID,
            snapshot=snapshot,
            delta=PointDelta(level_before=snapshot.level, level_after=snapshot.level),
            message=message,
        )

    def _apply_new(
        self,
        user_id: str,
        event_type: Callable[..., GamificationEvent],
        fields: Dict[str, Any],
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """Build an event from raw fields and apply it; bad fields give INVALID"""
        try:
            event = event_type(**fields)
        except ValidationError as e:
            return self.invalid_result(user_id, e, now)
        return self.apply(user_id, event, context, now)

    # ============================================
    # OPERATIONS
    # ============================================

    def apply_study_session_completion(
        self,
        user_id: str,
        duration_minutes: int,
        succeeded: bool,
        context: Optional[EvaluationContext] = None,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        event_type = StudyCompleted if succeeded else StudyAborted
        fields = {"duration_minutes": duration_minutes, "session_id": session_id}
        return self._apply_new(user_id, event_type, fields, context, now)

    def apply_quiz_result(
        self,
        user_id: str,
        correct: int,
        incorrect: int,
        revealed: int = 0,
        score: Optional[float] = None,
        duration_seconds: Optional[int] = None,
        context: Optional[EvaluationContext] = None,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        fields = {
            "correct": correct,
            "incorrect": incorrect,
            "revealed": revealed,
            "score": score,
            "duration_seconds": duration_seconds,
            "session_id": session_id,
        }
        return self._apply_new(user_id, QuizSubmitted, fields, context, now)

    def purchase_power_up(self, user_id: str, power_up_type: PowerUpType) -> EngineResult:
        return self._apply_new(
            user_id, PowerUpPurchased, {"power_up_type": power_up_type}
        )

    def use_answer_reveal(self, user_id: str) -> EngineResult:
        return self.apply(user_id, RevealUsed())

    def start_quiz_attempt(self, user_id: str, session_id: Optional[str] = None) -> EngineResult:
        return self.apply(user_id, QuizStarted(session_id=session_id))

    def track_ai_question(
        self,
        user_id: str,
        context: Optional[EvaluationContext] = None,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        return self.apply(user_id, AIQuestionAsked(session_id=session_id), context, now)

    def record_flashcards_generated(
        self,
        user_id: str,
        count: int,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        return self._apply_new(
            user_id, FlashcardsGenerated, {"count": count}, context, now
        )

    def check_quest_progress(
        self, user_id: str, quest_id: str, amount: int, now: Optional[datetime] = None
    ) -> EngineResult:
        """Advance one quest by id and store the result, reward included"""
        now = now or self.clock()
        snapshot = self.get_snapshot(user_id, now)
        result = self.engine.check_quest_progress(snapshot, quest_id, amount, now=now)
        self.progress_db.upsert_snapshot(result.snapshot)
        return result

    def record_flashcard_review(
        self,
        user_id: str,
        action: FlashcardAction,
        context: Optional[EvaluationContext] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        return self._apply_new(
            user_id, FlashcardReviewed, {"action": action}, context, now
        )

    # ============================================
    # QUERIES
    # ============================================

    def recent_achievements(self, user_id: str, limit: int = 5) -> List[Achievement]:
        """Earned achievements, most recent first"""
        earned = [a for a in self.get_snapshot(user_id).achievements if a.earned]
        earned.sort(key=lambda a: a.earned_at or datetime.min, reverse=True)
        return earned[:limit]

    def active_quests(self, user_id: str) -> List[Quest]:
        return [q for q in self.get_snapshot(user_id).quests if not q.completed]

    def _fill_catalog(self, snapshot: ProgressSnapshot) -> None:
        """Add catalog entries missing from documents stored by older versions"""
        for attribute, defaults in (
            ("badges", catalog.default_badges()),
            ("achievements", catalog.default_achievements()),
            ("quests", catalog.default_quests()),
            ("challenges", catalog.default_challenges()),
            (
                "power_ups",
                catalog.default_power_ups(self.settings.power_up_duration_minutes),
            ),
        ):
            items = getattr(snapshot, attribute)
            known = {item.id for item in items}
            items.extend(item for item in defaults if item.id not in known)
