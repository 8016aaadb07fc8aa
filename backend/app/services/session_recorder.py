"""
Session and quiz recorder

Turns finished study activity into a rule-engine event and an immutable
history entry. The evaluation context is built from the history log as it
will look once the new entry is appended, so "first session" style unlocks
fire on the activity that earns them.
"""

from typing import Callable, List, Optional, Tuple
from datetime import datetime
import logging

from pydantic import ValidationError

from app.database.study_history import HistoryDatabase
from app.models.content import DifficultyLevel, Flashcard, QuizQuestion
from app.models.events import EngineResult, FlashcardAction
from app.models.history import HistoryEntryCreate, HistoryKind
from app.services.content_generation import ContentGenerator
from app.services.gamification import EvaluationContext, rules
from app.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


def quiz_score(correct: int, incorrect: int, revealed: int = 0) -> float:
    """Percentage of answered questions that were correct"""
    total = correct + incorrect + revealed
    if total == 0:
        return 0.0
    return round(correct * 100.0 / total, 1)


class SessionRecorder:
    def __init__(
        self,
        db_service,
        progress_service: Optional[ProgressService] = None,
        content_generator: Optional[ContentGenerator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.history_db = HistoryDatabase(db_service)
        self.progress_service = progress_service or ProgressService(
            db_service, clock=clock
        )
        self.content_generator = content_generator or ContentGenerator()
        self.clock = clock

    def record_study_session(
        self,
        user_id: str,
        duration_minutes: int,
        succeeded: bool,
        session_id: Optional[str] = None,
    ) -> EngineResult:
        now = self.clock()
        try:
            entry = HistoryEntryCreate(
                user_id=user_id,
                kind=HistoryKind.STUDY_SESSION,
                session_id=session_id,
                occurred_at=now,
                duration_minutes=duration_minutes,
                completed=succeeded,
            )
        except ValidationError as e:
            return self.progress_service.invalid_result(user_id, e, now)
        result = self.progress_service.apply_study_session_completion(
            user_id,
            duration_minutes,
            succeeded,
            context=self._context_for(entry),
            session_id=session_id,
            now=now,
        )
        return self._log(entry, result)

    def record_quiz(
        self,
        user_id: str,
        correct: int,
        incorrect: int,
        revealed: int = 0,
        score: Optional[float] = None,
        duration_seconds: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> EngineResult:
        now = self.clock()
        used = self.progress_service.get_snapshot(user_id, now).coins
        revealed = rules.charged_reveals(revealed, used)
        if score is None:
            score = quiz_score(correct, incorrect, revealed)
        try:
            entry = HistoryEntryCreate(
                user_id=user_id,
                kind=HistoryKind.QUIZ,
                session_id=session_id,
                occurred_at=now,
                duration_minutes=(duration_seconds or 0) // 60,
                duration_seconds=duration_seconds,
                score=score,
                correct=correct,
                incorrect=incorrect,
                revealed=revealed,
            )
        except ValidationError as e:
            return self.progress_service.invalid_result(user_id, e, now)
        result = self.progress_service.apply_quiz_result(
            user_id,
            correct,
            incorrect,
            revealed=revealed,
            score=score,
            duration_seconds=duration_seconds,
            context=self._context_for(entry),
            session_id=session_id,
            now=now,
        )
        return self._log(entry, result)

    def record_ai_question(
        self, user_id: str, session_id: Optional[str] = None
    ) -> EngineResult:
        now = self.clock()
        entry = HistoryEntryCreate(
            user_id=user_id,
            kind=HistoryKind.AI_QUESTION,
            session_id=session_id,
            occurred_at=now,
        )
        result = self.progress_service.track_ai_question(
            user_id, context=self._context_for(entry), session_id=session_id, now=now
        )
        return self._log(entry, result)

    def record_flashcards_generated(self, user_id: str, count: int) -> EngineResult:
        now = self.clock()
        try:
            entry = HistoryEntryCreate(
                user_id=user_id,
                kind=HistoryKind.FLASHCARDS_GENERATED,
                occurred_at=now,
                item_count=count,
            )
        except ValidationError as e:
            return self.progress_service.invalid_result(user_id, e, now)
        result = self.progress_service.record_flashcards_generated(
            user_id, count, context=self._context_for(entry), now=now
        )
        return self._log(entry, result)

    def record_flashcard_review(
        self, user_id: str, action: FlashcardAction
    ) -> EngineResult:
        now = self.clock()
        entry = HistoryEntryCreate(
            user_id=user_id,
            kind=HistoryKind.FLASHCARD_REVIEW,
            occurred_at=now,
            item_count=1,
            metadata={"action": action.value},
        )
        result = self.progress_service.record_flashcard_review(
            user_id, action, context=self._context_for(entry), now=now
        )
        return self._log(entry, result)

    # ============================================
    # AI BACKED ACTIVITIES
    # ============================================

    async def prepare_quiz(
        self,
        user_id: str,
        content: str,
        count: int = 10,
        difficulty: DifficultyLevel = DifficultyLevel.MEDIUM,
        session_id: Optional[str] = None,
    ) -> List[QuizQuestion]:
        """Start a new quiz attempt (resets reveals) and generate its questions"""
        self.progress_service.start_quiz_attempt(user_id, session_id=session_id)
        return await self.content_generator.generate_quiz(content, count, difficulty)

    async def generate_flashcards(
        self,
        user_id: str,
        content: str,
        count: int = 10,
        topic: Optional[str] = None,
    ) -> Tuple[List[Flashcard], EngineResult]:
        """Generate flashcards and award points for them"""
        flashcards = await self.content_generator.generate_flashcards(
            content, count, topic
        )
        return flashcards, self.record_flashcards_generated(user_id, len(flashcards))

    # ============================================
    # HELPERS
    # ============================================

    def _context_for(self, entry: HistoryEntryCreate) -> EvaluationContext:
        today = entry.occurred_at.date()
        counts = self.history_db.activity_counts(
            entry.user_id, today, session_id=entry.session_id
        )
        return EvaluationContext.from_counts(counts, today).including(entry)

    def _log(self, entry: HistoryEntryCreate, result: EngineResult) -> EngineResult:
        """Append the history entry for an accepted result"""
        if not result.accepted:
            logger.info(
                f"Not recording {entry.kind.value} for {entry.user_id}: "
                f"{result.outcome.value}"
            )
            return result
        entry.points_earned = result.delta.net
        self.history_db.append(entry)
        return result
