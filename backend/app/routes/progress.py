"""
Progress API routes
"""

from datetime import datetime
from typing import Optional
import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id
from app.database.study_history import HistoryDatabase
from app.llm_clients.exceptions import LLMClientsError
from app.models.events import EngineResult, Outcome
from app.models.history import HistoryFilters, HistoryKind
from app.models.progress import DailyGoalUpdate, ProgressSnapshot
from app.models.requests import (
    AIQuestionRequest,
    FlashcardReviewRequest,
    FlashcardsGeneratedRequest,
    GenerateFlashcardsRequest,
    GenerateQuizRequest,
    PowerUpRequest,
    QuizResultRequest,
    QuizStartRequest,
    StudySessionRequest,
)
from app.services.analytics_service import AnalyticsService
from app.services.database import get_database_service, get_db
from app.services.gamification import rules
from app.services.progress_service import ProgressService
from app.services.session_recorder import SessionRecorder

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

REJECTION_STATUS = {
    Outcome.INSUFFICIENT_POINTS: 402,
    Outcome.ALREADY_ACTIVE: 409,
    Outcome.LIMIT_REACHED: 409,
    Outcome.INVALID: 422,
}


# Dependencies
def get_progress_service() -> ProgressService:
    return ProgressService(get_database_service())


def get_session_recorder(
    progress_service: ProgressService = Depends(get_progress_service),
) -> SessionRecorder:
    return SessionRecorder(get_database_service(), progress_service=progress_service)


def get_history_db() -> HistoryDatabase:
    return HistoryDatabase(get_database_service())


def _result_response(result: EngineResult) -> dict:
    """Body for an engine operation; rejected outcomes become HTTP errors"""
    if not result.accepted:
        raise HTTPException(
            status_code=REJECTION_STATUS.get(result.outcome, 400),
            detail={"outcome": result.outcome.value, "message": result.message},
        )
    return {
        "success": True,
        "outcome": result.outcome.value,
        "delta": result.delta.model_dump(mode="json", by_alias=True),
        "progress": result.snapshot.to_document(),
    }


def _store_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {e}")
    return HTTPException(status_code=500, detail=f"Failed to {action}: {str(e)}")


# ============================================
# SNAPSHOT
# ============================================


@router.get("")
async def get_progress(
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Get the current user's progress snapshot"""
    try:
        snapshot = service.get_snapshot(user_id)
    except sqlite3.Error as e:
        raise _store_error("load progress", e)
    return {
        "progress": snapshot.to_document(),
        "pointsToNextLevel": rules.points_for_next_level(snapshot.points),
    }


@router.put("")
async def push_progress(
    snapshot: ProgressSnapshot,
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Replace the stored snapshot with the client's copy"""
    try:
        service.push_snapshot(user_id, snapshot)
    except sqlite3.Error as e:
        raise _store_error("store progress", e)
    return {"success": True}


@router.patch("/daily-goal")
async def update_daily_goal(
    update: DailyGoalUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    return _result_response(service.set_daily_goal(user_id, update.daily_goal))


# ============================================
# ACTIVITY
# ============================================


@router.post("/study-session")
async def record_study_session(
    request: StudySessionRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    """Record a finished (or abandoned) study session"""
    result = recorder.record_study_session(
        user_id, request.duration_minutes, request.succeeded, request.session_id
    )
    return _result_response(result)


@router.post("/quiz/start")
async def start_quiz(
    request: Optional[QuizStartRequest] = None,
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Begin a quiz attempt, resetting the answer reveals"""
    session_id = request.session_id if request else None
    return _result_response(service.start_quiz_attempt(user_id, session_id=session_id))


@router.post("/quiz/reveal")
async def reveal_answer(
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Use one answer reveal of the current quiz attempt"""
    result = service.use_answer_reveal(user_id)
    response = _result_response(result)
    response["remaining"] = max(
        0, service.settings.reveal_limit - result.snapshot.coins
    )
    return response


@router.post("/quiz")
async def submit_quiz(
    request: QuizResultRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    result = recorder.record_quiz(
        user_id,
        request.correct,
        request.incorrect,
        revealed=request.revealed,
        score=request.score,
        duration_seconds=request.duration_seconds,
        session_id=request.session_id,
    )
    return _result_response(result)


@router.post("/power-ups")
async def purchase_power_up(
    request: PowerUpRequest,
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Spend points on a power-up"""
    return _result_response(service.purchase_power_up(user_id, request.type))


@router.post("/ai-question")
async def track_ai_question(
    request: Optional[AIQuestionRequest] = None,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    session_id = request.session_id if request else None
    return _result_response(recorder.record_ai_question(user_id, session_id))


@router.post("/flashcards/generated")
async def record_flashcards_generated(
    request: FlashcardsGeneratedRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    return _result_response(
        recorder.record_flashcards_generated(user_id, request.count)
    )


@router.post("/flashcards/review")
async def record_flashcard_review(
    request: FlashcardReviewRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    return _result_response(recorder.record_flashcard_review(user_id, request.action))


# ============================================
# AI GENERATION
# ============================================


@router.post("/quiz/generate")
async def generate_quiz(
    request: GenerateQuizRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    """Start a quiz attempt with freshly generated questions"""
    try:
        questions = await recorder.prepare_quiz(
            user_id,
            request.content,
            count=request.count,
            difficulty=request.difficulty,
            session_id=request.session_id,
        )
    except LLMClientsError as e:
        logger.error(f"Quiz generation failed for {user_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Quiz generation failed: {e}")
    return {"questions": [q.model_dump(mode="json") for q in questions]}


@router.post("/flashcards/generate")
async def generate_flashcards(
    request: GenerateFlashcardsRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    """Generate flashcards from study material and award points for them"""
    try:
        flashcards, result = await recorder.generate_flashcards(
            user_id, request.content, count=request.count, topic=request.topic
        )
    except LLMClientsError as e:
        logger.error(f"Flashcard generation failed for {user_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Flashcard generation failed: {e}")
    response = _result_response(result)
    response["flashcards"] = [card.model_dump(mode="json") for card in flashcards]
    return response


# ============================================
# QUERIES
# ============================================


@router.get("/achievements")
async def get_achievements(
    recent: bool = False,
    limit: int = Query(5, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    if recent:
        achievements = service.recent_achievements(user_id, limit)
    else:
        achievements = service.get_snapshot(user_id).achievements
    return {
        "achievements": [a.model_dump(mode="json", by_alias=True) for a in achievements]
    }


@router.get("/quests")
async def get_quests(
    user_id: str = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Quests that are still open"""
    quests = service.active_quests(user_id)
    return {"quests": [q.model_dump(mode="json", by_alias=True) for q in quests]}


@router.get("/history")
async def get_history(
    kind: Optional[HistoryKind] = None,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    history_db: HistoryDatabase = Depends(get_history_db),
):
    filters = HistoryFilters(
        kind=kind, session_id=session_id, since=since, until=until, limit=limit
    )
    entries = history_db.list_entries(user_id, filters)
    return {"entries": [e.model_dump(mode="json", by_alias=True) for e in entries]}


@router.get("/analytics/{kind}")
async def get_analytics(
    kind: str,
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
):
    analytics = AnalyticsService(db)

    if kind == "study-time-trend":
        points = await analytics.study_time_trend(user_id, days)
        return {"data": [p.model_dump(by_alias=True) for p in points]}
    if kind == "recent-sessions":
        sessions = await analytics.recent_sessions(user_id, limit)
        return {"sessions": [s.model_dump(by_alias=True) for s in sessions]}
    if kind == "overall-stats":
        stats = await analytics.overall_stats(user_id, service.get_snapshot(user_id))
        return stats.model_dump(by_alias=True)

    raise HTTPException(status_code=400, detail="Invalid analytics type")
