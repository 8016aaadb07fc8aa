"""
Study history models: the append-only activity log and the analytics views
built on top of it
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

from .progress import ProgressModel


class HistoryKind(str, Enum):
    STUDY_SESSION = "study_session"
    QUIZ = "quiz"
    AI_QUESTION = "ai_question"
    FLASHCARDS_GENERATED = "flashcards_generated"
    FLASHCARD_REVIEW = "flashcard_review"


class HistoryEntryBase(ProgressModel):
    user_id: str = Field(..., min_length=1)
    kind: HistoryKind
    session_id: Optional[str] = None
    occurred_at: datetime
    duration_minutes: int = Field(0, ge=0)
    duration_seconds: Optional[int] = Field(None, ge=0)
    score: Optional[float] = Field(None, ge=0, le=100)
    points_earned: int = 0
    correct: int = Field(0, ge=0)
    incorrect: int = Field(0, ge=0)
    revealed: int = Field(0, ge=0)
    completed: bool = True
    item_count: int = Field(0, ge=0, description="Flashcards generated/reviewed")
    metadata: Optional[Dict[str, Any]] = None


class HistoryEntryCreate(HistoryEntryBase):
    pass


class HistoryEntry(HistoryEntryBase):
    id: int = Field(..., description="Unique history entry ID")


class HistoryFilters(BaseModel):
    kind: Optional[HistoryKind] = None
    session_id: Optional[str] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    limit: int = Field(100, ge=1, le=1000)


class StudyTimePoint(ProgressModel):
    date: str
    study_time: int


class RecentSession(ProgressModel):
    day: str
    time_created: str
    points_scored: int
    score_percentage: float
    time_spent: int


class OverallStats(ProgressModel):
    total_study_time: int = 0
    total_points: int = 0
    average_score: float = 0.0
    total_sessions: int = 0
    level: int = 1
    streak: int = 0
    quiz_accuracy: float = 0.0
