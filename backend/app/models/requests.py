"""
Request bodies of the progress API
"""

from pydantic import Field
from typing import Optional

from .progress import ProgressModel, PowerUpType
from .events import FlashcardAction
from .content import DifficultyLevel


class StudySessionRequest(ProgressModel):
    duration_minutes: int = Field(..., ge=0, le=24 * 60)
    succeeded: bool = True
    session_id: Optional[str] = None


class QuizResultRequest(ProgressModel):
    correct: int = Field(..., ge=0)
    incorrect: int = Field(..., ge=0)
    revealed: int = Field(0, ge=0)
    score: Optional[float] = Field(None, ge=0, le=100)
    duration_seconds: Optional[int] = Field(None, ge=0)
    session_id: Optional[str] = None


class QuizStartRequest(ProgressModel):
    session_id: Optional[str] = None


class PowerUpRequest(ProgressModel):
    type: PowerUpType


class AIQuestionRequest(ProgressModel):
    session_id: Optional[str] = None


class FlashcardsGeneratedRequest(ProgressModel):
    count: int = Field(..., ge=0, le=1000)


class FlashcardReviewRequest(ProgressModel):
    action: FlashcardAction


class GenerateQuizRequest(ProgressModel):
    content: str = Field(..., min_length=1)
    count: int = Field(10, ge=1, le=25)
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
    session_id: Optional[str] = None


class GenerateFlashcardsRequest(ProgressModel):
    content: str = Field(..., min_length=1)
    count: int = Field(10, ge=5, le=15)
    topic: Optional[str] = None
