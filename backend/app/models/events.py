"""
Gamification events and rule-engine outcomes

Every change to a progress snapshot is expressed as one of the tagged event
variants below and routed by its ``kind``.
"""

from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union
from enum import Enum

from .progress import ProgressModel, ProgressSnapshot, PowerUpType


class FlashcardAction(str, Enum):
    SAVED = "saved"
    KNOWN = "known"
    REVIEW = "review"


class StudyCompleted(ProgressModel):
    kind: Literal["study_completed"] = "study_completed"
    duration_minutes: int = Field(..., ge=0, le=24 * 60)
    session_id: Optional[str] = None


class StudyAborted(ProgressModel):
    kind: Literal["study_aborted"] = "study_aborted"
    duration_minutes: int = Field(0, ge=0, le=24 * 60)
    session_id: Optional[str] = None


class QuizStarted(ProgressModel):
    kind: Literal["quiz_started"] = "quiz_started"
    session_id: Optional[str] = None


class QuizSubmitted(ProgressModel):
    kind: Literal["quiz_submitted"] = "quiz_submitted"
    correct: int = Field(..., ge=0)
    incorrect: int = Field(..., ge=0)
    revealed: int = Field(0, ge=0)
    score: Optional[float] = Field(None, ge=0, le=100)
    duration_seconds: Optional[int] = Field(None, ge=0)
    session_id: Optional[str] = None


class PowerUpPurchased(ProgressModel):
    kind: Literal["power_up_purchased"] = "power_up_purchased"
    power_up_type: PowerUpType


class RevealUsed(ProgressModel):
    kind: Literal["reveal_used"] = "reveal_used"


class AIQuestionAsked(ProgressModel):
    kind: Literal["ai_question_asked"] = "ai_question_asked"
    session_id: Optional[str] = None


class FlashcardsGenerated(ProgressModel):
    kind: Literal["flashcards_generated"] = "flashcards_generated"
    count: int = Field(..., ge=0)


class FlashcardReviewed(ProgressModel):
    kind: Literal["flashcard_reviewed"] = "flashcard_reviewed"
    action: FlashcardAction


GamificationEvent = Annotated[
    Union[
        StudyCompleted,
        StudyAborted,
        QuizStarted,
        QuizSubmitted,
        PowerUpPurchased,
        RevealUsed,
        AIQuestionAsked,
        FlashcardsGenerated,
        FlashcardReviewed,
    ],
    Field(discriminator="kind"),
]


class Outcome(str, Enum):
    APPLIED = "applied"
    ACTIVATED = "activated"
    GRANTED = "granted"
    INSUFFICIENT_POINTS = "insufficient_points"
    LIMIT_REACHED = "limit_reached"
    ALREADY_ACTIVE = "already_active"
    INVALID = "invalid"

    @property
    def accepted(self) -> bool:
        return self in (Outcome.APPLIED, Outcome.ACTIVATED, Outcome.GRANTED)


class PointDelta(ProgressModel):
    base: int = Field(0, description="Delta from the event formula")
    multiplier: float = Field(1.0, description="Power-up multiplier applied")
    applied: int = Field(0, description="Base delta after the multiplier")
    bonus: int = Field(0, description="Rewards and level-up bonuses granted")
    net: int = Field(0, description="Actual change of points, after clamping")
    level_before: int = 1
    level_after: int = 1
    earned: List[str] = Field(
        default_factory=list, description="Badges, achievements and challenges"
    )
    completed_quests: List[str] = Field(default_factory=list)


class EngineResult(BaseModel):
    outcome: Outcome
    snapshot: ProgressSnapshot
    delta: PointDelta = Field(default_factory=PointDelta)
    message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.outcome.accepted
