from .progress import (
    ProgressSnapshot,
    Badge,
    BadgeRarity,
    Achievement,
    Quest,
    QuestCategory,
    Challenge,
    ChallengeDifficulty,
    PowerUp,
    PowerUpType,
    DailyGoalUpdate,
)
from .events import (
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
from .history import (
    HistoryKind,
    HistoryEntry,
    HistoryEntryCreate,
    HistoryFilters,
    StudyTimePoint,
    RecentSession,
    OverallStats,
)
from .content import QuizQuestion, Flashcard, DifficultyLevel
from .requests import (
    StudySessionRequest,
    QuizResultRequest,
    QuizStartRequest,
    PowerUpRequest,
    AIQuestionRequest,
    FlashcardsGeneratedRequest,
    FlashcardReviewRequest,
    GenerateQuizRequest,
    GenerateFlashcardsRequest,
)


__all__ = [
    "ProgressSnapshot",
    "Badge",
    "BadgeRarity",
    "Achievement",
    "Quest",
    "QuestCategory",
    "Challenge",
    "ChallengeDifficulty",
    "PowerUp",
    "PowerUpType",
    "DailyGoalUpdate",
    "GamificationEvent",
    "StudyCompleted",
    "StudyAborted",
    "QuizStarted",
    "QuizSubmitted",
    "PowerUpPurchased",
    "RevealUsed",
    "AIQuestionAsked",
    "FlashcardsGenerated",
    "FlashcardReviewed",
    "FlashcardAction",
    "Outcome",
    "PointDelta",
    "EngineResult",
    "HistoryKind",
    "HistoryEntry",
    "HistoryEntryCreate",
    "HistoryFilters",
    "StudyTimePoint",
    "RecentSession",
    "OverallStats",
    "QuizQuestion",
    "Flashcard",
    "DifficultyLevel",
    "StudySessionRequest",
    "QuizResultRequest",
    "QuizStartRequest",
    "PowerUpRequest",
    "AIQuestionRequest",
    "FlashcardsGeneratedRequest",
    "FlashcardReviewRequest",
    "GenerateQuizRequest",
    "GenerateFlashcardsRequest",
]
