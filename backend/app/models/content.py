"""
AI-generated study content models
"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from enum import Enum


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0, description="Index into options")
    explanation: Optional[str] = None
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
    category: str = "general"

    @model_validator(mode="after")
    def check_answer_index(self):
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class Flashcard(BaseModel):
    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)
    topic: Optional[str] = None
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
