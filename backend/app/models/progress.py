"""
Progress snapshot models for the StudyMaster application

Attributes are snake_case in Python; the stored and transmitted form of a
snapshot is camelCase (userId, totalStudyTime, powerUps, ...).
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, date
from enum import Enum


class ProgressModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BadgeRarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class QuestCategory(str, Enum):
    STUDY_MINUTES = "study_minutes"
    QUIZZES = "quizzes"
    AI_QUESTIONS = "ai_questions"
    STREAK = "streak"
    DAILY_GOAL = "daily_goal"
    FLASHCARDS_CREATED = "flashcards_created"
    FLASHCARDS_MASTERED = "flashcards_mastered"


class ChallengeDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PowerUpType(str, Enum):
    POINTS = "points"
    TIME = "time"
    STREAK = "streak"


class Badge(ProgressModel):
    id: str = Field(..., description="Badge identifier, unique per snapshot")
    name: str
    description: str = ""
    icon: str = ""
    earned: bool = False
    earned_at: Optional[datetime] = None
    rarity: BadgeRarity = BadgeRarity.COMMON


class Achievement(ProgressModel):
    id: str = Field(..., description="Achievement identifier")
    name: str
    description: str = ""
    icon: str = ""
    earned: bool = False
    earned_at: Optional[datetime] = None
    points: int = Field(0, ge=0, description="Reward granted once when earned")


class Quest(ProgressModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    category: QuestCategory
    progress: int = Field(0, ge=0)
    target: int = Field(..., ge=1)
    reward: int = Field(0, ge=0)
    completed: bool = False
    completed_at: Optional[datetime] = None


class Challenge(ProgressModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    reward: int = Field(0, ge=0)
    completed: bool = False
    completed_at: Optional[datetime] = None
    difficulty: ChallengeDifficulty = ChallengeDifficulty.MEDIUM


class PowerUp(ProgressModel):
    id: str
    type: PowerUpType
    name: str
    description: str = ""
    icon: str = ""
    multiplier: float = Field(1.0, gt=0)
    duration_minutes: int = Field(60, ge=1)
    active: bool = False
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ProgressSnapshot(ProgressModel):
    user_id: str = Field(..., min_length=1, description="Owner of the snapshot")
    points: int = Field(0, ge=0)
    level: int = Field(1, ge=1, description="Derived from points")
    highest_level: int = Field(
        1, ge=1, description="Highest level a level-up bonus was paid for"
    )
    streak: int = Field(0, ge=0)
    last_study_date: Optional[date] = None
    total_study_time: int = Field(0, ge=0, description="Minutes studied in total")
    daily_goal: int = Field(30, ge=1, description="Daily study target in minutes")
    daily_progress: int = Field(0, ge=0)
    daily_progress_date: Optional[date] = None
    daily_goal_met_date: Optional[date] = None
    coins: int = Field(0, ge=0, description="Answer reveals used in this quiz")
    badges: List[Badge] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)
    quests: List[Quest] = Field(default_factory=list)
    challenges: List[Challenge] = Field(default_factory=list)
    power_ups: List[PowerUp] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    def find_badge(self, badge_id: str) -> Optional[Badge]:
        return next((b for b in self.badges if b.id == badge_id), None)

    def find_achievement(self, achievement_id: str) -> Optional[Achievement]:
        return next((a for a in self.achievements if a.id == achievement_id), None)

    def find_quest(self, quest_id: str) -> Optional[Quest]:
        return next((q for q in self.quests if q.id == quest_id), None)

    def find_challenge(self, challenge_id: str) -> Optional[Challenge]:
        return next((c for c in self.challenges if c.id == challenge_id), None)

    def find_power_up(self, power_up_type: PowerUpType) -> Optional[PowerUp]:
        return next((p for p in self.power_ups if p.type == power_up_type), None)

    def to_document(self) -> dict:
        """Serialize to the camelCase document stored and sent over the wire"""
        return self.model_dump(mode="json", by_alias=True)


class DailyGoalUpdate(ProgressModel):
    daily_goal: int = Field(..., ge=1, le=24 * 60)
