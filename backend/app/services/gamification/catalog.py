"""
Default badges, achievements, quests, challenges and power-ups

Every new progress snapshot starts with a fresh copy of these collections.
"""

from typing import List

from ...models.progress import (
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
)

# ============================================
# BADGES
# ============================================

BADGE_DEFINITIONS = [
    ("first-quiz", "First Quiz", "Complete your first quiz", "🎓", BadgeRarity.COMMON),
    ("streak-7", "Week Streak", "Study for 7 days in a row", "🔥", BadgeRarity.RARE),
    ("points-100", "Centurion", "Earn 100 points", "💯", BadgeRarity.COMMON),
    ("perfect-score", "Perfect Score", "Get 100% on a quiz", "🏆", BadgeRarity.RARE),
    ("early-bird", "Early Bird", "Study before 8 AM", "🐦", BadgeRarity.COMMON),
    ("night-owl", "Night Owl", "Study after 10 PM", "🦉", BadgeRarity.COMMON),
    (
        "speed-demon",
        "Speed Demon",
        "Finish a quiz in under 5 minutes",
        "⚡",
        BadgeRarity.EPIC,
    ),
    ("scholar", "Scholar", "Complete 10 quizzes", "📚", BadgeRarity.EPIC),
    (
        "first-flashcard",
        "First Flashcard",
        "Create your first flashcard",
        "📇",
        BadgeRarity.COMMON,
    ),
    (
        "flashcard-collector",
        "Card Collector",
        "Create 10 flashcards",
        "🗂️",
        BadgeRarity.COMMON,
    ),
    ("flashcard-hoarder", "Card Hoarder", "Create 50 flashcards", "📚", BadgeRarity.RARE),
    (
        "flashcard-library",
        "Living Library",
        "Create 100 flashcards",
        "🏛️",
        BadgeRarity.EPIC,
    ),
    (
        "knowledge-seeker",
        "Knowledge Seeker",
        "Master 25 flashcards",
        "🔍",
        BadgeRarity.RARE,
    ),
    (
        "knowledge-master",
        "Knowledge Master",
        "Master 100 flashcards",
        "🧠",
        BadgeRarity.EPIC,
    ),
]

# ============================================
# ACHIEVEMENTS
# ============================================

ACHIEVEMENT_DEFINITIONS = [
    ("first-session", "First Session", "Complete your first study session", "🎯", 25),
    ("marathon-study", "Marathon Study", "Study for 2 hours in one session", "🏃", 50),
    ("consistent-week", "Consistent Week", "Study every day for a week", "📅", 75),
    ("quiz-expert", "Quiz Expert", "Score 90% or higher on 5 quizzes", "📝", 100),
    ("point-master", "Point Master", "Earn 1000 total points", "⭐", 200),
    (
        "ai-learning-pioneer",
        "AI Learning Pioneer",
        "Generate 100 AI-powered flashcards",
        "🚀",
        150,
    ),
]

# ============================================
# QUESTS
# ============================================

QUEST_DEFINITIONS = [
    # id, name, description, icon, category, target, reward
    (
        "study-60",
        "Hour Master",
        "Study for 60 minutes total",
        "⏱️",
        QuestCategory.STUDY_MINUTES,
        60,
        50,
    ),
    ("quiz-5", "Quiz Master", "Complete 5 quizzes", "📝", QuestCategory.QUIZZES, 5, 75),
    (
        "ai-chat-10",
        "Chat Champion",
        "Ask 10 questions to AI tutor",
        "💬",
        QuestCategory.AI_QUESTIONS,
        10,
        40,
    ),
    (
        "streak-30",
        "Monthly Streak",
        "Maintain a 30-day study streak",
        "📅",
        QuestCategory.STREAK,
        30,
        150,
    ),
    (
        "daily-goal-7",
        "Goal Achiever",
        "Meet daily goal for 7 days",
        "🎯",
        QuestCategory.DAILY_GOAL,
        7,
        100,
    ),
    (
        "create-flashcards-10",
        "Card Creator",
        "Create 10 flashcards",
        "📇",
        QuestCategory.FLASHCARDS_CREATED,
        10,
        25,
    ),
    (
        "master-flashcards-20",
        "Card Master",
        "Master 20 flashcards",
        "🎯",
        QuestCategory.FLASHCARDS_MASTERED,
        20,
        40,
    ),
]

# ============================================
# CHALLENGES
# ============================================

CHALLENGE_DEFINITIONS = [
    (
        "speed-quiz",
        "Speed Quiz",
        "Complete a quiz in under 3 minutes",
        "🏃",
        30,
        ChallengeDifficulty.MEDIUM,
    ),
    (
        "perfect-day",
        "Perfect Day",
        "Study for your daily goal without interruptions",
        "⭐",
        45,
        ChallengeDifficulty.HARD,
    ),
    (
        "ai-master",
        "AI Master",
        "Ask 5 questions in one study session",
        "🤖",
        35,
        ChallengeDifficulty.MEDIUM,
    ),
    (
        "early-riser",
        "Early Riser",
        "Start studying before 6 AM",
        "🌅",
        25,
        ChallengeDifficulty.EASY,
    ),
]

# ============================================
# POWER-UPS
# ============================================

POWER_UP_DEFINITIONS = {
    PowerUpType.POINTS: ("Points Booster", "Earn 2x points for 1 hour", "✨", 2.0),
    PowerUpType.TIME: (
        "Time Extender",
        "Study minutes count 1.5x towards goals for 1 hour",
        "⏰",
        1.5,
    ),
    PowerUpType.STREAK: (
        "Streak Protector",
        "Missed days do not break your streak for 1 hour",
        "🛡️",
        1.0,
    ),
}


def default_badges() -> List[Badge]:
    return [
        Badge(id=id, name=name, description=description, icon=icon, rarity=rarity)
        for id, name, description, icon, rarity in BADGE_DEFINITIONS
    ]


def default_achievements() -> List[Achievement]:
    return [
        Achievement(
            id=id, name=name, description=description, icon=icon, points=points
        )
        for id, name, description, icon, points in ACHIEVEMENT_DEFINITIONS
    ]


def default_quests() -> List[Quest]:
    return [
        Quest(
            id=id,
            name=name,
            description=description,
            icon=icon,
            category=category,
            target=target,
            reward=reward,
        )
        for id, name, description, icon, category, target, reward in QUEST_DEFINITIONS
    ]


def default_challenges() -> List[Challenge]:
    return [
        Challenge(
            id=id,
            name=name,
            description=description,
            icon=icon,
            reward=reward,
            difficulty=difficulty,
        )
        for id, name, description, icon, reward, difficulty in CHALLENGE_DEFINITIONS
    ]


def default_power_ups(duration_minutes: int = 60) -> List[PowerUp]:
    return [
        PowerUp(
            id=power_up_type.value,
            type=power_up_type,
            name=name,
            description=description,
            icon=icon,
            multiplier=multiplier,
            duration_minutes=duration_minutes,
        )
        for power_up_type, (name, description, icon, multiplier) in (
            POWER_UP_DEFINITIONS.items()
        )
    ]


def new_snapshot(
    user_id: str, daily_goal: int = 30, power_up_duration_minutes: int = 60
) -> ProgressSnapshot:
    """All-default snapshot for a user without a stored record"""
    return ProgressSnapshot(
        user_id=user_id,
        daily_goal=daily_goal,
        badges=default_badges(),
        achievements=default_achievements(),
        quests=default_quests(),
        challenges=default_challenges(),
        power_ups=default_power_ups(power_up_duration_minutes),
    )
