"""
Study analytics over the history log
"""

from typing import Callable, List, Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.history import (
    HistoryKind,
    OverallStats,
    RecentSession,
    StudyTimePoint,
)
from app.models.progress import ProgressSnapshot

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock

    async def study_time_trend(self, user_id: str, days: int = 30) -> List[StudyTimePoint]:
        """Minutes studied per day over the last ``days`` days, zero-filled"""
        today = self.clock().date()
        start = today - timedelta(days=days - 1)

        result = await self.db.execute(
            text(
                """
                SELECT substr(occurred_at, 1, 10) as day,
                       SUM(duration_minutes) as study_time
                FROM study_history
                WHERE user_id = :user_id AND kind = :kind AND completed = 1
                  AND substr(occurred_at, 1, 10) >= :start
                GROUP BY day
            """
            ),
            {
                "user_id": user_id,
                "kind": HistoryKind.STUDY_SESSION.value,
                "start": start.isoformat(),
            },
        )
        per_day = {row.day: row.study_time or 0 for row in result.fetchall()}

        return [
            StudyTimePoint(
                date=(start + timedelta(days=i)).isoformat(),
                study_time=per_day.get((start + timedelta(days=i)).isoformat(), 0),
            )
            for i in range(days)
        ]

    async def recent_sessions(self, user_id: str, limit: int = 10) -> List[RecentSession]:
        """Latest study sessions with the score of the quiz taken in them"""
        result = await self.db.execute(
            text(
                """
                SELECT s.occurred_at, s.points_earned, s.duration_minutes,
                       (SELECT q.score FROM study_history q
                        WHERE q.user_id = s.user_id AND q.kind = :quiz_kind
                          AND s.session_id IS NOT NULL
                          AND q.session_id = s.session_id
                        ORDER BY q.occurred_at DESC LIMIT 1) as quiz_score
                FROM study_history s
                WHERE s.user_id = :user_id AND s.kind = :session_kind
                ORDER BY s.occurred_at DESC, s.id DESC
                LIMIT :limit
            """
            ),
            {
                "user_id": user_id,
                "quiz_kind": HistoryKind.QUIZ.value,
                "session_kind": HistoryKind.STUDY_SESSION.value,
                "limit": limit,
            },
        )

        sessions = []
        for row in result.fetchall():
            occurred_at = datetime.fromisoformat(row.occurred_at)
            sessions.append(
                RecentSession(
                    day=occurred_at.date().isoformat(),
                    time_created=occurred_at.strftime("%H:%M:%S"),
                    points_scored=row.points_earned,
                    score_percentage=row.quiz_score or 0.0,
                    time_spent=row.duration_minutes,
                )
            )
        return sessions

    async def overall_stats(
        self, user_id: str, snapshot: Optional[ProgressSnapshot] = None
    ) -> OverallStats:
        """Lifetime totals; level, streak and points come from the snapshot"""
        result = await self.db.execute(
            text(
                """
                SELECT
                    SUM(CASE WHEN kind = :session_kind AND completed = 1
                        THEN 1 ELSE 0 END) as total_sessions,
                    SUM(CASE WHEN kind = :session_kind AND completed = 1
                        THEN duration_minutes ELSE 0 END) as logged_minutes,
                    AVG(CASE WHEN kind = :quiz_kind THEN score END) as average_score,
                    SUM(CASE WHEN kind = :quiz_kind THEN correct ELSE 0 END) as correct,
                    SUM(CASE WHEN kind = :quiz_kind
                        THEN correct + incorrect + revealed ELSE 0 END) as answered
                FROM study_history
                WHERE user_id = :user_id
            """
            ),
            {
                "user_id": user_id,
                "session_kind": HistoryKind.STUDY_SESSION.value,
                "quiz_kind": HistoryKind.QUIZ.value,
            },
        )
        # Aggregates always return a single row, NULL sums on an empty log
        row = result.fetchone()
        answered = row.answered or 0
        accuracy = round((row.correct or 0) * 100.0 / answered, 1) if answered else 0.0

        stats = OverallStats(
            total_study_time=row.logged_minutes or 0,
            average_score=round(row.average_score or 0.0, 1),
            total_sessions=row.total_sessions or 0,
            quiz_accuracy=accuracy,
        )
        if snapshot is not None:
            stats.total_study_time = snapshot.total_study_time
            stats.total_points = snapshot.points
            stats.level = snapshot.level
            stats.streak = snapshot.streak
        return stats
