"""
Database operations for study_history table

The history log is append-only: entries are inserted and read, never
updated or deleted.
"""

from typing import List, Dict, Any, Optional
from datetime import date
import logging

from app.models.events import FlashcardAction
from app.models.history import (
    HistoryEntry,
    HistoryEntryCreate,
    HistoryFilters,
    HistoryKind,
)
from app.services.database import DatabaseService

logger = logging.getLogger(__name__)


class HistoryDatabase:
    def __init__(self, db_service: DatabaseService):
        self.db = db_service

    def append(self, entry: HistoryEntryCreate) -> HistoryEntry:
        """Append an entry to the log"""
        data = entry.model_dump(mode="json")
        data["metadata"] = self.db._json_dumps(data.get("metadata"))
        entry_id = self.db.insert("study_history", data)
        logger.debug(f"Appended {entry.kind.value} history entry {entry_id}")
        return HistoryEntry(id=entry_id, **entry.model_dump())

    def get_entry(self, entry_id: int) -> Optional[HistoryEntry]:
        row = self.db.get_by_id("study_history", entry_id)
        return self._to_entry(row) if row else None

    def list_entries(
        self, user_id: str, filters: Optional[HistoryFilters] = None
    ) -> List[HistoryEntry]:
        """Entries for a user, newest first"""
        filters = filters or HistoryFilters()
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]

        if filters.kind:
            clauses.append("kind = ?")
            params.append(filters.kind.value)
        if filters.session_id:
            clauses.append("session_id = ?")
            params.append(filters.session_id)
        if filters.since:
            clauses.append("occurred_at >= ?")
            params.append(filters.since.isoformat())
        if filters.until:
            clauses.append("occurred_at < ?")
            params.append(filters.until.isoformat())
        params.append(filters.limit)

        rows = self.db.execute_query(
            f"""
            SELECT * FROM study_history
            WHERE {' AND '.join(clauses)}
            ORDER BY occurred_at DESC, id DESC
            LIMIT ?
        """,
            tuple(params),
        )
        return [self._to_entry(row) for row in rows]

    def activity_counts(
        self, user_id: str, today: date, session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Aggregates needed to evaluate badges, achievements and challenges"""
        result = self.db.execute_query(
            """
            SELECT
                SUM(CASE WHEN kind = ? AND completed = 1 THEN 1 ELSE 0 END)
                    as sessions_completed,
                MAX(CASE WHEN kind = ? AND completed = 1 THEN duration_minutes ELSE 0 END)
                    as longest_session_minutes,
                SUM(CASE WHEN kind = ? THEN 1 ELSE 0 END) as quizzes_completed,
                SUM(CASE WHEN kind = ? AND score >= 100 THEN 1 ELSE 0 END)
                    as perfect_quizzes,
                SUM(CASE WHEN kind = ? AND score >= 90 THEN 1 ELSE 0 END)
                    as expert_quizzes,
                SUM(CASE WHEN kind = ? THEN item_count ELSE 0 END)
                    as flashcards_created,
                SUM(CASE WHEN kind = ? AND json_extract(metadata, '$.action') = ?
                    THEN 1 ELSE 0 END) as flashcards_mastered,
                SUM(CASE WHEN kind = ? AND completed = 0
                    AND substr(occurred_at, 1, 10) = ? THEN 1 ELSE 0 END)
                    as aborted_today,
                SUM(CASE WHEN kind = ? AND session_id IS NOT NULL AND session_id = ?
                    THEN 1 ELSE 0 END) as ai_questions_in_session
            FROM study_history
            WHERE user_id = ?
        """,
            (
                HistoryKind.STUDY_SESSION.value,
                HistoryKind.STUDY_SESSION.value,
                HistoryKind.QUIZ.value,
                HistoryKind.QUIZ.value,
                HistoryKind.QUIZ.value,
                HistoryKind.FLASHCARDS_GENERATED.value,
                HistoryKind.FLASHCARD_REVIEW.value,
                FlashcardAction.KNOWN.value,
                HistoryKind.STUDY_SESSION.value,
                today.isoformat(),
                HistoryKind.AI_QUESTION.value,
                session_id,
                user_id,
            ),
        )
        row = result[0] if result else {}
        counts = {key: int(value or 0) for key, value in row.items()}
        counts["aborted_today"] = counts.get("aborted_today", 0) > 0
        return counts

    def _to_entry(self, row: Dict[str, Any]) -> HistoryEntry:
        data = dict(row)
        data["metadata"] = self.db._json_loads(data.get("metadata"))
        data["completed"] = bool(data.get("completed"))
        return HistoryEntry.model_validate(data)
