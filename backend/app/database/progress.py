"""
Database operations for progress_snapshots table
"""

from typing import List, Optional
from datetime import datetime
import json
import logging

from app.models.progress import ProgressSnapshot
from app.services.database import DatabaseService

logger = logging.getLogger(__name__)


class ProgressDatabase:
    """One JSON snapshot document per user; writes replace the whole document"""

    def __init__(self, db_service: DatabaseService):
        self.db = db_service

    def get_snapshot(self, user_id: str) -> Optional[ProgressSnapshot]:
        """Get the stored snapshot for a user, None when there is none"""
        result = self.db.execute_query(
            "SELECT snapshot FROM progress_snapshots WHERE user_id = ?", (user_id,)
        )
        if not result:
            return None
        return ProgressSnapshot.model_validate(json.loads(result[0]["snapshot"]))

    def upsert_snapshot(self, snapshot: ProgressSnapshot) -> None:
        """Create or fully replace a user's snapshot (last write wins)"""
        updated_at = snapshot.updated_at or datetime.now()
        self.db.upsert(
            "progress_snapshots",
            {
                "user_id": snapshot.user_id,
                "snapshot": json.dumps(snapshot.to_document()),
                "points": snapshot.points,
                "level": snapshot.level,
                "updated_at": updated_at.isoformat(),
            },
            key=("user_id",),
        )
        logger.debug(f"Stored progress snapshot for {snapshot.user_id}")

    def delete_snapshot(self, user_id: str) -> int:
        """Delete a user's snapshot"""
        return self.db.execute_update(
            "DELETE FROM progress_snapshots WHERE user_id = ?", (user_id,)
        )

    def list_user_ids(self) -> List[str]:
        """Users that have a stored snapshot"""
        rows = self.db.execute_query(
            "SELECT user_id FROM progress_snapshots ORDER BY user_id"
        )
        return [row["user_id"] for row in rows]
