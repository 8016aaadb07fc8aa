"""
Migration service for handling database schema changes

Applies ``V<NNN>__<description>.sql`` files from the migrations directory in
name order and records each one in ``schema_migrations``.
"""

import hashlib
import sqlite3
import logging
from pathlib import Path
from typing import List, Dict, Any
from datetime import datetime

logger = logging.getLogger(__name__)


class MigrationService:
    def __init__(self, db_path: str, migrations_dir: str = None):
        self.db_path = Path(db_path)
        if migrations_dir:
            self.migrations_dir = Path(migrations_dir)
        else:
            self.migrations_dir = Path(__file__).parent.parent.parent / "migrations"

        self.migrations_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Migrations directory set to: {self.migrations_dir}")
        self._init_migration_table()

    def _init_migration_table(self):
        """Initialize the migrations tracking table"""
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    migration_id TEXT NOT NULL UNIQUE,
                    description TEXT,
                    applied_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    checksum TEXT
                )
            """
            )
            conn.commit()

    def get_applied_migrations(self) -> List[str]:
        """Get list of applied migration IDs"""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT migration_id FROM schema_migrations ORDER BY id")
            return [row[0] for row in cursor.fetchall()]

    def apply_migration(self, migration_file: Path) -> bool:
        """Apply a single migration file"""
        migration_id = migration_file.stem

        if migration_id in self.get_applied_migrations():
            logger.info(f"Migration {migration_id} already applied, skipping")
            return True

        try:
            sql_content = migration_file.read_text(encoding="utf-8")
            checksum = hashlib.sha256(sql_content.encode("utf-8")).hexdigest()

            with sqlite3.connect(str(self.db_path)) as conn:
                conn.executescript(sql_content)
                conn.execute(
                    """
                    INSERT INTO schema_migrations (migration_id, description, checksum)
                    VALUES (?, ?, ?)
                """,
                    (migration_id, migration_file.name, checksum),
                )
                conn.commit()

            logger.info(f"Successfully applied migration: {migration_id}")
            return True

        except sqlite3.Error as e:
            logger.error(f"Failed to apply migration {migration_id}: {e}")
            return False

    def apply_pending_migrations(self) -> bool:
        """Apply all pending migrations in order"""
        migration_files = self._get_migration_files()

        if not migration_files:
            logger.info(f"No migration files found in {self.migrations_dir}")
            return True
        logger.debug(f"Found migration files: {[f.name for f in migration_files]}")

        applied = self.get_applied_migrations()
        pending = [f for f in migration_files if f.stem not in applied]

        if not pending:
            logger.info("No pending migrations")
            return True

        # V001__, V002__, ... sort in application order
        pending.sort(key=lambda x: x.name)

        for migration_file in pending:
            if not self.apply_migration(migration_file):
                return False
        return True

    def _get_migration_files(self) -> List[Path]:
        """Get all forward migration files from the migrations directory"""
        if not self.migrations_dir.exists():
            return []

        return [
            file
            for file in self.migrations_dir.iterdir()
            if file.is_file()
            and file.suffix.lower() == ".sql"
            and not file.stem.endswith("_rollback")
        ]

    def create_migration_file(self, migration_id: str, description: str = "") -> Path:
        """Create a new migration file template"""
        filepath = self.migrations_dir / f"{migration_id}.sql"

        template = f"""-- Migration: {migration_id}
-- Description: {description}
-- Created: {datetime.now().isoformat()}

-- Add your SQL migration statements here

"""
        filepath.write_text(template, encoding="utf-8")

        logger.info(f"Created migration file: {filepath}")
        return filepath

    def get_migration_status(self) -> Dict[str, Any]:
        """Get current migration status"""
        applied = self.get_applied_migrations()
        available = sorted(f.stem for f in self._get_migration_files())

        return {
            "applied_migrations": applied,
            "available_migrations": available,
            "pending_migrations": [m for m in available if m not in applied],
        }

    def rollback_migration(self, migration_id: str) -> bool:
        """Rollback a specific migration (if rollback script exists)"""
        rollback_file = self.migrations_dir / f"{migration_id}_rollback.sql"

        if not rollback_file.exists():
            logger.error(f"Rollback file not found: {rollback_file}")
            return False

        try:
            sql_content = rollback_file.read_text(encoding="utf-8")
            with sqlite3.connect(str(self.db_path)) as conn:
                conn.executescript(sql_content)
                conn.execute(
                    "DELETE FROM schema_migrations WHERE migration_id = ?",
                    (migration_id,),
                )
                conn.commit()

            logger.info(f"Successfully rolled back migration: {migration_id}")
            return True

        except sqlite3.Error as e:
            logger.error(f"Failed to rollback migration {migration_id}: {e}")
            return False
