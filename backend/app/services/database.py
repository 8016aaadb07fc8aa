"""
Database service for SQLite operations with migration support
"""

import sqlite3
import json
from pathlib import Path
from typing import List, Dict, Any, Optional, Sequence
from contextlib import contextmanager
import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .migration_service import MigrationService

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = os.path.join(
    os.path.expanduser("~"), ".studymaster", "studymaster.db"
)


class DatabaseService:

    def __init__(self, db_path: str = None):
        # Use environment variable if provided, otherwise default to user data
        if db_path is None:
            db_path = os.getenv("DATABASE_PATH", DEFAULT_DATABASE_PATH)
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        database_url = f"sqlite+aiosqlite:///{self.db_path}"
        self.engine = create_async_engine(
            database_url,
            echo=False,  # Set to True for SQL query logging
            future=True,
        )
        self.async_session = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        self._init_db()

    def _init_db(self):
        """Initialize database with migrations"""
        migrations_dir = Path(__file__).parent.parent.parent / "migrations"
        self.migration_service = MigrationService(
            str(self.db_path), str(migrations_dir)
        )

        if self.migration_service.apply_pending_migrations():
            logger.info("Database migrations applied successfully")
        else:
            raise RuntimeError(f"Failed to apply database migrations to {self.db_path}")

    @contextmanager
    def get_connection(self):
        """Context manager for database connections"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row  # Enable column access by name
        try:
            yield conn
        finally:
            conn.close()

    def execute_query(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Execute a SELECT query and return results as dicts"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            return [dict(row) for row in rows]

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return affected rows"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def execute_insert(self, query: str, params: tuple = ()) -> int:
        """Execute an INSERT query and return the last row ID"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.lastrowid

    # Utility methods for JSON handling
    def _json_dumps(self, obj: Any) -> Optional[str]:
        """Convert object to JSON string"""
        return json.dumps(obj) if obj is not None else None

    def _json_loads(self, json_str: str) -> Any:
        """Convert JSON string to object"""
        return json.loads(json_str) if json_str else None

    # Convenience methods for common operations
    def get_by_id(self, table: str, id: int) -> Optional[Dict[str, Any]]:
        """Get a single record by ID"""
        query = f"SELECT * FROM {table} WHERE id = ?"
        results = self.execute_query(query, (id,))
        return results[0] if results else None

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert a new record"""
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["?"] * len(data))
        values = tuple(data.values())

        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        return self.execute_insert(query, values)

    def upsert(self, table: str, data: Dict[str, Any], key: Sequence[str]) -> int:
        """Insert a record, replacing every non-key column on conflict"""
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["?"] * len(data))
        updates = ", ".join(
            f"{column} = excluded.{column}" for column in data if column not in key
        )

        query = (
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT ({', '.join(key)}) DO UPDATE SET {updates}"
        )
        return self.execute_update(query, tuple(data.values()))

    def count(self, table: str, where_clause: str = "", params: tuple = ()) -> int:
        """Count records in a table"""
        query = f"SELECT COUNT(*) as count FROM {table}"
        if where_clause:
            query += f" WHERE {where_clause}"
        result = self.execute_query(query, params)
        return result[0]["count"] if result else 0

    def get_migration_status(self) -> Dict[str, Any]:
        """Get current migration status"""
        return self.migration_service.get_migration_status()


# Global database service instance for dependency injection
# This will be initialized in app startup
_db_service: Optional[DatabaseService] = None


def init_database_service(db_path: str = None) -> DatabaseService:
    """Initialize the global database service instance"""
    global _db_service
    _db_service = DatabaseService(db_path)
    return _db_service


def get_database_service() -> DatabaseService:
    """Dependency returning the initialized database service"""
    if _db_service is None:
        raise RuntimeError(
            "Database service not initialized. Call init_database_service() first."
        )
    return _db_service


async def get_db() -> AsyncSession:
    """
    Dependency function to get database session for FastAPI routes
    """
    db_service = get_database_service()
    async with db_service.async_session() as session:
        try:
            yield session
        finally:
            await session.close()


__all__ = [
    "DatabaseService",
    "init_database_service",
    "get_database_service",
    "get_db",
]
