"""
Tests for the migration system
"""

import sqlite3
from pathlib import Path

import pytest

from app.services.migration_service import MigrationService

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


def _tables(db_path):
    with sqlite3.connect(str(db_path)) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return {row[0] for row in rows.fetchall()}


class TestMigrationService:
    """Test cases for MigrationService."""

    @pytest.fixture
    def db_path(self, tmp_path):
        return tmp_path / "migrations_test.db"

    def test_apply_bundled_migrations(self, db_path):
        """Test the shipped migrations create the schema."""
        service = MigrationService(str(db_path), str(MIGRATIONS_DIR))

        assert service.apply_pending_migrations()
        assert {"progress_snapshots", "study_history"} <= _tables(db_path)
        assert service.get_applied_migrations() == ["V001__initial_schema"]

    def test_rollback_files_are_not_applied(self, db_path):
        service = MigrationService(str(db_path), str(MIGRATIONS_DIR))
        status = service.get_migration_status()

        assert "V001__initial_schema" in status["available_migrations"]
        assert not any(m.endswith("_rollback") for m in status["available_migrations"])

    def test_apply_is_idempotent(self, db_path):
        service = MigrationService(str(db_path), str(MIGRATIONS_DIR))
        assert service.apply_pending_migrations()
        assert service.apply_pending_migrations()
        assert service.get_applied_migrations() == ["V001__initial_schema"]

    def test_migrations_applied_in_name_order(self, db_path, tmp_path):
        """Test pending migrations run in V-number order."""
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "V002__add_index.sql").write_text(
            "CREATE INDEX idx_notes_body ON notes(body);"
        )
        (migrations_dir / "V001__notes.sql").write_text(
            "CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT);"
        )

        service = MigrationService(str(db_path), str(migrations_dir))
        assert service.apply_pending_migrations()
        assert service.get_applied_migrations() == ["V001__notes", "V002__add_index"]

    def test_failed_migration_stops(self, db_path, tmp_path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "V001__broken.sql").write_text("CREATE TABLE (;")
        (migrations_dir / "V002__after.sql").write_text("CREATE TABLE after (id INTEGER);")

        service = MigrationService(str(db_path), str(migrations_dir))
        assert service.apply_pending_migrations() is False
        assert service.get_applied_migrations() == []
        assert "after" not in _tables(db_path)

    def test_create_migration_file(self, db_path, tmp_path):
        migrations_dir = tmp_path / "migrations"
        service = MigrationService(str(db_path), str(migrations_dir))

        migration_file = service.create_migration_file(
            "V002__test_migration", "Test migration for verification"
        )

        assert migration_file.exists()
        assert "Test migration for verification" in migration_file.read_text()
        assert service.get_migration_status()["pending_migrations"] == [
            "V002__test_migration"
        ]

    def test_rollback_migration(self, db_path):
        service = MigrationService(str(db_path), str(MIGRATIONS_DIR))
        service.apply_pending_migrations()

        assert service.rollback_migration("V001__initial_schema")
        assert "progress_snapshots" not in _tables(db_path)
        assert service.get_applied_migrations() == []

    def test_rollback_without_script(self, db_path, tmp_path):
        service = MigrationService(str(db_path), str(tmp_path / "empty"))
        assert service.rollback_migration("V009__missing") is False
