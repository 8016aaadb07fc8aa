import pytest
from fastapi.testclient import TestClient
import os
import uuid
import asyncio
from datetime import datetime, timedelta
from pathlib import Path
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.auth import create_access_token
from app.config import Settings
from app.services.database import DatabaseService
from app.services.gamification import ProgressEngine, new_snapshot
from app.services.migration_service import MigrationService
from app.services.progress_service import ProgressService


class FakeClock:
    """Settable replacement for datetime.now"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="function", autouse=True)
def setup_test_database(tmp_path):
    """Set up isolated test database for each test."""
    test_db_path = tmp_path / f"test_studymaster_{uuid.uuid4().hex}.db"

    original_db_path = os.environ.get("DATABASE_PATH")
    os.environ["DATABASE_PATH"] = str(test_db_path)

    yield

    if original_db_path:
        os.environ["DATABASE_PATH"] = original_db_path
    else:
        os.environ.pop("DATABASE_PATH", None)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def progress_engine(settings):
    return ProgressEngine(settings)


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 14, 0, 0)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def snapshot():
    """Fresh default snapshot for user 'user-1'"""
    return new_snapshot("user-1")


@pytest.fixture
def db_service():
    """DatabaseService on the per-test database, migrations applied"""
    return DatabaseService()


@pytest.fixture
def progress_service(db_service, settings, clock):
    return ProgressService(db_service, settings=settings, clock=clock)


@pytest.fixture
def client():
    """Test client running the app lifespan against the test database."""
    from app.app import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def db_session():
    """Create a test database session factory with initialized schema."""
    db_path = os.environ.get("DATABASE_PATH", ":memory:")

    migrations_dir = Path(__file__).parent.parent / "migrations"
    migration_service = MigrationService(str(db_path), str(migrations_dir))

    if not migration_service.apply_pending_migrations():
        raise RuntimeError("Failed to apply database migrations for tests")

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}", echo=False, poolclass=NullPool
    )
    async_session_factory = sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )

    yield async_session_factory

    # Properly close the async engine to avoid ResourceWarning
    asyncio.run(engine.dispose())
