"""
Progress synchronization for a client holding a local snapshot

Events are applied to the local snapshot right away and written back with a
debounced full-snapshot push. A periodic pull overwrites the local copy with
the stored one. There is no merge: the last completed write or fetch wins.
Sync failures never reach the caller; they are logged, the status turns to
``error`` and the local snapshot is kept.
"""

import abc
import asyncio
import logging
import sqlite3
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Set

import httpx

from app.config import Settings, get_settings
from app.models.events import EngineResult, GamificationEvent
from app.models.progress import ProgressSnapshot
from app.services.gamification import EvaluationContext, ProgressEngine, new_snapshot
from app.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SYNCED = "synced"
    SYNCING = "syncing"
    ERROR = "error"


class SyncError(Exception):
    """Raised by a remote when a push or fetch fails."""

    pass


# ============================================
# REMOTES
# ============================================


class ProgressRemote(abc.ABC):
    """Where the authoritative snapshot lives."""

    @abc.abstractmethod
    async def fetch(self) -> ProgressSnapshot:
        pass

    @abc.abstractmethod
    async def push(self, snapshot: ProgressSnapshot) -> None:
        pass

    async def aclose(self) -> None:
        pass


class StoreProgressRemote(ProgressRemote):
    """Reads and writes the progress store in-process."""

    def __init__(self, progress_service: ProgressService, user_id: str):
        self.progress_service = progress_service
        self.user_id = user_id

    async def fetch(self) -> ProgressSnapshot:
        try:
            return await asyncio.to_thread(
                self.progress_service.get_snapshot, self.user_id
            )
        except sqlite3.Error as e:
            raise SyncError(f"Failed to read progress for {self.user_id}: {e}") from e

    async def push(self, snapshot: ProgressSnapshot) -> None:
        try:
            await asyncio.to_thread(
                self.progress_service.push_snapshot, self.user_id, snapshot
            )
        except sqlite3.Error as e:
            raise SyncError(f"Failed to store progress for {self.user_id}: {e}") from e


class HttpProgressRemote(ProgressRemote):
    """Talks to the ``/api/progress`` routes with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.headers = {"Authorization": f"Bearer {token}"}

    async def fetch(self) -> ProgressSnapshot:
        try:
            response = await self.client.get("/api/progress", headers=self.headers)
            response.raise_for_status()
            return ProgressSnapshot.model_validate(response.json()["progress"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise SyncError(f"Failed to fetch progress: {e}") from e

    async def push(self, snapshot: ProgressSnapshot) -> None:
        try:
            response = await self.client.put(
                "/api/progress", json=snapshot.to_document(), headers=self.headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SyncError(f"Failed to push progress: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


# ============================================
# CLIENT
# ============================================


class ProgressSyncClient:
    def __init__(
        self,
        remote: ProgressRemote,
        user_id: str,
        engine: Optional[ProgressEngine] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.remote = remote
        self.user_id = user_id
        self.settings = settings or get_settings()
        self.engine = engine or ProgressEngine(self.settings)
        self.clock = clock
        self.monotonic = monotonic

        self.snapshot: Optional[ProgressSnapshot] = None
        self.status = SyncStatus.SYNCED
        self.last_synced_at: Optional[datetime] = None

        self._last_synced_document: Optional[dict] = None
        self._last_fetch: Optional[float] = None
        self._push_handle: Optional[asyncio.TimerHandle] = None
        self._pull_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def push_pending(self) -> bool:
        return self._push_handle is not None

    async def start(self) -> None:
        """Initial pull, then keep pulling in the background"""
        await self.pull_now(force=True)
        self._pull_task = asyncio.create_task(self._pull_periodically())

    async def stop(self) -> None:
        """Stop the background pull and flush a pending push"""
        if self._pull_task is not None:
            self._pull_task.cancel()
            await asyncio.gather(self._pull_task, return_exceptions=True)
            self._pull_task = None

        if self._push_handle is not None:
            self._push_handle.cancel()
            self._push_handle = None
            await self.push_now()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def apply(
        self,
        event: GamificationEvent,
        context: Optional[EvaluationContext] = None,
    ) -> EngineResult:
        """Apply an event to the local snapshot and schedule a push"""
        if self.snapshot is None:
            self.snapshot = new_snapshot(
                self.user_id,
                daily_goal=self.settings.default_daily_goal,
                power_up_duration_minutes=self.settings.power_up_duration_minutes,
            )
        result = self.engine.apply(self.snapshot, event, context, self.clock())
        if result.accepted:
            self.snapshot = result.snapshot
            self.schedule_push()
        return result

    def schedule_push(self) -> None:
        """(Re)start the debounce timer; only the last of a burst is pushed"""
        if self._push_handle is not None:
            self._push_handle.cancel()
        loop = asyncio.get_running_loop()
        self._push_handle = loop.call_later(
            self.settings.sync_debounce_seconds, self._launch_push
        )

    def _launch_push(self) -> None:
        self._push_handle = None
        task = asyncio.create_task(self.push_now())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def push_now(self) -> bool:
        """Push the local snapshot unless it equals the last one synced"""
        if self.snapshot is None:
            return False
        snapshot = self.snapshot
        document = snapshot.to_document()
        if document == self._last_synced_document:
            logger.debug(f"Progress for {self.user_id} unchanged, skipping push")
            return False

        self.status = SyncStatus.SYNCING
        try:
            await self.remote.push(snapshot)
        except SyncError as e:
            logger.warning(f"Progress push failed for {self.user_id}: {e}")
            self.status = SyncStatus.ERROR
            return False

        self._last_synced_document = document
        self.last_synced_at = self.clock()
        self.status = SyncStatus.SYNCED
        logger.debug(f"Pushed progress for {self.user_id}")
        return True

    async def pull_now(self, force: bool = False) -> bool:
        """Replace the local snapshot with the stored one"""
        now = self.monotonic()
        if (
            not force
            and self._last_fetch is not None
            and now - self._last_fetch < self.settings.sync_min_fetch_interval_seconds
        ):
            logger.debug(f"Skipping progress fetch for {self.user_id}: too soon")
            return False
        self._last_fetch = now

        self.status = SyncStatus.SYNCING
        try:
            snapshot = await self.remote.fetch()
        except SyncError as e:
            logger.warning(f"Progress fetch failed for {self.user_id}: {e}")
            self.status = SyncStatus.ERROR
            return False

        self.snapshot = snapshot
        self._last_synced_document = snapshot.to_document()
        self.last_synced_at = self.clock()
        self.status = SyncStatus.SYNCED
        return True

    async def _pull_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.settings.sync_pull_interval_seconds)
            await self.pull_now()
