import asyncio
import json

import httpx
import pytest
from unittest.mock import AsyncMock

from app.config import Settings
from app.models.events import PowerUpPurchased, StudyCompleted
from app.models.progress import PowerUpType
from app.services.gamification import new_snapshot
from app.services.progress_sync import (
    HttpProgressRemote,
    ProgressRemote,
    ProgressSyncClient,
    StoreProgressRemote,
    SyncError,
    SyncStatus,
)


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


@pytest.fixture
def sync_settings():
    return Settings(
        sync_debounce_seconds=0.01,
        sync_pull_interval_seconds=0.02,
        sync_min_fetch_interval_seconds=5.0,
    )


@pytest.fixture
def remote():
    remote = AsyncMock(spec=ProgressRemote)
    remote.fetch.return_value = new_snapshot("user-1")
    return remote


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def sync_client(remote, sync_settings, clock, monotonic):
    return ProgressSyncClient(
        remote, "user-1", settings=sync_settings, clock=clock, monotonic=monotonic
    )


class TestPush:
    """Debounced pushes of the local snapshot."""

    @pytest.mark.asyncio
    async def test_burst_of_events_pushes_once(self, sync_client, remote):
        for minutes in (5, 10, 15):
            sync_client.apply(StudyCompleted(duration_minutes=minutes))
        assert sync_client.push_pending

        await asyncio.sleep(0.05)

        remote.push.assert_awaited_once()
        pushed = remote.push.await_args.args[0]
        assert pushed.total_study_time == 30
        assert not sync_client.push_pending
        assert sync_client.status == SyncStatus.SYNCED

    @pytest.mark.asyncio
    async def test_rejected_event_does_not_push(self, sync_client, remote):
        result = sync_client.apply(PowerUpPurchased(power_up_type=PowerUpType.POINTS))

        assert not result.accepted
        assert not sync_client.push_pending
        remote.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unchanged_snapshot_is_not_pushed(self, sync_client, remote):
        sync_client.apply(StudyCompleted(duration_minutes=5))
        assert await sync_client.push_now()
        assert await sync_client.push_now() is False
        remote.push.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_push_without_snapshot(self, sync_client, remote):
        assert await sync_client.push_now() is False
        remote.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_push_failure_keeps_local_state(self, sync_client, remote):
        remote.push.side_effect = SyncError("offline")
        sync_client.apply(StudyCompleted(duration_minutes=5))

        assert await sync_client.push_now() is False

        assert sync_client.status == SyncStatus.ERROR
        assert sync_client.snapshot.points == 25

        # A later push retries the same document
        remote.push.side_effect = None
        assert await sync_client.push_now()
        assert sync_client.status == SyncStatus.SYNCED

    @pytest.mark.asyncio
    async def test_stop_flushes_pending_push(self, sync_client, remote):
        sync_client.settings.sync_debounce_seconds = 60
        sync_client.apply(StudyCompleted(duration_minutes=5))

        await sync_client.stop()

        remote.push.assert_awaited_once()
        assert not sync_client.push_pending


class TestPull:
    """Fetching the stored snapshot."""

    @pytest.mark.asyncio
    async def test_pull_overwrites_local_snapshot(self, sync_client, remote, clock):
        sync_client.apply(StudyCompleted(duration_minutes=5))
        stored = new_snapshot("user-1")
        stored.points = 500
        remote.fetch.return_value = stored

        assert await sync_client.pull_now(force=True)

        assert sync_client.snapshot.points == 500
        assert sync_client.last_synced_at == clock.now
        # The pulled copy counts as synced
        assert await sync_client.push_now() is False

    @pytest.mark.asyncio
    async def test_min_fetch_interval(self, sync_client, remote, monotonic):
        assert await sync_client.pull_now()
        assert await sync_client.pull_now() is False

        monotonic.value += 5
        assert await sync_client.pull_now()
        assert remote.fetch.await_count == 2

        assert await sync_client.pull_now(force=True)
        assert remote.fetch.await_count == 3

    @pytest.mark.asyncio
    async def test_pull_failure(self, sync_client, remote):
        sync_client.apply(StudyCompleted(duration_minutes=5))
        remote.fetch.side_effect = SyncError("offline")

        assert await sync_client.pull_now(force=True) is False

        assert sync_client.status == SyncStatus.ERROR
        assert sync_client.snapshot.points == 25

    @pytest.mark.asyncio
    async def test_start_pulls_periodically(self, sync_client, remote, monotonic):
        await sync_client.start()
        assert remote.fetch.await_count == 1

        monotonic.value += 10
        await asyncio.sleep(0.05)
        await sync_client.stop()

        assert remote.fetch.await_count == 2


class TestRemotes:
    @pytest.mark.asyncio
    async def test_store_remote_round_trip(self, progress_service):
        remote = StoreProgressRemote(progress_service, "user-1")
        snapshot = new_snapshot("user-1")
        snapshot.points = 120

        await remote.push(snapshot)
        fetched = await remote.fetch()

        assert fetched.points == 120
        assert fetched.level == 2

    @pytest.mark.asyncio
    async def test_http_remote(self):
        stored = {}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer token-1"
            if request.method == "PUT":
                stored.update(json.loads(request.content))
                return httpx.Response(200, json={"success": True})
            return httpx.Response(200, json={"progress": stored})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        )
        remote = HttpProgressRemote("http://test", "token-1", client=client)

        snapshot = new_snapshot("user-1")
        snapshot.points = 42
        await remote.push(snapshot)
        assert stored["userId"] == "user-1"

        fetched = await remote.fetch()
        assert fetched.points == 42

        await remote.aclose()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_errors_become_sync_errors(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(401)),
            base_url="http://test",
        )
        remote = HttpProgressRemote("http://test", "expired", client=client)

        with pytest.raises(SyncError):
            await remote.fetch()
        with pytest.raises(SyncError):
            await remote.push(new_snapshot("user-1"))

        await client.aclose()
