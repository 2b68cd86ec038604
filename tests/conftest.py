import asyncio
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from discord_playlist_bot.application.interfaces.audio_backend import (
    AudioBackend,
    ConnectionHandle,
    PlaybackHandle,
)
from discord_playlist_bot.application.interfaces.metadata_lookup import MetadataLookup, TrackMatch
from discord_playlist_bot.application.interfaces.notification_sink import NotificationSink
from discord_playlist_bot.application.services.playback_controller import (
    PlaybackController,
    RequestContext,
)
from discord_playlist_bot.domain.playlist.store import PlaylistStore
from discord_playlist_bot.domain.playlist.value_objects import (
    CompletionReason,
    PlaybackOutcome,
    VoiceChannelRef,
)

GUILD_ID = 1001
GENERAL = VoiceChannelRef(channel_id=10, name="General")
LOUNGE = VoiceChannelRef(channel_id=20, name="Lounge")


# ============================================================================
# Fake Audio Backend
# ============================================================================


class FakeConnection(ConnectionHandle):
    def __init__(self, channel: VoiceChannelRef) -> None:
        self.channel = channel
        self.disconnected = False

    @property
    def channel_id(self) -> int:
        return self.channel.channel_id

    async def disconnect(self) -> None:
        self.disconnected = True


class FakePlaybackHandle(PlaybackHandle):
    """Handle whose terminal event is driven by the test through ``finish``."""

    def __init__(self, source: str, volume: float) -> None:
        self.source = source
        self.volume = volume
        self.paused = False
        self.stopped_with: CompletionReason | None = None
        self._future: asyncio.Future[PlaybackOutcome] = asyncio.get_running_loop().create_future()

    @property
    def is_paused(self) -> bool:
        return self.paused

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def stop(self, reason: CompletionReason = CompletionReason.SUPERSEDED) -> None:
        self.stopped_with = reason
        self.finish(reason)

    def finish(self, reason: CompletionReason = CompletionReason.FINISHED, error: str | None = None):
        if not self._future.done():
            self._future.set_result(PlaybackOutcome(reason=reason, error=error))

    async def wait(self) -> PlaybackOutcome:
        return await asyncio.shield(self._future)


class FakeAudioBackend(AudioBackend):
    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.handles: list[FakePlaybackHandle] = []
        self.join_error: Exception | None = None
        self.play_error: Exception | None = None

    @property
    def played(self) -> list[str]:
        return [h.source for h in self.handles]

    @property
    def last_handle(self) -> FakePlaybackHandle:
        return self.handles[-1]

    async def join(self, channel: VoiceChannelRef) -> FakeConnection:
        if self.join_error is not None:
            raise self.join_error
        connection = FakeConnection(channel)
        self.connections.append(connection)
        return connection

    async def play(
        self, connection: ConnectionHandle, source: str, *, volume: float = 1.0
    ) -> FakePlaybackHandle:
        if self.play_error is not None:
            raise self.play_error
        handle = FakePlaybackHandle(source, volume)
        self.handles.append(handle)
        return handle


class FakeMetadataLookup(MetadataLookup):
    def __init__(self) -> None:
        self.titles: dict[str, str] = {}
        self.results: dict[str, TrackMatch] = {}
        self.searched: list[str] = []

    async def resolve_title(self, url: str) -> str:
        if url not in self.titles:
            raise LookupError(url)
        return self.titles[url]

    async def search(self, query: str) -> TrackMatch | None:
        self.searched.append(query)
        return self.results.get(query)

    def is_url(self, query: str) -> bool:
        return query.startswith("http")


# ============================================================================
# Helpers
# ============================================================================


async def drain(rounds: int = 20) -> None:
    """Let watcher and lookup tasks run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_notifier() -> MagicMock:
    return MagicMock(spec=NotificationSink)


def make_ctx(
    notifier: MagicMock | None = None,
    voice_channel: VoiceChannelRef | None = GENERAL,
    guild_id: int = GUILD_ID,
    user_name: str | None = "alice",
) -> RequestContext:
    return RequestContext(
        guild_id=guild_id,
        notifier=notifier or make_notifier(),
        voice_channel=voice_channel,
        user_name=user_name,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def backend() -> FakeAudioBackend:
    return FakeAudioBackend()


@pytest.fixture
def metadata() -> FakeMetadataLookup:
    return FakeMetadataLookup()


@pytest.fixture
def notifier() -> MagicMock:
    return make_notifier()


@pytest.fixture
def ctx(notifier) -> RequestContext:
    return make_ctx(notifier)


@pytest_asyncio.fixture
async def controller(backend, metadata):
    """Playback controller over fake adapters, closed after the test."""
    ctrl = PlaybackController(
        store=PlaylistStore(),
        audio_backend=backend,
        metadata_lookup=metadata,
        exit_sound_path="sounds/bye.mp3",
    )
    yield ctrl
    await ctrl.close()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from discord_playlist_bot.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def playlist_repository(in_memory_database):
    from discord_playlist_bot.infrastructure.persistence.playlist_repository import (
        SQLitePlaylistRepository,
    )

    return SQLitePlaylistRepository(in_memory_database)
