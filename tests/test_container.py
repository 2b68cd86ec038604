"""
Unit Tests for Dependency Injection Container

Tests for:
- Lazy initialization (properties create instances on first access)
- Caching (subsequent property access returns same instance)
- Bot instance management (set_bot, bot property, error when not set)
- Injected adapters taking precedence over the defaults
- Lifecycle methods (initialize, shutdown)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeAudioBackend, FakeMetadataLookup
from discord_playlist_bot.application.commands.router import CommandRouter
from discord_playlist_bot.application.services.playback_controller import PlaybackController
from discord_playlist_bot.config.container import Container, create_container
from discord_playlist_bot.config.settings import (
    AudioSettings,
    DatabaseSettings,
    DiscordSettings,
    Settings,
)
from discord_playlist_bot.domain.playlist.store import PlaylistStore
from discord_playlist_bot.infrastructure.audio.ytdlp_metadata import YtDlpMetadataLookup
from discord_playlist_bot.infrastructure.discord.adapters.audio_backend import (
    DiscordAudioBackend,
)
from discord_playlist_bot.infrastructure.persistence.database import Database
from discord_playlist_bot.infrastructure.persistence.playlist_repository import (
    SQLitePlaylistRepository,
)


@pytest.fixture
def settings():
    return Settings(
        database=DatabaseSettings(url="sqlite:///:memory:"),
        discord=DiscordSettings(command_prefix="?"),
        audio=AudioSettings(default_volume=0.5, exit_sound_path="sounds/bye.mp3"),
    )


@pytest.fixture
def container(settings):
    return Container(settings=settings)


@pytest.fixture
def mock_bot():
    bot = MagicMock()
    bot.user = MagicMock()
    bot.user.id = 123456789
    return bot


# =============================================================================
# Container Initialization Tests
# =============================================================================


class TestContainerInitialization:
    def test_create_container_factory(self, settings):
        container = create_container(settings)

        assert isinstance(container, Container)
        assert container.settings is settings

    def test_initial_state_all_none(self, container):
        assert container._database is None
        assert container._audio_backend is None
        assert container._playback_controller is None
        assert container._command_router is None


class TestBotManagement:
    def test_set_bot(self, container, mock_bot):
        container.set_bot(mock_bot)

        assert container.bot is mock_bot

    def test_get_bot_when_not_set_raises_error(self, container):
        with pytest.raises(RuntimeError, match="Bot not initialized"):
            _ = container.bot


# =============================================================================
# Lazy Properties
# =============================================================================


class TestLazyProperties:
    def test_database(self, container):
        db = container.database

        assert isinstance(db, Database)
        assert db.db_path == ":memory:"
        assert container.database is db

    def test_playlist_repository(self, container):
        repo = container.playlist_repository

        assert isinstance(repo, SQLitePlaylistRepository)
        assert container.playlist_repository is repo

    def test_metadata_lookup(self, container):
        lookup = container.metadata_lookup

        assert isinstance(lookup, YtDlpMetadataLookup)
        assert container.metadata_lookup is lookup

    def test_audio_backend_requires_bot(self, container):
        with pytest.raises(RuntimeError):
            _ = container.audio_backend

    def test_audio_backend_uses_ytdlp_for_streams(self, container, mock_bot):
        container.set_bot(mock_bot)

        backend = container.audio_backend

        assert isinstance(backend, DiscordAudioBackend)
        assert backend._stream_resolver is container.metadata_lookup
        assert container.audio_backend is backend

    def test_audio_backend_without_ytdlp_lookup(self, container, mock_bot):
        container.set_bot(mock_bot)
        container._metadata_lookup = FakeMetadataLookup()

        assert container.audio_backend._stream_resolver is None

    def test_playlist_store_uses_default_volume(self, container):
        store = container.playlist_store

        assert isinstance(store, PlaylistStore)
        assert store.get_or_create(1).volume == 0.5
        assert container.playlist_store is store

    def test_playback_controller_uses_injected_adapters(self, container):
        backend = FakeAudioBackend()
        lookup = FakeMetadataLookup()
        container._audio_backend = backend
        container._metadata_lookup = lookup

        controller = container.playback_controller

        assert isinstance(controller, PlaybackController)
        assert controller._backend is backend
        assert controller._metadata is lookup
        assert controller._repository is container.playlist_repository
        assert controller._exit_sound_path == "sounds/bye.mp3"
        assert controller.store is container.playlist_store
        assert container.playback_controller is controller

    def test_command_router_uses_prefix(self, container):
        container._audio_backend = FakeAudioBackend()

        router = container.command_router

        assert isinstance(router, CommandRouter)
        assert router.prefix == "?"
        assert container.command_router is router


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_and_shutdown(self, container):
        await container.initialize()
        assert container.database.is_initialized

        await container.shutdown()
        assert not container.database.is_initialized

    @pytest.mark.asyncio
    async def test_shutdown_closes_controller(self, container):
        controller = MagicMock()
        controller.close = AsyncMock()
        container._playback_controller = controller

        await container.shutdown()

        controller.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_survives_controller_error(self, container):
        controller = MagicMock()
        controller.close = AsyncMock(side_effect=RuntimeError("boom"))
        container._playback_controller = controller
        await container.initialize()

        await container.shutdown()

        assert not container.database.is_initialized

    @pytest.mark.asyncio
    async def test_shutdown_without_anything_created(self, container):
        await container.shutdown()

        assert container._database is None
