"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the playlist store, the playback controller,
the command router and the adapters behind them. Components are created
on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    import discord

    from ..application.commands.router import CommandRouter
    from ..application.interfaces.audio_backend import AudioBackend
    from ..application.interfaces.metadata_lookup import MetadataLookup
    from ..application.services.playback_controller import PlaybackController
    from ..domain.playlist.repository import PlaylistRepository
    from ..domain.playlist.store import PlaylistStore
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed; the audio backend
    and metadata lookup may be injected up front (tests do this).
    """

    settings: Settings
    _bot: discord.Client | None = None

    # Persistence layer
    _database: Database | None = None
    _playlist_repository: PlaylistRepository | None = None

    # Infrastructure adapters
    _audio_backend: AudioBackend | None = None
    _metadata_lookup: MetadataLookup | None = None

    # Core
    _playlist_store: PlaylistStore | None = None
    _playback_controller: PlaybackController | None = None
    _command_router: CommandRouter | None = None

    def set_bot(self, bot: discord.Client) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> discord.Client:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError("Bot not initialized. Call set_bot() first.")
        return self._bot

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def playlist_repository(self) -> PlaylistRepository:
        """Get the saved playlist repository."""
        if self._playlist_repository is None:
            from ..infrastructure.persistence.playlist_repository import (
                SQLitePlaylistRepository,
            )

            self._playlist_repository = SQLitePlaylistRepository(self.database)
        return self._playlist_repository

    # === Adapters ===

    @property
    def audio_backend(self) -> AudioBackend:
        """Get the voice/audio backend."""
        if self._audio_backend is None:
            from ..infrastructure.audio.ytdlp_metadata import YtDlpMetadataLookup
            from ..infrastructure.discord.adapters.audio_backend import DiscordAudioBackend

            lookup = self.metadata_lookup
            self._audio_backend = DiscordAudioBackend(
                self.bot,
                self.settings.audio,
                stream_resolver=lookup if isinstance(lookup, YtDlpMetadataLookup) else None,
            )
        return self._audio_backend

    @property
    def metadata_lookup(self) -> MetadataLookup:
        """Get the title/search lookup."""
        if self._metadata_lookup is None:
            from ..infrastructure.audio.ytdlp_metadata import YtDlpMetadataLookup

            self._metadata_lookup = YtDlpMetadataLookup(self.settings.audio)
        return self._metadata_lookup

    # === Core ===

    @property
    def playlist_store(self) -> PlaylistStore:
        """Get the per-guild playlist registry."""
        if self._playlist_store is None:
            from ..domain.playlist.store import PlaylistStore

            self._playlist_store = PlaylistStore(
                default_volume=self.settings.audio.default_volume
            )
        return self._playlist_store

    @property
    def playback_controller(self) -> PlaybackController:
        """Get the playback controller."""
        if self._playback_controller is None:
            from ..application.services.playback_controller import PlaybackController

            self._playback_controller = PlaybackController(
                store=self.playlist_store,
                audio_backend=self.audio_backend,
                metadata_lookup=self.metadata_lookup,
                playlist_repository=self.playlist_repository,
                exit_sound_path=self.settings.audio.exit_sound_path,
            )
        return self._playback_controller

    @property
    def command_router(self) -> CommandRouter:
        """Get the command router."""
        if self._command_router is None:
            from ..application.commands.router import CommandRouter

            self._command_router = CommandRouter(
                self.playback_controller, prefix=self.settings.discord.command_prefix
            )
        return self._command_router

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._playback_controller is not None:
            try:
                await self._playback_controller.close()
            except Exception as exc:
                logger.warning("Failed closing playback controller: %r", exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
