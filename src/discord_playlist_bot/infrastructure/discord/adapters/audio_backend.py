"""Discord voice implementation of the AudioBackend port."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import discord

from discord_playlist_bot.application.interfaces.audio_backend import (
    AudioBackend,
    ConnectionHandle,
    PlaybackHandle,
)
from discord_playlist_bot.config.settings import AudioSettings
from discord_playlist_bot.domain.playlist.value_objects import (
    CompletionReason,
    PlaybackOutcome,
    VoiceChannelRef,
)
from discord_playlist_bot.domain.shared.exceptions import PlaybackStartError, VoiceConnectionError
from discord_playlist_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_playlist_bot.infrastructure.audio.ytdlp_metadata import YtDlpMetadataLookup

logger = logging.getLogger(__name__)

# Matches yt-dlp's Android client user-agent to avoid YouTube 403 responses
ANDROID_USER_AGENT = "com.google.android.youtube/19.44.38 (Linux; U; Android 14) gzip"


class DiscordConnection(ConnectionHandle):
    def __init__(self, voice_client: discord.VoiceClient) -> None:
        self._voice_client = voice_client

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    @property
    def channel_id(self) -> int:
        return self._voice_client.channel.id

    async def disconnect(self) -> None:
        if self._voice_client.is_playing() or self._voice_client.is_paused():
            self._voice_client.stop()
        await self._voice_client.disconnect(force=True)


class DiscordPlaybackHandle(PlaybackHandle):
    """Wraps one source played on a voice client.

    discord.py calls ``after`` from its audio thread; the callback hops back
    onto the event loop with ``call_soon_threadsafe`` and resolves a future
    exactly once.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        source: discord.PCMVolumeTransformer,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._voice_client = voice_client
        self._source = source
        self._loop = loop
        self._future: asyncio.Future[PlaybackOutcome] = loop.create_future()
        self._stop_reason: CompletionReason | None = None

    @property
    def source(self) -> discord.PCMVolumeTransformer:
        return self._source

    @property
    def is_paused(self) -> bool:
        return self._owns_player() and self._voice_client.is_paused()

    def pause(self) -> None:
        if self._owns_player() and self._voice_client.is_playing():
            self._voice_client.pause()

    def resume(self) -> None:
        if self._owns_player() and self._voice_client.is_paused():
            self._voice_client.resume()

    def set_volume(self, volume: float) -> None:
        self._source.volume = max(0.0, min(2.0, volume))

    def stop(self, reason: CompletionReason = CompletionReason.SUPERSEDED) -> None:
        self._stop_reason = reason
        if self._owns_player():
            # The after callback reports the terminal event.
            self._voice_client.stop()
        else:
            self._resolve(None)

    async def wait(self) -> PlaybackOutcome:
        return await asyncio.shield(self._future)

    def after_callback(self, error: Exception | None = None) -> None:
        """Called by discord.py from the audio thread."""
        if error:
            logger.warning(LogTemplates.VOICE_SOURCE_ERROR, self._voice_client.channel, error)
        self._loop.call_soon_threadsafe(self._resolve, error)

    def _resolve(self, error: Exception | None) -> None:
        if self._future.done():
            return
        if self._stop_reason is not None:
            outcome = PlaybackOutcome(reason=self._stop_reason)
        elif error is not None:
            outcome = PlaybackOutcome(reason=CompletionReason.ERROR, error=str(error))
        else:
            outcome = PlaybackOutcome(reason=CompletionReason.FINISHED)
        self._future.set_result(outcome)

    def _owns_player(self) -> bool:
        return self._voice_client.source is self._source


class DiscordAudioBackend(AudioBackend):
    def __init__(
        self,
        bot: discord.Client,
        settings: AudioSettings | None = None,
        stream_resolver: YtDlpMetadataLookup | None = None,
    ) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._stream_resolver = stream_resolver
        self._ffmpeg_options = self._settings.ffmpeg_options

    # TODO(integ): Test real voice connect with a test bot in a test guild.
    # Verify: successful connect, timeout, permission denied (Forbidden).
    async def join(self, channel: VoiceChannelRef) -> DiscordConnection:
        target = self._bot.get_channel(channel.channel_id)
        if target is None:
            raise VoiceConnectionError(
                channel.channel_id, ErrorMessages.CHANNEL_NOT_FOUND.format(channel=channel)
            )
        if not isinstance(target, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectionError(
                channel.channel_id, ErrorMessages.CHANNEL_NOT_VOICE.format(channel=channel)
            )

        stale = target.guild.voice_client
        if stale is not None:
            logger.warning(LogTemplates.VOICE_DISCONNECTED, target.guild.id)
            await stale.disconnect(force=True)

        try:
            async with asyncio.timeout(self._settings.connect_timeout_s):
                voice_client = await target.connect(self_deaf=True)
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel.channel_id)
            raise VoiceConnectionError(
                channel.channel_id, ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel=channel)
            ) from None
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel.channel_id)
            raise VoiceConnectionError(
                channel.channel_id, ErrorMessages.VOICE_NO_PERMISSION.format(channel=channel)
            ) from None
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, channel.channel_id, e)
            raise VoiceConnectionError(channel.channel_id) from e

        return DiscordConnection(voice_client)

    # TODO(integ): Test playing a short clip via FFmpeg on a live voice connection and
    # verify that after_callback resolves the handle when the clip ends.
    async def play(
        self, connection: ConnectionHandle, source: str, *, volume: float = 1.0
    ) -> DiscordPlaybackHandle:
        if not isinstance(connection, DiscordConnection):
            raise TypeError(f"Expected a DiscordConnection, got {type(connection).__name__}")

        voice_client = connection.voice_client
        media, before_options = await self._prepare_source(source)

        if voice_client.is_playing() or voice_client.is_paused():
            voice_client.stop()

        try:
            audio = discord.PCMVolumeTransformer(
                discord.FFmpegPCMAudio(
                    media,
                    before_options=before_options,
                    options=self._ffmpeg_options.get("options", ""),
                ),
                volume=max(0.0, min(2.0, volume)),
            )
            handle = DiscordPlaybackHandle(voice_client, audio, asyncio.get_running_loop())
            voice_client.play(audio, after=handle.after_callback)
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, connection.channel_id, e)
            raise PlaybackStartError(source, str(e)) from e

        return handle

    async def _prepare_source(self, source: str) -> tuple[str, str | None]:
        """Return the FFmpeg input and its ``before_options`` for *source*."""
        if Path(source).is_file():
            return source, None

        media = source
        if self._stream_resolver is not None and self._stream_resolver.is_url(source):
            resolved = await self._stream_resolver.resolve_stream_url(source)
            if resolved is None:
                raise PlaybackStartError(source)
            media = resolved

        # User-Agent must match yt-dlp's Android client to prevent YouTube 403
        base_before_opts = self._ffmpeg_options.get("before_options", "")
        return media, f'{base_before_opts} -headers "User-Agent: {ANDROID_USER_AGENT}"'
