"""
Tests for the Discord voice AudioBackend

Covers joining voice channels, starting FFmpeg sources and how the
discord.py ``after`` callback is turned into a playback outcome.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest
import pytest_asyncio

from discord_playlist_bot.config.settings import AudioSettings
from discord_playlist_bot.domain.playlist.value_objects import CompletionReason, VoiceChannelRef
from discord_playlist_bot.domain.shared.exceptions import PlaybackStartError, VoiceConnectionError
from discord_playlist_bot.infrastructure.discord.adapters.audio_backend import (
    ANDROID_USER_AGENT,
    DiscordAudioBackend,
    DiscordConnection,
    DiscordPlaybackHandle,
)

CHANNEL = VoiceChannelRef(channel_id=456, name="General")


@pytest.fixture
def mock_bot():
    return MagicMock()


@pytest.fixture
def backend(mock_bot):
    return DiscordAudioBackend(mock_bot, AudioSettings(connect_timeout_s=1.0))


def _voice_channel(connect: AsyncMock) -> MagicMock:
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL.channel_id
    channel.guild = MagicMock()
    channel.guild.id = 123
    channel.guild.voice_client = None
    channel.connect = connect
    return channel


def _voice_client() -> MagicMock:
    vc = MagicMock()
    vc.channel.id = CHANNEL.channel_id
    vc.source = None
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()

    def _play(source, after=None):
        vc.source = source

    vc.play.side_effect = _play
    return vc


class TestJoin:
    """Tests for connecting to voice."""

    @pytest.mark.asyncio
    async def test_join_connects_deafened(self, backend, mock_bot):
        vc = _voice_client()
        channel = _voice_channel(AsyncMock(return_value=vc))
        mock_bot.get_channel.return_value = channel

        connection = await backend.join(CHANNEL)

        assert isinstance(connection, DiscordConnection)
        assert connection.voice_client is vc
        assert connection.channel_id == CHANNEL.channel_id
        channel.connect.assert_awaited_once_with(self_deaf=True)

    @pytest.mark.asyncio
    async def test_join_drops_stale_voice_client(self, backend, mock_bot):
        channel = _voice_channel(AsyncMock(return_value=_voice_client()))
        stale = MagicMock()
        stale.disconnect = AsyncMock()
        channel.guild.voice_client = stale
        mock_bot.get_channel.return_value = channel

        await backend.join(CHANNEL)

        stale.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.asyncio
    async def test_unknown_channel(self, backend, mock_bot):
        mock_bot.get_channel.return_value = None
        with pytest.raises(VoiceConnectionError):
            await backend.join(CHANNEL)

    @pytest.mark.asyncio
    async def test_text_channel_rejected(self, backend, mock_bot):
        mock_bot.get_channel.return_value = MagicMock(spec=discord.TextChannel)
        with pytest.raises(VoiceConnectionError):
            await backend.join(CHANNEL)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            discord.Forbidden(MagicMock(), "No permission"),
            discord.ClientException("Already connected"),
        ],
    )
    async def test_connect_failures_raise_connection_error(self, backend, mock_bot, error):
        mock_bot.get_channel.return_value = _voice_channel(AsyncMock(side_effect=error))

        with pytest.raises(VoiceConnectionError) as exc_info:
            await backend.join(CHANNEL)

        assert exc_info.value.channel_id == CHANNEL.channel_id

    @pytest.mark.asyncio
    async def test_disconnect_stops_and_leaves(self):
        vc = _voice_client()
        vc.is_playing.return_value = True

        await DiscordConnection(vc).disconnect()

        vc.stop.assert_called_once()
        vc.disconnect.assert_awaited_once_with(force=True)


class TestPlay:
    """Tests for starting sources."""

    @pytest.mark.asyncio
    async def test_play_resolves_stream_url(self, mock_bot):
        resolver = MagicMock()
        resolver.is_url.return_value = True
        resolver.resolve_stream_url = AsyncMock(return_value="https://cdn.example/stream")
        backend = DiscordAudioBackend(mock_bot, AudioSettings(), stream_resolver=resolver)
        vc = _voice_client()

        with (
            patch("discord.FFmpegPCMAudio") as mock_ffmpeg,
            patch("discord.PCMVolumeTransformer") as mock_volume,
        ):
            handle = await backend.play(DiscordConnection(vc), "https://example.com/watch", volume=0.5)

        assert isinstance(handle, DiscordPlaybackHandle)
        args, kwargs = mock_ffmpeg.call_args
        assert args == ("https://cdn.example/stream",)
        assert "-reconnect 1" in kwargs["before_options"]
        assert ANDROID_USER_AGENT in kwargs["before_options"]
        assert kwargs["options"] == "-vn"
        mock_volume.assert_called_once_with(mock_ffmpeg.return_value, volume=0.5)
        assert vc.play.call_args.kwargs["after"] == handle.after_callback

    @pytest.mark.asyncio
    async def test_play_local_file_skips_stream_options(self, backend, tmp_path):
        clip = tmp_path / "bye.mp3"
        clip.write_bytes(b"\x00")

        with (
            patch("discord.FFmpegPCMAudio") as mock_ffmpeg,
            patch("discord.PCMVolumeTransformer"),
        ):
            await backend.play(DiscordConnection(_voice_client()), str(clip))

        assert mock_ffmpeg.call_args.kwargs["before_options"] is None

    @pytest.mark.asyncio
    async def test_unresolvable_stream(self, mock_bot):
        resolver = MagicMock()
        resolver.is_url.return_value = True
        resolver.resolve_stream_url = AsyncMock(return_value=None)
        backend = DiscordAudioBackend(mock_bot, stream_resolver=resolver)

        with pytest.raises(PlaybackStartError):
            await backend.play(DiscordConnection(_voice_client()), "https://example.com/gone")

    @pytest.mark.asyncio
    async def test_client_exception_becomes_start_error(self, backend):
        vc = _voice_client()
        vc.play.side_effect = discord.ClientException("Not connected to voice.")

        with (
            patch("discord.FFmpegPCMAudio"),
            patch("discord.PCMVolumeTransformer"),
            pytest.raises(PlaybackStartError),
        ):
            await backend.play(DiscordConnection(vc), "https://example.com/a")

    @pytest.mark.asyncio
    async def test_foreign_connection_rejected(self, backend):
        with pytest.raises(TypeError):
            await backend.play(MagicMock(), "https://example.com/a")


class TestPlaybackHandle:
    """Tests for turning the after callback into an outcome."""

    @pytest_asyncio.fixture
    async def playing(self):
        vc = _voice_client()
        source = MagicMock(spec=discord.PCMVolumeTransformer)
        vc.source = source
        handle = DiscordPlaybackHandle(vc, source, asyncio.get_running_loop())
        return vc, source, handle

    @pytest.mark.asyncio
    async def test_natural_end_is_finished(self, playing):
        _, _, handle = playing
        handle.after_callback(None)

        outcome = await handle.wait()
        assert outcome.reason is CompletionReason.FINISHED
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_error_is_reported(self, playing):
        _, _, handle = playing
        handle.after_callback(RuntimeError("ffmpeg died"))

        outcome = await handle.wait()
        assert outcome.reason is CompletionReason.ERROR
        assert outcome.error == "ffmpeg died"

    @pytest.mark.asyncio
    async def test_stop_carries_reason(self, playing):
        vc, _, handle = playing
        handle.stop(CompletionReason.CLEARED)
        vc.stop.assert_called_once()

        handle.after_callback(None)
        outcome = await handle.wait()
        assert outcome.reason is CompletionReason.CLEARED

    @pytest.mark.asyncio
    async def test_stop_after_source_replaced_resolves_immediately(self, playing):
        vc, _, handle = playing
        vc.source = MagicMock()

        handle.stop()

        vc.stop.assert_not_called()
        outcome = await handle.wait()
        assert outcome.reason is CompletionReason.SUPERSEDED

    @pytest.mark.asyncio
    async def test_only_first_event_counts(self, playing):
        _, _, handle = playing
        handle.after_callback(None)
        handle.after_callback(RuntimeError("late"))
        await asyncio.sleep(0)

        outcome = await handle.wait()
        assert outcome.reason is CompletionReason.FINISHED

    @pytest.mark.asyncio
    async def test_pause_resume_and_volume(self, playing):
        vc, source, handle = playing
        vc.is_playing.return_value = True
        handle.pause()
        vc.pause.assert_called_once()

        vc.is_playing.return_value = False
        vc.is_paused.return_value = True
        assert handle.is_paused
        handle.resume()
        vc.resume.assert_called_once()

        handle.set_volume(5.0)
        assert source.volume == 2.0
