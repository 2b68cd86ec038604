"""Port interface for voice connections and audio playback."""

from __future__ import annotations

from abc import ABC, abstractmethod

from discord_playlist_bot.domain.playlist.value_objects import (
    CompletionReason,
    PlaybackOutcome,
    VoiceChannelRef,
)


class ConnectionHandle(ABC):
    """A live voice connection."""

    @property
    @abstractmethod
    def channel_id(self) -> int:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel."""
        ...


class PlaybackHandle(ABC):
    """An in-flight audio stream.

    Every handle reaches exactly one terminal event, observed through
    ``wait()``. Stopping a handle on purpose makes that event carry the reason
    passed to ``stop()``.
    """

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    def stop(self, reason: CompletionReason = CompletionReason.SUPERSEDED) -> None:
        """End the stream early; its terminal event will report *reason*."""
        ...

    @property
    @abstractmethod
    def is_paused(self) -> bool:
        ...

    @abstractmethod
    async def wait(self) -> PlaybackOutcome:
        """Wait for the terminal event."""
        ...


class AudioBackend(ABC):
    """Interface for joining voice channels and playing audio sources."""

    @abstractmethod
    async def join(self, channel: VoiceChannelRef) -> ConnectionHandle:
        """Join a voice channel.

        Raises:
            VoiceConnectionError: The channel could not be joined.
        """
        ...

    @abstractmethod
    async def play(
        self, connection: ConnectionHandle, source: str, *, volume: float = 1.0
    ) -> PlaybackHandle:
        """Start playing *source* (a URL or a local file path) on *connection*.

        Raises:
            PlaybackStartError: The source could not be opened.
        """
        ...
