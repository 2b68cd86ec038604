"""Immutable value objects for the playlist bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from discord_playlist_bot.domain.shared.exceptions import InvalidModeError, InvalidOperationError


class RepeatMode(Enum):
    """Repeat mode settings for playlist playback."""

    NONE = "none"  # Stop at the end of the playlist
    ONE = "one"  # Replay the current track
    ALL = "all"  # Wrap around to the first track

    @classmethod
    def parse(cls, value: RepeatMode | str) -> RepeatMode:
        """Accept an enum member or its case-insensitive string value."""
        if isinstance(value, RepeatMode):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidModeError(value)


class PlaybackEvent(Enum):
    """Inputs to the per-guild playback state machine."""

    CONNECT = "connect"
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    PLAY = "play"
    PAUSE = "pause"
    RESUME = "resume"
    FAULT = "fault"
    STOP = "stop"


class PlaybackState(Enum):
    """Playback state with enforced transitions.

    State transitions:
    - IDLE -> CONNECTING (voice join requested)
    - CONNECTING -> PLAYING (joined, track started)
    - CONNECTING -> IDLE (join failed)
    - PLAYING/PAUSED -> PLAYING (new track on the live connection)
    - PLAYING -> PAUSED (pause), PAUSED -> PAUSED (repeated pause)
    - PAUSED -> PLAYING (resume)
    - PLAYING/PAUSED -> IDLE (playback error)
    - Any -> IDLE (stop)
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    PLAYING = "playing"
    PAUSED = "paused"

    def on(self, event: PlaybackEvent) -> PlaybackState:
        """Return the state reached by applying *event*, or raise if not allowed."""
        target = _TRANSITIONS.get((self, event))
        if target is None:
            raise InvalidOperationError(
                operation=event.value,
                current_state=self.value,
                message=f"Cannot handle '{event.value}' while {self.value}",
            )
        return target

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


_TRANSITIONS: dict[tuple[PlaybackState, PlaybackEvent], PlaybackState] = {
    (PlaybackState.IDLE, PlaybackEvent.CONNECT): PlaybackState.CONNECTING,
    (PlaybackState.CONNECTING, PlaybackEvent.CONNECTED): PlaybackState.PLAYING,
    (PlaybackState.CONNECTING, PlaybackEvent.CONNECT_FAILED): PlaybackState.IDLE,
    (PlaybackState.PLAYING, PlaybackEvent.PLAY): PlaybackState.PLAYING,
    (PlaybackState.PAUSED, PlaybackEvent.PLAY): PlaybackState.PLAYING,
    (PlaybackState.PLAYING, PlaybackEvent.PAUSE): PlaybackState.PAUSED,
    (PlaybackState.PAUSED, PlaybackEvent.PAUSE): PlaybackState.PAUSED,
    (PlaybackState.PAUSED, PlaybackEvent.RESUME): PlaybackState.PLAYING,
    (PlaybackState.PLAYING, PlaybackEvent.FAULT): PlaybackState.IDLE,
    (PlaybackState.PAUSED, PlaybackEvent.FAULT): PlaybackState.IDLE,
    (PlaybackState.IDLE, PlaybackEvent.STOP): PlaybackState.IDLE,
    (PlaybackState.CONNECTING, PlaybackEvent.STOP): PlaybackState.IDLE,
    (PlaybackState.PLAYING, PlaybackEvent.STOP): PlaybackState.IDLE,
    (PlaybackState.PAUSED, PlaybackEvent.STOP): PlaybackState.IDLE,
}


class CompletionReason(Enum):
    """Why a playback handle reached its terminal event."""

    FINISHED = "finished"
    ERROR = "error"
    SUPERSEDED = "superseded"  # A newer track replaced the stream
    CLEARED = "cleared"  # Stopped by stop/clear


class AdvanceSignal(Enum):
    """Outcome kind of the next-track algorithm."""

    ADVANCE = "advance"
    WRAPPED = "wrapped"
    PLAYLIST_EMPTY = "playlist_empty"
    PLAYLIST_EXHAUSTED = "playlist_exhausted"

    @property
    def has_target(self) -> bool:
        return self in {AdvanceSignal.ADVANCE, AdvanceSignal.WRAPPED}


@dataclass(frozen=True)
class AdvanceDecision:
    """Cursor target chosen by the repeat policy (-1 when nothing should play)."""

    target: int
    signal: AdvanceSignal

    @property
    def should_play(self) -> bool:
        return self.signal.has_target


@dataclass(frozen=True)
class PlaybackOutcome:
    """Terminal event of a playback handle."""

    reason: CompletionReason
    error: str | None = None


@dataclass(frozen=True)
class VoiceChannelRef:
    """Reference to a voice channel, resolved by the audio backend on join."""

    channel_id: int
    name: str = ""

    def __str__(self) -> str:
        return self.name or str(self.channel_id)
