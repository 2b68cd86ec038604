"""Core domain entities for the playlist bounded context."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_playlist_bot.domain.playlist.value_objects import (
    PlaybackEvent,
    PlaybackState,
    RepeatMode,
)
from discord_playlist_bot.domain.shared.exceptions import IndexOutOfRangeError, ValidationError
from discord_playlist_bot.domain.shared.messages import ErrorMessages
from discord_playlist_bot.domain.shared.types import (
    MAX_VOLUME,
    MIN_VOLUME,
    CursorInt,
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
    VolumeFloat,
)


class Track(BaseModel):
    """A playlist entry.

    ``title`` is optional because it may be filled in by a metadata lookup
    after the track was added; ``display_title`` falls back to the URL.
    """

    model_config = ConfigDict(strict=True, validate_assignment=True)

    url: NonEmptyStr
    title: TrackTitleStr | None = None
    added_by: NonEmptyStr | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError(ErrorMessages.EMPTY_TRACK_URL)
        return v

    @property
    def display_title(self) -> str:
        return self.title or self.url


class RemovalOutcome(BaseModel):
    """Result of removing a track, so the controller can react to it."""

    model_config = ConfigDict(frozen=True)

    removed: Track
    index: NonNegativeInt
    was_current_track_removed: bool
    cursor: CursorInt
    remaining: NonNegativeInt


class GuildPlaylistState(BaseModel):
    """Aggregate root holding the playlist and playback state of one guild.

    The ``active_*`` fields and ``notifier`` are runtime handles owned by the
    playback controller; they are never serialized.
    """

    model_config = ConfigDict(strict=True, arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    tracks: list[Track] = Field(default_factory=list)
    cursor: CursorInt = -1
    repeat_mode: RepeatMode = RepeatMode.NONE
    volume: VolumeFloat = 1.0
    playback_state: PlaybackState = PlaybackState.IDLE

    active_connection: Any = Field(default=None, exclude=True)
    active_handle: Any = Field(default=None, exclude=True)
    notifier: Any = Field(default=None, exclude=True)
    pending_disconnect: bool = Field(default=False, exclude=True)

    @property
    def length(self) -> int:
        return len(self.tracks)

    @property
    def has_tracks(self) -> bool:
        return bool(self.tracks)

    @property
    def is_connected(self) -> bool:
        return self.active_connection is not None

    @property
    def is_paused(self) -> bool:
        return self.playback_state == PlaybackState.PAUSED

    @property
    def is_active(self) -> bool:
        return self.playback_state.is_active

    def current_track(self) -> Track | None:
        """Return the track at the cursor, or None when stopped or empty."""
        if self.cursor == -1 or not self.tracks:
            return None
        return self.tracks[self.cursor]

    def append(self, track: Track) -> int:
        """Add a track to the end of the playlist and return its index."""
        self.tracks.append(track)
        return len(self.tracks) - 1

    def remove_at(self, index: int) -> RemovalOutcome:
        """Remove the track at *index*, keeping the cursor on the same logical track.

        When the current track itself is removed the cursor is moved one step
        back, so that advancing from it lands on the track that followed the
        removed one.
        """
        self._check_index(index)

        removed = self.tracks.pop(index)
        was_current = index == self.cursor
        if index <= self.cursor:
            self.cursor -= 1

        return RemovalOutcome(
            removed=removed,
            index=index,
            was_current_track_removed=was_current,
            cursor=self.cursor,
            remaining=len(self.tracks),
        )

    def clear(self) -> int:
        """Remove every track and reset the cursor; repeat mode and volume stay."""
        count = len(self.tracks)
        self.tracks.clear()
        self.cursor = -1
        return count

    def reset_cursor(self) -> None:
        self.cursor = -1

    def goto(self, index: int) -> Track:
        """Point the cursor at an existing track."""
        self._check_index(index)
        self.cursor = index
        return self.tracks[index]

    def set_cursor(self, index: int) -> None:
        """Like ``goto`` but also accepts -1."""
        if index == -1:
            self.cursor = -1
            return
        self.goto(index)

    def set_repeat_mode(self, mode: RepeatMode | str) -> RepeatMode:
        self.repeat_mode = RepeatMode.parse(mode)
        return self.repeat_mode

    def set_volume(self, volume: float) -> float:
        if not MIN_VOLUME <= volume <= MAX_VOLUME:
            raise ValidationError(
                ErrorMessages.VOLUME_OUT_OF_RANGE.format(low=MIN_VOLUME, high=MAX_VOLUME),
                field="volume",
            )
        self.volume = float(volume)
        return self.volume

    def replace_tracks(self, tracks: list[Track]) -> None:
        self.tracks = list(tracks)
        self.cursor = -1

    def transition(self, event: PlaybackEvent) -> PlaybackState:
        """Apply a state machine event and return the new state."""
        self.playback_state = self.playback_state.on(event)
        return self.playback_state

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.tracks):
            raise IndexOutOfRangeError(index, len(self.tracks))
