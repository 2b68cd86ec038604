"""
Playlist Store

Registry owning one GuildPlaylistState per guild, plus the per-guild lock
that serializes commands and completion events for that guild. Injected into
the components that need it instead of living in module globals.
"""

from __future__ import annotations

import asyncio
import logging

from discord_playlist_bot.domain.playlist.entities import GuildPlaylistState, RemovalOutcome, Track
from discord_playlist_bot.domain.playlist.value_objects import RepeatMode
from discord_playlist_bot.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class PlaylistStore:
    """Per-guild playlist registry; every operation is keyed by guild id."""

    def __init__(self, *, default_volume: float = 1.0) -> None:
        self._states: dict[int, GuildPlaylistState] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._default_volume = default_volume

    def __contains__(self, guild_id: int) -> bool:
        return guild_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, guild_id: int) -> GuildPlaylistState | None:
        return self._states.get(guild_id)

    def get_or_create(self, guild_id: int) -> GuildPlaylistState:
        """Return the guild's state, creating the default one on first use."""
        state = self._states.get(guild_id)
        if state is None:
            state = GuildPlaylistState(guild_id=guild_id, volume=self._default_volume)
            self._states[guild_id] = state
            logger.debug(LogTemplates.STATE_CREATED, guild_id)
        return state

    def lock(self, guild_id: int) -> asyncio.Lock:
        """Return the lock serializing all mutations for *guild_id*."""
        lock = self._locks.get(guild_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[guild_id] = lock
        return lock

    def discard(self, guild_id: int) -> bool:
        """Forget a guild's playlist (the bot was removed from it).

        The lock entry is kept: the caller usually still holds it, and other
        commands for the guild may already be waiting on it.
        """
        removed = self._states.pop(guild_id, None) is not None
        if removed:
            logger.info(LogTemplates.STATE_DISCARDED, guild_id)
        return removed

    def guild_ids(self) -> list[int]:
        return list(self._states)

    # === Playlist operations ===

    def append(self, guild_id: int, track: Track) -> int:
        index = self.get_or_create(guild_id).append(track)
        logger.debug(LogTemplates.TRACK_APPENDED, track.url, index, guild_id)
        return index

    def remove_at(self, guild_id: int, index: int) -> RemovalOutcome:
        outcome = self.get_or_create(guild_id).remove_at(index)
        logger.debug(
            LogTemplates.TRACK_REMOVED, index, guild_id, outcome.was_current_track_removed
        )
        return outcome

    def clear(self, guild_id: int) -> int:
        return self.get_or_create(guild_id).clear()

    def reset_cursor(self, guild_id: int) -> None:
        self.get_or_create(guild_id).reset_cursor()

    def goto(self, guild_id: int, index: int) -> Track:
        return self.get_or_create(guild_id).goto(index)

    def set_cursor(self, guild_id: int, index: int) -> None:
        self.get_or_create(guild_id).set_cursor(index)

    def set_repeat_mode(self, guild_id: int, mode: RepeatMode | str) -> RepeatMode:
        return self.get_or_create(guild_id).set_repeat_mode(mode)

    def set_volume(self, guild_id: int, volume: float) -> float:
        return self.get_or_create(guild_id).set_volume(volume)

    def current_track(self, guild_id: int) -> Track | None:
        state = self._states.get(guild_id)
        return state.current_track() if state else None

    def replace_tracks(self, guild_id: int, tracks: list[Track]) -> None:
        self.get_or_create(guild_id).replace_tracks(tracks)
