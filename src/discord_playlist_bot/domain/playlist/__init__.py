"""
Playlist Bounded Context

Per-guild track lists, the cursor and repeat rules, and the playback state machine.
"""

from discord_playlist_bot.domain.playlist.entities import GuildPlaylistState, RemovalOutcome, Track
from discord_playlist_bot.domain.playlist.repeat_policy import RepeatPolicy
from discord_playlist_bot.domain.playlist.repository import PlaylistRepository
from discord_playlist_bot.domain.playlist.store import PlaylistStore
from discord_playlist_bot.domain.playlist.value_objects import (
    AdvanceDecision,
    AdvanceSignal,
    CompletionReason,
    PlaybackEvent,
    PlaybackOutcome,
    PlaybackState,
    RepeatMode,
    VoiceChannelRef,
)

__all__ = [
    # Entities
    "Track",
    "GuildPlaylistState",
    "RemovalOutcome",
    # Value Objects
    "RepeatMode",
    "PlaybackState",
    "PlaybackEvent",
    "CompletionReason",
    "AdvanceSignal",
    "AdvanceDecision",
    "PlaybackOutcome",
    "VoiceChannelRef",
    # Services
    "RepeatPolicy",
    "PlaylistStore",
    # Repository
    "PlaylistRepository",
]
