"""
Shared Domain Kernel

Contains constrained types, exceptions and message catalogs shared across the project.
"""

from discord_playlist_bot.domain.shared.exceptions import (
    DomainError,
    IndexOutOfRangeError,
    InvalidArgumentsError,
    InvalidModeError,
    InvalidOperationError,
    NoVoiceChannelError,
    PlaybackStartError,
    PlaylistEmptyError,
    SavedPlaylistNotFoundError,
    UnknownCommandError,
    ValidationError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidOperationError",
    "IndexOutOfRangeError",
    "InvalidModeError",
    "PlaylistEmptyError",
    "NoVoiceChannelError",
    "VoiceConnectionError",
    "UnknownCommandError",
    "InvalidArgumentsError",
    "SavedPlaylistNotFoundError",
    "PlaybackStartError",
]
