"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_playlist_bot.application.interfaces.audio_backend import (
    AudioBackend,
    ConnectionHandle,
    PlaybackHandle,
)
from discord_playlist_bot.application.interfaces.metadata_lookup import MetadataLookup, TrackMatch
from discord_playlist_bot.application.interfaces.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
)

__all__ = [
    "AudioBackend",
    "ConnectionHandle",
    "PlaybackHandle",
    "MetadataLookup",
    "TrackMatch",
    "NotificationSink",
    "LoggingNotificationSink",
]
