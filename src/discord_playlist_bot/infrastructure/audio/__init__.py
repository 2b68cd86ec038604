"""Audio infrastructure - yt-dlp metadata lookup."""

from discord_playlist_bot.infrastructure.audio.ytdlp_metadata import (
    AudioFormatInfo,
    YtDlpMetadataLookup,
    YtDlpOpts,
    YtDlpTrackInfo,
)

__all__ = [
    "AudioFormatInfo",
    "YtDlpMetadataLookup",
    "YtDlpOpts",
    "YtDlpTrackInfo",
]
