"""MetadataLookup implementation using yt-dlp for titles, search and stream URLs."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator
from yt_dlp import YoutubeDL

from discord_playlist_bot.application.interfaces.metadata_lookup import MetadataLookup, TrackMatch
from discord_playlist_bot.config.settings import AudioSettings
from discord_playlist_bot.domain.shared.messages import LogTemplates
from discord_playlist_bot.domain.shared.types import NonEmptyStr, PositiveInt

logger = logging.getLogger(__name__)

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
LOG_URL_TRUNCATE: Final[int] = 60


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class AudioFormatInfo(BaseModel):
    """A single audio format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Extra fields from yt-dlp are silently ignored. Before-validators coerce
    garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator("webpage_url", "url", "title", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @property
    def stream_url(self) -> str | None:
        if self.url:
            return self.url
        audio_formats = [f for f in self.formats if f.acodec != "none" and f.url]
        return audio_formats[-1].url if audio_formats else None


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False


URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpMetadataLookup(MetadataLookup):
    """Runs yt-dlp in a worker thread; every failure is logged and reported as None."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        return YtDlpTrackInfo.model_validate(data)

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
                return self._parse_info(dict(data)) if isinstance(data, dict) else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url[:LOG_URL_TRUNCATE])
            return None

    def _search_sync(self, query: str) -> YtDlpTrackInfo | None:
        try:
            opts = self._get_opts(extract_flat="in_playlist")
            with YoutubeDL(params=cast(Any, opts.model_dump())) as ydl:
                data = ydl.extract_info(f"ytsearch1:{query}", download=False)

                if not isinstance(data, dict):
                    return None

                entries = data.get("entries", [])
                if not isinstance(entries, list):
                    return None

                infos = [self._parse_info(dict(e)) for e in entries if e]
                return infos[0] if infos else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return None

    async def resolve_title(self, url: str) -> str:
        info = await asyncio.to_thread(self._extract_info_sync, url)
        if info is None or info.title is None:
            raise LookupError(f"No title found for {url[:LOG_URL_TRUNCATE]}")
        logger.debug(LogTemplates.TITLE_RESOLVED, url[:LOG_URL_TRUNCATE], info.title)
        return info.title

    async def search(self, query: str) -> TrackMatch | None:
        info = await asyncio.to_thread(self._search_sync, query)
        if info is None:
            return None

        url = info.webpage_url or info.url
        if not url:
            return None
        return TrackMatch(url=url, title=info.title or url)

    async def resolve_stream_url(self, url: str) -> str | None:
        """Return a direct media URL FFmpeg can open for the page at *url*."""
        info = await asyncio.to_thread(self._extract_info_sync, url)
        return info.stream_url if info else None

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)
