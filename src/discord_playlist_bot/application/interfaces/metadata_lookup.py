"""Port interface for looking up track metadata."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from discord_playlist_bot.domain.shared.types import NonEmptyStr


class TrackMatch(BaseModel):
    """First search result for a free-text query."""

    model_config = ConfigDict(frozen=True)

    url: NonEmptyStr
    title: NonEmptyStr


class MetadataLookup(ABC):
    """Interface for resolving titles and searching for tracks."""

    @abstractmethod
    async def resolve_title(self, url: NonEmptyStr) -> str:
        """Return the title of the media at *url*; raises on failure."""
        ...

    @abstractmethod
    async def search(self, query: NonEmptyStr) -> TrackMatch | None:
        """Return the first result for *query*, or None when nothing matched."""
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
