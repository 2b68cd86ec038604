"""
Playlist Repository Interface

Abstract contract for storing named playlists. Implementations live in the
infrastructure layer.
"""

from abc import ABC, abstractmethod

from discord_playlist_bot.domain.playlist.entities import Track


class PlaylistRepository(ABC):
    """Abstract repository for saved, named playlists.

    Saved playlists are scoped to a guild; saving under an existing name
    replaces the previous contents.
    """

    @abstractmethod
    async def save_playlist(self, guild_id: int, name: str, tracks: list[Track]) -> int:
        """Save a playlist.

        Args:
            guild_id: The Discord guild ID.
            name: Playlist name, unique per guild.
            tracks: Tracks in playlist order.

        Returns:
            Number of tracks saved.
        """
        ...

    @abstractmethod
    async def load_playlist(self, guild_id: int, name: str) -> list[Track] | None:
        """Load a playlist.

        Args:
            guild_id: The Discord guild ID.
            name: Playlist name.

        Returns:
            The tracks in order, or None if no playlist has that name.
        """
        ...

    @abstractmethod
    async def list_playlists(self, guild_id: int) -> list[str]:
        """Return the names of the guild's saved playlists, sorted."""
        ...

    @abstractmethod
    async def delete_playlist(self, guild_id: int, name: str) -> bool:
        """Delete a playlist, returning False if it did not exist."""
        ...
