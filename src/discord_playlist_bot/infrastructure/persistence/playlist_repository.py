"""SQLite implementation of the saved playlist repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from discord_playlist_bot.domain.playlist.entities import Track
from discord_playlist_bot.domain.playlist.repository import PlaylistRepository
from discord_playlist_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)


class SQLitePlaylistRepository(PlaylistRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def save_playlist(self, guild_id: int, name: str, tracks: list[Track]) -> int:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO saved_playlists (guild_id, name)
                VALUES (?, ?)
                ON CONFLICT(guild_id, name) DO UPDATE SET
                    updated_at = strftime('%Y-%m-%dT%H:%M:%f','now')
                """,
                (guild_id, name),
            )
            cursor = await conn.execute(
                "SELECT id FROM saved_playlists WHERE guild_id = ? AND name = ?",
                (guild_id, name),
            )
            row = await cursor.fetchone()
            playlist_id = row["id"]

            await conn.execute(
                "DELETE FROM saved_playlist_tracks WHERE playlist_id = ?",
                (playlist_id,),
            )
            await conn.executemany(
                """
                INSERT INTO saved_playlist_tracks (playlist_id, position, url, title, added_by)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (playlist_id, position, track.url, track.title, track.added_by)
                    for position, track in enumerate(tracks)
                ],
            )

        logger.info(LogTemplates.PLAYLIST_SAVED, name, len(tracks), guild_id)
        return len(tracks)

    async def load_playlist(self, guild_id: int, name: str) -> list[Track] | None:
        playlist_row = await self._db.fetch_one(
            "SELECT id FROM saved_playlists WHERE guild_id = ? AND name = ?",
            (guild_id, name),
        )
        if playlist_row is None:
            return None

        rows = await self._db.fetch_all(
            """
            SELECT url, title, added_by FROM saved_playlist_tracks
            WHERE playlist_id = ?
            ORDER BY position ASC
            """,
            (playlist_row["id"],),
        )
        tracks = [self._row_to_track(row) for row in rows]
        logger.info(LogTemplates.PLAYLIST_LOADED, name, len(tracks), guild_id)
        return tracks

    async def list_playlists(self, guild_id: int) -> list[str]:
        rows = await self._db.fetch_all(
            "SELECT name FROM saved_playlists WHERE guild_id = ? ORDER BY name ASC",
            (guild_id,),
        )
        return [row["name"] for row in rows]

    async def delete_playlist(self, guild_id: int, name: str) -> bool:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM saved_playlists WHERE guild_id = ? AND name = ?",
                (guild_id, name),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(LogTemplates.PLAYLIST_DELETED, name, guild_id)
        return deleted

    @staticmethod
    def _row_to_track(row: dict[str, Any]) -> Track:
        return Track(url=row["url"], title=row["title"], added_by=row["added_by"])
