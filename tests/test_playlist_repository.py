"""
Tests for SQLite persistence of saved playlists

Tests for:
- Database initialization and the in-memory keepalive connection
- Saving, loading, listing and deleting saved playlists
"""

import pytest

from discord_playlist_bot.domain.playlist.entities import Track
from discord_playlist_bot.infrastructure.persistence.database import Database


class TestDatabase:
    """Tests for the Database manager."""

    @pytest.mark.asyncio
    async def test_initialize_creates_tables(self, in_memory_database):
        rows = await in_memory_database.fetch_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )
        names = {row["name"] for row in rows}
        assert {"saved_playlists", "saved_playlist_tracks"} <= names
        assert in_memory_database.is_initialized

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, in_memory_database):
        await in_memory_database.initialize()
        assert in_memory_database.is_initialized

    @pytest.mark.asyncio
    async def test_file_database_creates_parent_dir(self, tmp_path):
        db = Database(f"sqlite:///{tmp_path}/nested/playlists.db")
        await db.initialize()
        try:
            assert (tmp_path / "nested" / "playlists.db").exists()
        finally:
            await db.close()
        assert not db.is_initialized

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, in_memory_database):
        with pytest.raises(RuntimeError):
            async with in_memory_database.transaction() as conn:
                await conn.execute(
                    "INSERT INTO saved_playlists (guild_id, name) VALUES (?, ?)", (1, "x")
                )
                raise RuntimeError("boom")

        row = await in_memory_database.fetch_one("SELECT COUNT(*) AS n FROM saved_playlists")
        assert row["n"] == 0


class TestSQLitePlaylistRepository:
    """Tests for saved playlist storage."""

    @pytest.mark.asyncio
    async def test_save_and_load_preserves_order(self, playlist_repository):
        tracks = [
            Track(url="https://example.com/b", title="B", added_by="bob"),
            Track(url="https://example.com/a"),
        ]
        assert await playlist_repository.save_playlist(1, "mix", tracks) == 2

        loaded = await playlist_repository.load_playlist(1, "mix")

        assert [t.url for t in loaded] == ["https://example.com/b", "https://example.com/a"]
        assert loaded[0].title == "B"
        assert loaded[0].added_by == "bob"
        assert loaded[1].title is None

    @pytest.mark.asyncio
    async def test_save_overwrites_existing(self, playlist_repository):
        await playlist_repository.save_playlist(1, "mix", [Track(url="a"), Track(url="b")])
        await playlist_repository.save_playlist(1, "mix", [Track(url="c")])

        loaded = await playlist_repository.load_playlist(1, "mix")
        assert [t.url for t in loaded] == ["c"]

    @pytest.mark.asyncio
    async def test_load_missing(self, playlist_repository):
        assert await playlist_repository.load_playlist(1, "nope") is None

    @pytest.mark.asyncio
    async def test_names_are_scoped_per_guild(self, playlist_repository):
        await playlist_repository.save_playlist(1, "mix", [Track(url="a")])
        await playlist_repository.save_playlist(2, "mix", [Track(url="b")])

        assert [t.url for t in await playlist_repository.load_playlist(2, "mix")] == ["b"]
        assert await playlist_repository.list_playlists(3) == []

    @pytest.mark.asyncio
    async def test_list_is_sorted(self, playlist_repository):
        for name in ("zeta", "alpha", "mid"):
            await playlist_repository.save_playlist(1, name, [Track(url="a")])

        assert await playlist_repository.list_playlists(1) == ["alpha", "mid", "zeta"]

    @pytest.mark.asyncio
    async def test_delete_cascades(self, playlist_repository, in_memory_database):
        await playlist_repository.save_playlist(1, "mix", [Track(url="a")])

        assert await playlist_repository.delete_playlist(1, "mix")
        assert not await playlist_repository.delete_playlist(1, "mix")
        assert await playlist_repository.load_playlist(1, "mix") is None
        row = await in_memory_database.fetch_one(
            "SELECT COUNT(*) AS n FROM saved_playlist_tracks"
        )
        assert row["n"] == 0
