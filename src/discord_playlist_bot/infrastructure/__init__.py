"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite saved playlists)
- Discord (bot, voice backend, channel notifier)
- Audio (yt-dlp titles, search and stream URLs)
"""
