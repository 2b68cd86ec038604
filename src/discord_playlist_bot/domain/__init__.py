# ruff: noqa: N999
"""
Domain Layer

Contains pure playlist logic organized by bounded contexts:
- shared/: Cross-cutting types, exceptions and message catalogs
- playlist/: Tracks, per-guild playlist state, repeat policy and the state registry
"""

from discord_playlist_bot.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
