"""
Application Commands

Turns chat messages like ``!p del 2`` into playback controller calls.
"""

from discord_playlist_bot.application.commands.router import (
    CommandRequest,
    CommandResult,
    CommandRouter,
)

__all__ = [
    "CommandRequest",
    "CommandResult",
    "CommandRouter",
]
