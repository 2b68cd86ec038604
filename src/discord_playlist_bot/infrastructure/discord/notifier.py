"""NotificationSink that posts to the text channel a command came from."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from discord_playlist_bot.application.interfaces.notification_sink import NotificationSink
from discord_playlist_bot.domain.shared.messages import LogTemplates
from discord_playlist_bot.utils.reply import chunk_message

if TYPE_CHECKING:
    from discord.abc import Messageable

logger = logging.getLogger(__name__)

# Strong references to in-flight sends; the event loop only keeps weak ones.
_pending_sends: set[asyncio.Task[None]] = set()
# Last send scheduled per channel. Each new send waits for it, so a channel
# receives messages in the order they were emitted.
_channel_tails: dict[int, asyncio.Task[None]] = {}


class ChannelNotifier(NotificationSink):
    """Fire-and-forget sender bound to one text channel.

    Notifications are emitted while the guild lock is held, so sending never
    blocks the caller: each message is scheduled as its own task, chained
    behind the previous send to the same channel.
    """

    def __init__(self, channel: Messageable, guild_id: int) -> None:
        self._channel = channel
        self._guild_id = guild_id

    @property
    def channel(self) -> Messageable:
        return self._channel

    def status(self, text: str) -> None:
        logger.info(LogTemplates.NOTIFY_STATUS, self._guild_id, text)
        self._schedule(text)

    def success(self, text: str) -> None:
        logger.info(LogTemplates.NOTIFY_SUCCESS, self._guild_id, text)
        self._schedule(text)

    def error(self, text: str) -> None:
        logger.warning(LogTemplates.NOTIFY_ERROR, self._guild_id, text)
        self._schedule(text)

    def _schedule(self, text: str) -> None:
        key = getattr(self._channel, "id", None) or id(self._channel)
        loop = asyncio.get_running_loop()
        previous = _channel_tails.get(key)
        if previous is not None and previous.get_loop() is not loop:
            previous = None
        task = loop.create_task(self._send(text, previous))
        _channel_tails[key] = task
        _pending_sends.add(task)
        task.add_done_callback(_pending_sends.discard)
        task.add_done_callback(lambda done: _forget_tail(key, done))

    async def _send(self, text: str, previous: asyncio.Task[None] | None = None) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        for chunk in chunk_message(text):
            try:
                await self._channel.send(chunk)
            except discord.HTTPException:
                logger.warning(
                    LogTemplates.NOTIFY_SEND_FAILED,
                    getattr(self._channel, "id", None),
                    exc_info=True,
                )
                return


def _forget_tail(key: int, task: asyncio.Task[None]) -> None:
    if _channel_tails.get(key) is task:
        del _channel_tails[key]


async def drain_pending_sends() -> None:
    """Wait for every scheduled send to finish."""
    if _pending_sends:
        await asyncio.gather(*list(_pending_sends), return_exceptions=True)
