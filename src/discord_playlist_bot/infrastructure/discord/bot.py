"""Main Discord bot class wiring chat messages into the command router."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discord_playlist_bot.application.commands.router import CommandRequest
from discord_playlist_bot.application.services.playback_controller import RequestContext
from discord_playlist_bot.domain.playlist.value_objects import VoiceChannelRef
from discord_playlist_bot.domain.shared.messages import LogTemplates
from discord_playlist_bot.infrastructure.discord.notifier import (
    ChannelNotifier,
    drain_pending_sends,
)

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)


class PlaylistBot(commands.Bot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        try:
            await self.container.initialize()
            logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise

    async def on_ready(self) -> None:
        logger.info(
            LogTemplates.BOT_READY,
            self.user,  # type: ignore
            self.user.id,  # type: ignore
        )
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        prefix = self.settings.discord.command_prefix
        activity = discord.Activity(type=discord.ActivityType.listening, name=f"{prefix}help")
        await self.change_presence(activity=activity)

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return

        router = self.container.command_router
        parsed = router.parse(message.content)
        if parsed is None:
            return
        command, args = parsed

        await router.route(
            CommandRequest(
                command=command,
                context=self.build_context(message),
                args=args,
            )
        )

    @staticmethod
    def build_context(message: discord.Message) -> RequestContext:
        """Capture who asked and which voice channel they are in right now."""
        guild = message.guild
        assert guild is not None

        voice_channel = None
        voice_state = getattr(message.author, "voice", None)
        if voice_state is not None and voice_state.channel is not None:
            voice_channel = VoiceChannelRef(
                channel_id=voice_state.channel.id, name=voice_state.channel.name
            )

        return RequestContext(
            guild_id=guild.id,
            notifier=ChannelNotifier(message.channel, guild.id),
            voice_channel=voice_channel,
            user_name=message.author.display_name,
        )

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.id)
        await self.container.playback_controller.forget_guild(guild.id)

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        for vc in self.voice_clients:
            try:
                await vc.disconnect(force=True)
            except Exception:
                logger.debug(
                    LogTemplates.VOICE_DISCONNECT_FAILED, vc.channel.guild.id, exc_info=True
                )

        await drain_pending_sends()
        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        async def runner():
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> PlaylistBot:
    return PlaylistBot(container=container, settings=settings)
