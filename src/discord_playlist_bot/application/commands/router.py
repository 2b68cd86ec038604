"""Command Router - maps parsed chat commands onto playback controller operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_playlist_bot.application.services.playback_controller import (
    OperationResult,
    RequestContext,
)
from discord_playlist_bot.domain.shared.exceptions import (
    InvalidArgumentsError,
    UnknownCommandError,
)
from discord_playlist_bot.domain.shared.messages import (
    COMMAND_USAGE,
    CommandDoc,
    DiscordUIMessages,
    LogTemplates,
)

if TYPE_CHECKING:
    from discord_playlist_bot.application.services.playback_controller import PlaybackController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandRequest:
    """A command split off a chat message: ``!p del 2`` -> ``("p", ["del", "2"])``."""

    command: str
    context: RequestContext
    args: list[str] = field(default_factory=list)


class CommandResult(BaseModel):
    """What a routed command ended up doing."""

    model_config = ConfigDict(frozen=True)

    command: str
    success: bool
    message: str = ""
    code: str | None = None

    @classmethod
    def from_operation(cls, command: str, result: OperationResult) -> CommandResult:
        return cls(
            command=command, success=result.success, message=result.message, code=result.code
        )


_Handler = Callable[[RequestContext, list[str]], Awaitable[OperationResult]]


class CommandRouter:
    """Routes each command to exactly one controller call.

    Aliases resolve to the canonical names used as keys of the usage table.
    Unknown commands produce one error message; malformed arguments produce the
    usage text of the command.
    """

    def __init__(
        self,
        controller: PlaybackController,
        *,
        prefix: str = "!",
        usage: Mapping[str, CommandDoc] | None = None,
    ) -> None:
        self._controller = controller
        self._prefix = prefix
        self._usage = dict(usage if usage is not None else COMMAND_USAGE)

        self._handlers: dict[str, _Handler] = {
            "y": self._add,
            "p": self._playlist,
            "play": self._play,
            "pause": self._pause,
            "next": self._next,
            "prev": self._previous,
            "stop": self._stop,
            "leave": self._leave,
            "v": self._volume,
            "help": self._help,
        }
        self._aliases: dict[str, str] = {
            alias: name for name, doc in self._usage.items() for alias in doc.aliases
        }

    @property
    def prefix(self) -> str:
        return self._prefix

    def parse(self, content: str) -> tuple[str, list[str]] | None:
        """Split a chat message into ``(command, args)``; None if it isn't a command."""
        if not content.startswith(self._prefix):
            return None
        words = content[len(self._prefix) :].split()
        if not words:
            return None
        return words[0].lower(), words[1:]

    def resolve(self, command: str) -> str | None:
        """Return the canonical name of *command*, or None if it has no route."""
        name = command.strip().lower()
        name = self._aliases.get(name, name)
        return name if name in self._handlers else None

    async def route(self, request: CommandRequest) -> CommandResult:
        ctx = request.context
        logger.info(LogTemplates.COMMAND_RECEIVED, ctx.guild_id, request.command, request.args)

        name = self.resolve(request.command)
        try:
            if name is None:
                raise UnknownCommandError(
                    request.command,
                    DiscordUIMessages.ERROR_UNKNOWN_COMMAND.format(
                        prefix=self._prefix, command=request.command
                    ),
                )
            result = await self._handlers[name](ctx, list(request.args))
        except UnknownCommandError as exc:
            logger.info(LogTemplates.COMMAND_UNKNOWN, exc.command, ctx.guild_id)
            ctx.notifier.error(exc.message)
            return CommandResult(
                command=request.command, success=False, message=exc.message, code=exc.code
            )
        except InvalidArgumentsError as exc:
            logger.info(
                LogTemplates.COMMAND_BAD_ARGUMENTS, exc.command, ctx.guild_id, request.args
            )
            text = self.usage_text(exc.command) or exc.message
            ctx.notifier.error(text)
            return CommandResult(
                command=request.command, success=False, message=text, code=exc.code
            )

        return CommandResult.from_operation(name, result)

    # === Help ===

    def usage_text(self, command: str, arg_filter: str | None = None) -> str | None:
        """Render the usage block of *command*.

        With *arg_filter*, only the argument variants mentioning it are shown.
        """
        name = self._aliases.get(command, command)
        doc = self._usage.get(name)
        if doc is None:
            return None

        invocation = f"{self._prefix}{name}"
        parts = [f"{invocation}: {doc.description}"]
        for combo, description in doc.arg_combos:
            if arg_filter and arg_filter not in combo:
                continue
            parts.append(f"{invocation} {combo}:\n{description}")
        if doc.aliases:
            parts.append("Aliases: " + ", ".join(f"{self._prefix}{a}" for a in doc.aliases))
        body = "\n\n".join(parts)
        return f"```\n{body}\n```"

    def help_text(self) -> str:
        names = "\n".join(self._usage)
        footer = DiscordUIMessages.HELP_FOOTER.format(prefix=self._prefix)
        return f"{DiscordUIMessages.HELP_HEADER}\n```\n{names}\n```\n{footer}"

    # === Handlers ===

    async def _add(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        query = " ".join(args).strip().strip('"').strip()
        if not query:
            raise InvalidArgumentsError("y")
        return await self._controller.add_from_query(ctx, query)

    async def _playlist(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        if not args:
            raise InvalidArgumentsError("p")

        sub = args[0].lower()
        rest = args[1:]
        if sub == "next":
            return await self._controller.next(ctx)
        if sub in ("back", "prev"):
            return await self._controller.previous(ctx)
        if sub == "clear":
            return await self._controller.clear_playlist(ctx)
        if sub == "repeat":
            if len(rest) != 1:
                raise InvalidArgumentsError("p")
            return await self._controller.set_repeat_mode(ctx, rest[0])
        if sub == "del":
            return await self._controller.remove(ctx, self._parse_index(rest))
        if sub == "goto":
            return await self._controller.goto(ctx, self._parse_index(rest))
        if sub == "list":
            return await self._playlist_list(ctx, rest)
        raise InvalidArgumentsError("p")

    async def _playlist_list(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        if not args:
            return await self._controller.list_tracks(ctx)

        action = args[0].lower()
        if action == "saved" and len(args) == 1:
            return await self._controller.list_saved_playlists(ctx)

        name = " ".join(args[1:]).strip()
        if not name or len(name) > 100:
            raise InvalidArgumentsError("p")
        if action == "save":
            return await self._controller.save_playlist(ctx, name)
        if action == "load":
            return await self._controller.load_playlist(ctx, name)
        if action == "delete":
            return await self._controller.delete_saved_playlist(ctx, name)
        raise InvalidArgumentsError("p")

    async def _play(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.play_current_or_resume(ctx)

    async def _pause(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.pause(ctx)

    async def _next(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.next(ctx)

    async def _previous(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.previous(ctx)

    async def _stop(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.stop(ctx)

    async def _leave(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        return await self._controller.stop(ctx, play_exit_sound=True)

    async def _volume(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        if len(args) != 1:
            raise InvalidArgumentsError("v")
        try:
            volume = float(args[0])
        except ValueError:
            raise InvalidArgumentsError("v") from None
        return await self._controller.set_volume(ctx, volume)

    async def _help(self, ctx: RequestContext, args: list[str]) -> OperationResult:
        if not args:
            text = self.help_text()
            ctx.notifier.status(text)
            return OperationResult.ok(text)

        command = args[0].lstrip(self._prefix).lower()
        text = self.usage_text(command, args[1] if len(args) > 1 else None)
        if text is None:
            message = DiscordUIMessages.ERROR_NO_USAGE.format(prefix=self._prefix, command=command)
            ctx.notifier.error(message)
            return OperationResult.fail(message, code="NO_USAGE")
        ctx.notifier.status(text)
        return OperationResult.ok(text)

    @staticmethod
    def _parse_index(args: list[str]) -> int:
        if len(args) != 1:
            raise InvalidArgumentsError("p")
        try:
            return int(args[0])
        except ValueError:
            raise InvalidArgumentsError("p") from None
