"""Playback Controller - drives the per-guild join/play/complete/advance cycle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_playlist_bot.application.interfaces.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
)
from discord_playlist_bot.domain.playlist.entities import GuildPlaylistState, Track
from discord_playlist_bot.domain.playlist.repeat_policy import RepeatPolicy
from discord_playlist_bot.domain.playlist.value_objects import (
    AdvanceDecision,
    AdvanceSignal,
    CompletionReason,
    PlaybackEvent,
    PlaybackOutcome,
    PlaybackState,
    RepeatMode,
    VoiceChannelRef,
)
from discord_playlist_bot.domain.shared.exceptions import (
    DomainError,
    InvalidArgumentsError,
    InvalidOperationError,
    NoVoiceChannelError,
    PlaylistEmptyError,
    SavedPlaylistNotFoundError,
)
from discord_playlist_bot.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from discord_playlist_bot.utils.reply import truncate

if TYPE_CHECKING:
    from discord_playlist_bot.application.interfaces.audio_backend import (
        AudioBackend,
        PlaybackHandle,
    )
    from discord_playlist_bot.application.interfaces.metadata_lookup import MetadataLookup
    from discord_playlist_bot.domain.playlist.repository import PlaylistRepository
    from discord_playlist_bot.domain.playlist.store import PlaylistStore

logger = logging.getLogger(__name__)

_MAX_TITLE_LENGTH = 500


@dataclass(frozen=True)
class RequestContext:
    """Who asked, where, and where to answer.

    ``voice_channel`` is the requester's current voice channel, read fresh for
    every command; None when they are not in one.
    """

    guild_id: int
    notifier: NotificationSink
    voice_channel: VoiceChannelRef | None = None
    user_name: str | None = None


class OperationResult(BaseModel):
    """Outcome of a controller operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    code: str | None = None

    @classmethod
    def ok(cls, message: str = "") -> OperationResult:
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str, code: str | None = None) -> OperationResult:
        return cls(success=False, message=message, code=code)


_Operation = Callable[[RequestContext, GuildPlaylistState], Awaitable[OperationResult]]


class PlaybackController:
    """Owns the voice connection and the single active playback handle of each guild.

    Every command and every completion event for a guild runs under that
    guild's lock, so the state machine in ``PlaybackState`` only ever sees one
    event at a time. Completion events are delivered by one watcher task per
    playback handle; handles replaced on purpose are stopped with a
    ``SUPERSEDED`` or ``CLEARED`` reason and their completion is ignored.
    """

    def __init__(
        self,
        *,
        store: PlaylistStore,
        audio_backend: AudioBackend,
        metadata_lookup: MetadataLookup | None = None,
        playlist_repository: PlaylistRepository | None = None,
        exit_sound_path: str | None = None,
        fallback_notifier: NotificationSink | None = None,
    ) -> None:
        self._store = store
        self._backend = audio_backend
        self._metadata = metadata_lookup
        self._repository = playlist_repository
        self._exit_sound_path = exit_sound_path
        self._fallback_notifier = fallback_notifier or LoggingNotificationSink()

        self._watchers: set[asyncio.Task[None]] = set()
        self._lookups: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> PlaylistStore:
        return self._store

    # === Public operations ===

    async def play_current_or_resume(self, ctx: RequestContext) -> OperationResult:
        """Resume a paused track, otherwise (re)start the current track."""
        return await self._run(ctx, "play", self._play_current_or_resume)

    async def request_track(self, ctx: RequestContext, track: Track) -> OperationResult:
        """Append a track, starting it right away when nothing is selected or connected."""

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            return await self._request_track(ctx, state, track)

        return await self._run(ctx, "request_track", operation)

    async def add_from_query(self, ctx: RequestContext, query: str) -> OperationResult:
        """Add a URL directly, or search for *query* and add the first result."""
        query = query.strip()
        if not query:
            raise InvalidArgumentsError("y")
        if self._metadata is None or self._metadata.is_url(query):
            return await self.request_track(ctx, Track(url=query, added_by=ctx.user_name))

        # The search runs outside the guild lock so completions are not held up.
        match = await self._metadata.search(query)
        if match is None:
            message = DiscordUIMessages.STATE_NO_RESULTS.format(query=query)
            ctx.notifier.status(message)
            return OperationResult.fail(message, code="NO_RESULTS")

        track = Track(
            url=match.url, title=match.title[:_MAX_TITLE_LENGTH], added_by=ctx.user_name
        )
        return await self.request_track(ctx, track)

    async def next(self, ctx: RequestContext) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            decision = RepeatPolicy.next_position(state.cursor, state.length, state.repeat_mode)
            return await self._advance(state, decision, ctx.voice_channel)

        return await self._run(ctx, "next", operation)

    async def previous(self, ctx: RequestContext) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            decision = RepeatPolicy.previous_position(state.cursor, state.length)
            return await self._advance(
                state,
                decision,
                ctx.voice_channel,
                exhausted_message=DiscordUIMessages.STATE_PLAYLIST_START,
            )

        return await self._run(ctx, "previous", operation)

    async def goto(self, ctx: RequestContext, index: int) -> OperationResult:
        """Select a track; it starts immediately only if audio is already active."""

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            if state.is_active:
                return await self._start_track(state, index, ctx.voice_channel)
            track = self._store.goto(state.guild_id, index)
            message = DiscordUIMessages.CURSOR_MOVED.format(title=track.display_title)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "goto", operation)

    async def remove(self, ctx: RequestContext, index: int) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            outcome = self._store.remove_at(state.guild_id, index)
            message = DiscordUIMessages.TRACK_REMOVED.format(
                title=outcome.removed.display_title, index=outcome.index
            )
            ctx.notifier.success(message)

            if not outcome.was_current_track_removed:
                return OperationResult.ok(message)

            # The cursor now sits just before the track that followed the removed one.
            decision = RepeatPolicy.next_position(state.cursor, state.length, state.repeat_mode)
            if state.is_active:
                await self._advance(state, decision, ctx.voice_channel, requested=False)
            else:
                self._store.set_cursor(state.guild_id, decision.target)
            return OperationResult.ok(message)

        return await self._run(ctx, "remove", operation)

    async def clear_playlist(self, ctx: RequestContext) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            await self._release(state, CompletionReason.CLEARED)
            count = self._store.clear(state.guild_id)
            logger.info(LogTemplates.PLAYLIST_CLEARED, count, state.guild_id)
            message = DiscordUIMessages.PLAYLIST_CLEARED.format(count=count)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "clear", operation)

    async def set_repeat_mode(self, ctx: RequestContext, mode: RepeatMode | str) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            new_mode = self._store.set_repeat_mode(state.guild_id, mode)
            logger.info(LogTemplates.REPEAT_MODE_CHANGED, new_mode.value, state.guild_id)
            message = DiscordUIMessages.REPEAT_MODE_SET.format(mode=new_mode.value)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "repeat", operation)

    async def set_volume(self, ctx: RequestContext, volume: float) -> OperationResult:
        """Change the volume of the playing track and of every later one."""

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            new_volume = self._store.set_volume(state.guild_id, volume)
            if state.active_handle is not None:
                state.active_handle.set_volume(new_volume)
            logger.info(LogTemplates.VOLUME_CHANGED, new_volume, state.guild_id)
            message = DiscordUIMessages.VOLUME_SET.format(volume=new_volume)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "volume", operation)

    async def pause(self, ctx: RequestContext) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            if state.playback_state is PlaybackState.PAUSED:
                state.transition(PlaybackEvent.PAUSE)
                return OperationResult.ok()

            if state.playback_state is not PlaybackState.PLAYING or state.active_handle is None:
                message = DiscordUIMessages.STATE_NOTHING_TO_PAUSE
                ctx.notifier.status(message)
                return OperationResult.fail(message, code="NOTHING_PLAYING")

            state.active_handle.pause()
            state.transition(PlaybackEvent.PAUSE)
            logger.info(LogTemplates.PLAYBACK_PAUSED, state.guild_id)
            ctx.notifier.success(DiscordUIMessages.ACTION_PAUSED)
            return OperationResult.ok(DiscordUIMessages.ACTION_PAUSED)

        return await self._run(ctx, "pause", operation)

    async def stop(self, ctx: RequestContext, *, play_exit_sound: bool = False) -> OperationResult:
        """Stop playback and leave voice; the tracks are kept.

        With *play_exit_sound*, a configured exit clip is played on the live
        connection first and the disconnect happens when the clip completes.
        """

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            self._store.reset_cursor(state.guild_id)

            if play_exit_sound and self._exit_sound_path and state.active_connection is not None:
                if await self._play_exit_sound(state):
                    ctx.notifier.status(DiscordUIMessages.ACTION_LEAVING)
                    return OperationResult.ok(DiscordUIMessages.ACTION_LEAVING)

            await self._release(state, CompletionReason.CLEARED)
            if play_exit_sound:
                message = DiscordUIMessages.ACTION_LEAVING
            else:
                message = DiscordUIMessages.ACTION_STOPPED
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "stop", operation)

    async def list_tracks(self, ctx: RequestContext) -> OperationResult:
        """Send a numbered listing of the playlist with the current track marked."""

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            if not state.has_tracks:
                ctx.notifier.status(DiscordUIMessages.STATE_PLAYLIST_EMPTY)
                return OperationResult.ok(DiscordUIMessages.STATE_PLAYLIST_EMPTY)

            lines = [DiscordUIMessages.PLAYLIST_HEADER]
            for index, track in enumerate(state.tracks):
                marker = DiscordUIMessages.CURRENT_TRACK_MARKER if index == state.cursor else ""
                lines.append(f"{index}. {marker}{truncate(track.display_title)}")
            message = "\n".join(lines)
            ctx.notifier.status(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "list", operation)

    async def save_playlist(self, ctx: RequestContext, name: str) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            repository = self._require_repository()
            if not state.has_tracks:
                raise PlaylistEmptyError()
            count = await repository.save_playlist(state.guild_id, name, list(state.tracks))
            message = DiscordUIMessages.PLAYLIST_SAVED.format(count=count, name=name)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "save_playlist", operation)

    async def load_playlist(self, ctx: RequestContext, name: str) -> OperationResult:
        """Replace the guild's playlist with a saved one, halting current playback."""

        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            repository = self._require_repository()
            tracks = await repository.load_playlist(state.guild_id, name)
            if tracks is None:
                raise SavedPlaylistNotFoundError(
                    name, ErrorMessages.SAVED_PLAYLIST_NOT_FOUND.format(name=name)
                )

            await self._release(state, CompletionReason.CLEARED)
            self._store.replace_tracks(state.guild_id, tracks)
            logger.info(LogTemplates.PLAYLIST_REPLACED, len(tracks), state.guild_id)
            message = DiscordUIMessages.PLAYLIST_LOADED.format(count=len(tracks), name=name)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "load_playlist", operation)

    async def list_saved_playlists(self, ctx: RequestContext) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            names = await self._require_repository().list_playlists(state.guild_id)
            if not names:
                message = DiscordUIMessages.STATE_NO_SAVED_PLAYLISTS
            else:
                message = DiscordUIMessages.SAVED_PLAYLISTS.format(names=", ".join(names))
            ctx.notifier.status(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "list_saved_playlists", operation)

    async def delete_saved_playlist(self, ctx: RequestContext, name: str) -> OperationResult:
        async def operation(ctx: RequestContext, state: GuildPlaylistState) -> OperationResult:
            deleted = await self._require_repository().delete_playlist(state.guild_id, name)
            if not deleted:
                raise SavedPlaylistNotFoundError(
                    name, ErrorMessages.SAVED_PLAYLIST_NOT_FOUND.format(name=name)
                )
            message = DiscordUIMessages.PLAYLIST_DELETED.format(name=name)
            ctx.notifier.success(message)
            return OperationResult.ok(message)

        return await self._run(ctx, "delete_saved_playlist", operation)

    async def on_playback_completed(
        self,
        guild_id: int,
        reason: CompletionReason,
        *,
        handle: PlaybackHandle | None = None,
        error: str | None = None,
    ) -> None:
        """React to the terminal event of a playback handle.

        ``FINISHED`` runs the repeat policy and starts whatever comes next,
        ``ERROR`` is reported and halts playback, while ``SUPERSEDED`` and
        ``CLEARED`` completions, and completions of a handle that is no longer
        the active one, are ignored.
        """
        async with self._store.lock(guild_id):
            state = self._store.get(guild_id)
            if state is None:
                return

            if handle is None:
                handle = state.active_handle
            if handle is None or handle is not state.active_handle:
                logger.debug(LogTemplates.COMPLETION_IGNORED, reason.value, guild_id)
                return
            if reason in (CompletionReason.SUPERSEDED, CompletionReason.CLEARED):
                logger.debug(LogTemplates.COMPLETION_IGNORED, reason.value, guild_id)
                return

            logger.debug(LogTemplates.COMPLETION_RECEIVED, reason.value, guild_id)
            state.active_handle = None
            notifier = self._notifier_for(state)

            try:
                await self._handle_completion(state, reason, error)
            except DomainError as exc:
                logger.info(
                    LogTemplates.OPERATION_REJECTED, "completion", guild_id, exc.code, exc.message
                )
                notifier.error(exc.message)
            except Exception:
                logger.exception(LogTemplates.OPERATION_FAILED, "completion", guild_id)
                notifier.error(DiscordUIMessages.ERROR_UNEXPECTED)

    async def forget_guild(self, guild_id: int) -> None:
        """Release and discard everything held for a guild the bot was removed from."""
        async with self._store.lock(guild_id):
            state = self._store.get(guild_id)
            if state is not None:
                await self._release(state, CompletionReason.CLEARED)
            self._store.discard(guild_id)

    async def close(self) -> None:
        """Disconnect from every guild and cancel background tasks."""
        released = 0
        for guild_id in self._store.guild_ids():
            async with self._store.lock(guild_id):
                state = self._store.get(guild_id)
                if state is not None and (state.is_connected or state.active_handle is not None):
                    await self._release(state, CompletionReason.CLEARED)
                    released += 1

        tasks = [*self._watchers, *self._lookups]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._watchers.clear()
        self._lookups.clear()
        logger.info(LogTemplates.CONTROLLER_CLOSED, released)

    # === Operation bodies ===

    async def _play_current_or_resume(
        self, ctx: RequestContext, state: GuildPlaylistState
    ) -> OperationResult:
        if state.is_paused and state.active_handle is not None:
            state.active_handle.resume()
            state.transition(PlaybackEvent.RESUME)
            logger.info(LogTemplates.PLAYBACK_RESUMED, state.guild_id)
            ctx.notifier.success(DiscordUIMessages.ACTION_RESUMED)
            return OperationResult.ok(DiscordUIMessages.ACTION_RESUMED)

        if not state.has_tracks:
            raise PlaylistEmptyError(DiscordUIMessages.STATE_PLAYLIST_EMPTY)

        index = state.cursor
        if index == -1:
            index = RepeatPolicy.next_position(-1, state.length, state.repeat_mode).target
        return await self._start_track(state, index, ctx.voice_channel)

    async def _request_track(
        self, ctx: RequestContext, state: GuildPlaylistState, track: Track
    ) -> OperationResult:
        cursor_was_unset = state.cursor == -1
        index = self._store.append(state.guild_id, track)
        if track.title is None:
            self._spawn_title_lookup(state.guild_id, track)

        if cursor_was_unset:
            ctx.notifier.success(
                DiscordUIMessages.TRACK_ADDED.format(title=track.display_title, index=index)
            )
            self._store.set_cursor(state.guild_id, index)
            return await self._start_track(state, index, ctx.voice_channel)

        if not state.is_connected:
            ctx.notifier.status(
                DiscordUIMessages.TRACK_ADDED_NOT_CONNECTED.format(title=track.display_title)
            )
            self._store.set_cursor(state.guild_id, index)
            return await self._start_track(state, index, ctx.voice_channel)

        message = DiscordUIMessages.TRACK_ADDED.format(title=track.display_title, index=index)
        ctx.notifier.success(message)
        return OperationResult.ok(message)

    async def _handle_completion(
        self, state: GuildPlaylistState, reason: CompletionReason, error: str | None
    ) -> None:
        if state.pending_disconnect:
            await self._release(state, CompletionReason.CLEARED)
            return

        if reason is CompletionReason.ERROR:
            track = state.current_track()
            title = track.display_title if track else "?"
            logger.warning(LogTemplates.PLAYBACK_ERROR, state.guild_id, error)
            await self._disconnect(state)
            state.transition(PlaybackEvent.FAULT)
            self._notifier_for(state).error(
                DiscordUIMessages.ERROR_PLAYBACK_FAILED.format(
                    title=title, error=error or "unknown"
                )
            )
            return

        decision = RepeatPolicy.after_completion(state.cursor, state.length, state.repeat_mode)
        await self._advance(state, decision, None, requested=False)

    # === Internals (all called with the guild lock held) ===

    async def _run(
        self, ctx: RequestContext, name: str, operation: _Operation
    ) -> OperationResult:
        """Run *operation* under the guild lock, turning failures into one error message."""
        async with self._store.lock(ctx.guild_id):
            state = self._store.get_or_create(ctx.guild_id)
            state.notifier = ctx.notifier
            try:
                return await operation(ctx, state)
            except DomainError as exc:
                logger.info(
                    LogTemplates.OPERATION_REJECTED, name, ctx.guild_id, exc.code, exc.message
                )
                ctx.notifier.error(exc.message)
                return OperationResult.fail(exc.message, code=exc.code)
            except Exception:
                logger.exception(LogTemplates.OPERATION_FAILED, name, ctx.guild_id)
                ctx.notifier.error(DiscordUIMessages.ERROR_UNEXPECTED)
                return OperationResult.fail(DiscordUIMessages.ERROR_UNEXPECTED, code="UNEXPECTED")

    async def _advance(
        self,
        state: GuildPlaylistState,
        decision: AdvanceDecision,
        voice_channel: VoiceChannelRef | None,
        *,
        requested: bool = True,
        exhausted_message: str = DiscordUIMessages.STATE_PLAYLIST_FINISHED,
    ) -> OperationResult:
        if decision.should_play:
            return await self._start_track(
                state, decision.target, voice_channel, requested=requested
            )

        logger.info(LogTemplates.PLAYBACK_EXHAUSTED, state.guild_id, decision.signal.value)
        self._store.set_cursor(state.guild_id, -1)
        await self._release(state, CompletionReason.CLEARED)
        if decision.signal is AdvanceSignal.PLAYLIST_EMPTY:
            message = DiscordUIMessages.STATE_PLAYLIST_EMPTY
        else:
            message = exhausted_message
        self._notifier_for(state).status(message)
        return OperationResult.ok(message)

    async def _start_track(
        self,
        state: GuildPlaylistState,
        index: int,
        voice_channel: VoiceChannelRef | None,
        *,
        requested: bool = True,
    ) -> OperationResult:
        """Point the cursor at *index* and play it, joining voice first if needed.

        A *requested* start needs the requester in a voice channel even when the
        bot is already connected; advances after a completion reuse the live
        connection.
        """
        if requested and voice_channel is None:
            raise NoVoiceChannelError()
        track = self._store.goto(state.guild_id, index)
        joined = await self._ensure_connection(state, voice_channel)

        self._supersede(state, CompletionReason.SUPERSEDED)
        try:
            handle = await self._backend.play(
                state.active_connection, track.url, volume=state.volume
            )
        except Exception:
            await self._release(state, CompletionReason.CLEARED)
            raise

        state.transition(PlaybackEvent.CONNECTED if joined else PlaybackEvent.PLAY)
        state.active_handle = handle
        state.pending_disconnect = False
        self._watch(state.guild_id, handle)

        logger.info(LogTemplates.PLAYBACK_STARTED, track.url, index, state.guild_id)
        message = DiscordUIMessages.NOW_PLAYING.format(
            title=track.display_title, position=index + 1, total=state.length
        )
        self._notifier_for(state).success(message)
        return OperationResult.ok(message)

    async def _ensure_connection(
        self, state: GuildPlaylistState, voice_channel: VoiceChannelRef | None
    ) -> bool:
        """Make sure a connection exists; returns True when a new one was joined."""
        connection = state.active_connection
        if connection is not None:
            if voice_channel is None or voice_channel.channel_id == connection.channel_id:
                return False
            logger.info(
                LogTemplates.VOICE_CHANNEL_SWITCH,
                voice_channel,
                connection.channel_id,
                state.guild_id,
            )
            await self._release(state, CompletionReason.SUPERSEDED)

        if voice_channel is None:
            raise NoVoiceChannelError()

        state.transition(PlaybackEvent.CONNECT)
        try:
            state.active_connection = await self._backend.join(voice_channel)
        except Exception:
            state.transition(PlaybackEvent.CONNECT_FAILED)
            raise
        logger.info(LogTemplates.VOICE_CONNECTED, voice_channel, state.guild_id)
        return True

    async def _play_exit_sound(self, state: GuildPlaylistState) -> bool:
        assert self._exit_sound_path is not None
        self._supersede(state, CompletionReason.CLEARED)
        try:
            handle = await self._backend.play(
                state.active_connection, self._exit_sound_path, volume=state.volume
            )
        except Exception:
            logger.warning(LogTemplates.PLAYBACK_EXIT_SOUND_FAILED, state.guild_id, exc_info=True)
            return False

        state.transition(PlaybackEvent.PLAY)
        state.active_handle = handle
        state.pending_disconnect = True
        self._watch(state.guild_id, handle)
        logger.info(LogTemplates.PLAYBACK_EXIT_SOUND, state.guild_id)
        return True

    def _supersede(self, state: GuildPlaylistState, reason: CompletionReason) -> None:
        handle = state.active_handle
        if handle is None:
            return
        state.active_handle = None
        handle.stop(reason)

    async def _disconnect(self, state: GuildPlaylistState) -> None:
        connection = state.active_connection
        state.active_connection = None
        state.pending_disconnect = False
        if connection is None:
            return
        try:
            await connection.disconnect()
        except Exception:
            logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, state.guild_id, exc_info=True)
        else:
            logger.info(LogTemplates.VOICE_DISCONNECTED, state.guild_id)

    async def _release(self, state: GuildPlaylistState, reason: CompletionReason) -> None:
        """Stop the active handle, leave voice, and return to IDLE."""
        self._supersede(state, reason)
        await self._disconnect(state)
        state.transition(PlaybackEvent.STOP)
        logger.debug(LogTemplates.PLAYBACK_STOPPED, state.guild_id)

    def _watch(self, guild_id: int, handle: PlaybackHandle) -> None:
        task = asyncio.create_task(
            self._await_completion(guild_id, handle), name=f"playback-watch-{guild_id}"
        )
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

    async def _await_completion(self, guild_id: int, handle: PlaybackHandle) -> None:
        try:
            outcome = await handle.wait()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception(LogTemplates.COMPLETION_WATCH_FAILED, guild_id)
            outcome = PlaybackOutcome(reason=CompletionReason.ERROR, error=str(exc))
        await self.on_playback_completed(
            guild_id, outcome.reason, handle=handle, error=outcome.error
        )

    def _spawn_title_lookup(self, guild_id: int, track: Track) -> None:
        if self._metadata is None:
            return
        task = asyncio.create_task(
            self._enrich_title(track), name=f"title-lookup-{guild_id}"
        )
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def _enrich_title(self, track: Track) -> None:
        assert self._metadata is not None
        try:
            title = await self._metadata.resolve_title(track.url)
        except Exception as exc:
            logger.warning(LogTemplates.TITLE_LOOKUP_FAILED, track.url, exc)
            return
        title = title.strip()[:_MAX_TITLE_LENGTH]
        if title:
            track.title = title
            logger.debug(LogTemplates.TITLE_RESOLVED, track.url, title)

    def _notifier_for(self, state: GuildPlaylistState) -> NotificationSink:
        return state.notifier or self._fallback_notifier

    def _require_repository(self) -> PlaylistRepository:
        if self._repository is None:
            raise InvalidOperationError(
                "saved_playlists", "unavailable", ErrorMessages.PERSISTENCE_UNAVAILABLE
            )
        return self._repository
