"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations

from dataclasses import dataclass


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track / Playlist Validation Errors
    EMPTY_TRACK_URL = "Track URL cannot be empty"
    VOLUME_OUT_OF_RANGE = "Volume must be between {low} and {high}"
    SAVED_PLAYLIST_NOT_FOUND = "There is no saved playlist named '{name}'"
    PERSISTENCE_UNAVAILABLE = "Saved playlists are not available"

    # Database Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"

    # Voice Errors
    CHANNEL_NOT_FOUND = "Voice channel {channel} could not be found"
    CHANNEL_NOT_VOICE = "Channel {channel} is not a voice channel"
    VOICE_CONNECT_TIMEOUT = "Timed out joining voice channel {channel}"
    VOICE_NO_PERMISSION = "I don't have permission to join {channel}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Guild State
    STATE_CREATED = "Created playlist state for guild %s"
    STATE_DISCARDED = "Discarded playlist state for guild %s"

    # Playlist Operations
    TRACK_APPENDED = "Appended %s at index %s in guild %s"
    TRACK_REMOVED = "Removed index %s in guild %s (was current: %s)"
    PLAYLIST_CLEARED = "Cleared %s tracks in guild %s"
    PLAYLIST_REPLACED = "Replaced playlist with %s tracks in guild %s"
    REPEAT_MODE_CHANGED = "Repeat mode changed to %s in guild %s"
    VOLUME_CHANGED = "Volume changed to %s in guild %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' (index %s) in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_EXHAUSTED = "Playlist finished in guild %s (%s)"
    PLAYBACK_EXIT_SOUND = "Playing exit sound in guild %s before disconnecting"
    PLAYBACK_EXIT_SOUND_FAILED = "Failed to play exit sound in guild %s"
    COMPLETION_RECEIVED = "Completion %s for guild %s"
    COMPLETION_IGNORED = "Ignoring %s completion of a stale handle in guild %s"
    COMPLETION_WATCH_FAILED = "Playback handle in guild %s failed while waiting"

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CHANNEL_SWITCH = "Requester is in channel %s, moving from %s in guild %s"
    VOICE_DISCONNECT_FAILED = "Error disconnecting from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting to channel %s: %r"
    VOICE_SOURCE_ERROR = "Audio source error on channel %s: %r"

    # Controller
    OPERATION_REJECTED = "%s rejected in guild %s: [%s] %s"
    OPERATION_FAILED = "%s failed in guild %s"
    CONTROLLER_CLOSED = "Playback controller closed (%s guilds released)"

    # Metadata
    TITLE_RESOLVED = "Resolved title for %s: %s"
    TITLE_LOOKUP_FAILED = "Title lookup failed for %s: %r"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"

    # Repository Operations
    PLAYLIST_SAVED = "Saved playlist '%s' (%s tracks) for guild %s"
    PLAYLIST_LOADED = "Loaded playlist '%s' (%s tracks) for guild %s"
    PLAYLIST_DELETED = "Deleted playlist '%s' for guild %s"

    # Commands
    COMMAND_RECEIVED = "Got command in guild %s: %s %s"
    COMMAND_UNKNOWN = "Unknown command '%s' in guild %s"
    COMMAND_BAD_ARGUMENTS = "Invalid arguments for '%s' in guild %s: %s"

    # Notifications
    NOTIFY_STATUS = "[guild %s] status: %s"
    NOTIFY_SUCCESS = "[guild %s] success: %s"
    NOTIFY_ERROR = "[guild %s] error: %s"
    NOTIFY_SEND_FAILED = "Failed to send message to channel %s"

    # Application Lifecycle
    BOT_STARTING = "Starting Discord Playlist Bot in {environment} mode"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_GUILD_REMOVED = "Removed from guild %s, forgetting its playlist"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"


class DiscordUIMessages:
    """User-facing chat messages.

    These strings are shown directly to users. Keep them concise, friendly, and
    include appropriate emoji.
    """

    # Playback
    NOW_PLAYING = "▶️ Now playing: **{title}** ({position}/{total})"
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_STOPPED = "⏹️ Stopped playback."
    ACTION_LEAVING = "👋 Bye!"
    ERROR_PLAYBACK_FAILED = "❌ Couldn't play **{title}**: {error}"

    # Playlist
    TRACK_ADDED = "➕ Added **{title}** to the playlist at index {index}."
    TRACK_ADDED_NOT_CONNECTED = "I'm not connected, so I'm starting the one you added: **{title}**"
    TRACK_REMOVED = "🗑️ Removed **{title}** from index {index}."
    PLAYLIST_CLEARED = "🗑️ Cleared {count} tracks from the playlist."
    REPEAT_MODE_SET = "🔁 Repeat mode set to **{mode}**."
    VOLUME_SET = "🔊 Volume set to {volume:g}."
    CURSOR_MOVED = "Up next: **{title}**"
    PLAYLIST_HEADER = "Here's the current playlist:"
    CURRENT_TRACK_MARKER = "🎶 "
    PLAYLIST_SAVED = "💾 Saved {count} tracks as **{name}**."
    PLAYLIST_LOADED = "📂 Loaded {count} tracks from **{name}**. Use `play` to start."
    PLAYLIST_DELETED = "🗑️ Deleted saved playlist **{name}**."
    SAVED_PLAYLISTS = "Saved playlists: {names}"

    # State Messages
    STATE_PLAYLIST_EMPTY = "The playlist is empty, boss!"
    STATE_PLAYLIST_FINISHED = "Reached the end of the playlist."
    STATE_PLAYLIST_START = "Already at the first track, stopping."
    STATE_NOTHING_TO_PAUSE = "Nothing to pause."
    STATE_NO_SAVED_PLAYLISTS = "There are no saved playlists yet."
    STATE_NO_RESULTS = "Couldn't find anything for: {query}"

    # Errors
    ERROR_UNEXPECTED = "❌ Something went wrong. See logs."
    ERROR_UNKNOWN_COMMAND = "There is no command `{prefix}{command}`. Type `{prefix}help` for the list."
    ERROR_NO_USAGE = "Couldn't show command usage for command `{prefix}{command}`!"

    # Help
    HELP_HEADER = "Here are the commands I support right now:"
    HELP_FOOTER = "You can get usage help with each individual command by typing `{prefix}help <command>`."


@dataclass(frozen=True)
class CommandDoc:
    """Help entry for one command: a description plus usage variants."""

    description: str
    arg_combos: tuple[tuple[str, str], ...] = ()
    aliases: tuple[str, ...] = ()


COMMAND_USAGE: dict[str, CommandDoc] = {
    "y": CommandDoc(
        description="Adds audio to the playlist.",
        arg_combos=(
            ("<link to a video>", "Add a video directly to the playlist by URL."),
            (
                "<search query>",
                "Add the first search result for the query to the playlist.",
            ),
        ),
        aliases=("add",),
    ),
    "p": CommandDoc(
        description="Gets or modifies the playlist.",
        arg_combos=(
            ("next", "Skip to the next track in the playlist."),
            ("back | prev", "Go to the previous track in the playlist."),
            ("clear", "Clear all of the tracks from the playlist and stop playback."),
            ("repeat none", 'Change the repeat mode to "none". This is the default.'),
            (
                "repeat one",
                'Change the repeat mode to "one". The current track restarts once it ends.',
            ),
            (
                "repeat all",
                'Change the repeat mode to "all". After the final track the playlist '
                "starts again from the beginning.",
            ),
            (
                "del <index>",
                "Delete the track at the index. If it is the current track, the next "
                "one starts automatically.",
            ),
            ("goto <index>", "Make the track at the index the current one."),
            ("list", "List all of the tracks in the playlist."),
            ("list save <name>", "Save the playlist for easy retrieval later."),
            ("list load <name>", "Replace the playlist with a saved one."),
            ("list saved", "List the saved playlists."),
            ("list delete <name>", "Delete a saved playlist."),
        ),
        aliases=("playlist",),
    ),
    "play": CommandDoc(
        description="Resumes the paused track, or plays the current track of the playlist.",
        aliases=("resume",),
    ),
    "pause": CommandDoc(description="Pauses the playing track."),
    "next": CommandDoc(description="Skips to the next track in the playlist."),
    "prev": CommandDoc(
        description="Goes back to the previous track in the playlist.",
        aliases=("back",),
    ),
    "stop": CommandDoc(description="Stops playback and leaves the voice channel."),
    "leave": CommandDoc(description="Says goodbye and leaves the voice channel."),
    "v": CommandDoc(
        description="Sets the volume of the current and future tracks.",
        arg_combos=(("<volume>", "The desired volume, from 0 to 2."),),
        aliases=("vol", "volume"),
    ),
    "help": CommandDoc(
        description="Displays usage for all commands.",
        arg_combos=(("<command>", "Optional. Command to get help with."),),
    ),
}
