"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class IndexOutOfRangeError(DomainError):
    """Raised when a playlist index does not address an existing track."""

    def __init__(self, index: int, length: int, message: str | None = None) -> None:
        msg = message or f"Index {index} is out of range for a playlist of {length} track(s)"
        super().__init__(msg, code="INDEX_OUT_OF_RANGE")
        self.index = index
        self.length = length


class InvalidModeError(DomainError):
    """Raised when a repeat mode is not one of the supported values."""

    def __init__(self, mode: object, message: str | None = None) -> None:
        msg = message or f"Unknown repeat mode '{mode}'"
        super().__init__(msg, code="INVALID_MODE")
        self.mode = mode


class PlaylistEmptyError(DomainError):
    """Raised when an operation needs a track but the playlist has none."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The playlist is empty", code="PLAYLIST_EMPTY")


class NoVoiceChannelError(DomainError):
    """Raised when the requester is not in a voice channel."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Join a voice channel first", code="NO_VOICE_CHANNEL")


class VoiceConnectionError(DomainError):
    """Raised when joining a voice channel fails."""

    def __init__(self, channel_id: int | None = None, message: str | None = None) -> None:
        msg = message or f"Could not join voice channel {channel_id}"
        super().__init__(msg, code="CONNECTION_ERROR")
        self.channel_id = channel_id


class UnknownCommandError(DomainError):
    """Raised when a command name has no route."""

    def __init__(self, command: str, message: str | None = None) -> None:
        msg = message or f"Unknown command '{command}'"
        super().__init__(msg, code="UNKNOWN_COMMAND")
        self.command = command


class InvalidArgumentsError(DomainError):
    """Raised when a command is called with malformed arguments."""

    def __init__(self, command: str, message: str | None = None) -> None:
        msg = message or f"Invalid arguments for command '{command}'"
        super().__init__(msg, code="INVALID_ARGUMENTS")
        self.command = command


class SavedPlaylistNotFoundError(DomainError):
    """Raised when loading or deleting a saved playlist that does not exist."""

    def __init__(self, name: str, message: str | None = None) -> None:
        msg = message or f"There is no saved playlist named '{name}'"
        super().__init__(msg, code="PLAYLIST_NOT_FOUND")
        self.name = name


class PlaybackStartError(DomainError):
    """Raised when the audio backend cannot start a source."""

    def __init__(self, source: str, message: str | None = None) -> None:
        msg = message or f"Could not play {source}"
        super().__init__(msg, code="PLAYBACK_FAILED")
        self.source = source
