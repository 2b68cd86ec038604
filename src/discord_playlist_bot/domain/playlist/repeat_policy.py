"""
Repeat Policy

Domain service deciding where the cursor goes next. It never touches a
playlist, a connection or a notifier, so every branch can be unit tested with
plain integers.
"""

from __future__ import annotations

from discord_playlist_bot.domain.playlist.value_objects import (
    AdvanceDecision,
    AdvanceSignal,
    RepeatMode,
)


class RepeatPolicy:
    """Next/previous track rules for a playlist cursor."""

    @classmethod
    def next_position(cls, cursor: int, length: int, repeat_mode: RepeatMode) -> AdvanceDecision:
        """Next-track algorithm.

        Args:
            cursor: Current cursor (-1 when nothing is selected).
            length: Number of tracks in the playlist.
            repeat_mode: The guild's repeat mode.

        Returns:
            ``ADVANCE`` to ``cursor + 1`` while tracks remain, ``WRAPPED`` to 0
            at the end of the playlist in ``ALL`` mode, otherwise
            ``PLAYLIST_EXHAUSTED`` (``PLAYLIST_EMPTY`` when there are no
            tracks) with target -1.
        """
        if length == 0:
            return AdvanceDecision(target=-1, signal=AdvanceSignal.PLAYLIST_EMPTY)

        cursor = max(cursor, -1)
        if cursor < length - 1:
            return AdvanceDecision(target=cursor + 1, signal=AdvanceSignal.ADVANCE)

        if repeat_mode == RepeatMode.ALL:
            # Same as restarting the algorithm from cursor -1.
            return AdvanceDecision(target=0, signal=AdvanceSignal.WRAPPED)

        return AdvanceDecision(target=-1, signal=AdvanceSignal.PLAYLIST_EXHAUSTED)

    @classmethod
    def after_completion(
        cls, cursor: int, length: int, repeat_mode: RepeatMode
    ) -> AdvanceDecision:
        """Decide what follows a track that finished on its own.

        In ``ONE`` mode the cursor is stepped back once before running the
        next-track algorithm, which lands on the same track again.
        """
        if repeat_mode == RepeatMode.ONE:
            cursor = max(cursor - 1, -1)
        return cls.next_position(cursor, length, repeat_mode)

    @classmethod
    def previous_position(cls, cursor: int, length: int) -> AdvanceDecision:
        """Step back one track; going back from the first track stops playback."""
        if length == 0:
            return AdvanceDecision(target=-1, signal=AdvanceSignal.PLAYLIST_EMPTY)
        if cursor > 0:
            return AdvanceDecision(target=min(cursor, length) - 1, signal=AdvanceSignal.ADVANCE)
        return AdvanceDecision(target=-1, signal=AdvanceSignal.PLAYLIST_EXHAUSTED)
