"""Port interface for telling users what happened."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Fire-and-forget user feedback; nothing the core relies on is returned."""

    @abstractmethod
    def status(self, text: str) -> None:
        ...

    @abstractmethod
    def success(self, text: str) -> None:
        ...

    @abstractmethod
    def error(self, text: str) -> None:
        ...


class LoggingNotificationSink(NotificationSink):
    """Sink that only logs; used when a guild has no chat channel to report to."""

    def status(self, text: str) -> None:
        logger.info("Status: %s", text)

    def success(self, text: str) -> None:
        logger.info("Success: %s", text)

    def error(self, text: str) -> None:
        logger.warning("Error: %s", text)
