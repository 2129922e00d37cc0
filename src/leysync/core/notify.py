"""
Notification surface used by the engine.

The engine never prints. Anything meant for a person goes through a
Notifier supplied by the host (the CLI, an editor integration, a test).
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Protocol for user-facing messages and the secret prompt."""

    def info(self, message: str) -> None:
        """Called for informational messages (e.g., "Synchronized 3 files")."""
        ...

    def warning(self, message: str) -> None:
        """Called for recoverable problems (e.g., a rule that could not be copied)."""
        ...

    def error(self, message: str) -> None:
        """Called when an operation failed."""
        ...

    def prompt_secret(self, prompt: str) -> str | None:
        """Ask for a secret value; None when the user declines."""
        ...


class LoggingNotifier:
    """
    Notifier that forwards to the log and never prompts.

    Used when no interactive host is available (e.g., a background watcher
    without a TTY).
    """

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)

    def prompt_secret(self, prompt: str) -> str | None:
        logger.debug("No interactive prompt available for: %s", prompt)
        return None
