"""
Exceptions for the leysync engine.

Exception Hierarchy:
    LeySyncError (base)
    ├── CacheError (clone/fetch/reset/branch/commit/push failures)
    ├── ReconcileError (a single mapping rule failed to copy or remove)
    ├── ContributionError (a step of the contribution cycle failed)
    └── ApiError (merge-proposal HTTP failure)

Example:
    >>> from leysync.core.exceptions import CacheError
    >>> try:
    ...     raise CacheError("fetch", "Could not reach remote", stderr="timeout")
    ... except CacheError as e:
    ...     print(f"{e.step}: {e}")
    fetch: Could not reach remote
"""

from __future__ import annotations


class LeySyncError(Exception):
    """
    Base exception for all leysync errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class CacheError(LeySyncError):
    """
    Raised when a repository cache operation fails.

    Attributes:
        step: Name of the failed step (e.g., "clone", "fetch", "push")
        command: The git command that was run, if any
        stderr: Captured stderr of the failed command
    """

    def __init__(
        self,
        step: str,
        message: str,
        *,
        command: list[str] | None = None,
        stderr: str = "",
        **context: object,
    ) -> None:
        super().__init__(message, step=step, **context)
        self.step = step
        self.command = command
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr}"
        return self.message


class ReconcileError(LeySyncError):
    """
    Raised when a single mapping rule cannot be applied.

    Reconciliation records these per rule and keeps going; they are never
    fatal to the whole pass.

    Attributes:
        source: Source path of the failing rule (relative to the cache root)
    """

    def __init__(self, source: str, message: str, **context: object) -> None:
        super().__init__(message, source=source, **context)
        self.source = source

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


class ContributionError(LeySyncError):
    """
    Raised when a step of the contribution cycle fails.

    Attributes:
        step: Name of the failed step (e.g., "diff", "branch", "archive")
    """

    def __init__(self, step: str, message: str, **context: object) -> None:
        super().__init__(message, step=step, **context)
        self.step = step


class ApiError(LeySyncError):
    """
    Raised when the merge-proposal API call fails.

    Attributes:
        status_code: HTTP status code, or None for transport failures
        body: Response body text (may be empty)
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
        **context: object,
    ) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code}): {self.body}"
        return self.message
