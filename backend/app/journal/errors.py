"""Error taxonomy for the journal core.

Only ValidationError is meant to reach the user directly. PersistenceReadError
is raised and absorbed inside the session store.
"""

from __future__ import annotations


class JournalError(Exception):
    """Base error for the journal core."""


class ValidationError(JournalError):
    """Raised when user input fails a precondition. No state is mutated."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class PersistenceReadError(JournalError):
    """Raised when the persisted session blob cannot be decoded."""


class PromptBuilderError(JournalError):
    """Raised when a prompt builder receives inputs of the wrong type."""


__all__ = ["JournalError", "ValidationError", "PersistenceReadError", "PromptBuilderError"]
