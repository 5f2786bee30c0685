"""Domain error hierarchy for clean exception handling."""
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base for all domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Invalid input or state (constraint rejection, missing trigger fields)."""


class PersistenceError(DomainError):
    """Remote save/compile/pause/resume call failed."""

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.data = data


class UnauthorizedError(PersistenceError):
    """Backend rejected the credentials."""


class LimitExceededError(PersistenceError):
    """Backend refused the action because usage is over the account limit."""
