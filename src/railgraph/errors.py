"""Exception hierarchy for railgraph."""

from __future__ import annotations


class RailgraphError(Exception):
    """Base exception for all railgraph errors."""


class ConfigError(RailgraphError):
    """Invalid or missing configuration."""


class ThrottleError(RailgraphError):
    """Expansion cycle attempted inside the cooldown window.

    Callers should retry after ``retry_after`` seconds.
    """

    def __init__(self, message: str, *, retry_after: float = 0.0) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class OracleError(RailgraphError):
    """An external oracle failed or returned malformed output.

    ``attempts`` is the proposal attempt it failed on, 0 outside that loop.
    """

    def __init__(self, message: str, *, role: str = "", attempts: int = 0) -> None:
        self.role = role
        self.attempts = attempts
        super().__init__(message)


class ConsensusError(RailgraphError):
    """No proposal passed verification within the attempt cap."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        feedback: str = "",
    ) -> None:
        self.attempts = attempts
        self.feedback = feedback
        super().__init__(message)


class ValidationError(RailgraphError):
    """Request preconditions violated. Nothing was mutated."""


class NotFoundError(ValidationError):
    """Referenced mover or node does not exist."""


class PersistenceError(RailgraphError):
    """A store write could not be committed."""
