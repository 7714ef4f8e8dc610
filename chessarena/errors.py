"""
Error taxonomy for move acquisition.

Transient failures (TransportError, ParseError, InvalidMoveError) are retried
by RetryController. Configuration errors are raised straight through: retrying
cannot fix a missing API key or a typo in a provider id.
"""

from __future__ import annotations


class ArenaError(Exception):
    """Base class for every error raised by chessarena."""


class ProviderError(ArenaError):
    """Raised when a provider API call fails."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None) -> None:
        self.provider = provider
        self.cause = cause
        super().__init__(f"[{provider}] {message}")


class TransportError(ProviderError):
    """Non-success HTTP status, or the backend could not be reached at all."""

    def __init__(
        self,
        provider: str,
        message: str,
        status: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.status = status
        super().__init__(provider, message, cause)


class ParseError(ProviderError):
    """The reply could not be parsed into a {move, reasoning} object."""


class InvalidMoveError(ArenaError):
    """The parsed move is missing or not in the legal-move list."""

    def __init__(self, move: object, legal_moves: list[str]) -> None:
        self.move = move
        self.legal_moves = list(legal_moves)
        super().__init__(
            f"Invalid move: {move!r}. Must be one of: {', '.join(legal_moves)}"
        )


class ConfigurationError(ArenaError):
    """Player/provider set-up is wrong. Never retried."""


class MissingCredentialError(ConfigurationError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"API key required for provider '{provider}'")


class UnknownProviderError(ConfigurationError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unknown provider: '{provider}'")


class EngineContractError(ArenaError):
    """The rules engine rejected a move that had already passed validation."""
