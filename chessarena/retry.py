"""
Retry with exponential backoff.

Between attempt i and i+1 (0-indexed) the caller is suspended for
base_delay * 2**i seconds: 1s, 2s, 4s, ... with the default base_delay.
No jitter, no cap. The suspension is an `await`, so the event loop keeps
serving other work (web requests, UI updates) while a turn backs off.

Two controllers are stacked during a turn: the provider's own ("provider")
around each HTTP round-trip, and the orchestrator's ("orchestrator") around
the provider. Each failure is logged with its layer, and exhausted errors
carry a note naming the layer and attempt that gave up.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from chessarena.errors import ConfigurationError, EngineContractError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retrying cannot fix these.
_NON_RETRYABLE: tuple[type[Exception], ...] = (ConfigurationError, EngineContractError)


@dataclass
class RetrySession:
    """Bookkeeping for one execute() call. Discarded once the call resolves."""
    layer: str
    max_attempts: int
    attempts: int = 0
    last_error: Exception | None = None
    total_delay: float = 0.0
    failures: list[str] = field(default_factory=list)


class RetryController:
    def __init__(
        self,
        max_attempts: int = 3,
        *,
        base_delay: float = 1.0,
        layer: str = "provider",
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.layer = layer
        self._sleep = sleep
        self.last_session: RetrySession | None = None

    def delay_for(self, attempt_index: int) -> float:
        return self.base_delay * (2 ** attempt_index)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
    ) -> T:
        """
        Await operation() until it succeeds or max_attempts is reached.

        Raises the last error once attempts are exhausted. Configuration
        errors are raised on the spot without consuming further attempts.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        session = RetrySession(layer=self.layer, max_attempts=attempts)
        self.last_session = session

        for i in range(attempts):
            session.attempts = i + 1
            try:
                return await operation()
            except _NON_RETRYABLE:
                raise
            except Exception as exc:
                session.last_error = exc
                session.failures.append(f"{type(exc).__name__}: {exc}")
                logger.warning(
                    "%s attempt %d/%d failed: %s",
                    self.layer, i + 1, attempts, exc,
                )
                if i == attempts - 1:
                    exc.add_note(f"{self.layer} attempt {i + 1}/{attempts}")
                    raise
                delay = self.delay_for(i)
                session.total_delay += delay
                if delay > 0:
                    await self._sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover


def describe_failure(exc: BaseException) -> str:
    """Error message prefixed by the retry layers it passed through, outermost first."""
    notes = list(reversed(getattr(exc, "__notes__", [])))
    trail = " <- ".join(notes)
    return f"{trail}: {type(exc).__name__}: {exc}" if trail else f"{type(exc).__name__}: {exc}"
