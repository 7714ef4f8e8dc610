"""
Typed result dataclasses — the shared language between the orchestrator and any consumer.

The orchestrator returns these. The CLI, the web API, or a test harness consumes them.
All are frozen (immutable) so they're safe to pass across async boundaries
and can be trivially serialized to JSON via dataclasses.asdict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Color = Literal["white", "black"]
Actor = Literal["ai", "human"]
GameResult = Literal["1-0", "0-1", "1/2-1/2", "*"]
GameOverReason = Literal["checkmate", "stalemate", "draw"]
TurnKind = Literal["applied", "terminal", "awaiting_human", "busy", "error"]


@dataclass(frozen=True)
class MoveRecord:
    color: Color
    move_number: int     # ply, 1 = White's first move
    san: str
    uci: str
    reasoning: str
    actor: Actor
    fen_after: str
    is_check: bool
    provider_id: str | None = None
    model_id: str | None = None
    fallback: bool = False     # True when the move was picked at random, not by the model
    error: str | None = None   # what made the model attempts fail, with retry-layer provenance
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class GameOverInfo:
    result: GameResult
    reason: GameOverReason
    winner: Color | None
    pgn: str
    total_moves: int


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one request_turn() / apply_human_move() call."""
    kind: TurnKind
    record: MoveRecord | None = None
    game_over: GameOverInfo | None = None
    error: str | None = None
