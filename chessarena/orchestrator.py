"""
MoveOrchestrator — drives one turn from "whose move is it" to "move applied".

This module is UI-agnostic. It returns typed TurnResult objects and never
prints; the CLI and the web API decide how to show them.

Per AI turn:
  1. Snapshot FEN, history and the legal-move list from the board.
  2. Resolve the seat's provider, model, credential and temperature.
     A missing credential fails at once: no request is sent.
  3. Ask the provider through an outer RetryController; each attempt runs
     the provider's own retry loop and then validates the proposal again.
  4. If every attempt fails, play a uniformly random legal move and mark
     the record as a fallback, keeping the error that caused it.
  5. Apply the move. A validated move the board refuses means the legal
     list and the board disagree: the session is aborted.

Only one turn may be in flight per session. The `processing` flag is
checked on entry and always released on exit.

Usage:
    orchestrator = MoveOrchestrator(session, registry, config.game)
    result = await orchestrator.request_turn()
    async for result in orchestrator.auto_play(stop_event):
        show(result)
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from pathlib import Path

from chessarena.board import AppliedMove
from chessarena.config import GameConfig
from chessarena.errors import (
    ConfigurationError,
    EngineContractError,
    InvalidMoveError,
    MissingCredentialError,
)
from chessarena.events import Color, GameOverInfo, MoveRecord, TurnResult
from chessarena.registry import ProviderRegistry
from chessarena.retry import RetryController, describe_failure
from chessarena.session import GameSession
from chessarena.validation import MoveProposal, validate_proposal

logger = logging.getLogger(__name__)

FALLBACK_REASONING = (
    "[fallback] The model failed after several attempts; "
    "a random legal move was played instead."
)
HUMAN_REASONING = "Human player's move"


class MoveOrchestrator:
    def __init__(
        self,
        session: GameSession,
        registry: ProviderRegistry,
        game_cfg: GameConfig | None = None,
        *,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self._registry = registry
        self._game_cfg = game_cfg or GameConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._processing = False

    @property
    def processing(self) -> bool:
        return self._processing

    # ------------------------------------------------------------------ #
    # Turns                                                                #
    # ------------------------------------------------------------------ #

    async def request_turn(self) -> TurnResult:
        """
        Play the side to move if it is an AI seat.

        Returns a TurnResult of kind applied, terminal, awaiting_human, busy
        (another turn is in flight) or error (session aborted earlier).

        Raises:
            MissingCredentialError / UnknownProviderError: seat is misconfigured.
            EngineContractError: the board refused a validated move.
        """
        if self._processing:
            return TurnResult(kind="busy")
        self._processing = True
        try:
            return await self._run_ai_turn()
        finally:
            self._processing = False

    async def _run_ai_turn(self) -> TurnResult:
        session = self.session
        board = session.board
        if session.aborted:
            return TurnResult(kind="error", error=f"Session aborted: {session.aborted}")
        if board.is_game_over:
            return TurnResult(kind="terminal", game_over=self._game_over_info())

        color = board.turn
        seat = session.seat(color)
        if seat.kind == "human":
            return TurnResult(kind="awaiting_human")

        position = board.fen
        history = board.history()
        legal_moves = board.legal_moves()

        prov_cfg = self._registry.provider_config(seat.provider_id)
        credential = self._registry.resolve_credential(seat.provider_id, seat.credential)
        if prov_cfg.requires_credential and not credential:
            raise MissingCredentialError(seat.provider_id)
        temperature = self._registry.get_temp_range(seat.provider_id, seat.model_id).clamp(
            seat.temperature
        )
        provider = self._registry.create_provider(
            seat.provider_id, seat.model_id, credential, temperature
        )

        outer = RetryController(
            self._game_cfg.max_retries,
            base_delay=self._game_cfg.outer_backoff,
            layer="orchestrator",
            sleep=self._sleep,
        )

        async def attempt() -> MoveProposal:
            proposal = await provider.request_move(position, history, legal_moves)
            return validate_proposal(proposal, legal_moves)

        fallback = False
        failure: str | None = None
        try:
            proposal = await outer.execute(attempt)
        except (ConfigurationError, EngineContractError):
            raise
        except Exception as exc:
            failure = describe_failure(exc)
            fallback_move = self._rng.choice(legal_moves)
            logger.warning(
                "%s (%s/%s) gave no valid move, playing random %s. Cause: %s",
                color, seat.provider_id, seat.model_id, fallback_move, failure,
            )
            proposal = MoveProposal(move=fallback_move, reasoning=FALLBACK_REASONING)
            fallback = True

        applied = board.apply_move(proposal.move)  # type: ignore[arg-type]
        if applied is None:
            raise self._abort(
                f"rules engine rejected validated move {proposal.move!r} "
                f"(legal snapshot: {', '.join(legal_moves)}; board now {board.fen})"
            )

        return self._record(
            color=color,
            applied=applied,
            reasoning=proposal.reasoning,
            actor="ai",
            provider_id=seat.provider_id,
            model_id=seat.model_id,
            fallback=fallback,
            error=failure,
        )

    def apply_human_move(self, move: str) -> TurnResult:
        """
        Apply a move typed or dropped by a human seat. SAN (Nf3) or
        coordinates (g1f3) are both accepted here.

        Raises:
            ConfigurationError: the side to move is not a human seat.
            InvalidMoveError: the move is not legal in this position.
        """
        if self._processing:
            return TurnResult(kind="busy")
        session = self.session
        board = session.board
        if session.aborted:
            return TurnResult(kind="error", error=f"Session aborted: {session.aborted}")
        if board.is_game_over:
            return TurnResult(kind="terminal", game_over=self._game_over_info())

        color = board.turn
        if session.seat(color).kind != "human":
            raise ConfigurationError(f"It is not a human player's turn ({color} is AI)")

        text = move.strip()
        applied = board.apply_move(text) or board.apply_uci(text)
        if applied is None:
            raise InvalidMoveError(text, board.legal_moves())
        return self._record(color=color, applied=applied, reasoning=HUMAN_REASONING, actor="human")

    async def auto_play(
        self,
        stop_event: asyncio.Event | None = None,
        delay: float | None = None,
    ) -> AsyncGenerator[TurnResult, None]:
        """
        Keep requesting turns while AI seats are to move.

        Stops after a result that is not a plain applied move (game over,
        human to move, busy, error) or once stop_event is set. The stop is
        only seen between turns; a turn already in flight completes.
        """
        pause = self._game_cfg.auto_play_delay if delay is None else delay
        while not (stop_event and stop_event.is_set()):
            result = await self.request_turn()
            yield result
            if result.kind != "applied" or result.game_over is not None:
                return
            if self.session.seat(self.session.board.turn).kind == "human":
                return
            if stop_event is None:
                await self._sleep(pause)
                continue
            try:
                async with asyncio.timeout(pause):
                    await stop_event.wait()
            except TimeoutError:
                pass

    def new_game(self, fen: str | None = None) -> None:
        if self._processing:
            raise ConfigurationError("Cannot start a new game while a move is in progress")
        self.session.reset(fen)
        logger.info("Starting new game: %s vs %s",
                    self.session.white.display_name, self.session.black.display_name)

    # ------------------------------------------------------------------ #
    # Internal                                                             #
    # ------------------------------------------------------------------ #

    def _record(
        self,
        *,
        color: Color,
        applied: AppliedMove,
        reasoning: str,
        actor: str,
        provider_id: str | None = None,
        model_id: str | None = None,
        fallback: bool = False,
        error: str | None = None,
    ) -> TurnResult:
        board = self.session.board
        if reasoning:
            board.annotate_last_move(reasoning_comment(reasoning))
        record = MoveRecord(
            color=color,
            move_number=len(self.session.moves) + 1,
            san=applied.san,
            uci=applied.uci,
            reasoning=reasoning,
            actor=actor,  # type: ignore[arg-type]
            fen_after=applied.fen_after,
            is_check=applied.is_check,
            provider_id=provider_id,
            model_id=model_id,
            fallback=fallback,
            error=error,
        )
        self.session.moves.append(record)
        logger.info("%s played %s%s", color, applied.san, " (fallback)" if fallback else "")

        game_over = self._game_over_info() if board.is_game_over else None
        if game_over is not None:
            logger.info("Game over: %s by %s", game_over.result, game_over.reason)
            if self._game_cfg.save_pgn:
                save_pgn(game_over.pgn, Path(self._game_cfg.pgn_dir))
        return TurnResult(kind="applied", record=record, game_over=game_over)

    def _game_over_info(self) -> GameOverInfo:
        board = self.session.board
        result = board.result()
        board.set_result(result)
        return GameOverInfo(
            result=result,  # type: ignore[arg-type]
            reason=board.terminal_state(),  # type: ignore[arg-type]
            winner=board.winner(),
            pgn=board.to_pgn(include_comments=True),
            total_moves=len(board.history()),
        )

    def _abort(self, reason: str) -> EngineContractError:
        self.session.aborted = reason
        logger.error("Aborting session: %s", reason)
        return EngineContractError(reason)


def reasoning_comment(reasoning: str) -> str:
    """Single-line, brace-free text safe to embed as a PGN comment."""
    text = " ".join(reasoning.split())
    return text.replace("{", "(").replace("}", ")")


def save_pgn(pgn: str, pgn_dir: Path) -> Path:
    """Write PGN to a timestamped file, creating the directory if needed."""
    pgn_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    pgn_path = pgn_dir / f"game_{timestamp}.pgn"
    pgn_path.write_text(pgn, encoding="utf-8")
    return pgn_path
