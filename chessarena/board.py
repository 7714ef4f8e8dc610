"""
Thin facade over python-chess Board and PGN machinery.

This is the rules engine as the orchestrator sees it: positions in FEN,
moves in SAN, a history of numbered moves, and terminal-state detection.
No python-chess types leak out of this module.
"""

from __future__ import annotations

import chess
import chess.pgn
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

TerminalState = Literal["checkmate", "stalemate", "draw", "none"]
GameStatus = Literal["in_progress", "check", "checkmate", "stalemate", "draw"]


@dataclass(frozen=True)
class HistoryEntry:
    move_number: int
    san: str


@dataclass(frozen=True)
class AppliedMove:
    san: str
    uci: str
    fen_after: str
    is_check: bool


class ChessBoard:
    """Facade over chess.Board + chess.pgn.Game."""

    def __init__(self, fen: str | None = None) -> None:
        self._starting_fen = fen
        self._board = chess.Board(fen) if fen else chess.Board()
        self._game = chess.pgn.Game()
        if fen:
            self._game.setup(self._board)
        self._node: chess.pgn.GameNode = self._game
        self._game.headers["Date"] = datetime.now().strftime("%Y.%m.%d")
        self._game.headers["Event"] = "LLM Chess Arena"

    # ------------------------------------------------------------------ #
    # State queries                                                        #
    # ------------------------------------------------------------------ #

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def turn(self) -> Literal["white", "black"]:
        return "white" if self._board.turn == chess.WHITE else "black"

    @property
    def is_game_over(self) -> bool:
        return self.terminal_state() != "none"

    def ascii(self) -> str:
        """Standard ASCII board via python-chess (uppercase = White)."""
        return str(self._board)

    def legal_moves(self) -> list[str]:
        """Legal moves in SAN, in python-chess generation order."""
        return [self._board.san(m) for m in self._board.legal_moves]

    def history(self) -> list[HistoryEntry]:
        """Moves played so far, numbered by ply (1 = White's first move)."""
        board_copy = chess.Board(self._starting_fen) if self._starting_fen else chess.Board()
        entries: list[HistoryEntry] = []
        for ply, move in enumerate(self._board.move_stack, 1):
            entries.append(HistoryEntry(move_number=ply, san=board_copy.san(move)))
            board_copy.push(move)
        return entries

    def terminal_state(self) -> TerminalState:
        # Claimable draws count as terminal: nobody is around to claim them.
        if self._board.is_checkmate():
            return "checkmate"
        if self._board.is_stalemate():
            return "stalemate"
        if self._board.is_game_over(claim_draw=True):
            return "draw"
        return "none"

    def status(self) -> GameStatus:
        terminal = self.terminal_state()
        if terminal != "none":
            return terminal
        return "check" if self._board.is_check() else "in_progress"

    # ------------------------------------------------------------------ #
    # Move application                                                    #
    # ------------------------------------------------------------------ #

    def apply_move(self, san: str) -> AppliedMove | None:
        """
        Apply a SAN move. Returns None (board untouched) if the move does not
        parse or is not legal in the current position.
        """
        try:
            move = self._board.parse_san(san)
        except ValueError:
            return None
        if not move:  # parse_san maps "--" to a null move
            return None
        return self._push(move)

    def apply_uci(self, uci: str) -> AppliedMove | None:
        """Apply a coordinate move (e2e4, a7a8q). Used for human input only."""
        try:
            move = chess.Move.from_uci(uci.strip().lower())
        except ValueError:
            return None
        if move not in self._board.legal_moves:
            return None
        return self._push(move)

    def _push(self, move: chess.Move) -> AppliedMove:
        san = self._board.san(move)
        self._board.push(move)
        self._node = self._node.add_variation(move)
        return AppliedMove(
            san=san,
            uci=move.uci(),
            fen_after=self._board.fen(),
            is_check=self._board.is_check(),
        )

    # ------------------------------------------------------------------ #
    # Game-over info                                                      #
    # ------------------------------------------------------------------ #

    def result(self) -> str:
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None:
            return "*"
        return outcome.result()

    def winner(self) -> Literal["white", "black"] | None:
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None or outcome.winner is None:
            return None
        return "white" if outcome.winner == chess.WHITE else "black"

    # ------------------------------------------------------------------ #
    # PGN                                                                 #
    # ------------------------------------------------------------------ #

    def set_players(self, white_name: str, black_name: str) -> None:
        self._game.headers["White"] = white_name
        self._game.headers["Black"] = black_name

    def set_result(self, result: str) -> None:
        self._game.headers["Result"] = result

    def annotate_last_move(self, comment: str) -> None:
        """Attach a PGN comment to the most recently played move node."""
        self._node.comment = comment

    def to_pgn(self, *, include_comments: bool = False) -> str:
        exporter = chess.pgn.StringExporter(
            headers=True,
            variations=False,
            comments=include_comments,
        )
        return self._game.accept(exporter)
