"""
GameSession — everything one game needs, in one object.

The board, the two seats (who plays White and Black, with which provider,
model and temperature) and the move log. No module-level game state exists;
every component that needs the game gets the session passed in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from chessarena.board import ChessBoard
from chessarena.events import Color, MoveRecord

SeatKind = Literal["human", "ai"]


@dataclass
class SeatSettings:
    kind: SeatKind = "human"
    provider_id: str = ""
    model_id: str = ""
    temperature: float = 0.7
    # Never persisted with the settings blob; credentials live in SettingsStore.
    credential: str | None = None

    @property
    def display_name(self) -> str:
        if self.kind == "human":
            return "Human"
        return f"{self.model_id} ({self.provider_id})"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "provider_id": self.provider_id,
            "model_id": self.model_id,
            "temperature": self.temperature,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> SeatSettings:
        data = data or {}
        kind = data.get("kind", "human")
        if kind not in ("human", "ai"):
            raise ValueError(f"seat kind must be 'human' or 'ai', got {kind!r}")
        return cls(
            kind=kind,
            provider_id=str(data.get("provider_id", "")),
            model_id=str(data.get("model_id", "")),
            temperature=float(data.get("temperature", 0.7)),
        )


@dataclass
class GameSession:
    white: SeatSettings = field(default_factory=SeatSettings)
    black: SeatSettings = field(default_factory=SeatSettings)
    board: ChessBoard = field(default_factory=ChessBoard)
    moves: list[MoveRecord] = field(default_factory=list)
    aborted: str | None = None  # set when the rules engine broke its contract

    def seat(self, color: Color) -> SeatSettings:
        return self.white if color == "white" else self.black

    def reset(self, fen: str | None = None) -> None:
        self.board = ChessBoard(fen)
        self.board.set_players(self.white.display_name, self.black.display_name)
        self.moves = []
        self.aborted = None

    # ------------------------------------------------------------------ #
    # Settings blob                                                        #
    # ------------------------------------------------------------------ #

    def settings_dict(self) -> dict:
        return {"white": self.white.to_dict(), "black": self.black.to_dict()}

    def apply_settings(self, settings: dict) -> None:
        """Load seat settings from the opaque UI blob, keeping credentials in memory."""
        for color in ("white", "black"):
            if color in settings:
                seat = SeatSettings.from_dict(settings[color])
                previous = self.seat(color)
                if seat.provider_id == previous.provider_id:
                    seat.credential = previous.credential
                setattr(self, color, seat)
        self.board.set_players(self.white.display_name, self.black.display_name)
