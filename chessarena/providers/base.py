"""
Abstract provider interfaces.

Two layers:
  WireAdapter    — talks to one kind of HTTP API and returns the raw reply text.
  ModelProvider  — turns a position into a MoveProposal (prompting, parsing,
                   validation, retries). ChessModelProvider in
                   chessarena.providers.pipeline is the one real implementation;
                   tests substitute their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NamedTuple

from chessarena.board import HistoryEntry
from chessarena.validation import MoveProposal

__all__ = ["Message", "MoveProposal", "WireAdapter", "ModelProvider"]


class Message(NamedTuple):
    role: str     # "system" | "user"
    content: str


class WireAdapter(ABC):
    """One backend transport: builds the request body, sends it, extracts the reply text."""

    #: Label used in error messages and logs.
    label: str = "provider"

    @abstractmethod
    async def complete(self, messages: list[Message]) -> str:
        """
        Send the system + user messages and return the reply text.

        Raises:
            TransportError: non-success status or the backend is unreachable.
            ParseError: the reply envelope has no text where it should.
        """
        ...


class ModelProvider(ABC):
    """Abstract base for anything that can propose a chess move."""

    @abstractmethod
    async def request_move(
        self,
        position: str,
        history: list[HistoryEntry],
        legal_moves: list[str],
    ) -> MoveProposal:
        """
        Ask the backend for a move in the given position.

        Returns a proposal whose move is in legal_moves, or raises
        TransportError / ParseError / InvalidMoveError.
        """
        ...
