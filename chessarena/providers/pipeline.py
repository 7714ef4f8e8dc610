"""
ChessModelProvider — the one request/parse/validate pipeline every backend shares.

Prompt design:
  - One system prompt for all backends: reply with exactly one JSON object
    {"move": ..., "reasoning": ...}, the move copied verbatim from the legal
    list in SAN, no markdown.
  - The legal-move list is included every turn; it is the most effective
    anti-hallucination measure.
  - History is inline SAN by default; OpenRouter gets one numbered move
    per line.

Replies are sanitized (code fences stripped, surrounding prose tolerated),
parsed, then validated against the legal list. Any failure inside one
round-trip is retried by this provider's RetryController.
"""

from __future__ import annotations

import logging
from typing import Literal

from chessarena.board import HistoryEntry
from chessarena.providers.base import Message, ModelProvider, MoveProposal, WireAdapter
from chessarena.retry import RetryController
from chessarena.validation import parse_move_reply, validate_proposal

logger = logging.getLogger(__name__)

HistoryStyle = Literal["inline", "numbered"]

# --------------------------------------------------------------------------- #
# Prompt templates                                                             #
# --------------------------------------------------------------------------- #

SYSTEM_PROMPT = """\
You are a Chess Grandmaster playing a serious game. Your ONLY task is to select ONE valid move from the provided list of legal moves, using Standard Algebraic Notation (SAN).

CRITICAL REQUIREMENTS:
1. You MUST select EXACTLY ONE move from the provided legal moves list. DO NOT invent, modify, or ignore moves.
2. Your move MUST match EXACTLY one of the legal moves shown (case, format, and spelling).
3. DO NOT use coordinates (e2e4), only SAN (e.g., Nf3, exd5, O-O).
4. DO NOT add any extra text, comments, or explanations outside the JSON.
5. DO NOT wrap the JSON in code blocks or markdown.
6. DO NOT add any text before or after the JSON.
7. DO NOT return more than one move.
8. If you cannot select a move from the list, return an error in the reasoning field and leave the move field empty.
9. Consider piece development, control of the center, king safety, threats and captures before choosing your move.
10. Your reasoning must explain why the chosen move is the best among the legal options, referencing specific pieces, squares, and plans.

RESPONSE FORMAT:
{
  "move": "<your chosen move in EXACT SAN format>",
  "reasoning": "<your analysis and explanation>"
}

Example valid responses:
- {"move": "e4", "reasoning": "Advances the pawn to control the center and opens lines for the bishop and queen."}
- {"move": "Nf3", "reasoning": "Develops the knight, controls key central squares, and prepares for kingside castling."}
- {"move": "O-O", "reasoning": "Castles kingside to safeguard the king and connect the rooks."}
- {"move": "Qh7#", "reasoning": "Delivers checkmate by attacking the king on h7."}

Previous game moves and current position will be provided. Respond ONLY with a valid JSON object as described above."""

_USER = """\
Current position (FEN): {fen}
Game history: {history}
Legal moves: {legal_moves}

Choose a legal move from the provided list.
Your move MUST match exactly one of the legal moves shown above.
Respond with a JSON containing your chosen move and reasoning."""

_USER_NUMBERED = """\
Current board position (FEN): {fen}

Game history:
{history}

Legal moves: {legal_moves}

Based on the current board position and game history, select one move from the legal moves list.
Think carefully and choose the best move according to sound chess principles.
Respond in the required JSON format with your move and reasoning."""


def build_messages(
    position: str,
    history: list[HistoryEntry],
    legal_moves: list[str],
    history_style: HistoryStyle = "inline",
) -> list[Message]:
    legal = ", ".join(legal_moves)
    if history_style == "numbered":
        user_text = _USER_NUMBERED.format(
            fen=position,
            history="\n".join(f"{h.move_number}. {h.san}" for h in history),
            legal_moves=legal,
        )
    else:
        user_text = _USER.format(
            fen=position,
            history=" ".join(h.san for h in history) or "Opening position",
            legal_moves=legal,
        )
    return [
        Message(role="system", content=SYSTEM_PROMPT),
        Message(role="user", content=user_text),
    ]


class ChessModelProvider(ModelProvider):
    """A ModelProvider driven by one WireAdapter."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        adapter: WireAdapter,
        *,
        history_style: HistoryStyle = "inline",
        retry: RetryController | None = None,
    ) -> None:
        self.provider_id = provider_id
        self.model = model
        self._adapter = adapter
        self._history_style = history_style
        self._retry = retry or RetryController(layer="provider")

    async def request_move(
        self,
        position: str,
        history: list[HistoryEntry],
        legal_moves: list[str],
    ) -> MoveProposal:
        messages = build_messages(position, history, legal_moves, self._history_style)

        async def attempt() -> MoveProposal:
            logger.debug("requesting move [provider=%s model=%s]", self.provider_id, self.model)
            raw = await self._adapter.complete(messages)
            logger.debug("raw reply [provider=%s model=%s]: %s", self.provider_id, self.model, raw)
            proposal = parse_move_reply(raw, self.provider_id)
            return validate_proposal(proposal, legal_moves)

        return await self._retry.execute(attempt)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_id!r}, model={self.model!r})"
