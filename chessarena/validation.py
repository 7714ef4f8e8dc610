"""
Reply sanitization and move validation.

Model output is adversarial input. The order is always:
  1. strip_code_fences()   — remove ```json fences models add despite instructions
  2. parse_move_reply()    — structural parse into a MoveProposal (ParseError)
  3. validate_proposal()   — exact membership in the legal-move list (InvalidMoveError)

A reply that parses is not a legal move until step 3 says so.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from chessarena.errors import InvalidMoveError, ParseError

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class MoveProposal:
    """A model's answer. `move` is untrusted until validate_proposal() accepts it."""
    move: str | None
    reasoning: str = ""


def strip_code_fences(text: str) -> str:
    """Remove a ```json / ``` fence wrapping the whole reply, and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def parse_move_reply(raw: str, provider: str = "provider") -> MoveProposal:
    """
    Parse a reply into a MoveProposal.

    Tries the fence-stripped text as JSON first, then the outermost {...}
    span so that prose before or after the object is tolerated.

    Raises:
        ParseError: no JSON object could be recovered.
    """
    text = strip_code_fences(raw)
    data = _loads_object(text)
    if data is None:
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            data = _loads_object(text[start:end + 1])
    if data is None:
        preview = text[:200] if text else "(empty)"
        raise ParseError(provider, f"Reply is not a JSON object: {preview!r}")

    move = data.get("move")
    reasoning = data.get("reasoning")
    return MoveProposal(
        move=move if isinstance(move, str) else None,
        reasoning=reasoning if isinstance(reasoning, str) else "",
    )


def validate_proposal(proposal: MoveProposal, legal_moves: list[str]) -> MoveProposal:
    """
    Accept the proposal only if its move is literally one of legal_moves.

    Matching is exact: no case folding, no whitespace trimming, no notation
    conversion. "nf3" and "g1f3" are rejected when only "Nf3" is listed.
    """
    if not proposal.move or proposal.move not in legal_moves:
        raise InvalidMoveError(proposal.move, legal_moves)
    return proposal


def _loads_object(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
