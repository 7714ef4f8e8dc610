"""
Ollama wire adapter — a local model server with no credential.

Generation:  POST {endpoint}/api/generate
             {model, prompt, options: {temperature}, stream: false}
             → reply text in the `response` field.
Discovery:   GET {endpoint}/api/tags → {models: [{name: ...}, ...]}

Ollama has no system role in /api/generate, so the system prompt and the
position prompt are joined into a single prompt string.
"""

from __future__ import annotations

import logging

from chessarena.errors import ArenaError, ParseError
from chessarena.http import http_get_json, http_post_json
from chessarena.providers.base import Message, WireAdapter

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434"


class OllamaAdapter(WireAdapter):
    label = "ollama"

    def __init__(
        self,
        model: str,
        temperature: float,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 60,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout

    async def complete(self, messages: list[Message]) -> str:
        payload = {
            "model": self._model,
            "prompt": "\n".join(m.content for m in messages),
            "options": {"temperature": self._temperature},
            "stream": False,
        }
        data = await http_post_json(
            f"{self._endpoint}/api/generate",
            payload,
            timeout=self._timeout,
            label=self.label,
        )
        reply = data.get("response") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise ParseError(self.label, "Reply has no 'response' text field")
        return reply.strip()


async def fetch_ollama_models(endpoint: str = DEFAULT_ENDPOINT, timeout: float = 5) -> list[str]:
    """
    Names of the models installed on the local Ollama server.

    Returns [] if the server is unreachable or answers with something
    unexpected — discovery failure must never break provider selection.
    """
    try:
        data = await http_get_json(
            f"{endpoint.rstrip('/')}/api/tags", timeout=timeout, label="ollama"
        )
    except ArenaError as exc:
        logger.warning("Ollama model discovery failed at %s: %s", endpoint, exc)
        return []
    models = data.get("models") if isinstance(data, dict) else None
    if not isinstance(models, list):
        return []
    return [
        str(m["name"])
        for m in models
        if isinstance(m, dict) and m.get("name")
    ]
