"""
Provider factory.

BACKENDS is the strategy table: provider id → how to talk to that backend
(which wire adapter, which extra body fields and headers, which prompt
history style). build_provider() is the single entry point for turning a
ProviderConfig plus a model choice into a ModelProvider.

To add a new OpenAI-compatible backend:
  1. Add its ProviderConfig to DEFAULT_PROVIDERS in chessarena/config.py
  2. Add a BackendSpec here with wire="chat"
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from chessarena.config import GameConfig, ProviderConfig
from chessarena.errors import MissingCredentialError, UnknownProviderError
from chessarena.providers.base import Message, ModelProvider, MoveProposal, WireAdapter
from chessarena.providers.google import GeminiAdapter
from chessarena.providers.ollama import OllamaAdapter, fetch_ollama_models
from chessarena.providers.openai import ChatCompletionsAdapter
from chessarena.providers.pipeline import ChessModelProvider, HistoryStyle
from chessarena.retry import RetryController

__all__ = [
    "BACKENDS",
    "BackendSpec",
    "ChatCompletionsAdapter",
    "ChessModelProvider",
    "GeminiAdapter",
    "Message",
    "ModelProvider",
    "MoveProposal",
    "OllamaAdapter",
    "WireAdapter",
    "build_provider",
    "fetch_ollama_models",
]

_JSON_OBJECT = MappingProxyType({"type": "json_object"})


@dataclass(frozen=True)
class BackendSpec:
    wire: Literal["chat", "gemini", "ollama"]
    extra_body: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))
    extra_headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    history_style: HistoryStyle = "inline"


BACKENDS: Mapping[str, BackendSpec] = MappingProxyType({
    "groq": BackendSpec(
        wire="chat",
        extra_body=MappingProxyType({"max_tokens": 8024, "response_format": _JSON_OBJECT}),
    ),
    "openai": BackendSpec(
        wire="chat",
        extra_body=MappingProxyType({"response_format": _JSON_OBJECT}),
    ),
    "grok": BackendSpec(
        wire="chat",
        extra_body=MappingProxyType({"stream": False}),
    ),
    "openrouter": BackendSpec(
        wire="chat",
        extra_body=MappingProxyType({"response_format": _JSON_OBJECT}),
        # OpenRouter attributes traffic by referring origin.
        extra_headers=MappingProxyType({"HTTP-Referer": "http://localhost:8000", "X-Title": "Chess Arena"}),
        history_style="numbered",
    ),
    "gemini": BackendSpec(wire="gemini"),
    "ollama": BackendSpec(wire="ollama"),
})


def build_provider(
    prov_cfg: ProviderConfig,
    model_id: str,
    credential: str | None,
    temperature: float,
    game_cfg: GameConfig | None = None,
    sleep: Callable[[float], Awaitable[object]] | None = None,
) -> ModelProvider:
    """Instantiate the ModelProvider for one provider/model/credential/temperature choice."""
    spec = BACKENDS.get(prov_cfg.id)
    if spec is None:
        raise UnknownProviderError(prov_cfg.id)
    if prov_cfg.requires_credential and not credential:
        raise MissingCredentialError(prov_cfg.id)

    game_cfg = game_cfg or GameConfig()
    timeout = game_cfg.request_timeout

    adapter: WireAdapter
    match spec.wire:
        case "chat":
            adapter = ChatCompletionsAdapter(
                api_key=credential or "",
                model=model_id,
                temperature=temperature,
                base_url=prov_cfg.endpoint,
                provider_label=prov_cfg.id,
                extra_body=spec.extra_body,
                default_headers=spec.extra_headers or None,
                timeout=timeout,
            )
        case "gemini":
            adapter = GeminiAdapter(
                api_key=credential or "",
                model=model_id,
                temperature=temperature,
                base_url=prov_cfg.endpoint,
                timeout=timeout,
            )
        case "ollama":
            adapter = OllamaAdapter(
                model=model_id,
                temperature=temperature,
                endpoint=prov_cfg.endpoint,
                timeout=timeout,
            )
        case _:
            raise UnknownProviderError(prov_cfg.id)

    retry_kwargs: dict = {"base_delay": game_cfg.base_delay, "layer": "provider"}
    if sleep is not None:
        retry_kwargs["sleep"] = sleep
    return ChessModelProvider(
        provider_id=prov_cfg.id,
        model=model_id,
        adapter=adapter,
        history_style=spec.history_style,
        retry=RetryController(game_cfg.provider_retries, **retry_kwargs),
    )
