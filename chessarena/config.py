"""
Configuration loading from config.yaml.

Uses typed dataclasses throughout so the rest of the app gets IDE
completion and type-checker support without touching raw dicts.

Provider metadata (display names, endpoints, model lists, temperature
ranges) ships as a built-in table. config.yaml may override any field of a
built-in provider but cannot invent new ones: every provider needs a wire
adapter in chessarena.providers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml


@dataclass
class GameConfig:
    max_retries: int = 3          # orchestrator attempts per turn
    provider_retries: int = 3     # attempts inside each provider call
    base_delay: float = 1.0       # provider backoff: base_delay * 2**i seconds
    outer_backoff: float = 0.0    # orchestrator backoff base (0 = retry at once)
    request_timeout: int = 60     # seconds before an HTTP request is abandoned
    auto_play_delay: float = 1.0  # pause between auto-played turns
    save_pgn: bool = False
    pgn_dir: str = "./games"
    data_dir: str = "./.chessarena"


@dataclass(frozen=True)
class TempRange:
    min: float = 0.1
    max: float = 1.0

    def clamp(self, value: float) -> float:
        return min(max(value, self.min), self.max)


DEFAULT_TEMP_RANGE = TempRange()


@dataclass(frozen=True)
class ModelEntry:
    id: str    # model ID sent to the API
    name: str  # display name shown in the UI
    temp_range: TempRange = DEFAULT_TEMP_RANGE


@dataclass(frozen=True)
class ProviderConfig:
    id: str
    display_name: str
    endpoint: str
    requires_credential: bool = True
    models: Mapping[str, ModelEntry] = field(default_factory=lambda: MappingProxyType({}))
    api_key: str = ""


@dataclass
class Config:
    game: GameConfig
    providers: dict[str, ProviderConfig]

    @property
    def data_dir_path(self) -> Path:
        return Path(self.game.data_dir)


def _models(*entries: ModelEntry) -> Mapping[str, ModelEntry]:
    return MappingProxyType({m.id: m for m in entries})


DEFAULT_PROVIDERS: Mapping[str, ProviderConfig] = MappingProxyType({
    "groq": ProviderConfig(
        id="groq",
        display_name="Groq",
        endpoint="https://api.groq.com/openai/v1",
        models=_models(
            ModelEntry("llama-3.3-70b-versatile", "Llama 3.3 70B", TempRange(0.1, 1.0)),
            ModelEntry("llama-3.1-8b-instant", "Llama 3.1 8B Instant", TempRange(0.1, 1.0)),
            ModelEntry("mixtral-8x7b-32768", "Mixtral 8x7B", TempRange(0.1, 1.0)),
        ),
    ),
    "openai": ProviderConfig(
        id="openai",
        display_name="OpenAI",
        endpoint="https://api.openai.com/v1",
        models=_models(
            ModelEntry("gpt-4o", "GPT-4o", TempRange(0.1, 1.0)),
            ModelEntry("gpt-4o-mini", "GPT-4o mini", TempRange(0.1, 1.0)),
            ModelEntry("gpt-4-turbo", "GPT-4 Turbo", TempRange(0.1, 1.0)),
        ),
    ),
    "gemini": ProviderConfig(
        id="gemini",
        display_name="Google Gemini",
        endpoint="https://generativelanguage.googleapis.com",
        models=_models(
            ModelEntry("gemini-2.0-flash-exp", "Gemini 2.0 Flash (exp)", TempRange(0.0, 2.0)),
            ModelEntry("gemini-1.5-pro", "Gemini 1.5 Pro", TempRange(0.0, 2.0)),
            ModelEntry("gemini-1.5-flash", "Gemini 1.5 Flash", TempRange(0.0, 2.0)),
        ),
    ),
    "grok": ProviderConfig(
        id="grok",
        display_name="xAI Grok",
        endpoint="https://api.x.ai/v1",
        models=_models(
            ModelEntry("grok-2-latest", "Grok 2", TempRange(0.0, 2.0)),
            ModelEntry("grok-beta", "Grok Beta", TempRange(0.0, 2.0)),
        ),
    ),
    "openrouter": ProviderConfig(
        id="openrouter",
        display_name="OpenRouter",
        endpoint="https://openrouter.ai/api/v1",
        models=_models(
            ModelEntry("deepseek/deepseek-chat", "DeepSeek V3", TempRange(0.1, 1.0)),
            ModelEntry("anthropic/claude-3.5-sonnet", "Claude 3.5 Sonnet", TempRange(0.1, 1.0)),
            ModelEntry("meta-llama/llama-3.3-70b-instruct", "Llama 3.3 70B", TempRange(0.1, 1.0)),
        ),
    ),
    "ollama": ProviderConfig(
        id="ollama",
        display_name="Ollama (local)",
        endpoint="http://localhost:11434",
        requires_credential=False,
    ),
})


def default_config() -> Config:
    return Config(game=GameConfig(), providers=dict(DEFAULT_PROVIDERS))


def load_config(path: str | Path = "config.yaml", *, required: bool = False) -> Config:
    """
    Load and validate config.yaml, layered over the built-in defaults.

    A missing file yields the defaults unless required=True.

    Raises:
        FileNotFoundError: config.yaml is missing and required=True.
        ValueError: fields are absent or invalid.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        if required:
            raise FileNotFoundError(
                f"Config file not found: {cfg_path.resolve()}\n"
                "Copy config.example.yaml to config.yaml and adjust it."
            )
        return default_config()

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Invalid config.yaml structure: top level must be a mapping")

    try:
        game_raw = raw.get("game") or {}
        defaults = GameConfig()
        game_cfg = GameConfig(
            max_retries=int(game_raw.get("max_retries", defaults.max_retries)),
            provider_retries=int(game_raw.get("provider_retries", defaults.provider_retries)),
            base_delay=float(game_raw.get("base_delay", defaults.base_delay)),
            outer_backoff=float(game_raw.get("outer_backoff", defaults.outer_backoff)),
            request_timeout=int(game_raw.get("request_timeout", defaults.request_timeout)),
            auto_play_delay=float(game_raw.get("auto_play_delay", defaults.auto_play_delay)),
            save_pgn=bool(game_raw.get("save_pgn", defaults.save_pgn)),
            pgn_dir=str(game_raw.get("pgn_dir", defaults.pgn_dir)),
            data_dir=str(game_raw.get("data_dir", defaults.data_dir)),
        )

        providers = dict(DEFAULT_PROVIDERS)
        for provider_id, prov_raw in (raw.get("providers") or {}).items():
            if provider_id not in DEFAULT_PROVIDERS:
                raise ValueError(
                    f"providers.{provider_id}: unknown provider. "
                    f"Supported: {', '.join(DEFAULT_PROVIDERS)}"
                )
            providers[provider_id] = _override_provider(providers[provider_id], prov_raw or {})

        config = Config(game=game_cfg, providers=providers)
        _validate(config)
        return config

    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid config.yaml structure: {exc}") from exc


def _override_provider(base: ProviderConfig, prov_raw: dict) -> ProviderConfig:
    updates: dict = {}
    if "display_name" in prov_raw:
        updates["display_name"] = str(prov_raw["display_name"])
    if "endpoint" in prov_raw:
        updates["endpoint"] = str(prov_raw["endpoint"]).rstrip("/")
    if "api_key" in prov_raw:
        updates["api_key"] = str(prov_raw["api_key"] or "")
    if "models" in prov_raw:
        updates["models"] = _models(*(
            ModelEntry(
                id=str(m["id"]),
                name=str(m.get("name", m["id"])),
                temp_range=_parse_temp_range(m.get("temp_range")),
            )
            for m in prov_raw["models"] or []
        ))
    return replace(base, **updates)


def _parse_temp_range(value: object) -> TempRange:
    if value is None:
        return DEFAULT_TEMP_RANGE
    if isinstance(value, dict):
        return TempRange(min=float(value["min"]), max=float(value["max"]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return TempRange(min=float(value[0]), max=float(value[1]))
    raise ValueError(f"model.temp_range must be {{min, max}} or [min, max], got {value!r}")


def _validate(config: Config) -> None:
    if config.game.max_retries < 1:
        raise ValueError("game.max_retries must be >= 1")
    if config.game.provider_retries < 1:
        raise ValueError("game.provider_retries must be >= 1")
    if config.game.base_delay < 0 or config.game.outer_backoff < 0:
        raise ValueError("game.base_delay and game.outer_backoff must be >= 0")
    if config.game.request_timeout < 1:
        raise ValueError("game.request_timeout must be >= 1")
    for prov in config.providers.values():
        for model in prov.models.values():
            if model.temp_range.min > model.temp_range.max:
                raise ValueError(
                    f"providers.{prov.id}.models.{model.id}: temp_range min > max"
                )
