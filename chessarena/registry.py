"""
ProviderRegistry — what can be played, and with which settings.

Answers the questions a player-setup screen asks (which providers, which
models, which temperature range) and builds ModelProvider instances.
Ollama's model list is discovered live from the local server; every other
provider's list is static configuration.

Credential lookup order: explicit argument → settings store → config.yaml
api_key → <PROVIDER>_API_KEY environment variable.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from chessarena.config import DEFAULT_TEMP_RANGE, Config, ProviderConfig, TempRange
from chessarena.errors import UnknownProviderError
from chessarena.providers import build_provider, fetch_ollama_models
from chessarena.providers.base import ModelProvider
from chessarena.store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSummary:
    id: str
    display_name: str
    requires_credential: bool = True


@dataclass(frozen=True)
class ModelSummary:
    id: str
    display_name: str


class ProviderRegistry:
    def __init__(
        self,
        config: Config,
        store: SettingsStore | None = None,
        sleep: Callable[[float], Awaitable[object]] | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._sleep = sleep

    def list_providers(self) -> list[ProviderSummary]:
        return [
            ProviderSummary(p.id, p.display_name, p.requires_credential)
            for p in self._config.providers.values()
        ]

    def provider_config(self, provider_id: str) -> ProviderConfig:
        prov = self._config.providers.get(provider_id)
        if prov is None:
            raise UnknownProviderError(provider_id)
        return prov

    async def list_models(self, provider_id: str) -> list[ModelSummary]:
        """Models for a provider. Never raises: unknown or unreachable → []."""
        prov = self._config.providers.get(provider_id)
        if prov is None:
            return []
        if provider_id == "ollama":
            names = await fetch_ollama_models(prov.endpoint)
            return [ModelSummary(name, name) for name in names]
        return [ModelSummary(m.id, m.name) for m in prov.models.values()]

    def get_temp_range(self, provider_id: str, model_id: str) -> TempRange:
        prov = self._config.providers.get(provider_id)
        if prov is None:
            return DEFAULT_TEMP_RANGE
        model = prov.models.get(model_id)
        return model.temp_range if model else DEFAULT_TEMP_RANGE

    def resolve_credential(self, provider_id: str, explicit: str | None = None) -> str | None:
        if explicit:
            return explicit
        if self._store is not None:
            stored = self._store.load_credential(provider_id)
            if stored:
                return stored
        prov = self._config.providers.get(provider_id)
        if prov is not None and prov.api_key:
            return prov.api_key
        return os.environ.get(f"{provider_id.upper()}_API_KEY") or None

    def create_provider(
        self,
        provider_id: str,
        model_id: str,
        credential: str | None,
        temperature: float,
    ) -> ModelProvider:
        """
        Build a ModelProvider.

        Raises:
            UnknownProviderError: provider_id is not configured.
            MissingCredentialError: the provider needs a key and none was given.
        """
        prov = self.provider_config(provider_id)
        logger.info(
            "Creating provider [provider=%s model=%s temperature=%s key=%s]",
            provider_id, model_id, temperature, "yes" if credential else "no",
        )
        return build_provider(
            prov, model_id, credential, temperature,
            game_cfg=self._config.game,
            sleep=self._sleep,
        )
