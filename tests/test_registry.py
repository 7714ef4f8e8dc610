import os
import tempfile
import unittest
from dataclasses import replace
from unittest.mock import AsyncMock, patch

from chessarena.config import DEFAULT_TEMP_RANGE, TempRange, default_config
from chessarena.errors import MissingCredentialError, UnknownProviderError
from chessarena.providers import ChessModelProvider
from chessarena.registry import ProviderRegistry
from chessarena.store import SettingsStore


class ProviderRegistryTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.config = default_config()
        self.store = SettingsStore(tmp.name)
        self.registry = ProviderRegistry(self.config, self.store)

    def test_lists_every_configured_provider(self) -> None:
        ids = [p.id for p in self.registry.list_providers()]
        self.assertEqual(ids, ["groq", "openai", "gemini", "grok", "openrouter", "ollama"])
        ollama = next(p for p in self.registry.list_providers() if p.id == "ollama")
        self.assertFalse(ollama.requires_credential)

    async def test_static_models(self) -> None:
        models = await self.registry.list_models("openai")
        self.assertIn("gpt-4o", [m.id for m in models])

    async def test_unknown_provider_has_no_models(self) -> None:
        self.assertEqual(await self.registry.list_models("mystery"), [])

    async def test_ollama_models_are_discovered(self) -> None:
        fetch = AsyncMock(return_value=["llama3", "qwen2"])
        with patch("chessarena.registry.fetch_ollama_models", fetch):
            models = await self.registry.list_models("ollama")
        self.assertEqual([m.id for m in models], ["llama3", "qwen2"])
        fetch.assert_awaited_once_with("http://localhost:11434")

    async def test_ollama_discovery_failure_yields_empty_list(self) -> None:
        with patch("chessarena.registry.fetch_ollama_models", AsyncMock(return_value=[])):
            self.assertEqual(await self.registry.list_models("ollama"), [])

    def test_temp_range_lookup(self) -> None:
        self.assertEqual(
            self.registry.get_temp_range("gemini", "gemini-1.5-pro"), TempRange(0.0, 2.0)
        )
        self.assertEqual(self.registry.get_temp_range("openai", "unknown"), DEFAULT_TEMP_RANGE)
        self.assertEqual(self.registry.get_temp_range("mystery", "x"), DEFAULT_TEMP_RANGE)

    def test_credential_resolution_order(self) -> None:
        self.config.providers["openai"] = replace(self.config.providers["openai"], api_key="from-file")
        with patch.dict(os.environ, {"OPENAI_API_KEY": "from-env"}, clear=True):
            self.assertEqual(self.registry.resolve_credential("openai", "explicit"), "explicit")
            self.assertEqual(self.registry.resolve_credential("openai"), "from-file")
            self.store.save_credential("openai", "from-store")
            self.assertEqual(self.registry.resolve_credential("openai"), "from-store")
            self.assertEqual(self.registry.resolve_credential("groq"), None)
            self.assertEqual(self.registry.resolve_credential("grok"), None)

    def test_environment_credential(self) -> None:
        with patch.dict(os.environ, {"GROQ_API_KEY": "gsk-env"}, clear=True):
            self.assertEqual(self.registry.resolve_credential("groq"), "gsk-env")

    def test_create_provider(self) -> None:
        provider = self.registry.create_provider("groq", "llama-3.3-70b-versatile", "gsk", 0.4)
        self.assertIsInstance(provider, ChessModelProvider)
        self.assertEqual(provider.provider_id, "groq")
        self.assertEqual(provider.model, "llama-3.3-70b-versatile")

    def test_create_provider_errors(self) -> None:
        with self.assertRaises(UnknownProviderError):
            self.registry.create_provider("mystery", "m", "k", 0.5)
        with self.assertRaises(MissingCredentialError):
            self.registry.create_provider("openai", "gpt-4o", None, 0.5)
        with self.assertRaises(UnknownProviderError):
            self.registry.provider_config("mystery")


if __name__ == "__main__":
    unittest.main()
