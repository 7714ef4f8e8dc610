import tempfile
import unittest
from pathlib import Path

from chessarena.store import SettingsStore


class SettingsStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.data_dir = Path(tmp.name) / "data"
        self.store = SettingsStore(self.data_dir)

    def test_missing_files_load_as_empty(self) -> None:
        self.assertEqual(self.store.load_settings(), {})
        self.assertEqual(self.store.load_credentials(), {})
        self.assertIsNone(self.store.load_credential("openai"))

    def test_settings_round_trip(self) -> None:
        settings = {"white": {"kind": "ai", "provider_id": "groq"}, "auto_play_delay": 2}
        self.store.save_settings(settings)
        self.assertEqual(SettingsStore(self.data_dir).load_settings(), settings)

    def test_credentials_save_and_clear(self) -> None:
        self.store.save_credential("openai", "sk-a")
        self.store.save_credential("groq", "gsk-b")
        self.assertEqual(self.store.load_credential("openai"), "sk-a")
        self.assertEqual(self.store.load_credentials(), {"openai": "sk-a", "groq": "gsk-b"})

        self.assertTrue(self.store.clear_credential("openai"))
        self.assertFalse(self.store.clear_credential("openai"))
        self.assertEqual(self.store.load_credentials(), {"groq": "gsk-b"})

    def test_invalid_json_loads_as_empty(self) -> None:
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "settings.json").write_text("{bad json", encoding="utf-8")
        (self.data_dir / "credentials.json").write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(self.store.load_settings(), {})
        self.assertEqual(self.store.load_credentials(), {})

    def test_non_string_credentials_are_ignored(self) -> None:
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "credentials.json").write_text(
            '{"openai": "sk-a", "groq": null, "grok": 5, "gemini": ""}', encoding="utf-8"
        )
        self.assertEqual(self.store.load_credentials(), {"openai": "sk-a"})


if __name__ == "__main__":
    unittest.main()
