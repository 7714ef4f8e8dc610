import json
import tempfile
import unittest
from datetime import datetime
from unittest.mock import patch

from fastapi.testclient import TestClient

from chessarena.config import default_config
from chessarena.providers.base import ModelProvider, MoveProposal
from chessarena.registry import ProviderRegistry
from chessarena.store import SettingsStore
from chessarena.web.app import _to_json, create_app

_AI = {"kind": "ai", "provider_id": "groq", "model_id": "llama-3.3-70b-versatile", "temperature": 0.5}
_HUMAN = {"kind": "human"}


class _FirstLegalProvider(ModelProvider):
    async def request_move(self, position, history, legal_moves) -> MoveProposal:
        return MoveProposal(move=legal_moves[0], reasoning="first on the list")


class WebAppTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        config = default_config()
        config.game.auto_play_delay = 0
        self.store = SettingsStore(tmp.name)
        self.client = TestClient(create_app(config, self.store))
        env = patch.dict("os.environ", {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def _seats(self, white: dict, black: dict) -> None:
        resp = self.client.put("/api/settings", json={"white": white, "black": black})
        self.assertEqual(resp.status_code, 200)

    def test_providers_and_models(self) -> None:
        providers = self.client.get("/api/providers").json()
        self.assertIn("groq", [p["id"] for p in providers])

        models = self.client.get("/api/providers/openai/models").json()
        self.assertIn("gpt-4o", [m["id"] for m in models])
        self.assertEqual(self.client.get("/api/providers/mystery/models").status_code, 404)

        temp = self.client.get("/api/providers/openrouter/models/deepseek/deepseek-chat/temperature")
        self.assertEqual(temp.json(), {"min": 0.1, "max": 1.0})

    def test_settings_round_trip_and_validation(self) -> None:
        self._seats(_AI, _HUMAN)
        self.assertEqual(self.client.get("/api/settings").json()["white"], _AI)
        bad = self.client.put("/api/settings", json={"white": {"kind": "robot"}})
        self.assertEqual(bad.status_code, 400)

    def test_credentials_are_never_echoed(self) -> None:
        resp = self.client.put("/api/credentials/openai", json={"api_key": "sk-secret"})
        self.assertEqual(resp.json(), {"provider": "openai", "stored": True})
        listing = self.client.get("/api/credentials")
        self.assertNotIn("sk-secret", listing.text)
        self.assertIn({"provider": "openai", "stored": True}, listing.json())
        self.assertEqual(self.store.load_credential("openai"), "sk-secret")

        self.client.delete("/api/credentials/openai")
        self.assertIsNone(self.store.load_credential("openai"))
        self.assertEqual(self.client.put("/api/credentials/openai", json={}).status_code, 400)

    def test_turn_without_credential_is_a_client_error(self) -> None:
        self._seats(_AI, _AI)
        resp = self.client.post("/api/game/turn")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("groq", resp.json()["detail"])

    def test_human_move_and_ai_reply(self) -> None:
        self._seats(_HUMAN, _AI)
        self.client.put("/api/credentials/groq", json={"api_key": "gsk"})
        self.client.post("/api/game/new")

        bad = self.client.post("/api/game/human-move", json={"move": "e5"})
        self.assertEqual(bad.status_code, 400)

        played = self.client.post("/api/game/human-move", json={"move": "e4"}).json()
        self.assertEqual(played["kind"], "applied")
        self.assertEqual(played["record"]["san"], "e4")

        with patch.object(ProviderRegistry, "create_provider", return_value=_FirstLegalProvider()):
            reply = self.client.post("/api/game/turn").json()
        self.assertEqual(reply["record"]["color"], "black")
        self.assertEqual(reply["record"]["reasoning"], "first on the list")

        game = self.client.get("/api/game").json()
        self.assertEqual(len(game["history"]), 2)
        self.assertEqual(game["turn"], "white")
        self.assertFalse(game["processing"])
        self.assertIn("first on the list", self.client.get("/api/game/pgn").json()["pgn"])

    def test_autoplay_websocket_streams_until_stopped(self) -> None:
        self._seats(_AI, _AI)
        self.client.put("/api/credentials/groq", json={"api_key": "gsk"})
        self.client.post("/api/game/new")

        messages = []
        with patch.object(ProviderRegistry, "create_provider", return_value=_FirstLegalProvider()):
            with self.client.websocket_connect("/ws/autoplay") as ws:
                messages.append(ws.receive_json())
                ws.send_json({"type": "stop"})
                while messages[-1]["type"] != "stopped":
                    messages.append(ws.receive_json())

        self.assertEqual(messages[0]["type"], "turn")
        self.assertEqual(messages[0]["kind"], "applied")
        self.assertEqual(messages[-1]["type"], "stopped")


class ToJsonTests(unittest.TestCase):
    def test_datetimes_become_iso_strings(self) -> None:
        when = datetime(2024, 5, 1, 12, 30)
        self.assertEqual(json.loads(_to_json({"at": when}))["at"], "2024-05-01T12:30:00")

    def test_unknown_types_still_fail(self) -> None:
        with self.assertRaises(TypeError):
            _to_json({"x": object()})


if __name__ == "__main__":
    unittest.main()
