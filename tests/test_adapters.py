import json
import unittest
from unittest.mock import AsyncMock, patch

import httpx
from google.genai import errors as genai_errors
from google.genai import types

from chessarena.config import DEFAULT_PROVIDERS
from chessarena.errors import ParseError, TransportError
from chessarena.providers import build_provider
from chessarena.providers.base import Message
from chessarena.providers.google import GeminiAdapter

_MESSAGES = [Message("system", "SYS"), Message("user", "USR")]
_REPLY = '{"move": "e4", "reasoning": "center"}'
_JSON_OBJECT = {"type": "json_object"}


def _completion(content: str | None) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "m",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


class _Recorder:
    """httpx handler that remembers requests and answers with a fixed response."""

    def __init__(self, status: int = 200, payload: dict | None = None) -> None:
        self.status = status
        self.payload = payload if payload is not None else _completion(_REPLY)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)


def _chat_adapter(provider_id: str, recorder: _Recorder):
    provider = build_provider(DEFAULT_PROVIDERS[provider_id], "test-model", "sk-test", 0.5)
    adapter = provider._adapter
    adapter._client = adapter._client.with_options(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
    )
    return adapter


class ChatCompletionsWireTests(unittest.IsolatedAsyncioTestCase):
    async def test_request_per_backend(self) -> None:
        expected = {
            "groq": ("https://api.groq.com/openai/v1/chat/completions",
                     {"max_tokens": 8024, "response_format": _JSON_OBJECT}),
            "openai": ("https://api.openai.com/v1/chat/completions",
                       {"response_format": _JSON_OBJECT}),
            "grok": ("https://api.x.ai/v1/chat/completions", {"stream": False}),
            "openrouter": ("https://openrouter.ai/api/v1/chat/completions",
                           {"response_format": _JSON_OBJECT}),
        }
        for provider_id, (url, extras) in expected.items():
            with self.subTest(provider=provider_id):
                recorder = _Recorder()
                reply = await _chat_adapter(provider_id, recorder).complete(_MESSAGES)

                self.assertEqual(reply, _REPLY)
                self.assertEqual(len(recorder.requests), 1)
                request = recorder.requests[0]
                self.assertEqual(request.method, "POST")
                self.assertEqual(str(request.url), url)
                self.assertEqual(request.headers["Authorization"], "Bearer sk-test")

                body = json.loads(request.content)
                self.assertEqual(body["model"], "test-model")
                self.assertEqual(body["temperature"], 0.5)
                self.assertEqual(body["messages"], [
                    {"role": "system", "content": "SYS"},
                    {"role": "user", "content": "USR"},
                ])
                for key, value in extras.items():
                    self.assertEqual(body[key], value)

    async def test_openrouter_sends_attribution_headers(self) -> None:
        recorder = _Recorder()
        await _chat_adapter("openrouter", recorder).complete(_MESSAGES)
        headers = recorder.requests[0].headers
        self.assertEqual(headers["HTTP-Referer"], "http://localhost:8000")
        self.assertEqual(headers["X-Title"], "Chess Arena")

    async def test_other_backends_send_no_referer(self) -> None:
        recorder = _Recorder()
        await _chat_adapter("groq", recorder).complete(_MESSAGES)
        self.assertNotIn("HTTP-Referer", recorder.requests[0].headers)

    async def test_error_status_becomes_transport_error(self) -> None:
        recorder = _Recorder(503, {"error": {"message": "overloaded"}})
        with self.assertRaises(TransportError) as ctx:
            await _chat_adapter("groq", recorder).complete(_MESSAGES)
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(ctx.exception.provider, "groq")
        # SDK retries are off; RetryController owns them
        self.assertEqual(len(recorder.requests), 1)

    async def test_missing_content_is_a_parse_error(self) -> None:
        recorder = _Recorder(payload=_completion(None))
        with self.assertRaises(ParseError):
            await _chat_adapter("openai", recorder).complete(_MESSAGES)


def _gemini_response(text: str | None) -> types.GenerateContentResponse:
    if text is None:
        return types.GenerateContentResponse(candidates=[])
    return types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)])),
    ])


class GeminiWireTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.adapter = GeminiAdapter(api_key="key", model="gemini-1.5-pro", temperature=0.4)

    def _patch_generate(self, mock: AsyncMock):
        return patch.object(self.adapter._client.aio.models, "generate_content", mock)

    async def test_request_shape_and_reply_text(self) -> None:
        generate = AsyncMock(return_value=_gemini_response(f"```json\n{_REPLY}\n```"))
        with self._patch_generate(generate):
            reply = await self.adapter.complete(_MESSAGES)

        self.assertEqual(reply, f"```json\n{_REPLY}\n```")
        kwargs = generate.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-1.5-pro")

        contents = kwargs["contents"]
        self.assertEqual([c.role for c in contents], ["user", "user"])
        self.assertEqual([c.parts[0].text for c in contents], ["SYS", "USR"])

        config = kwargs["config"]
        self.assertEqual(config.temperature, 0.4)
        self.assertEqual(config.top_p, 0.95)
        self.assertEqual(config.top_k, 40)
        self.assertEqual(config.max_output_tokens, 8192)
        self.assertEqual(config.stop_sequences, [])

    async def test_empty_candidates_is_a_parse_error(self) -> None:
        with self._patch_generate(AsyncMock(return_value=_gemini_response(None))):
            with self.assertRaises(ParseError):
                await self.adapter.complete(_MESSAGES)

    async def test_api_error_becomes_transport_error(self) -> None:
        error = genai_errors.APIError(
            503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}}
        )
        with self._patch_generate(AsyncMock(side_effect=error)):
            with self.assertRaises(TransportError) as ctx:
                await self.adapter.complete(_MESSAGES)
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(ctx.exception.provider, "gemini")


if __name__ == "__main__":
    unittest.main()
