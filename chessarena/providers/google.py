"""
Google Gemini wire adapter via the google-genai SDK (v1.x, native async).

The API key travels in the x-goog-api-key header. The shared system prompt
and the position prompt are sent as two separate user turns in `contents`,
and generationConfig pins topP/topK/maxOutputTokens. Gemini models tend to
wrap JSON in ```json fences; the pipeline strips them before parsing.
"""

from __future__ import annotations

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from chessarena.errors import ParseError, TransportError
from chessarena.providers.base import Message, WireAdapter


class GeminiAdapter(WireAdapter):
    label = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        base_url: str | None = None,
        timeout: float = 60,
    ) -> None:
        self._model_name = model
        self._temperature = temperature
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(
                base_url=base_url,
                timeout=int(timeout * 1000),  # milliseconds
            ),
        )

    async def complete(self, messages: list[Message]) -> str:
        gen_config = types.GenerateContentConfig(
            temperature=self._temperature,
            top_p=0.95,
            top_k=40,
            max_output_tokens=8192,
            stop_sequences=[],
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=self._build_contents(messages),
                config=gen_config,
            )
        except genai_errors.APIError as exc:
            raise TransportError(
                self.label, f"API Error: {exc.code} {exc.message}", status=exc.code, cause=exc
            ) from exc
        except Exception as exc:
            raise TransportError(self.label, str(exc), cause=exc) from exc

        text = _first_part_text(response)
        if not text:
            raise ParseError(self.label, "Invalid response format from Gemini API")
        return text

    def _build_contents(self, messages: list[Message]) -> list[types.Content]:
        """Every message, system included, becomes its own user turn."""
        return [
            types.Content(role="user", parts=[types.Part(text=msg.content)])
            for msg in messages
        ]


def _first_part_text(response: types.GenerateContentResponse) -> str | None:
    """candidates[0].content.parts[0].text, or None if any hop is missing."""
    if not response.candidates:
        return None
    content = response.candidates[0].content
    if content is None or not content.parts:
        return None
    return content.parts[0].text
