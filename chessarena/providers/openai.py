"""
Chat-completions wire adapter via the OpenAI SDK.

Serves every bearer-token backend that speaks the OpenAI chat-completions
protocol: OpenAI itself, Groq, xAI Grok and OpenRouter. Pass base_url to
point the client at the backend; backend-specific body fields (max_tokens,
response_format, stream) arrive through extra_body and are sent verbatim.

The SDK's own retry loop is disabled (max_retries=0): RetryController owns
retries so that backoff timing is the same for every backend.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import openai
from openai import AsyncOpenAI

from chessarena.errors import ParseError, TransportError
from chessarena.providers.base import Message, WireAdapter

logger = logging.getLogger(__name__)


class ChatCompletionsAdapter(WireAdapter):
    """
    POST {base_url}/chat/completions with
    {messages: [system, user], model, temperature, **extra_body}
    and return choices[0].message.content.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        base_url: str | None = None,
        provider_label: str = "openai",
        extra_body: Mapping[str, object] | None = None,
        default_headers: Mapping[str, str] | None = None,
        timeout: float = 60,
    ) -> None:
        self.label = provider_label
        self._model = model
        self._temperature = temperature
        self._extra_body = dict(extra_body or {})
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers=dict(default_headers) if default_headers else None,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, messages: list[Message]) -> str:
        try:
            response = await self._client.chat.completions.create(
                messages=[{"role": m.role, "content": m.content} for m in messages],  # type: ignore[misc]
                model=self._model,
                temperature=self._temperature,
                **self._extra_body,
            )
        except openai.APIStatusError as exc:
            logger.error("chat completion failed [provider=%s model=%s status=%s]",
                         self.label, self._model, exc.status_code)
            raise TransportError(
                self.label,
                f"API Error: {exc.status_code} {exc.message}",
                status=exc.status_code,
                cause=exc,
            ) from exc
        except openai.APIError as exc:
            logger.error("chat completion failed [provider=%s model=%s]: %s",
                         self.label, self._model, exc)
            raise TransportError(self.label, str(exc), cause=exc) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise ParseError(self.label, "Reply has no choices[0].message.content")
        return response.choices[0].message.content
