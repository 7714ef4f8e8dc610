"""
Minimal async JSON-over-HTTP helpers.

Blocking stdlib urllib calls run in a worker thread via asyncio.to_thread,
so the event loop stays responsive and no extra HTTP dependency is needed.
Used for the local Ollama backend, which has no SDK.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request

from chessarena.errors import ParseError, TransportError

_USER_AGENT = "ChessArena/1.0"


async def http_get_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 15,
    label: str = "http",
) -> dict | list:
    """GET url and decode the JSON body."""
    return await _request_json("GET", url, None, headers, timeout, label)


async def http_post_json(
    url: str,
    payload: dict,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 60,
    label: str = "http",
) -> dict | list:
    """POST payload as JSON and decode the JSON body."""
    return await _request_json("POST", url, payload, headers, timeout, label)


async def _request_json(
    method: str,
    url: str,
    payload: dict | None,
    headers: dict[str, str] | None,
    timeout: float,
    label: str,
) -> dict | list:

    def _do() -> bytes:
        req_headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": _USER_AGENT,
        }
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            req_headers["Content-Type"] = "application/json"
        if headers:
            req_headers.update(headers)
        req = urllib.request.Request(url, data=data, headers=req_headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            body = exc.read()[:200]
            raise TransportError(
                label, f"HTTP {exc.code} {exc.reason}: {body!r}", status=exc.code, cause=exc
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise TransportError(label, f"{method} {url} failed: {exc}", cause=exc) from exc

    body = await asyncio.to_thread(_do)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(label, f"Response body is not JSON: {body[:200]!r}", cause=exc) from exc
