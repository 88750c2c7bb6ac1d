from __future__ import annotations

import asyncio
import json
import logging

import aiohttp

from kasukibot.core.errors import DecodeError, WebRequestError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)
JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class HttpClient:
    """Shared aiohttp session. Every call returns the raw body or raises a KasukiError."""

    def __init__(self, session: aiohttp.ClientSession | None = None, timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT):
        self._session = session
        self._timeout = timeout

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def request_text(self, method: str, url: str, **kwargs) -> str:
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    logger.warning("%s %s -> %s: %s", method, url, resp.status, body[:300])
                    raise WebRequestError(f"Request to {url} failed with status {resp.status}.")
                return body
        except aiohttp.ClientError as e:
            raise WebRequestError(f"Request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise WebRequestError(f"Request to {url} timed out.") from e

    async def request_bytes(self, method: str, url: str, **kwargs) -> bytes:
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    raise WebRequestError(f"Request to {url} failed with status {resp.status}.")
                return await resp.read()
        except aiohttp.ClientError as e:
            raise WebRequestError(f"Request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise WebRequestError(f"Request to {url} timed out.") from e

    async def get_bytes(self, url: str) -> bytes:
        return await self.request_bytes("GET", url)

    async def get_json(self, url: str, **kwargs) -> dict:
        return decode_json(await self.request_text("GET", url, **kwargs))

    async def post_json(self, url: str, payload: dict, headers: dict | None = None) -> dict:
        body = await self.request_text("POST", url, json=payload, headers={**JSON_HEADERS, **(headers or {})})
        return decode_json(body)


def decode_json(body: str) -> dict:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Could not decode the response: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("Unexpected response shape.")
    return data
