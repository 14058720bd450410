"""Minimal Bot API client: long polling and identity only."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import msgspec

from ..logging import get_logger
from .api_schemas import User

logger = get_logger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramRetryAfter(Exception):
    """Telegram asked us to back off (HTTP 429)."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"retry after {retry_after:g}s")
        self.retry_after = retry_after


def retry_after_from_payload(payload: dict[str, Any]) -> float | None:
    parameters = payload.get("parameters")
    if not isinstance(parameters, dict):
        return None
    value = parameters.get("retry_after")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


class BotClient(Protocol):
    async def close(self) -> None: ...

    async def get_updates(
        self,
        offset: int | None,
        timeout_s: int = 50,
        allowed_updates: list[str] | None = None,
    ) -> list[dict] | None: ...

    async def get_me(self) -> User | None: ...


class TelegramClient:
    """Calls return None on transport or API failure; failures are logged.

    A rate limit raises TelegramRetryAfter so the caller can wait the
    requested time.
    """

    def __init__(
        self,
        token: str,
        *,
        timeout_s: float = 120,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Telegram token is empty")
        self._url = f"{API_BASE}/bot{token}"
        self._http = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_http = http_client is None

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _parse_envelope(
        self, *, method: str, resp: httpx.Response, payload: Any
    ) -> Any | None:
        if not isinstance(payload, dict):
            logger.error(
                "telegram.bad_response",
                method=method,
                status=resp.status_code,
                body=resp.text,
            )
            return None
        if payload.get("ok"):
            return payload.get("result")
        retry_after = retry_after_from_payload(payload)
        if payload.get("error_code") == 429 and retry_after is not None:
            raise TelegramRetryAfter(retry_after)
        logger.error(
            "telegram.api_error",
            method=method,
            status=resp.status_code,
            error_code=payload.get("error_code"),
            description=payload.get("description"),
        )
        return None

    async def _call(self, method: str, params: dict[str, Any]) -> Any | None:
        logger.debug("telegram.request", method=method, params=params)
        try:
            resp = await self._http.post(f"{self._url}/{method}", json=params)
        except httpx.HTTPError as exc:
            logger.error(
                "telegram.network_error",
                method=method,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return None
        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error(
                "telegram.bad_response",
                method=method,
                status=resp.status_code,
                error=str(exc),
                body=resp.text,
            )
            return None
        return self._parse_envelope(method=method, resp=resp, payload=payload)

    async def get_updates(
        self,
        offset: int | None,
        timeout_s: int = 50,
        allowed_updates: list[str] | None = None,
    ) -> list[dict] | None:
        params: dict[str, Any] = {"timeout": timeout_s}
        if offset is not None:
            params["offset"] = offset
        if allowed_updates is not None:
            params["allowed_updates"] = allowed_updates
        result = await self._call("getUpdates", params)
        return result if isinstance(result, list) else None

    async def get_me(self) -> User | None:
        result = await self._call("getMe", {})
        if not isinstance(result, dict):
            return None
        try:
            return msgspec.convert(result, User)
        except msgspec.ValidationError as exc:
            logger.error("telegram.bad_user", error=str(exc))
            return None
