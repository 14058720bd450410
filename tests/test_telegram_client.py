import json

import httpx
import pytest

from cogwork.telegram import TelegramClient, TelegramRetryAfter
from cogwork.telegram.client import retry_after_from_payload


def _client(handler) -> TelegramClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TelegramClient("token", http_client=http)


def test_retry_after_from_payload() -> None:
    assert retry_after_from_payload({}) is None
    assert retry_after_from_payload({"parameters": {"retry_after": 2}}) == 2.0
    assert retry_after_from_payload({"parameters": {"retry_after": True}}) is None


def test_requires_token() -> None:
    with pytest.raises(ValueError):
        TelegramClient("")


@pytest.mark.anyio
async def test_get_updates_sends_params() -> None:
    seen: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"ok": True, "result": [{"update_id": 1}]})

    client = _client(handler)
    updates = await client.get_updates(5, timeout_s=10, allowed_updates=["message"])

    assert updates == [{"update_id": 1}]
    assert seen == [
        (
            "/bottoken/getUpdates",
            {"timeout": 10, "offset": 5, "allowed_updates": ["message"]},
        )
    ]


@pytest.mark.anyio
async def test_get_me_returns_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"ok": True, "result": {"id": 42, "is_bot": True}}
        )

    me = await _client(handler).get_me()

    assert me is not None
    assert me.id == 42
    assert me.is_bot is True


@pytest.mark.anyio
async def test_api_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"ok": False, "error_code": 400, "description": "boom"}
        )

    assert await _client(handler).get_updates(None) is None


@pytest.mark.anyio
async def test_bad_json_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    assert await _client(handler).get_me() is None


@pytest.mark.anyio
async def test_network_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert await _client(handler).get_updates(None) is None


@pytest.mark.anyio
async def test_rate_limit_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={
                "ok": False,
                "error_code": 429,
                "parameters": {"retry_after": 3},
            },
        )

    with pytest.raises(TelegramRetryAfter) as exc:
        await _client(handler).get_updates(None)
    assert exc.value.retry_after == 3.0
