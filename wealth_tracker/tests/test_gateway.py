"""Tests for the authenticated request gateway."""

import httpx
import pytest

from wealth_tracker.api.gateway import RequestGateway

URL = "https://inventory.roblox.com/v1/users/1/assets/collectibles"


def _gateway(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("security_cookie", "")
    kwargs.setdefault("rate_limit_backoff", 0)
    return RequestGateway(client=client, **kwargs)


@pytest.mark.asyncio
async def test_success_returns_decoded_body():
    gateway = _gateway(lambda request: httpx.Response(200, json={"data": [1, 2]}))

    result = await gateway.get(URL)

    assert result.success
    assert result.data == {"data": [1, 2]}
    assert result.status_code == 200


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_and_retried_once():
    seen_tokens = []

    def handler(request):
        seen_tokens.append(request.headers.get("x-csrf-token"))
        if request.headers.get("x-csrf-token") != "fresh":
            return httpx.Response(403, headers={"x-csrf-token": "fresh"})
        return httpx.Response(200, json={"data": []})

    gateway = _gateway(handler, csrf_token="stale")
    result = await gateway.get(URL)

    assert result.success
    assert result.data == {"data": []}
    assert seen_tokens == ["stale", "fresh"]
    assert gateway.csrf_token == "fresh"


@pytest.mark.asyncio
async def test_second_auth_rejection_is_not_retried_again():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, headers={"x-csrf-token": f"token-{len(calls)}"})

    gateway = _gateway(handler)
    result = await gateway.get(URL)

    assert not result.success
    assert result.status_code == 403
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_forbidden_without_token_fails_immediately():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403)

    result = await _gateway(handler).get(URL)

    assert not result.success
    assert result.status_code == 403
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_refreshed_token_is_shared_by_later_calls():
    seen_tokens = []

    def handler(request):
        seen_tokens.append(request.headers.get("x-csrf-token"))
        if request.headers.get("x-csrf-token") != "fresh":
            return httpx.Response(403, headers={"x-csrf-token": "fresh"})
        return httpx.Response(200, json={})

    gateway = _gateway(handler)
    await gateway.get(URL)
    result = await gateway.get(URL)

    assert result.success
    assert seen_tokens == ["", "fresh", "fresh"]


@pytest.mark.asyncio
async def test_rate_limit_is_retried_with_bounded_attempts():
    responses = [httpx.Response(429), httpx.Response(429, headers={"retry-after": "0"})]

    def handler(request):
        if responses:
            return responses.pop(0)
        return httpx.Response(200, json={"ok": True})

    result = await _gateway(handler).get(URL)

    assert result.success
    assert result.data == {"ok": True}


@pytest.mark.asyncio
async def test_rate_limit_gives_up_after_max_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429)

    result = await _gateway(handler, max_rate_limit_retries=2).get(URL)

    assert not result.success
    assert result.status_code == 429
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_transport_error_becomes_error_result():
    def handler(request):
        raise httpx.ConnectError("no route to host", request=request)

    result = await _gateway(handler).get(URL)

    assert not result.success
    assert "no route to host" in result.error
    assert result.status_code is None


@pytest.mark.asyncio
async def test_undecodable_body_becomes_error_result():
    result = await _gateway(lambda request: httpx.Response(200, text="<html>")).get(URL)

    assert not result.success
    assert result.status_code == 200


@pytest.mark.asyncio
async def test_credentials_are_attached():
    captured = {}

    def handler(request):
        captured.update(request.headers)
        return httpx.Response(200, json={})

    gateway = _gateway(handler, security_cookie="secret", csrf_token="abc")
    await gateway.get(URL, params={"limit": 100})

    assert captured["cookie"] == ".ROBLOSECURITY=secret"
    assert captured["x-csrf-token"] == "abc"
