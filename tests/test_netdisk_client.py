"""
tests/test_netdisk_client.py — NetdiskClient against an httpx.MockTransport.

No real network: every request is answered by an in-process handler that
also records what the client sent.
"""
import httpx
import pytest

from netdisk.errors import UpstreamUnavailableError
from netdisk.netdisk_client import NetdiskClient

BASE_URL   = "https://netdisk.example"
COOKIE     = "uid=42; _d=abc"
USER_AGENT = "Mozilla/5.0 (test)"
REFERER    = "https://groupware.example/"


def _client(handler) -> NetdiskClient:
    return NetdiskClient(
        COOKIE,
        base_url=BASE_URL,
        user_agent=USER_AGENT,
        referer=REFERER,
        timeout=2.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_get_file_status_forwards_cookie_and_browser_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": True, "download": "https://cdn/f?x=1"})

    async with _client(handler) as client:
        data = await client.get_file_status("99")

    assert data == {"status": True, "download": "https://cdn/f?x=1"}
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{BASE_URL}/screen/note_note/files/status/99"
    assert request.headers["Cookie"] == COOKIE
    assert request.headers["User-Agent"] == USER_AGENT
    assert request.headers["Referer"] == REFERER


@pytest.mark.asyncio
async def test_file_ref_is_escaped_into_a_single_path_segment():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": True, "download": "https://cdn/f"})

    async with _client(handler) as client:
        await client.get_file_status("../admin")

    assert seen[0].url.raw_path.endswith(b"/files/status/..%2Fadmin")


@pytest.mark.asyncio
async def test_timeout_becomes_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await client.get_file_status("99")

    assert exc_info.value.status_code == 502
    assert exc_info.value.detail["timeout"] == 2.0


@pytest.mark.asyncio
async def test_connection_error_becomes_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamUnavailableError):
            await client.get_file_status("99")


@pytest.mark.asyncio
async def test_http_error_carries_upstream_msg():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"msg": "please log in again"})

    async with _client(handler) as client:
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await client.get_file_status("99")

    assert "please log in again" in exc_info.value.message
    assert "403" in exc_info.value.message


@pytest.mark.asyncio
async def test_non_json_body_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    async with _client(handler) as client:
        with pytest.raises(UpstreamUnavailableError):
            await client.get_file_status("99")


@pytest.mark.asyncio
async def test_must_be_used_as_context_manager():
    client = _client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(AssertionError):
        await client.get_file_status("99")
