"""Tests for the HTTP-facing client pieces: stream transport, REST client, token providers."""

import httpx
import pytest

from tripnotify.client.api import NotificationsAPI
from tripnotify.client.auth import ClerkSessionTokenProvider, static_token
from tripnotify.client.transport import StreamTransport
from tripnotify.core.errors import NotificationsAPIError, StreamConnectError
from tests.conftest import notification_payload, sse_frame


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── Stream transport ─────────────────────────────────────────────────────────


class TestStreamTransport:
    @pytest.mark.asyncio
    async def test_yields_body_chunks(self):
        seen: list[httpx.Request] = []
        body = sse_frame(notification_payload("a1")).encode("utf-8")

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

        client = mock_client(handler)
        transport = StreamTransport("http://test/", client)
        async with transport.connect("tok") as chunks:
            received = b"".join([chunk async for chunk in chunks])

        assert received == body
        request = seen[0]
        assert str(request.url) == "http://test/api/notifications/stream"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Accept"] == "text/event-stream"

        await transport.aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self):
        transport = StreamTransport("http://test", mock_client(lambda r: httpx.Response(401, text="expired")))
        with pytest.raises(StreamConnectError) as exc_info:
            async with transport.connect("tok"):
                pass
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "expired"

    @pytest.mark.asyncio
    async def test_no_token_sends_no_authorization(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"")

        transport = StreamTransport("http://test", mock_client(handler))
        async with transport.connect(None) as chunks:
            async for _ in chunks:
                pass
        assert "Authorization" not in seen[0].headers


# ── REST client ──────────────────────────────────────────────────────────────


class TestNotificationsAPI:
    @pytest.mark.asyncio
    async def test_list_skips_invalid_items(self):
        payload = [notification_payload("a"), {"id": "broken"}, notification_payload("b", type="follow")]
        api = NotificationsAPI("http://test", mock_client(lambda r: httpx.Response(200, json=payload)))
        items = await api.list_notifications("tok", 10)
        assert [item.id for item in items] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_list_sends_limit_and_token(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        api = NotificationsAPI("http://test", mock_client(handler))
        assert await api.list_notifications("tok", 5) == []
        assert seen[0].url.path == "/api/notifications"
        assert seen[0].url.params["limit"] == "5"
        assert seen[0].headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_list_rejects_non_list_body(self):
        api = NotificationsAPI("http://test", mock_client(lambda r: httpx.Response(200, json={"items": []})))
        with pytest.raises(NotificationsAPIError):
            await api.list_notifications("tok")

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        api = NotificationsAPI("http://test", mock_client(lambda r: httpx.Response(500, text="boom")))
        with pytest.raises(NotificationsAPIError) as exc_info:
            await api.mark_read("tok", "a1")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_acknowledgement_paths(self):
        seen: list[str] = []

        def handler(request):
            seen.append(f"{request.method} {request.url.path}")
            return httpx.Response(200, json={"success": True})

        api = NotificationsAPI("http://test", mock_client(handler))
        await api.mark_read("tok", "a1")
        await api.mark_all_read("tok")
        assert seen == ["POST /api/notifications/a1/read", "POST /api/notifications/read-all"]

    @pytest.mark.asyncio
    async def test_unread_count(self):
        api = NotificationsAPI("http://test", mock_client(lambda r: httpx.Response(200, json={"count": 4})))
        assert await api.unread_count("tok") == 4


# ── Token providers ──────────────────────────────────────────────────────────


class TestTokenProviders:
    @pytest.mark.asyncio
    async def test_static_token(self):
        assert await static_token("abc")() == "abc"
        assert await static_token("")() is None
        assert await static_token(None)() is None

    @pytest.mark.asyncio
    async def test_clerk_session_token(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"object": "token", "jwt": "jwt-value"})

        provider = ClerkSessionTokenProvider(
            "sess_1", secret_key="sk_test", api_url="https://clerk.test/v1", client=mock_client(handler),
        )
        assert await provider() == "jwt-value"
        assert str(seen[0].url) == "https://clerk.test/v1/sessions/sess_1/tokens"
        assert seen[0].headers["Authorization"] == "Bearer sk_test"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 404, 410])
    async def test_inactive_session_is_signed_out(self, status):
        provider = ClerkSessionTokenProvider(
            "sess_1", secret_key="sk_test", client=mock_client(lambda r: httpx.Response(status)),
        )
        assert await provider() is None

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        provider = ClerkSessionTokenProvider(
            "sess_1", secret_key="sk_test", client=mock_client(lambda r: httpx.Response(502)),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await provider()

    @pytest.mark.asyncio
    async def test_missing_secret_key(self, monkeypatch):
        monkeypatch.setattr("tripnotify.client.auth.settings.CLERK_SECRET_KEY", "")
        calls: list[httpx.Request] = []
        provider = ClerkSessionTokenProvider("sess_1", client=mock_client(lambda r: calls.append(r)))
        assert await provider() is None
        assert calls == []
