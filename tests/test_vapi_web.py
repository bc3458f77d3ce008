"""
Tests for the web-call REST client and outbound call logging hooks.

Uses httpx.MockTransport so no network traffic leaves the process.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from voice_interview.errors import RemoteStartError
from voice_interview.http_logging import install_outbound_logging, log_outbound_calls
from voice_interview.vapi_web import VAPI_BASE_URL, VapiWebClient
from tests.mock_data import TEST_API_KEY


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=VAPI_BASE_URL, transport=httpx.MockTransport(handler))


def created(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"id": "call_123", "webCallUrl": "https://call.example/abc"})


# =============================================================================
# VapiWebClient
# =============================================================================

class TestVapiWebClient:
    """Tests for web call creation and lifecycle events."""

    @pytest.mark.asyncio
    async def test_start_posts_assistant_with_bearer_key(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return created(request)

        http_client = mock_client(handler)
        client = VapiWebClient(TEST_API_KEY, http_client=http_client)
        started = []
        client.on("call-start", lambda call: started.append(call["id"]))

        call = await client.start({"firstMessage": "Hello!"})

        assert call["webCallUrl"] == "https://call.example/abc"
        assert client.is_active is True
        assert started == ["call_123"]
        assert seen[0].url.path == "/call/web"
        assert seen[0].headers["Authorization"] == f"Bearer {TEST_API_KEY}"
        assert json.loads(seen[0].content) == {"assistant": {"firstMessage": "Hello!"}}
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_is_remote_start_error(self):
        http_client = mock_client(lambda request: httpx.Response(401, text="invalid key"))
        client = VapiWebClient(TEST_API_KEY, http_client=http_client)

        with pytest.raises(RemoteStartError, match="401"):
            await client.start({})

        assert client.is_active is False
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_is_remote_start_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = mock_client(handler)

        with pytest.raises(RemoteStartError):
            await VapiWebClient(TEST_API_KEY, http_client=http_client).start({})

        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_stop_dispatches_call_end_once(self):
        http_client = mock_client(created)
        client = VapiWebClient(TEST_API_KEY, http_client=http_client)
        ended = []
        client.on("call-end", lambda: ended.append(True))
        await client.start({})

        await client.stop()
        await client.stop()

        assert ended == [True]
        assert http_client.is_closed is False
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_stop_closes_owned_client(self):
        client = VapiWebClient(TEST_API_KEY)
        client.http_client._transport = httpx.MockTransport(created)
        await client.start({})

        await client.stop()

        assert client.http_client.is_closed is True

    @pytest.mark.asyncio
    async def test_stop_after_failed_start_closes_owned_client(self):
        """A rejected start still has its owned client closed, with no call-end."""
        client = VapiWebClient(TEST_API_KEY)
        client.http_client._transport = httpx.MockTransport(
            lambda request: httpx.Response(500, text="upstream error")
        )
        ended = []
        client.on("call-end", lambda: ended.append(True))

        with pytest.raises(RemoteStartError):
            await client.start({})

        await client.stop()
        await client.stop()

        assert client.http_client.is_closed is True
        assert ended == []

    def test_failing_handler_does_not_block_others(self):
        client = VapiWebClient(TEST_API_KEY, http_client=mock_client(created))
        received = []

        def broken(*_):
            raise RuntimeError("listener bug")

        client.on("message", broken)
        client.on("message", received.append)

        client.dispatch("message", {"type": "transcript"})

        assert received == [{"type": "transcript"}]


# =============================================================================
# Outbound Call Logging
# =============================================================================

class TestOutboundLogging:
    """Tests for the removable request/response logging hooks."""

    @pytest.mark.asyncio
    async def test_logs_matching_calls(self, caplog):
        http_client = mock_client(created)
        remove = install_outbound_logging(http_client)

        with caplog.at_level(logging.INFO, logger="voice_interview.http_logging"):
            await http_client.post("/call/web", json={"assistant": {"firstMessage": "Hi"}})

        messages = [r.getMessage() for r in caplog.records]
        assert any("Outbound POST" in m for m in messages)
        assert any("firstMessage" in m for m in messages)
        assert any("call_123" in m for m in messages)
        remove()
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_ignores_other_urls(self, caplog):
        http_client = mock_client(created)
        remove = install_outbound_logging(http_client)

        with caplog.at_level(logging.INFO, logger="voice_interview.http_logging"):
            await http_client.get("/assistant")

        assert caplog.records == []
        remove()
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_remove_restores_existing_hooks(self):
        async def existing(request: httpx.Request) -> None:
            return None

        http_client = httpx.AsyncClient(event_hooks={"request": [existing]})

        remove = install_outbound_logging(http_client)
        assert len(http_client.event_hooks["request"]) == 2

        remove()
        remove()

        assert http_client.event_hooks["request"] == [existing]
        assert http_client.event_hooks["response"] == []
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_context_manager_removes_hooks_on_error(self):
        http_client = mock_client(created)

        with pytest.raises(ValueError):
            with log_outbound_calls(http_client):
                assert len(http_client.event_hooks["response"]) == 1
                raise ValueError("caller failed")

        assert http_client.event_hooks["request"] == []
        assert http_client.event_hooks["response"] == []
        await http_client.aclose()
