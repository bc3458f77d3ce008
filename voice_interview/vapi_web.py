"""
REST client for the voice agent provider's web-call API.

VapiWebClient is a constructor-shaped SDK: `VapiWebClient(api_key)`
returns an object with `on`, `start` and `stop`, so it bootstraps
through the "constructor" step of VoiceAgentClient. `start()` creates
the web call over HTTPS; audio transport is joined by the host using
the returned `webCallUrl`, and that transport forwards its `message`
and `error` events back through `dispatch()`.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Optional

import httpx

from .errors import RemoteStartError


__all__ = ["VAPI_BASE_URL", "VapiWebClient"]


logger = logging.getLogger(__name__)


VAPI_BASE_URL = "https://api.vapi.ai"


class VapiWebClient:
    """
    Minimal web-call SDK for the provider REST API.

    Attributes:
        http_client: The httpx client used for outbound calls.
        call: Response body of the created web call, once started.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = VAPI_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.call: Optional[dict[str, Any]] = None
        self._handlers: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._handlers[event].append(handler)

    def dispatch(self, event: str, *args: Any) -> None:
        """Invoke every handler for `event`. A failing handler is logged and skipped."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(*args)
            except Exception as e:  # noqa: BLE001 - one listener must not starve the rest
                logger.warning("Handler for '%s' failed: %s", event, e)

    async def start(self, assistant: dict[str, Any]) -> dict[str, Any]:
        """
        Create a web call with an inline assistant.

        Returns:
            The created call, including `id` and `webCallUrl`.

        Raises:
            RemoteStartError: On transport failure or an HTTP error status.
        """
        try:
            response = await self.http_client.post(
                "/call/web",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"assistant": assistant},
            )
        except httpx.HTTPError as e:
            raise RemoteStartError(f"Web call request failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteStartError(
                f"Web call rejected: HTTP {response.status_code}: {response.text[:160]}"
            )

        self.call = response.json()
        self._active = True
        logger.info("Web call created: %s", (self.call or {}).get("id"))
        self.dispatch("call-start", self.call)
        return self.call

    async def stop(self) -> None:
        """
        End the call locally and close an owned HTTP client.

        The owned client is closed even when `start()` never succeeded;
        `call-end` listeners are notified once, and only for a live call.
        """
        was_active, self._active = self._active, False
        try:
            if self._owns_client and not self.http_client.is_closed:
                await self.http_client.aclose()
        finally:
            if was_active:
                self.dispatch("call-end")
