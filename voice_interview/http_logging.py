"""
Outbound call logging middleware.

Installs httpx event hooks on an AsyncClient that log requests to (and
responses from) the voice agent provider's session-start endpoint. The
hooks are removable, and the context-manager form always restores the
client's original hook lists, even when the wrapped block raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

import httpx


__all__ = ["DEFAULT_LOGGED_URL_FRAGMENT", "install_outbound_logging", "log_outbound_calls"]


logger = logging.getLogger(__name__)


DEFAULT_LOGGED_URL_FRAGMENT = "api.vapi.ai/call/web"


def install_outbound_logging(
    client: httpx.AsyncClient,
    url_fragment: str = DEFAULT_LOGGED_URL_FRAGMENT,
) -> Callable[[], None]:
    """
    Add request/response logging hooks for URLs containing `url_fragment`.

    Args:
        client: The client whose calls should be logged.
        url_fragment: Substring a URL must contain to be logged.

    Returns:
        A callable that removes exactly the hooks added here. Calling it
        more than once is harmless.
    """

    async def log_request(request: httpx.Request) -> None:
        try:
            if url_fragment not in str(request.url):
                return
            logger.info("--- Outbound %s %s", request.method, request.url)
            if request.content:
                logger.info("Request body: %s", request.content.decode("utf-8", errors="replace"))
        except Exception as e:  # noqa: BLE001 - logging must never break the call
            logger.warning("Outbound request logging failed: %s", e)

    async def log_response(response: httpx.Response) -> None:
        try:
            if url_fragment not in str(response.request.url):
                return
            await response.aread()
            logger.info("Response %d body: %s", response.status_code, response.text)
        except Exception as e:  # noqa: BLE001
            logger.warning("Outbound response logging failed: %s", e)

    hooks = client.event_hooks
    hooks["request"] = [*hooks.get("request", []), log_request]
    hooks["response"] = [*hooks.get("response", []), log_response]
    client.event_hooks = hooks
    logger.debug("Outbound call logging installed for '%s'", url_fragment)

    def remove() -> None:
        current = client.event_hooks
        current["request"] = [h for h in current.get("request", []) if h is not log_request]
        current["response"] = [h for h in current.get("response", []) if h is not log_response]
        client.event_hooks = current
        logger.debug("Outbound call logging removed for '%s'", url_fragment)

    return remove


@contextmanager
def log_outbound_calls(
    client: httpx.AsyncClient,
    url_fragment: str = DEFAULT_LOGGED_URL_FRAGMENT,
) -> Iterator[httpx.AsyncClient]:
    """Log matching calls for the duration of the block."""
    remove = install_outbound_logging(client, url_fragment)
    try:
        yield client
    finally:
        remove()
