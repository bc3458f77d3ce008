"""
Voice agent SDK client.

The voice agent SDK is loaded by the host at runtime (a plugin module,
a dynamically imported package, an object dropped into a registry by
another component), so its export shape is not known ahead of time. It
may be a class, a factory callable, an object exposing `run`, an object
exposing `create`, or a `default`-wrapped variant of a class/factory.

VoiceAgentClient concentrates the negotiation in one ordered fallback
chain and presents a uniform AgentHandle with `start`, `stop` and
`on(event, handler)`.

Negotiation order:
    1. run        - sdk.run({"apiKey", "assistant"}); the session is already started
    2. constructor - sdk(api_key) when sdk is a class
    3. factory    - sdk(api_key) when sdk is a plain callable
    4. create     - sdk.create(api_key)
    5. default    - sdk.default(api_key), as constructor then factory

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import (
    ConfigurationError,
    RemoteStartError,
    SdkLoadTimeout,
    SdkShapeError,
)
from .models import AgentConfig


__all__ = [
    "CALL_START",
    "CALL_END",
    "MESSAGE",
    "ERROR",
    "AGENT_EVENTS",
    "PLACEHOLDER_API_KEYS",
    "SdkLocator",
    "AgentHandle",
    "VoiceAgentClient",
    "import_locator",
    "registry_locator",
]


logger = logging.getLogger(__name__)


CALL_START = "call-start"
CALL_END = "call-end"
MESSAGE = "message"
ERROR = "error"
AGENT_EVENTS = (CALL_START, CALL_END, MESSAGE, ERROR)

PLACEHOLDER_API_KEYS = frozenset({"YOUR_VAPI_PUBLIC_KEY"})

DEFAULT_SDK_WAIT_ATTEMPTS = 10
DEFAULT_SDK_WAIT_INTERVAL_MS = 500

SdkLocator = Callable[[], Optional[Any]]


def import_locator(reference: str) -> SdkLocator:
    """
    Build a locator that imports `package.module:attribute` on each poll.

    The locator returns None until the module is importable and exposes
    the attribute, so it can be polled while the SDK is still being
    installed or registered.
    """
    module_name, _, attribute = reference.partition(":")
    if not module_name:
        raise ConfigurationError(f"Invalid SDK reference '{reference}'. Use 'module:attribute'.")

    def locate() -> Optional[Any]:
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            return None
        if not attribute:
            return module
        return getattr(module, attribute, None)

    return locate


def registry_locator(registry: Mapping[str, Any], key: str) -> SdkLocator:
    """Build a locator reading `key` from a host-populated mapping."""
    return lambda: registry.get(key)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass
class AgentHandle:
    """
    The live connection object obtained from the SDK.

    Attributes:
        target: The raw object returned by the SDK.
        shape: Name of the negotiation step that produced it.
        started: True when the session is already running (the `run` path).
    """

    target: Any
    shape: str
    started: bool = False

    def _capability(self, name: str) -> Optional[Callable[..., Any]]:
        member = getattr(self.target, name, None)
        return member if callable(member) else None

    @property
    def can_start(self) -> bool:
        return self._capability("start") is not None

    @property
    def can_stop(self) -> bool:
        return self._capability("stop") is not None

    @property
    def can_subscribe(self) -> bool:
        return self._capability("on") is not None

    @property
    def is_callable(self) -> bool:
        return callable(self.target)


class VoiceAgentClient:
    """
    Shape-negotiating client for an externally loaded voice agent SDK.

    Example:
        >>> client = VoiceAgentClient(import_locator("vapi_sdk:Vapi"))
        >>> await client.wait_for_sdk_ready()
        >>> handle = await client.bootstrap(api_key, config)
        >>> await client.start_if_needed(handle, config)
        >>> client.subscribe(handle, {"message": on_message, ...})
    """

    def __init__(
        self,
        locator: SdkLocator,
        *,
        max_attempts: int = DEFAULT_SDK_WAIT_ATTEMPTS,
        interval_ms: int = DEFAULT_SDK_WAIT_INTERVAL_MS,
        start_timeout: Optional[float] = 30.0,
    ) -> None:
        self.locator = locator
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.start_timeout = start_timeout
        self._sdk: Any = None

    def _locate(self) -> Optional[Any]:
        try:
            return self.locator()
        except Exception as e:  # noqa: BLE001 - a broken locator means "not ready yet"
            logger.debug("SDK locator raised: %s", e)
            return None

    async def wait_for_sdk_ready(
        self,
        max_attempts: Optional[int] = None,
        interval_ms: Optional[int] = None,
    ) -> Any:
        """
        Poll the locator until the SDK is present.

        Args:
            max_attempts: Number of waits before giving up (default 10).
            interval_ms: Milliseconds between polls (default 500).

        Returns:
            The SDK object.

        Raises:
            SdkLoadTimeout: If the SDK is still absent after the budget.
        """
        attempts_budget = self.max_attempts if max_attempts is None else max_attempts
        interval = self.interval_ms if interval_ms is None else interval_ms

        sdk = self._locate()
        attempts = 0
        while sdk is None and attempts < attempts_budget:
            await asyncio.sleep(interval / 1000)
            attempts += 1
            sdk = self._locate()

        if sdk is None:
            logger.error("Voice agent SDK not available after %d attempts", attempts)
            raise SdkLoadTimeout(attempts_budget, interval)

        logger.info("Voice agent SDK ready after %d attempt(s): %r", attempts, sdk)
        self._sdk = sdk
        return sdk

    @staticmethod
    def validate_api_key(api_key: Optional[str]) -> str:
        """Return the stripped key or raise ConfigurationError."""
        key = (api_key or "").strip()
        if not key or key in PLACEHOLDER_API_KEYS:
            raise ConfigurationError(
                "Voice agent API key not found. Set VAPI_API_KEY in the environment "
                "or a .env file and restart."
            )
        return key

    async def bootstrap(
        self,
        api_key: Optional[str],
        config: AgentConfig,
        sdk: Any = None,
    ) -> AgentHandle:
        """
        Negotiate the SDK's export shape and obtain a handle.

        Args:
            api_key: Provider API key.
            config: Assistant configuration for this session.
            sdk: SDK object; defaults to the one found by wait_for_sdk_ready().

        Returns:
            AgentHandle from the first shape that succeeded.

        Raises:
            ConfigurationError: Missing or placeholder API key, or no SDK located.
            RemoteStartError: The SDK exposes `run` and it failed.
            SdkShapeError: No recognized shape produced a handle.
        """
        key = self.validate_api_key(api_key)
        sdk = sdk if sdk is not None else (self._sdk if self._sdk is not None else self._locate())
        if sdk is None:
            raise ConfigurationError("Voice agent SDK has not been loaded.")

        logger.debug("Voice agent SDK export: %r (type %s)", sdk, type(sdk).__name__)

        run = getattr(sdk, "run", None)
        if callable(run):
            try:
                result = await _resolve(run({"apiKey": key, "assistant": config.to_payload()}))
            except Exception as e:
                raise RemoteStartError(f"Failed to start voice agent via run(): {e}") from e
            logger.info("Voice agent started via run()")
            return AgentHandle(target=result or sdk, shape="run", started=True)

        attempted: list[str] = []
        for shape, factory in self._candidate_shapes(sdk):
            attempted.append(shape)
            try:
                target = await _resolve(factory(key))
            except Exception as e:  # noqa: BLE001 - fall through to the next shape
                logger.debug("SDK shape '%s' failed: %s", shape, e)
                continue
            if target is None:
                logger.debug("SDK shape '%s' returned no handle", shape)
                continue
            logger.info("Voice agent SDK bootstrapped via %s", shape)
            return AgentHandle(target=target, shape=shape)

        raise SdkShapeError(attempted or ["run", "constructor", "factory", "create", "default"], sdk)

    @staticmethod
    def _candidate_shapes(sdk: Any) -> list[tuple[str, Callable[[str], Any]]]:
        shapes: list[tuple[str, Callable[[str], Any]]] = []
        if inspect.isclass(sdk):
            shapes.append(("constructor", sdk))
        elif callable(sdk):
            shapes.append(("factory", sdk))

        create = getattr(sdk, "create", None)
        if callable(create):
            shapes.append(("create", create))

        default = getattr(sdk, "default", None)
        if inspect.isclass(default):
            shapes.append(("default constructor", default))
        elif callable(default):
            shapes.append(("default factory", default))
        return shapes

    async def start_if_needed(self, handle: AgentHandle, config: AgentConfig) -> None:
        """
        Start the remote session unless the `run` path already did.

        Raises:
            RemoteStartError: If `start` raised or exceeded start_timeout.
        """
        if handle.started:
            return

        payload = config.to_payload()
        if handle.can_start:
            try:
                result = handle.target.start(payload)
                if inspect.isawaitable(result):
                    if self.start_timeout is not None:
                        await asyncio.wait_for(result, timeout=self.start_timeout)
                    else:
                        await result
            except asyncio.TimeoutError as e:
                raise RemoteStartError(
                    f"Voice agent did not start within {self.start_timeout} seconds"
                ) from e
            except Exception as e:
                raise RemoteStartError(f"Voice agent rejected start: {e}") from e
        elif handle.is_callable:
            # Some SDK handles are themselves callable; the session may already
            # be live through the SDK's own transport if this fails.
            try:
                await _resolve(handle.target(payload))
            except Exception as e:  # noqa: BLE001
                logger.warning("Voice agent callable invocation failed: %s", e)
        else:
            logger.warning("Voice agent handle exposes no start capability")

        handle.started = True

    def subscribe(self, handle: AgentHandle, listeners: Mapping[str, Callable[..., Any]]) -> None:
        """
        Register listeners for agent events.

        Raises:
            ConfigurationError: If the handle cannot accept subscriptions.
        """
        if not handle.can_subscribe:
            raise ConfigurationError(
                f"Voice agent handle ({handle.shape}) does not support event subscription"
            )
        for event, listener in listeners.items():
            try:
                handle.target.on(event, listener)
            except Exception as e:
                raise ConfigurationError(f"Failed to subscribe to '{event}': {e}") from e
        logger.debug("Subscribed to agent events: %s", ", ".join(listeners))

    async def stop(self, handle: Optional[AgentHandle]) -> None:
        """Request remote termination. Best effort; never raises."""
        if handle is None or not handle.can_stop:
            return
        try:
            await _resolve(handle.target.stop())
            logger.info("Requested remote session stop")
        except Exception as e:  # noqa: BLE001 - teardown must not be blocked
            logger.warning("Voice agent stop failed: %s", e)
