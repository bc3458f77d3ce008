"""
Real-time Pub/Sub for session notifications.

Provides an in-memory pub/sub system that streams status changes,
user-facing alerts, transcript entries and state transitions from the
SessionOrchestrator to whatever host UI renders them.

Uses asyncio queues; all publishing happens on the event loop thread.

Example usage:
    publisher = SessionEventPublisher()
    queue = await publisher.subscribe()
    publisher.publish_status("Interview in progress...")
    event = await queue.get()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum

from .models import utc_timestamp

logger = logging.getLogger(__name__)


class SessionEventType(str, Enum):
    """
    Types of notifications published to the stream.

    Attributes:
        STATUS: The one-line status shown beside the controls.
        ALERT: A message the user must acknowledge (permission or SDK failure).
        TRANSCRIPT: A new transcript entry.
        STATE: A session state transition.
        ERROR: A runtime error reported by the agent.
    """

    STATUS = "status"
    ALERT = "alert"
    TRANSCRIPT = "transcript"
    STATE = "state"
    ERROR = "error"


@dataclass
class SessionEvent:
    """
    A single notification from the orchestrator.

    Attributes:
        event_type: Category of the notification.
        content: Main text content.
        timestamp: UTC timestamp when the event was created.
        speaker: Speaker of a transcript entry.
        state: New state value for state transitions.
    """

    event_type: SessionEventType
    content: str
    timestamp: str = field(default_factory=utc_timestamp)
    speaker: str | None = None
    state: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "event_type": self.event_type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "speaker": self.speaker,
            "state": self.state,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class SessionEventPublisher:
    """
    Publisher for session notifications.

    Manages multiple subscriber queues and broadcasts events to all.
    New subscribers receive the retained history first.

    Attributes:
        max_history: Maximum number of events to retain in history.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._subscribers: list[asyncio.Queue[SessionEvent]] = []
        self._history: list[SessionEvent] = []
        self._max_history = max_history
        logger.debug("SessionEventPublisher initialized with max_history=%d", max_history)

    async def subscribe(self) -> asyncio.Queue[SessionEvent]:
        """
        Subscribe to session events.

        Caller is responsible for calling unsubscribe when done.

        Returns:
            Queue that will receive published events, history first.
        """
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        for event in self._history:
            queue.put_nowait(event)
        self._subscribers.append(queue)
        logger.debug("New subscriber added. Total: %d", len(self._subscribers))
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
        logger.debug("Subscriber removed. Total: %d", len(self._subscribers))

    def publish(self, event: SessionEvent) -> None:
        """
        Publish an event to all subscribers and store it in history.

        Never raises: a failing subscriber is logged and skipped.
        """
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history :]

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except Exception as e:  # noqa: BLE001 - one subscriber must not block the rest
                logger.warning("Failed to publish to subscriber: %s", e)

        logger.debug("Published %s: %s", event.event_type.value, event.content)

    def publish_status(self, content: str) -> None:
        self.publish(SessionEvent(SessionEventType.STATUS, content))

    def publish_alert(self, content: str) -> None:
        self.publish(SessionEvent(SessionEventType.ALERT, content))

    def publish_transcript(self, speaker: str, text: str) -> None:
        self.publish(SessionEvent(SessionEventType.TRANSCRIPT, text, speaker=speaker))

    def publish_state(self, state: str) -> None:
        self.publish(SessionEvent(SessionEventType.STATE, f"Session is {state}", state=state))

    def publish_error(self, content: str) -> None:
        self.publish(SessionEvent(SessionEventType.ERROR, content))

    def get_history(self) -> list[SessionEvent]:
        """Copy of the retained history."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
        logger.debug("History cleared")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
