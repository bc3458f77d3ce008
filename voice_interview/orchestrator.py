"""
Interview Session Orchestrator.

Sequences one voice/video interview session through

    SETUP -> AWAITING_PERMISSIONS -> LIVE -> COMPLETED -> SETUP

and guarantees that the media grant, the timer and the agent handle are
released on every path out of LIVE or AWAITING_PERMISSIONS. All release
work happens in `_teardown()` (for LIVE) or `cancel()` (for
AWAITING_PERMISSIONS); no other code path stops tracks or timers.

Every await is followed by a check of the session generation: a grant
or SDK completion that arrives after the user cancelled, or after the
session ended, is discarded (and a late grant is released).

Thread Safety:
    This class is NOT thread-safe. Create one instance per session host
    and drive it from a single event loop.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from .agent_client import (
    CALL_END,
    CALL_START,
    ERROR,
    MESSAGE,
    AgentHandle,
    SdkLocator,
    VoiceAgentClient,
    import_locator,
)
from .config import InterviewSettings
from .errors import (
    ConfigurationError,
    InterviewSessionError,
    InvalidTransitionError,
    MediaPermissionError,
    RuntimeAgentError,
    SessionValidationError,
    TranscriptWriteError,
)
from .http_logging import install_outbound_logging
from .media import CaptureBackend, MediaGrant, MediaPermissionManager
from .models import (
    INTERVIEWER,
    AgentConfig,
    AgentMessage,
    SessionSnapshot,
    SessionState,
    TranscriptEntry,
    utc_timestamp,
)
from .output import TranscriptWriter
from .prompts import build_agent_config, opening_line
from .pubsub import SessionEventPublisher
from .timer import SessionTimer, format_duration
from .transcript import TranscriptLog, speaker_for_role


__all__ = ["SessionOrchestrator"]


logger = logging.getLogger(__name__)


DEFAULT_SETTLE_DELAY_SECONDS = 1.5

STATUS_REQUESTING = "Requesting camera and microphone permissions..."
STATUS_GRANTED = "Permissions granted! Starting interview..."
STATUS_PERMISSION_RETRY = 'Permission denied - Click "Request Again" to retry'
STATUS_CONNECTING = "Connecting to AI interviewer..."
STATUS_IN_PROGRESS = "Interview in progress..."
STATUS_START_FAILED = "Error: Could not start interview"
STATUS_COMPLETED = "Interview completed"


def _new_session_id() -> str:
    timestamp = datetime.now(timezone.utc)
    return f"sess_{timestamp.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"


def _guarded(handler: Callable[..., None]) -> Callable[..., None]:
    """Agent listeners must never raise back into the SDK."""

    @functools.wraps(handler)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            handler(*args, **kwargs)
        except Exception as e:  # noqa: BLE001 - SDK callbacks degrade to a log line
            logger.exception("Agent event handler %s failed: %s", handler.__name__, e)

    return wrapper


class SessionOrchestrator:
    """
    State machine for one interview session host.

    Example:
        >>> orchestrator = SessionOrchestrator(media, agent_client, api_key="pk_live_...")
        >>> await orchestrator.start("Backend Engineer", resume_text)
        True
        >>> orchestrator.state
        <SessionState.LIVE: 'live'>
        >>> await orchestrator.end_session()
        >>> orchestrator.snapshot.entries[0].speaker
        'Interviewer'
    """

    def __init__(
        self,
        media: MediaPermissionManager,
        agent_client: VoiceAgentClient,
        api_key: Optional[str],
        *,
        publisher: Optional[SessionEventPublisher] = None,
        writer: Optional[TranscriptWriter] = None,
        timer: Optional[SessionTimer] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        stop_remote_on_end: bool = True,
        log_outbound_calls: bool = False,
    ) -> None:
        self.media = media
        self.agent_client = agent_client
        self.api_key = api_key
        self.publisher = publisher or SessionEventPublisher()
        self.writer = writer
        self.timer = timer or SessionTimer()
        self.settle_delay = settle_delay
        self.stop_remote_on_end = stop_remote_on_end
        self.log_outbound_calls = log_outbound_calls

        self._state = SessionState.SETUP
        self._generation = 0
        self._status = ""
        self._remove_call_logging: Optional[Callable[[], None]] = None
        self._attempt: Optional[asyncio.Future] = None

        self.role = ""
        self.resume_text = ""
        self.session_id: Optional[str] = None
        self.grant: Optional[MediaGrant] = None
        self.handle: Optional[AgentHandle] = None
        self.config: Optional[AgentConfig] = None
        self.transcript = TranscriptLog()
        self.is_call_active = False
        self.started_at: Optional[str] = None
        self.last_error: Optional[InterviewSessionError] = None
        self.snapshot: Optional[SessionSnapshot] = None

    @classmethod
    def from_settings(
        cls,
        settings: InterviewSettings,
        capture_backend: CaptureBackend,
        locator: Optional[SdkLocator] = None,
        publisher: Optional[SessionEventPublisher] = None,
    ) -> "SessionOrchestrator":
        """
        Build an orchestrator from loaded settings.

        Raises:
            ConfigurationError: If no locator is given and VOICE_SDK_PATH is unset.
        """
        if locator is None:
            if not settings.sdk_path:
                raise ConfigurationError(
                    "No voice agent SDK configured. Set VOICE_SDK_PATH=module:attribute."
                )
            locator = import_locator(settings.sdk_path)

        agent_client = VoiceAgentClient(
            locator,
            max_attempts=settings.sdk_wait_attempts,
            interval_ms=settings.sdk_wait_interval_ms,
            start_timeout=settings.remote_start_timeout,
        )
        writer = (
            TranscriptWriter(settings.transcript_output_dir)
            if settings.transcript_output_dir is not None
            else None
        )
        return cls(
            MediaPermissionManager(capture_backend),
            agent_client,
            settings.api_key,
            publisher=publisher,
            writer=writer,
            settle_delay=settings.permission_settle_seconds,
            log_outbound_calls=settings.log_outbound_calls,
        )

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> str:
        return self._status

    @property
    def mic_enabled(self) -> bool:
        return self.grant is not None and self.grant.audio_enabled

    @property
    def camera_enabled(self) -> bool:
        return self.grant is not None and self.grant.video_enabled

    @property
    def elapsed_seconds(self) -> int:
        return self.timer.elapsed

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.timer.elapsed)

    @property
    def entries(self) -> list[TranscriptEntry]:
        return self.transcript.entries

    def _set_status(self, status: str) -> None:
        self._status = status
        if status:
            self.publisher.publish_status(status)

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.info("Session %s: %s -> %s", self.session_id, self._state.value, state.value)
        self._state = state
        self.publisher.publish_state(state.value)

    def _require(self, operation: str, *states: SessionState) -> None:
        if self._state not in states:
            raise InvalidTransitionError(operation, self._state.value)

    def _is_current(self, generation: int, *states: SessionState) -> bool:
        return generation == self._generation and self._state in states

    # -------------------------------------------------------------------------
    # Setup -> AwaitingPermissions
    # -------------------------------------------------------------------------

    async def start(self, role: str, resume_text: str) -> bool:
        """
        Validate the start request and request camera/microphone access.

        Args:
            role: Job role the candidate is interviewing for.
            resume_text: Resume text (typed or extracted).

        Returns:
            True if the session reached LIVE.

        Raises:
            InvalidTransitionError: If not in SETUP.
            SessionValidationError: Missing role/resume or no capture support.
        """
        self._require("start an interview", SessionState.SETUP)

        if not (role or "").strip() or not (resume_text or "").strip():
            raise SessionValidationError("Please provide both job role and resume")
        if not self.media.is_supported():
            raise SessionValidationError(
                "Your device does not support camera/microphone access. "
                "Please use a host with capture support."
            )

        self.role = role.strip()
        self.resume_text = resume_text
        self.session_id = _new_session_id()
        self.last_error = None
        self.transcript.clear()
        self.timer.reset()
        self._generation += 1
        self._set_status("")
        self._set_state(SessionState.AWAITING_PERMISSIONS)

        return await self.request_permissions()

    # -------------------------------------------------------------------------
    # AwaitingPermissions
    # -------------------------------------------------------------------------

    async def request_permissions(self) -> bool:
        """
        Request (or re-request) capture; on success continue to connect().

        Permission failures leave the session in AWAITING_PERMISSIONS with
        no grant, and publish an alert with the remediation hint. A retry
        while an earlier request or connect is still pending joins that
        attempt instead of opening a second capture prompt.

        Returns:
            True if the session reached LIVE.
        """
        self._require("request permissions", SessionState.AWAITING_PERMISSIONS)
        return await self._run_attempt(self._acquire_and_connect)

    async def connect(self) -> bool:
        """
        Bootstrap the voice agent and go LIVE.

        SDK wait, bootstrap, start and subscribe failures are surfaced as a
        status plus alert; the session stays in AWAITING_PERMISSIONS with
        its grant so the user can retry with connect(). A retry while an
        attempt is pending joins it rather than bootstrapping a second agent.

        Returns:
            True if the session reached LIVE.
        """
        self._require("connect", SessionState.AWAITING_PERMISSIONS)
        if self.grant is None and not self._attempt_pending:
            raise InvalidTransitionError("connect without a media grant", self._state.value)
        return await self._run_attempt(self._connect)

    @property
    def _attempt_pending(self) -> bool:
        return self._attempt is not None and not self._attempt.done()

    async def _run_attempt(self, step: Callable[[], Awaitable[bool]]) -> bool:
        if self._attempt_pending:
            logger.info("Start attempt already in progress; joining it")
            return await asyncio.shield(self._attempt)
        self._attempt = asyncio.ensure_future(step())
        return await asyncio.shield(self._attempt)

    def _detach_attempt(self) -> None:
        # The detached task still finishes and releases anything it acquires late.
        self._attempt = None

    async def _acquire_and_connect(self) -> bool:
        if self.grant is None:
            generation = self._generation
            self._set_status(STATUS_REQUESTING)
            try:
                grant = await self.media.request_grant()
            except MediaPermissionError as e:
                if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                    logger.info("Discarding permission failure for a cancelled attempt")
                    return False
                self.last_error = e
                self.publisher.publish_alert(f"Could not access camera/microphone.\n\n{e.hint}")
                self._set_status(STATUS_PERMISSION_RETRY)
                return False

            if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                logger.info("Discarding late media grant; session moved on")
                self.media.release(grant)
                return False

            self.grant = grant
            self.last_error = None
            self._set_status(STATUS_GRANTED)

        return await self._connect()

    async def _connect(self) -> bool:
        if self.grant is None:
            return False

        generation = self._generation
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
            if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                return False

        config = build_agent_config(self.role, self.resume_text)
        self.config = config
        handle: Optional[AgentHandle] = None

        try:
            await self.agent_client.wait_for_sdk_ready()
            if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                logger.info("SDK became ready after the attempt was cancelled")
                return False

            handle = await self.agent_client.bootstrap(self.api_key, config)
            self._install_call_logging(handle)
            self._set_status(STATUS_CONNECTING)

            await self.agent_client.start_if_needed(handle, config)
            if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                logger.info("Remote start finished after the attempt was cancelled")
                self._remove_outbound_logging()
                await self.agent_client.stop(handle)
                return False

            self.agent_client.subscribe(handle, self._listeners(generation))
        except Exception as e:  # noqa: BLE001 - every start failure degrades to a status
            self._remove_outbound_logging()
            if handle is not None:
                await self.agent_client.stop(handle)
            if not self._is_current(generation, SessionState.AWAITING_PERMISSIONS):
                return False
            self._surface_start_failure(e)
            return False

        self._go_live(handle)
        return True

    def _surface_start_failure(self, error: Exception) -> None:
        if not isinstance(error, InterviewSessionError):
            logger.exception("Unexpected error starting interview")
            error = InterviewSessionError(str(error))
        logger.error("Error starting interview: %s", error)
        self.last_error = error
        self._set_status(STATUS_START_FAILED)
        self.publisher.publish_alert(f"Error starting interview: {error}")

    def _install_call_logging(self, handle: AgentHandle) -> None:
        if not self.log_outbound_calls:
            return
        client = getattr(handle.target, "http_client", None)
        if isinstance(client, httpx.AsyncClient):
            self._remove_call_logging = install_outbound_logging(client)

    def _remove_outbound_logging(self) -> None:
        remove, self._remove_call_logging = self._remove_call_logging, None
        if remove is not None:
            remove()

    def cancel(self) -> None:
        """
        Abandon the attempt and return to SETUP, releasing any grant.

        Role and resume text are kept so the user can edit and retry.
        """
        self._require("cancel", SessionState.AWAITING_PERMISSIONS)
        self._generation += 1
        self._detach_attempt()
        grant, self.grant = self.grant, None
        self.media.release(grant)
        self._remove_outbound_logging()
        self.handle = None
        self.config = None
        self.last_error = None
        self._set_status("")
        self._set_state(SessionState.SETUP)

    # -------------------------------------------------------------------------
    # Live
    # -------------------------------------------------------------------------

    def _go_live(self, handle: AgentHandle) -> None:
        self.handle = handle
        self.started_at = utc_timestamp()
        self.is_call_active = True
        self._set_state(SessionState.LIVE)
        self.timer.start()
        self._set_status(STATUS_IN_PROGRESS)
        entry = self.transcript.append(INTERVIEWER, opening_line(self.role))
        self.publisher.publish_transcript(entry.speaker, entry.text)

    def _listeners(self, generation: int) -> dict[str, Callable[..., None]]:
        """Listeners bound to one session generation; stale events are ignored."""

        @_guarded
        def on_call_start(*_: Any) -> None:
            if self._is_current(generation, SessionState.LIVE):
                self._handle_call_start()

        @_guarded
        def on_call_end(*_: Any) -> None:
            if self._is_current(generation, SessionState.LIVE):
                logger.info("Remote call ended")
                self._teardown("remote")

        @_guarded
        def on_message(message: Any = None, *_: Any) -> None:
            if self._is_current(generation, SessionState.LIVE):
                self._handle_message(message)

        @_guarded
        def on_error(error: Any = None, *_: Any) -> None:
            if self._is_current(generation, SessionState.LIVE):
                self._handle_agent_error(error)

        return {
            CALL_START: on_call_start,
            CALL_END: on_call_end,
            MESSAGE: on_message,
            ERROR: on_error,
        }

    def _handle_call_start(self) -> None:
        self.is_call_active = True
        self.timer.start()
        self._set_status(STATUS_IN_PROGRESS)

    def _handle_message(self, raw: Any) -> None:
        try:
            if isinstance(raw, Mapping):
                message = AgentMessage.model_validate(dict(raw))
            else:
                message = AgentMessage.model_validate(raw, from_attributes=True)
        except ValidationError as e:
            logger.warning("Ignoring malformed agent message: %s", e)
            return

        logger.debug("Agent message: %r", message)
        if not message.is_transcript:
            return

        speaker = speaker_for_role(message.role)
        if speaker is None or message.transcript is None:
            logger.debug("Transcript message with unmapped role %r ignored", message.role)
            return

        entry = self.transcript.append(speaker, message.transcript)
        self.publisher.publish_transcript(entry.speaker, entry.text)

    def _handle_agent_error(self, payload: Any) -> None:
        if isinstance(payload, Mapping):
            text = str(payload.get("message") or payload)
        else:
            text = str(getattr(payload, "message", None) or payload)
        error = RuntimeAgentError(text, payload)
        logger.error("Voice agent error: %s", text)
        self.last_error = error
        self._set_status(f"Error: {text}")
        self.publisher.publish_error(text)
        self.publisher.publish_alert(f"Voice agent error: {text}")

    def toggle_audio(self) -> bool:
        """Mute/unmute the microphone. Returns the new enabled state."""
        return self.media.toggle_audio(self.grant)

    def toggle_video(self) -> bool:
        """Disable/enable the camera. Returns the new enabled state."""
        return self.media.toggle_video(self.grant)

    # -------------------------------------------------------------------------
    # Live -> Completed
    # -------------------------------------------------------------------------

    async def end_session(self) -> SessionSnapshot:
        """
        End the session at the user's request.

        Runs the same teardown as a remote `call-end`, then asks the
        remote side to terminate.

        Raises:
            InvalidTransitionError: If the session is not LIVE.
        """
        self._require("end the interview", SessionState.LIVE)
        handle = self.handle
        snapshot = self._teardown("user")
        if self.stop_remote_on_end:
            await self.agent_client.stop(handle)
        return snapshot

    def _teardown(self, reason: str) -> SessionSnapshot:
        """
        Release everything owned by the LIVE session and enter COMPLETED.

        Each step is attempted even if an earlier one fails.
        """
        self._generation += 1
        self._detach_attempt()
        grant, self.grant = self.grant, None

        for step, action in (
            ("stop timer", self.timer.stop),
            ("release media", lambda: self.media.release(grant)),
            ("remove call logging", self._remove_outbound_logging),
        ):
            try:
                action()
            except Exception as e:  # noqa: BLE001 - teardown must run to completion
                logger.warning("Teardown step '%s' failed: %s", step, e)

        self.handle = None
        self.is_call_active = False
        self._set_state(SessionState.COMPLETED)
        self._set_status(STATUS_COMPLETED)

        snapshot = SessionSnapshot(
            session_id=self.session_id or _new_session_id(),
            role=self.role,
            started_at=self.started_at,
            elapsed_seconds=self.timer.elapsed,
            end_reason=reason,
            entries=self.transcript.entries,
        )
        self.snapshot = snapshot

        if self.writer is not None:
            try:
                self.writer.write_snapshot(snapshot)
            except TranscriptWriteError as e:
                logger.warning("Could not persist transcript: %s", e)

        logger.info(
            "Session %s completed (%s) after %s with %d entries",
            snapshot.session_id,
            reason,
            format_duration(snapshot.elapsed_seconds),
            len(snapshot.entries),
        )
        return snapshot

    # -------------------------------------------------------------------------
    # Completed -> Setup
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Start over: clear role, resume, transcript and timer."""
        self._require("start a new session", SessionState.COMPLETED)
        self._generation += 1
        self._detach_attempt()
        self.role = ""
        self.resume_text = ""
        self.session_id = None
        self.config = None
        self.started_at = None
        self.snapshot = None
        self.last_error = None
        self.is_call_active = False
        self.transcript.clear()
        self.timer.reset()
        self._set_status("")
        self._set_state(SessionState.SETUP)
