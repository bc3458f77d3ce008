"""
Voice Interview Session Package.

Drives a single voice/video interview with a third-party conversational
voice agent: camera/microphone acquisition, SDK shape negotiation, a live
transcript and duration timer, and guaranteed teardown on every exit path.

Components:
    - SessionOrchestrator: State machine Setup -> AwaitingPermissions -> Live -> Completed
    - MediaPermissionManager: Acquires, toggles and releases capture tracks
    - VoiceAgentClient: Negotiates the SDK export shape into start/stop/on
    - TranscriptLog / SessionTimer: Append-only transcript and elapsed seconds
    - SessionEventPublisher: Real-time status/alert/transcript notifications
    - TranscriptWriter: Persists the final session snapshot to JSON
    - VapiWebClient: Constructor-shaped SDK for the provider REST API
    - extract_resume_text / load_resume: Resume text from PDF, Word or plain text

Example:
    >>> from voice_interview import SessionOrchestrator, load_settings
    >>>
    >>> orchestrator = SessionOrchestrator.from_settings(load_settings(), capture_backend)
    >>> await orchestrator.start("Backend Engineer", "5 years Go, distributed systems")
    >>> ...
    >>> snapshot = await orchestrator.end_session()

Last Grunted: 10/19/2026
"""

from .models import (
    AgentConfig,
    AgentMessage,
    SessionSnapshot,
    SessionState,
    TranscriptEntry,
)

from .errors import (
    ConfigurationError,
    InterviewSessionError,
    InvalidTransitionError,
    MediaPermissionError,
    PermissionErrorKind,
    RemoteStartError,
    RuntimeAgentError,
    SdkLoadTimeout,
    SdkShapeError,
    SessionValidationError,
)

from .config import InterviewSettings, configure_logging, load_settings

from .media import CaptureBackend, MediaGrant, MediaPermissionManager, MediaTrack

from .transcript import TranscriptLog

from .timer import SessionTimer, format_duration

from .agent_client import (
    AgentHandle,
    VoiceAgentClient,
    import_locator,
    registry_locator,
)

from .prompts import build_agent_config

from .pubsub import SessionEvent, SessionEventPublisher, SessionEventType

from .output import TranscriptWriter

from .resume import extract_resume_text, load_resume

from .orchestrator import SessionOrchestrator

from .vapi_web import VapiWebClient


__all__ = [
    # Models
    "AgentConfig",
    "AgentMessage",
    "SessionSnapshot",
    "SessionState",
    "TranscriptEntry",
    # Errors
    "ConfigurationError",
    "InterviewSessionError",
    "InvalidTransitionError",
    "MediaPermissionError",
    "PermissionErrorKind",
    "RemoteStartError",
    "RuntimeAgentError",
    "SdkLoadTimeout",
    "SdkShapeError",
    "SessionValidationError",
    # Config
    "InterviewSettings",
    "configure_logging",
    "load_settings",
    # Components
    "CaptureBackend",
    "MediaGrant",
    "MediaPermissionManager",
    "MediaTrack",
    "TranscriptLog",
    "SessionTimer",
    "format_duration",
    "AgentHandle",
    "VoiceAgentClient",
    "import_locator",
    "registry_locator",
    "build_agent_config",
    # Pub/Sub
    "SessionEvent",
    "SessionEventPublisher",
    "SessionEventType",
    # Output
    "TranscriptWriter",
    # Resume
    "extract_resume_text",
    "load_resume",
    # Orchestration
    "SessionOrchestrator",
    "VapiWebClient",
]

__version__ = "0.1.0"
