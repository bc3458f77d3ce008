"""
Pydantic models for the voice interview session.

Defines the session state enum, the immutable agent configuration sent
to the voice agent provider, transcript entries, agent message events
and the final session snapshot.

Last Grunted: 10/19/2026
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


INTERVIEWER = "Interviewer"
CANDIDATE = "You"

Speaker = Literal["Interviewer", "You"]


def utc_timestamp() -> str:
    """Return current UTC timestamp as ISO 8601 string with 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SessionState(str, Enum):
    """
    Lifecycle of one interview session.

    Attributes:
        SETUP: Collecting role and resume text.
        AWAITING_PERMISSIONS: Capture requested or held, agent not yet live.
        LIVE: Agent session running, timer ticking.
        COMPLETED: Session ended, transcript retained for review.
    """

    SETUP = "setup"
    AWAITING_PERMISSIONS = "awaiting_permissions"
    LIVE = "live"
    COMPLETED = "completed"


class PromptMessage(BaseModel):
    """One message of the remote model's prompt."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="Message role, 'system' for the interviewer brief")
    content: str = Field(..., description="Escaped message content")


class ModelConfig(BaseModel):
    """Language model the provider should use for the interviewer."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="openai")
    model: str = Field(default="gpt-4")
    messages: tuple[PromptMessage, ...] = Field(default_factory=tuple)


class VoiceConfig(BaseModel):
    """Text-to-speech voice used by the interviewer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: str = Field(default="11labs")
    voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM", alias="voiceId")


class TranscriberConfig(BaseModel):
    """Speech-to-text provider used for the candidate."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="deepgram")
    model: str = Field(default="nova-2")
    language: str = Field(default="en")


class AgentConfig(BaseModel):
    """
    Immutable assistant configuration built once per session start.

    The `role` field is local bookkeeping and is not part of the
    provider payload; everything else is serialized with the
    provider's camelCase keys by `to_payload()`.

    Example:
        >>> config = build_agent_config("Backend Engineer", "5 years Go")
        >>> config.to_payload()["firstMessage"]
        'Hello! Thank you for taking the time to interview with us today ...'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: str = Field(..., description="Job role the candidate is interviewing for")
    model: ModelConfig = Field(..., description="Language model and system prompt")
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    first_message: str = Field(..., alias="firstMessage", description="Synthesized greeting")
    transcriber: TranscriberConfig = Field(default_factory=TranscriberConfig)

    @property
    def system_prompt(self) -> str:
        """Content of the first system message, or an empty string."""
        for message in self.model.messages:
            if message.role == "system":
                return message.content
        return ""

    def to_payload(self) -> dict:
        """Serialize to the provider's assistant payload."""
        payload = self.model_dump(by_alias=True, exclude={"role"})
        payload["model"]["messages"] = [dict(m) for m in payload["model"]["messages"]]
        return payload


class TranscriptEntry(BaseModel):
    """A single attributed utterance."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker = Field(..., description="'Interviewer' or 'You'")
    text: str = Field(..., description="Utterance text")
    timestamp: str = Field(default_factory=utc_timestamp, description="ISO 8601 UTC arrival time")


class AgentMessage(BaseModel):
    """
    Payload of an agent `message` event.

    Only transcript messages mutate the transcript; every other type
    is logged and dropped. Unknown provider fields are preserved.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="unknown", description="Message type, e.g. 'transcript'")
    role: Optional[str] = Field(default=None, description="'assistant' or 'user'")
    transcript: Optional[str] = Field(default=None, description="Recognized text")

    @property
    def is_transcript(self) -> bool:
        return self.type == "transcript"


class SessionSnapshot(BaseModel):
    """Final summary of a completed session."""

    session_id: str = Field(..., description="Unique session identifier")
    role: str = Field(..., description="Job role of the interview")
    started_at: Optional[str] = Field(default=None, description="When the session went live")
    ended_at: str = Field(default_factory=utc_timestamp, description="When teardown ran")
    elapsed_seconds: int = Field(default=0, ge=0)
    end_reason: str = Field(..., description="'user' or 'remote'")
    entries: list[TranscriptEntry] = Field(default_factory=list)
