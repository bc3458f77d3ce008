"""
Append-only transcript of one interview session.

Thread Safety:
    This class is NOT thread-safe. Use a single instance per session
    on the event loop thread.
"""

import logging

from .models import CANDIDATE, INTERVIEWER, Speaker, TranscriptEntry


__all__ = ["TranscriptLog", "speaker_for_role"]


logger = logging.getLogger(__name__)


_ROLE_TO_SPEAKER: dict[str, Speaker] = {
    "assistant": INTERVIEWER,
    "user": CANDIDATE,
}


def speaker_for_role(role: str | None) -> Speaker | None:
    """Map an agent message role to a transcript speaker, or None if unknown."""
    if role is None:
        return None
    return _ROLE_TO_SPEAKER.get(role)


class TranscriptLog:
    """
    Ordered record of utterances, in arrival order.

    Entries are never edited or removed while a session runs; `clear()`
    exists only for starting a brand-new session.

    Example:
        >>> log = TranscriptLog()
        >>> log.append("Interviewer", "Hello!")
        >>> [e.text for e in log.entries]
        ['Hello!']
    """

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []

    def append(self, speaker: Speaker, text: str) -> TranscriptEntry:
        """Append one entry stamped with the current UTC time."""
        entry = TranscriptEntry(speaker=speaker, text=text)
        self._entries.append(entry)
        logger.debug("Transcript [%d] %s: %s", len(self._entries), speaker, text)
        return entry

    @property
    def entries(self) -> list[TranscriptEntry]:
        """Copy of the entries, oldest first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
