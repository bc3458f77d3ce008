"""
Camera and microphone permission management.

The host supplies a CaptureBackend (a browser bridge, a desktop
capture library, or a fake in tests). MediaPermissionManager asks it
for combined audio+video capture, classifies failures, and owns the
mute/enable toggles and the hard release of every track.

Thread Safety:
    Not thread-safe. All calls are expected on the event loop thread.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from .errors import MediaPermissionError, PermissionErrorKind


__all__ = [
    "DEFAULT_MEDIA_CONSTRAINTS",
    "MediaTrack",
    "CaptureBackend",
    "MediaGrant",
    "MediaPermissionManager",
    "classify_capture_error",
]


logger = logging.getLogger(__name__)


DEFAULT_MEDIA_CONSTRAINTS: dict[str, Any] = {
    "video": {
        "width": {"ideal": 1280},
        "height": {"ideal": 720},
    },
    "audio": {
        "echoCancellation": True,
        "noiseSuppression": True,
    },
}

_DENIED_NAMES = {"NotAllowedError", "PermissionDeniedError"}
_NOT_FOUND_NAMES = {"NotFoundError", "DevicesNotFoundError"}
_BUSY_NAMES = {"NotReadableError", "TrackStartError"}


@runtime_checkable
class MediaTrack(Protocol):
    """A single capture track (audio or video)."""

    kind: str
    enabled: bool

    def stop(self) -> None:
        """Stop the track and release the underlying device."""


class CaptureBackend(Protocol):
    """Host capture API."""

    def is_available(self) -> bool:
        """Whether the host exposes camera/microphone capture at all."""

    async def get_user_media(self, constraints: dict[str, Any]) -> list[MediaTrack]:
        """Request capture; raise a platform error on failure."""


def classify_capture_error(error: BaseException) -> MediaPermissionError:
    """
    Map a platform capture error onto the permission taxonomy.

    The platform error's `name` attribute is used when present (the
    browser convention), otherwise its class name.

    Args:
        error: The exception raised by the capture backend.

    Returns:
        A MediaPermissionError carrying the kind and a remediation hint.
    """
    name = getattr(error, "name", None) or type(error).__name__

    if name in _DENIED_NAMES or isinstance(error, PermissionError):
        return MediaPermissionError(
            PermissionErrorKind.DENIED,
            "Permission denied. Please:\n"
            "1. Click the camera icon in your browser's address bar\n"
            "2. Allow camera and microphone access\n"
            '3. Click "Request Again" button',
            cause=error,
        )
    if name in _NOT_FOUND_NAMES or isinstance(error, FileNotFoundError):
        return MediaPermissionError(
            PermissionErrorKind.DEVICE_NOT_FOUND,
            "No camera or microphone found on your device.\n"
            "Please connect a webcam and microphone.",
            cause=error,
        )
    if name in _BUSY_NAMES:
        return MediaPermissionError(
            PermissionErrorKind.DEVICE_BUSY,
            "Camera or microphone is already in use.\n"
            "Please close other applications using your camera/mic.",
            cause=error,
        )
    return MediaPermissionError(PermissionErrorKind.OTHER, str(error), cause=error)


class MediaGrant:
    """
    Zero or one audio track and zero or one video track.

    Disabling a track only flips its `enabled` flag; the hardware stays
    acquired until `MediaPermissionManager.release()` stops it.
    """

    def __init__(self, tracks: list[MediaTrack]) -> None:
        self.audio_track: Optional[MediaTrack] = None
        self.video_track: Optional[MediaTrack] = None
        for track in tracks:
            if track.kind == "audio" and self.audio_track is None:
                self.audio_track = track
            elif track.kind == "video" and self.video_track is None:
                self.video_track = track
            else:
                # Surplus tracks are not owned by the grant; stop them now.
                logger.debug("Stopping surplus %s track", track.kind)
                track.stop()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def tracks(self) -> list[MediaTrack]:
        return [t for t in (self.audio_track, self.video_track) if t is not None]

    @property
    def audio_enabled(self) -> bool:
        return self.audio_track is not None and bool(self.audio_track.enabled)

    @property
    def video_enabled(self) -> bool:
        return self.video_track is not None and bool(self.video_track.enabled)

    def __repr__(self) -> str:
        return (
            f"MediaGrant(audio={self.audio_enabled}, video={self.video_enabled}, "
            f"released={self._released})"
        )


class MediaPermissionManager:
    """
    Acquires and releases camera/microphone capture.

    Example:
        >>> manager = MediaPermissionManager(backend)
        >>> grant = await manager.request_grant()
        >>> manager.toggle_audio(grant)   # mute
        False
        >>> manager.release(grant)
    """

    def __init__(
        self,
        backend: CaptureBackend,
        constraints: Optional[dict[str, Any]] = None,
    ) -> None:
        self.backend = backend
        self.constraints = constraints or DEFAULT_MEDIA_CONSTRAINTS

    def is_supported(self) -> bool:
        """Whether capture is available on this host."""
        try:
            return bool(self.backend.is_available())
        except Exception as e:
            logger.warning("Capture availability check failed: %s", e)
            return False

    async def request_grant(self) -> MediaGrant:
        """
        Request combined audio and video capture.

        Never retries; the caller decides whether to re-prompt.

        Returns:
            A MediaGrant with both tracks enabled.

        Raises:
            MediaPermissionError: If the backend rejected the request.
        """
        logger.info("Requesting camera and microphone permissions")
        try:
            tracks = await self.backend.get_user_media(self.constraints)
        except Exception as e:
            error = classify_capture_error(e)
            logger.error("Error accessing media devices (%s): %s", error.kind.value, e)
            raise error from e

        grant = MediaGrant(list(tracks))
        for track in grant.tracks:
            track.enabled = True
        logger.info("Media granted: %r", grant)
        return grant

    def toggle_audio(self, grant: Optional[MediaGrant]) -> bool:
        """Flip the microphone's enabled flag. Returns the new state."""
        if grant is None or grant.released or grant.audio_track is None:
            return False
        grant.audio_track.enabled = not grant.audio_track.enabled
        logger.info("Microphone %s", "enabled" if grant.audio_track.enabled else "muted")
        return grant.audio_track.enabled

    def toggle_video(self, grant: Optional[MediaGrant]) -> bool:
        """Flip the camera's enabled flag. Returns the new state."""
        if grant is None or grant.released or grant.video_track is None:
            return False
        grant.video_track.enabled = not grant.video_track.enabled
        logger.info("Camera %s", "enabled" if grant.video_track.enabled else "disabled")
        return grant.video_track.enabled

    def release(self, grant: Optional[MediaGrant]) -> None:
        """
        Stop every track and detach the grant.

        Idempotent: safe on None or an already-released grant. A track
        that fails to stop does not prevent the others from stopping.
        """
        if grant is None or grant.released:
            return
        grant._released = True
        for track in grant.tracks:
            try:
                track.enabled = False
                track.stop()
            except Exception as e:  # noqa: BLE001 - release must reach every track
                logger.warning("Failed to stop %s track: %s", track.kind, e)
        grant.audio_track = None
        grant.video_track = None
        logger.info("Media released")
