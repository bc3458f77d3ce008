"""
Tests for MediaPermissionManager: grants, classification, toggles, release.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import pytest

from voice_interview.errors import MediaPermissionError, PermissionErrorKind
from voice_interview.media import (
    DEFAULT_MEDIA_CONSTRAINTS,
    MediaGrant,
    MediaPermissionManager,
    classify_capture_error,
)
from tests.mock_data import CaptureError, FakeCaptureBackend, FakeTrack


# =============================================================================
# Error Classification
# =============================================================================

class TestClassifyCaptureError:
    """Platform error names map onto the permission taxonomy."""

    @pytest.mark.parametrize(
        "name,kind",
        [
            ("NotAllowedError", PermissionErrorKind.DENIED),
            ("PermissionDeniedError", PermissionErrorKind.DENIED),
            ("NotFoundError", PermissionErrorKind.DEVICE_NOT_FOUND),
            ("NotReadableError", PermissionErrorKind.DEVICE_BUSY),
            ("OverconstrainedError", PermissionErrorKind.OTHER),
        ],
    )
    def test_named_errors(self, name, kind):
        """Each browser-style error name gets its category."""
        error = classify_capture_error(CaptureError(name, "boom"))

        assert error.kind == kind
        assert error.hint

    def test_builtin_permission_error_is_denied(self):
        """A Python PermissionError from a native backend counts as Denied."""
        error = classify_capture_error(PermissionError("no access"))
        assert error.kind == PermissionErrorKind.DENIED

    def test_other_keeps_original_message(self):
        """Unclassified errors carry the platform message as the hint."""
        error = classify_capture_error(RuntimeError("driver exploded"))

        assert error.kind == PermissionErrorKind.OTHER
        assert error.hint == "driver exploded"


# =============================================================================
# Grant Acquisition
# =============================================================================

class TestRequestGrant:
    """Tests for request_grant."""

    @pytest.mark.asyncio
    async def test_success_enables_both_tracks(self):
        """A successful grant holds enabled audio and video tracks."""
        backend = FakeCaptureBackend()
        manager = MediaPermissionManager(backend)

        grant = await manager.request_grant()

        assert grant.audio_enabled is True
        assert grant.video_enabled is True
        assert len(grant.tracks) == 2

    @pytest.mark.asyncio
    async def test_requests_default_constraints(self):
        """Audio is echo-cancelled and noise-suppressed; video ideal 1280x720."""
        backend = FakeCaptureBackend()
        await MediaPermissionManager(backend).request_grant()

        constraints = backend.requests[0]
        assert constraints == DEFAULT_MEDIA_CONSTRAINTS
        assert constraints["audio"]["echoCancellation"] is True
        assert constraints["audio"]["noiseSuppression"] is True
        assert constraints["video"]["width"] == {"ideal": 1280}
        assert constraints["video"]["height"] == {"ideal": 720}

    @pytest.mark.asyncio
    async def test_failure_is_classified_and_not_retried(self):
        """A rejected request raises once and is never retried."""
        backend = FakeCaptureBackend(outcomes=[CaptureError("NotAllowedError")])
        manager = MediaPermissionManager(backend)

        with pytest.raises(MediaPermissionError) as exc_info:
            await manager.request_grant()

        assert exc_info.value.kind == PermissionErrorKind.DENIED
        assert len(backend.requests) == 1

    def test_is_supported_follows_backend(self):
        """Capture support reflects the backend's availability."""
        assert MediaPermissionManager(FakeCaptureBackend()).is_supported() is True
        assert MediaPermissionManager(FakeCaptureBackend(available=False)).is_supported() is False

    def test_surplus_tracks_are_stopped(self):
        """A grant owns at most one track of each kind."""
        extra = FakeTrack("audio")
        grant = MediaGrant([FakeTrack("audio"), FakeTrack("video"), extra])

        assert extra.stopped
        assert len(grant.tracks) == 2


# =============================================================================
# Toggles
# =============================================================================

class TestToggles:
    """Mute/enable toggles flip flags without releasing hardware."""

    @pytest.mark.asyncio
    async def test_toggle_sequence_matches_reported_state(self):
        """After any toggle sequence, the track flag equals the reported state."""
        manager = MediaPermissionManager(FakeCaptureBackend())
        grant = await manager.request_grant()
        audio = grant.audio_track
        video = grant.video_track

        for _ in range(3):
            reported = manager.toggle_audio(grant)
            assert audio.enabled is reported
            assert grant.audio_enabled is reported
        for _ in range(2):
            reported = manager.toggle_video(grant)
            assert video.enabled is reported
            assert grant.video_enabled is reported

        assert audio.enabled is False
        assert video.enabled is True
        assert not audio.stopped
        assert not video.stopped

    def test_toggle_without_grant_is_noop(self):
        """Toggling with no grant reports disabled."""
        manager = MediaPermissionManager(FakeCaptureBackend())

        assert manager.toggle_audio(None) is False
        assert manager.toggle_video(None) is False

    def test_toggle_missing_track_is_noop(self):
        """A grant without a video track ignores video toggles."""
        manager = MediaPermissionManager(FakeCaptureBackend())
        grant = MediaGrant([FakeTrack("audio")])

        assert manager.toggle_video(grant) is False
        assert grant.video_track is None


# =============================================================================
# Release
# =============================================================================

class TestRelease:
    """Release stops every track and is idempotent."""

    @pytest.mark.asyncio
    async def test_release_stops_all_tracks(self):
        manager = MediaPermissionManager(FakeCaptureBackend())
        grant = await manager.request_grant()
        tracks = grant.tracks

        manager.release(grant)

        assert grant.released is True
        assert all(t.stop_calls == 1 for t in tracks)
        assert grant.tracks == []

    @pytest.mark.asyncio
    async def test_release_twice_is_noop(self):
        """Second release does not stop tracks again."""
        manager = MediaPermissionManager(FakeCaptureBackend())
        grant = await manager.request_grant()
        tracks = grant.tracks

        manager.release(grant)
        manager.release(grant)

        assert all(t.stop_calls == 1 for t in tracks)

    def test_release_none_is_noop(self):
        MediaPermissionManager(FakeCaptureBackend()).release(None)

    def test_failing_track_does_not_block_others(self):
        """A track that raises on stop still lets the other track stop."""

        class BrokenTrack(FakeTrack):
            def stop(self) -> None:
                raise RuntimeError("device gone")

        video = FakeTrack("video")
        grant = MediaGrant([BrokenTrack("audio"), video])

        MediaPermissionManager(FakeCaptureBackend()).release(grant)

        assert video.stopped
        assert grant.released
