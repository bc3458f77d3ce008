"""
Runtime configuration for the voice interview session.

Values come from the process environment, optionally seeded from a
`.env` file next to the project root. The API key is deliberately not
validated here: a missing or placeholder key is reported by
VoiceAgentClient.bootstrap() as a ConfigurationError at session start.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


__all__ = ["InterviewSettings", "load_settings", "configure_logging"]


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class InterviewSettings:
    """Validated settings for one orchestrator instance."""

    api_key: str
    sdk_path: Optional[str]
    sdk_wait_attempts: int
    sdk_wait_interval_ms: int
    permission_settle_seconds: float
    remote_start_timeout: Optional[float]
    transcript_output_dir: Optional[Path]
    log_outbound_calls: bool


def _read_int(name: str, default: int, minimum: int = 0) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer. Got: {raw}") from exc
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}. Got: {value}.")
    return value


def _read_float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number. Got: {raw}") from exc
    if value < 0:
        raise RuntimeError(f"{name} must be >= 0. Got: {value}.")
    return value


def load_settings(env_file: Optional[Path] = None) -> InterviewSettings:
    """
    Load settings from the environment with strict validation.

    Args:
        env_file: Optional .env path; defaults to `.env` in the working directory.
            Variables already present in the environment win.

    Raises:
        RuntimeError: If a numeric variable is malformed or out of range.
    """
    load_dotenv(env_file or Path.cwd() / ".env")

    api_key = (
        os.environ.get("VAPI_API_KEY") or os.environ.get("VITE_VAPI_API_KEY") or ""
    ).strip()

    sdk_path = (os.environ.get("VOICE_SDK_PATH") or "").strip() or None

    timeout = _read_float("REMOTE_START_TIMEOUT_SECONDS", 30.0)

    output_raw = (os.environ.get("TRANSCRIPT_OUTPUT_DIR") or "").strip()
    output_dir = Path(output_raw).expanduser() if output_raw else None

    return InterviewSettings(
        api_key=api_key,
        sdk_path=sdk_path,
        sdk_wait_attempts=_read_int("SDK_WAIT_ATTEMPTS", 10),
        sdk_wait_interval_ms=_read_int("SDK_WAIT_INTERVAL_MS", 500, minimum=1),
        permission_settle_seconds=_read_float("PERMISSION_SETTLE_SECONDS", 1.5),
        remote_start_timeout=timeout or None,
        transcript_output_dir=output_dir,
        log_outbound_calls=(os.environ.get("LOG_OUTBOUND_CALLS") or "").strip().lower()
        in _TRUE_VALUES,
    )


def configure_logging(level: int | str = logging.INFO) -> None:
    """Apply the project's log format to the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
