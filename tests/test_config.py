"""
Tests for environment-driven settings.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import logging

import pytest

from voice_interview.config import LOG_FORMAT, configure_logging, load_settings


ENV_VARS = (
    "VAPI_API_KEY",
    "VITE_VAPI_API_KEY",
    "VOICE_SDK_PATH",
    "SDK_WAIT_ATTEMPTS",
    "SDK_WAIT_INTERVAL_MS",
    "PERMISSION_SETTLE_SECONDS",
    "REMOTE_START_TIMEOUT_SECONDS",
    "TRANSCRIPT_OUTPUT_DIR",
    "LOG_OUTBOUND_CALLS",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear every setting and point the .env lookup at an empty file."""
    for name in ENV_VARS:
        # setenv first so teardown restores the original value even after
        # load_dotenv has written into os.environ
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    return env_file


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self, clean_env):
        settings = load_settings(clean_env)

        assert settings.api_key == ""
        assert settings.sdk_path is None
        assert settings.sdk_wait_attempts == 10
        assert settings.sdk_wait_interval_ms == 500
        assert settings.permission_settle_seconds == 1.5
        assert settings.remote_start_timeout == 30.0
        assert settings.transcript_output_dir is None
        assert settings.log_outbound_calls is False

    def test_reads_environment(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("VAPI_API_KEY", "  pk_live_abc  ")
        monkeypatch.setenv("VOICE_SDK_PATH", "vapi_sdk:Vapi")
        monkeypatch.setenv("SDK_WAIT_ATTEMPTS", "4")
        monkeypatch.setenv("SDK_WAIT_INTERVAL_MS", "250")
        monkeypatch.setenv("PERMISSION_SETTLE_SECONDS", "0")
        monkeypatch.setenv("TRANSCRIPT_OUTPUT_DIR", str(tmp_path / "transcripts"))
        monkeypatch.setenv("LOG_OUTBOUND_CALLS", "true")

        settings = load_settings(clean_env)

        assert settings.api_key == "pk_live_abc"
        assert settings.sdk_path == "vapi_sdk:Vapi"
        assert settings.sdk_wait_attempts == 4
        assert settings.sdk_wait_interval_ms == 250
        assert settings.permission_settle_seconds == 0.0
        assert settings.transcript_output_dir == tmp_path / "transcripts"
        assert settings.log_outbound_calls is True

    def test_vite_key_alias(self, clean_env, monkeypatch):
        monkeypatch.setenv("VITE_VAPI_API_KEY", "pk_from_vite")

        assert load_settings(clean_env).api_key == "pk_from_vite"

    def test_zero_timeout_disables(self, clean_env, monkeypatch):
        monkeypatch.setenv("REMOTE_START_TIMEOUT_SECONDS", "0")

        assert load_settings(clean_env).remote_start_timeout is None

    def test_env_file_is_loaded(self, clean_env, monkeypatch):
        clean_env.write_text("VAPI_API_KEY=pk_dotenv\nSDK_WAIT_ATTEMPTS=7\n", encoding="utf-8")

        settings = load_settings(clean_env)

        assert settings.api_key == "pk_dotenv"
        assert settings.sdk_wait_attempts == 7

    def test_environment_wins_over_env_file(self, clean_env, monkeypatch):
        clean_env.write_text("VAPI_API_KEY=pk_dotenv\n", encoding="utf-8")
        monkeypatch.setenv("VAPI_API_KEY", "pk_shell")

        assert load_settings(clean_env).api_key == "pk_shell"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("SDK_WAIT_ATTEMPTS", "ten"),
            ("SDK_WAIT_ATTEMPTS", "-1"),
            ("SDK_WAIT_INTERVAL_MS", "0"),
            ("PERMISSION_SETTLE_SECONDS", "soon"),
            ("REMOTE_START_TIMEOUT_SECONDS", "-5"),
        ],
    )
    def test_invalid_numbers_fail_fast(self, clean_env, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(RuntimeError, match=name):
            load_settings(clean_env)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_uses_project_format(self, monkeypatch):
        captured = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

        configure_logging("DEBUG")

        assert captured == {"level": "DEBUG", "format": LOG_FORMAT}
