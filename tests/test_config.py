"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from kindle_formatter.core.config import load_app_settings
from kindle_formatter.core.models import FormatPreference


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.images.timeout_seconds == 10.0
    assert settings.images.fetch_mode == "blocking"
    assert settings.conversion.format_preference is FormatPreference.AUTO
    assert settings.conversion.output_dir == Path("./output")
    assert settings.classifier.html_sample_chars == 10_000


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "KINDLE_FORMATTER_IMAGES__TIMEOUT_SECONDS=5\n"
        "KINDLE_FORMATTER_IMAGES__FETCH_REMOTE=false\n"
        "KINDLE_FORMATTER_CONVERSION__FORMAT_PREFERENCE=epub\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.images.timeout_seconds == 5.0
    assert settings.images.fetch_remote is False
    assert settings.conversion.format_preference is FormatPreference.EPUB


def test_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Process environment variables take precedence over the dotenv file."""

    env_file = tmp_path / "test.env"
    env_file.write_text("KINDLE_FORMATTER_LOGGING__LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("KINDLE_FORMATTER_LOGGING__LEVEL", "WARNING")

    settings = load_app_settings(env_file=env_file)
    assert settings.logging.level == "WARNING"


def test_empty_value_becomes_none(tmp_path: Path) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("KINDLE_FORMATTER_CONVERSION__CALIBRE_PATH=\n", encoding="utf-8")

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.conversion.calibre_path is None


def test_unprefixed_variables_are_ignored(tmp_path: Path) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("IMAGES__TIMEOUT_SECONDS=1\n", encoding="utf-8")

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.images.timeout_seconds == 10.0
