"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field

from .models import FormatPreference

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class ImageSettings(BaseModel):
    """Settings controlling remote image embedding."""

    fetch_remote: bool = Field(
        default=True, description="Download remote images for embedding"
    )
    fetch_mode: Literal["blocking", "background"] = Field(
        default="blocking",
        description="Await fetches before rewriting, or let them run in background",
    )
    timeout_seconds: float = Field(
        default=10.0, gt=0, description="Per-image network timeout"
    )
    overall_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Bound for the whole fetch group"
    )
    max_concurrency: int = Field(
        default=4, ge=1, description="Simultaneous image downloads"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent header for downloads"
    )


class ClassifierSettings(BaseModel):
    """Settings for newsletter detection."""

    html_sample_chars: int = Field(
        default=10_000, ge=0, description="HTML characters inspected"
    )
    text_sample_chars: int = Field(
        default=5_000, ge=0, description="Plain text characters inspected"
    )


class ConversionSettings(BaseModel):
    """Settings for ebook output and the external conversion tool."""

    format_preference: FormatPreference = Field(
        default=FormatPreference.AUTO, description="auto, epub or azw3"
    )
    ebook_convert: str = Field(
        default="ebook-convert", description="Calibre conversion command"
    )
    calibre_path: Path | None = Field(
        default=None, description="Directory containing calibre binaries"
    )
    convert_timeout_seconds: int = Field(
        default=300, ge=1, description="Timeout for one ebook-convert call"
    )
    language: str = Field(default="en", description="Book language code")
    output_dir: Path = Field(
        default=Path("./output"), description="Default output directory"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Emit key=value structured log lines"
    )
    log_file: Path | None = Field(
        default=None, description="Optional file receiving a copy of the logs"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    images: ImageSettings = Field(default_factory=ImageSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    conversion: ConversionSettings = Field(default_factory=ConversionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "KINDLE_FORMATTER_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _coerce(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value == "":
        return None
    lowercase_value = value.lower()
    if lowercase_value == "true":
        return True
    if lowercase_value == "false":
        return False
    return value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values: dict[str, Any] = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values: dict[str, Any] = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        _merge_into_tree(collected, path, _coerce(value))

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ClassifierSettings",
    "ConversionSettings",
    "ImageSettings",
    "LoggingSettings",
    "load_app_settings",
]
