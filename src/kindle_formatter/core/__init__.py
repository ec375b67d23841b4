"""Core utilities for configuration, logging, and shared models."""

from .config import AppSettings, ImageSettings, load_app_settings
from .errors import (
    AssemblyError,
    ConversionError,
    ConverterError,
    InputError,
    TranscoderError,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "AssemblyError",
    "ConversionError",
    "ConverterError",
    "ImageSettings",
    "InputError",
    "TranscoderError",
    "configure_logging",
    "load_app_settings",
]
