"""Exception types raised by the converter."""

from __future__ import annotations


class ConverterError(RuntimeError):
    """Base class for converter failures."""


class InputError(ConverterError):
    """Raised when an input file is missing, unreadable, or empty."""


class ConversionError(ConverterError):
    """Raised when a whole conversion job cannot produce any output."""


class TranscoderError(ConverterError):
    """Raised when the external ebook conversion tool is missing or fails."""


class AssemblyError(ConverterError):
    """Raised when the ebook container cannot be written."""


__all__ = [
    "AssemblyError",
    "ConversionError",
    "ConverterError",
    "InputError",
    "TranscoderError",
]
