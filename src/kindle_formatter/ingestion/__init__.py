"""Ingestion pipeline components."""

from .parser import EmlParser, error_message

__all__ = ["EmlParser", "error_message"]
