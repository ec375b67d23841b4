"""Noise removal and Kindle-safe HTML normalization."""

from .cleanup import ContentCleaner, MicroRule, text_to_html
from .normalizer import ContentNormalizer

__all__ = ["ContentCleaner", "ContentNormalizer", "MicroRule", "text_to_html"]
