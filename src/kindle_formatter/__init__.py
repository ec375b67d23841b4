"""Kindle newsletter formatter package."""

from .core import AppSettings, load_app_settings
from .pipeline import NewsletterConverter

__all__ = ["AppSettings", "NewsletterConverter", "load_app_settings"]
