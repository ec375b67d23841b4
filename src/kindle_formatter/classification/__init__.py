"""Newsletter publisher detection."""

from .classifier import (
    GENERIC,
    NewsletterClassifier,
    NewsletterSample,
    newsletter_display_name,
)
from .signatures import DEFAULT_SIGNATURES, PublisherSignature

__all__ = [
    "DEFAULT_SIGNATURES",
    "GENERIC",
    "NewsletterClassifier",
    "NewsletterSample",
    "PublisherSignature",
    "newsletter_display_name",
]
