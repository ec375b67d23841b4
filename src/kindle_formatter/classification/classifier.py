"""Pattern-scored detection of the publisher behind a newsletter."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.config import ClassifierSettings
from ..core.models import ClassificationResult, ParsedMessage
from .signatures import DEFAULT_SIGNATURES, PublisherSignature

LOGGER = logging.getLogger(__name__)

GENERIC = ClassificationResult()

_SENDER_DOMAIN = re.compile(r"@([^>]+)")

DOMAIN_SCORE = 5
SENDER_SCORE = 3
SUBJECT_SCORE = 2
BODY_SCORE = 1
STRUCTURE_SCORE = 3


@dataclass(frozen=True, slots=True)
class NewsletterSample:
    """Fields inspected by the classifier."""

    subject: str = ""
    sender: str = ""
    html: str = ""
    text: str = ""

    @classmethod
    def from_message(cls, message: ParsedMessage) -> NewsletterSample:
        """Build a sample from a parsed email."""
        return cls(
            subject=message.subject or "",
            sender=message.sender or "",
            html=message.html_body or "",
            text=message.text_body or "",
        )


def newsletter_display_name(newsletter_type: str, subject: str | None) -> str:
    """Return a friendly name for a detected newsletter."""
    subject = subject or ""
    if newsletter_type == "substack":
        head, separator, _ = subject.partition(" - ")
        return head if separator and head else "Substack Newsletter"
    for signature in DEFAULT_SIGNATURES:
        if signature.type == newsletter_type:
            return signature.display_name
    if ":" in subject:
        return subject.split(":", 1)[0]
    if " - " in subject:
        return subject.split(" - ", 1)[0]
    if subject and len(subject) < 40:
        return subject
    return "Newsletter"


class NewsletterClassifier:
    """Score every registered publisher and pick the strictly best one."""

    def __init__(
        self,
        settings: ClassifierSettings | None = None,
        signatures: Sequence[PublisherSignature] = DEFAULT_SIGNATURES,
    ) -> None:
        self._settings = settings or ClassifierSettings()
        self._signatures = tuple(signatures)

    def classify_message(self, message: ParsedMessage | None) -> ClassificationResult:
        """Classify a parsed email."""
        if message is None:
            return GENERIC
        return self.classify(NewsletterSample.from_message(message))

    def classify(self, sample: NewsletterSample | None) -> ClassificationResult:
        """Return the detected publisher; never raises."""
        if sample is None:
            return GENERIC
        try:
            return self._classify(sample)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Error detecting newsletter type: %s", exc)
            return GENERIC

    def _classify(self, sample: NewsletterSample) -> ClassificationResult:
        best = GENERIC
        for signature in self._signatures:
            score = self.score(signature, sample)
            confidence = min(100, score * 10)
            if confidence > best.confidence:
                best = ClassificationResult(
                    type=signature.type,
                    display_name=newsletter_display_name(signature.type, sample.subject),
                    confidence=confidence,
                )
        LOGGER.info(
            "Detected newsletter type %s (%s) with confidence %d",
            best.type,
            best.display_name,
            best.confidence,
        )
        return best

    def score(self, signature: PublisherSignature, sample: NewsletterSample) -> int:
        """Return the raw score of ``signature`` for ``sample``."""
        sender = sample.sender.lower()
        subject = sample.subject.lower()
        text_sample = sample.text[: self._settings.text_sample_chars]
        html_sample = sample.html[: self._settings.html_sample_chars]
        searchable = " ".join((sample.subject, sample.sender, text_sample)).lower()
        html_lower = html_sample.lower()

        score = 0
        domain_match = _SENDER_DOMAIN.search(sample.sender)
        if domain_match:
            sender_domain = domain_match.group(1).lower()
            if any(domain in sender_domain for domain in signature.domains):
                score += DOMAIN_SCORE

        if sender:
            score += SENDER_SCORE * sum(
                1 for pattern in signature.sender_patterns if pattern.lower() in sender
            )
        if subject:
            score += SUBJECT_SCORE * sum(
                1 for pattern in signature.subject_patterns if pattern.lower() in subject
            )
        if searchable.strip():
            score += BODY_SCORE * sum(
                1 for pattern in signature.body_patterns if pattern.lower() in searchable
            )
        if html_sample:
            score += BODY_SCORE * sum(
                1 for pattern in signature.body_patterns if pattern.lower() in html_lower
            )
            if any(marker in html_sample for marker in signature.structural_markers):
                score += STRUCTURE_SCORE
        return score


__all__ = [
    "GENERIC",
    "NewsletterClassifier",
    "NewsletterSample",
    "newsletter_display_name",
]
