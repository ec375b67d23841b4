"""Tests for newsletter publisher detection."""

from __future__ import annotations

from kindle_formatter.classification import (
    GENERIC,
    NewsletterClassifier,
    NewsletterSample,
    PublisherSignature,
    newsletter_display_name,
)
from kindle_formatter.core.models import ClassificationResult, ParsedMessage


def test_stratechery_issue_is_detected() -> None:
    sample = NewsletterSample(
        subject="Stratechery: Something",
        sender="news@stratechery.com",
        html='<div class="entry-content"><p>Daily update.</p></div>',
    )

    result = NewsletterClassifier().classify(sample)

    assert result.type == "stratechery"
    assert result.display_name == "Stratechery"
    assert result.confidence >= 30


def test_missing_input_falls_back_to_generic() -> None:
    classifier = NewsletterClassifier()

    assert classifier.classify(None) == ClassificationResult("generic", "Newsletter", 0)
    assert classifier.classify_message(None) is GENERIC
    assert classifier.classify(NewsletterSample()) == GENERIC


def test_classification_is_deterministic() -> None:
    message = ParsedMessage(
        subject="Axios AM: Big news",
        sender="Mike Allen <newsletter@axios.com>",
        date="",
        html_body='<div class="story"><p>Go deeper</p></div>',
        text_body="Smart Brevity from axios.com",
    )
    classifier = NewsletterClassifier()

    first = classifier.classify_message(message)
    second = classifier.classify_message(message)

    assert first == second
    assert first.type == "axios"


def test_substack_display_name_comes_from_subject() -> None:
    sample = NewsletterSample(
        subject="Platformer - The week in AI",
        sender="Platformer <platformer@substack.com>",
        html='<div class="post-content"><p>Subscribe now</p></div>',
    )

    result = NewsletterClassifier().classify(sample)

    assert result.type == "substack"
    assert result.display_name == "Platformer"


def test_equal_scores_keep_the_earlier_signature() -> None:
    signatures = (
        PublisherSignature(type="first", display_name="First", subject_patterns=("weekly",)),
        PublisherSignature(type="second", display_name="Second", subject_patterns=("weekly",)),
    )
    classifier = NewsletterClassifier(signatures=signatures)

    result = classifier.classify(NewsletterSample(subject="Weekly digest"))

    assert result.type == "first"
    assert result.confidence == 20


def test_failing_signature_returns_generic() -> None:
    broken = PublisherSignature(
        type="broken",
        display_name="Broken",
        sender_patterns=None,  # type: ignore[arg-type]
    )
    classifier = NewsletterClassifier(signatures=(broken,))

    assert classifier.classify(NewsletterSample(sender="a@b.com")) == GENERIC


def test_generic_display_names() -> None:
    assert newsletter_display_name("generic", "Morning Brew: Coffee edition") == "Morning Brew"
    assert newsletter_display_name("generic", "Lenny - Product tips") == "Lenny"
    assert newsletter_display_name("generic", "Short subject") == "Short subject"
    assert newsletter_display_name("generic", "x" * 60) == "Newsletter"
    assert newsletter_display_name("substack", "No separator") == "Substack Newsletter"
