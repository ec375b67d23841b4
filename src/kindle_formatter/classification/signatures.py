"""Publisher signatures used for newsletter detection."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PublisherSignature:
    """Patterns identifying one newsletter publisher.

    ``structural_markers`` are matched case-sensitively against raw HTML;
    every other pattern is matched case-insensitively.
    """

    type: str
    display_name: str
    domains: tuple[str, ...] = ()
    sender_patterns: tuple[str, ...] = ()
    subject_patterns: tuple[str, ...] = ()
    body_patterns: tuple[str, ...] = ()
    structural_markers: tuple[str, ...] = ()


# Order matters: on equal scores the earlier entry wins.
DEFAULT_SIGNATURES: tuple[PublisherSignature, ...] = (
    PublisherSignature(
        type="substack",
        display_name="Substack Newsletter",
        domains=("substack.com", "substackcdn.com"),
        sender_patterns=("@substack.com",),
        body_patterns=(
            "Unsubscribe from this newsletter",
            "Subscribe now",
            "substack.com",
            'class="post-content"',
            'class="post-header"',
        ),
        structural_markers=("post-content", "post-header"),
    ),
    PublisherSignature(
        type="stratechery",
        display_name="Stratechery",
        domains=("stratechery.com",),
        sender_patterns=("Stratechery", "Ben Thompson", "@stratechery.com"),
        subject_patterns=("Stratechery",),
        body_patterns=("Stratechery", "stratechery.com", "Ben Thompson"),
        structural_markers=("entry-content", "post-body"),
    ),
    PublisherSignature(
        type="axios",
        display_name="Axios Newsletter",
        domains=("axios.com",),
        sender_patterns=("axios", "@axios.com", "newsletter@axios.com"),
        subject_patterns=("Axios",),
        body_patterns=(
            "axios",
            "axios.com",
            'class="story"',
            "go deeper",
            "axios newsletter",
        ),
        structural_markers=('class="story"', "go deeper"),
    ),
    PublisherSignature(
        type="bulletinmedia",
        display_name="Bulletin Media Briefing",
        domains=("bulletinmedia.com", "bulletin.com"),
        sender_patterns=("bulletin media", "@bulletinmedia.com", "bulletin@"),
        subject_patterns=("Daily Briefing", "Morning Briefing", "News Summary"),
        body_patterns=(
            "bulletin media",
            "morning briefing",
            "summary of",
            "news briefs",
            "bulletin intelligence",
        ),
        structural_markers=('class="headline"', 'class="brief"'),
    ),
    PublisherSignature(
        type="onetech",
        display_name="OneTech Newsletter",
        domains=("onetech.com", "1tech.com", "philliptech.com"),
        sender_patterns=(
            "onetech",
            "one tech",
            "phillip",
            "@onetech.com",
            "@philliptech.com",
        ),
        subject_patterns=("OneTech", "Tech Digest", "Phillip's Tech"),
        body_patterns=(
            "onetech newsletter",
            "tech highlights",
            "weekly tech summary",
            "phillip's tech digest",
        ),
        structural_markers=("tech digest", "onetech newsletter"),
    ),
    PublisherSignature(
        type="jeffselingo",
        display_name="Jeff Selingo Newsletter",
        domains=("jeffselingo.com", "selingo.com"),
        sender_patterns=("jeff selingo", "selingo", "@jeffselingo.com"),
        subject_patterns=("Jeff Selingo", "Higher Ed", "College"),
        body_patterns=(
            "jeff selingo",
            "higher education",
            "college admissions",
            "university trends",
            "next newsletter",
        ),
        structural_markers=("jeff selingo", "higher education"),
    ),
)


__all__ = ["DEFAULT_SIGNATURES", "PublisherSignature"]
