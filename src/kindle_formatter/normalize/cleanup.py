"""Removal of newsletter noise ahead of template transforms."""

from __future__ import annotations

import html as html_lib
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from ..core.markup import class_string, parse
from ..images.resolver import classify_tracking_pixel

LOGGER = logging.getLogger(__name__)

_FOOTER_MARKERS = re.compile(r"footer|unsubscribe", re.IGNORECASE)
_SOCIAL_MARKERS = re.compile(r"social|share", re.IGNORECASE)
_HIDDEN_STYLE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
_GO_DEEPER = re.compile(r"^go-?deeper$", re.IGNORECASE)

_VIEW_IN_BROWSER = re.compile(r"View (?:this|in) browser[\s\S]*?\)", re.IGNORECASE)
_PARENTHESIZED_URL = re.compile(r"\(\s*https?://[^\s)]+\s*\)", re.IGNORECASE)
_ACCESS_TOKEN = re.compile(r"\?access_token=[^\s)&]+", re.IGNORECASE)
_ASTERISK_DIVIDER = re.compile(r"\*{5,}")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_FOOTER_TEXT = re.compile(r"(?:unsubscribe|subscription|privacy policy)[\s\S]*$", re.IGNORECASE)

DIVIDER = "*****"


def looks_like_html(content: str) -> bool:
    """Heuristic used when the caller does not say what ``content`` is."""
    lowered = content.lower()
    return "<html" in lowered or "<body" in lowered or bool(re.search(r"<[a-z][^>]*>", lowered))


def _attribute_marker(tag: Tag) -> str:
    return f"{tag.get('id', '')} {class_string(tag)}"


def _strip_axios_navigation(soup: BeautifulSoup) -> None:
    for nav in soup.find_all("nav"):
        nav.decompose()
    for tag in soup.find_all("div"):
        if any(_GO_DEEPER.match(value) for value in _attribute_marker(tag).split()):
            tag.attrs = {
                "class": ["axios-deeper"],
                "style": "margin:1em 0; padding:0.5em; background:#f5f5f5; "
                "border-left:3px solid #666;",
            }


def _restyle_bulletin_briefs(soup: BeautifulSoup) -> None:
    for tag in soup.find_all("div", class_="headline"):
        tag.name = "h3"
        tag.attrs = {"style": "font-weight:bold; margin-bottom:0.2em;"}
    for tag in soup.find_all("div", class_="brief"):
        tag.attrs = {"style": "margin-left:1em; margin-bottom:1em;"}


def _drop_substack_prompts(soup: BeautifulSoup) -> None:
    for tag in soup.find_all("div", class_=["subscribe-prompt", "subscription-widget"]):
        if not tag.decomposed:
            tag.decompose()


@dataclass(frozen=True, slots=True)
class MicroRule:
    """Optional publisher cleanup, triggered by detected type or body marker.

    ``skip_types`` lists newsletter types whose own template already
    handles the markup this rule rewrites.
    """

    name: str
    apply: Callable[[BeautifulSoup], None]
    types: tuple[str, ...] = ()
    markers: tuple[str, ...] = ()
    skip_types: tuple[str, ...] = ()

    def applies(self, detected_type: str, content: str) -> bool:
        """Return ``True`` when the rule should run for this document."""
        if detected_type in self.skip_types:
            return False
        if detected_type in self.types:
            return True
        return any(marker in content for marker in self.markers)


DEFAULT_MICRO_RULES: tuple[MicroRule, ...] = (
    MicroRule(
        name="axios-navigation",
        apply=_strip_axios_navigation,
        types=("axios",),
        markers=("axios", "Axios"),
    ),
    MicroRule(
        name="bulletin-briefs",
        apply=_restyle_bulletin_briefs,
        markers=("bulletin", "Bulletin"),
        skip_types=("bulletinmedia",),
    ),
    MicroRule(
        name="substack-prompts",
        apply=_drop_substack_prompts,
        types=("substack",),
        markers=("substack", "Substack"),
    ),
)


class ContentCleaner:
    """Strip tracking images, footers, hidden and social blocks."""

    def __init__(self, micro_rules: Sequence[MicroRule] = DEFAULT_MICRO_RULES) -> None:
        self._micro_rules = tuple(micro_rules)

    def clean(
        self,
        content: str | None,
        detected_type: str = "generic",
        *,
        is_html: bool | None = None,
    ) -> str:
        """Return ``content`` with newsletter noise removed.

        On any unexpected error the input is returned unchanged.
        """
        if not content:
            return ""
        if is_html is None:
            is_html = looks_like_html(content)
        try:
            if is_html:
                return self._clean_html(content, detected_type)
            return clean_text(content)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Error cleaning up content: %s", exc, exc_info=True)
            return content

    def _clean_html(self, content: str, detected_type: str) -> str:
        soup = parse(content)
        removed = 0
        for img in soup.find_all("img"):
            if classify_tracking_pixel(str(img.get("src", "")), img):
                img.decompose()
                removed += 1
        for tag in soup.find_all(True):
            if tag.decomposed:
                continue
            if _HIDDEN_STYLE.search(str(tag.get("style", ""))):
                tag.decompose()
                removed += 1
        for tag in soup.find_all("div"):
            if tag.decomposed:
                continue
            marker = _attribute_marker(tag)
            if _FOOTER_MARKERS.search(marker) or _SOCIAL_MARKERS.search(marker):
                tag.decompose()
                removed += 1
        LOGGER.debug("Cleanup removed %d element(s)", removed)

        for rule in self._micro_rules:
            if rule.applies(detected_type, content):
                LOGGER.debug("Applying %s cleanup", rule.name)
                rule.apply(soup)
        return str(soup).strip()


def clean_text(content: str) -> str:
    """Remove plain text boilerplate such as browser links and footers."""
    cleaned = _VIEW_IN_BROWSER.sub("", content)
    cleaned = _PARENTHESIZED_URL.sub("", cleaned)
    cleaned = _ACCESS_TOKEN.sub("", cleaned)
    cleaned = _ASTERISK_DIVIDER.sub(DIVIDER, cleaned)
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    cleaned = _FOOTER_TEXT.sub("", cleaned)
    return cleaned.strip()


def text_to_html(text: str | None) -> str:
    """Wrap plain text as escaped HTML, keeping line breaks."""
    if not text:
        return ""
    escaped = html_lib.escape(text.replace("\r\n", "\n"))
    lines = escaped.split("\n")
    return "<div>" + "<br>".join(lines) + "</div>"


__all__ = [
    "DEFAULT_MICRO_RULES",
    "ContentCleaner",
    "MicroRule",
    "clean_text",
    "looks_like_html",
    "text_to_html",
]
