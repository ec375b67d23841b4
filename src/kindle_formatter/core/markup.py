"""HTML tree helpers shared by the template and normalization stages."""

from __future__ import annotations

import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Comment, NavigableString, PageElement, Tag

__all__ = [
    "class_string",
    "content_root",
    "find_div",
    "inner_html",
    "parse",
    "replace_text",
]

PARSER = "html.parser"


def parse(html: str | None) -> BeautifulSoup:
    """Parse markup with the standard library backed parser."""
    return BeautifulSoup(html or "", PARSER)


def content_root(soup: BeautifulSoup) -> Tag:
    """Return ``<body>`` when present, else the whole document."""
    body = soup.body
    return body if body is not None else soup


def inner_html(tag: Tag | None) -> str:
    """Serialize the children of ``tag``."""
    if tag is None:
        return ""
    return tag.decode_contents()


def class_string(tag: Tag) -> str:
    """Return the ``class`` attribute as one space separated string."""
    value = tag.get("class")
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return " ".join(value)


def find_div(
    scope: Tag, pattern: str, *, attribute: str = "class", exact: bool = False
) -> Tag | None:
    """Find the first ``<div>`` whose attribute matches ``pattern``.

    With ``exact`` the whole attribute value must match, otherwise a
    substring search is done.
    """
    regex = re.compile(rf"^(?:{pattern})$" if exact else pattern, re.IGNORECASE)
    for tag in scope.find_all("div"):
        value = class_string(tag) if attribute == "class" else str(tag.get(attribute, ""))
        if value and regex.search(value):
            return tag
    return None


def replace_text(
    scope: Tag,
    pattern: re.Pattern[str],
    build: Callable[[re.Match[str]], PageElement | str | None],
    *,
    skip_inside: tuple[str, ...] = ("script", "style"),
) -> int:
    """Replace regex matches inside text nodes with built nodes.

    ``build`` returns the replacement, or ``None`` to keep the match as is.
    Returns the number of replaced matches.
    """
    replaced = 0
    for text_node in list(scope.find_all(string=pattern)):
        if isinstance(text_node, Comment) or not isinstance(text_node, NavigableString):
            continue
        if text_node.find_parent(list(skip_inside)) is not None:
            continue
        text = str(text_node)
        pieces: list[PageElement | str] = []
        cursor = 0
        changed = False
        for match in pattern.finditer(text):
            replacement = build(match)
            if replacement is None:
                continue
            pieces.append(text[cursor : match.start()])
            pieces.append(replacement)
            cursor = match.end()
            changed = True
            replaced += 1
        if not changed:
            continue
        pieces.append(text[cursor:])
        nodes = [piece for piece in pieces if not isinstance(piece, str) or piece]
        if nodes:
            text_node.replace_with(*nodes)
        else:
            text_node.extract()
    return replaced
