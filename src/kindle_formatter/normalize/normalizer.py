"""Universal Kindle-safe rewrite of newsletter HTML.

The normalizer parses the document once and applies an ordered list of
tree rewrite rules. Every rule is guarded: when one raises, the tree is
restored to the state before that rule and the remaining rules still run.
Nodes produced by the rewrite carry a ``data-kindle`` marker so a second
pass leaves them alone, which makes normalization a fixed point.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Comment, NavigableString, PageElement, Tag

from ..core.markup import class_string, content_root, inner_html, parse, replace_text
from ..core.models import ImageRecord

LOGGER = logging.getLogger(__name__)

MARKER = "data-kindle"
EMPTY_DOCUMENT = "<p>No content available for this newsletter.</p>"

ALLOWED_STYLE_PREFIXES = ("text-align", "display", "margin", "padding")
DATA_TABLE_STYLE = "width:100%; margin:1em 0; border-collapse:collapse"
LAYOUT_TABLE_STYLE = "width:100%; margin:0.5em 0"
ROW_STYLE = "margin:0.2em 0; display:flex; flex-wrap:wrap"
CELL_STYLE = "flex:1; min-width:50%; padding:0.2em"
LIST_STYLE = "margin-left:1em; padding-left:1em; max-width:100%"
QUOTE_STYLE = (
    "margin:1em 0 1em 1em; padding-left:1em; border-left:3px solid #ccc; "
    "font-style:italic; max-width:100%"
)
IMAGE_STYLE = "max-width:100%; height:auto !important; display:block; margin:1em auto"

_CONTENT_TAGS = ("img", "hr", "iframe", "video", "audio", "svg", "object", "embed", "picture")
_HEADINGS = re.compile(r"^h[1-6]$")
_BARE_URL = re.compile(r"https?://[^\s<>\"']+")
_PLACEHOLDER = re.compile(r"\[Image:([^\]]+)\]|\[?Newsletter image\]?", re.IGNORECASE)
_SLUG_DROP = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_INLINE_TAGS = frozenset(
    {"a", "abbr", "b", "cite", "code", "em", "i", "img", "mark", "q", "s", "small",
     "span", "strong", "sub", "sup", "u", "br"}
)


@dataclass(slots=True)
class RewriteContext:
    """Per-document state shared by the rewrite rules."""

    images: tuple[ImageRecord, ...] = ()
    placeholders_seen: set[str] = field(default_factory=set)

    @property
    def usable_images(self) -> list[ImageRecord]:
        """Images that may stand in for text placeholders.

        Attachments the markup never references come first; when there are
        none every non-tracking image is a candidate.
        """
        candidates = [
            record
            for record in self.images
            if not record.is_tracking_candidate and record.src
        ]
        unreferenced = [record for record in candidates if not record.is_inline]
        return unreferenced or candidates


RewriteRule = Callable[[BeautifulSoup, RewriteContext], None]


def _is_marked(tag: Tag) -> bool:
    return tag.has_attr(MARKER)


def _is_blank(tag: Tag) -> bool:
    if tag.find(_CONTENT_TAGS) is not None:
        return False
    return not tag.get_text().strip()


def _remove_blank(soup: BeautifulSoup, names: Sequence[str]) -> int:
    removed = 0
    for tag in reversed(soup.find_all(list(names))):
        if tag.decomposed or _is_marked(tag):
            continue
        if _is_blank(tag):
            tag.decompose()
            removed += 1
    return removed


def strip_scripts_and_comments(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Drop ``<script>``, ``<style>`` and every comment."""
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()


def unwrap_font_tags(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Replace ``<font>`` elements by their content."""
    for tag in soup.find_all("font"):
        tag.unwrap()


def filter_inline_styles(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Keep only alignment, display, margin and padding declarations."""
    for tag in soup.find_all(style=True):
        if _is_marked(tag):
            continue
        declarations = [part.strip() for part in str(tag["style"]).split(";")]
        kept = [
            part
            for part in declarations
            if part and part.lower().startswith(ALLOWED_STYLE_PREFIXES)
        ]
        if kept:
            tag["style"] = "; ".join(kept)
        else:
            del tag["style"]


def remove_spacers(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Remove tables, divs and spans holding only whitespace or breaks."""
    removed = _remove_blank(soup, ("table", "div", "span"))
    if removed:
        LOGGER.debug("Removed %d spacer element(s)", removed)


def _is_data_table(table: Tag) -> bool:
    classes = class_string(table).lower()
    return table.has_attr("border") or "data" in classes or "table" in classes


def _as_div(tag: Tag, role: str, style: str) -> None:
    kept = {key: tag[key] for key in ("id", "class") if tag.has_attr(key)}
    tag.name = "div"
    tag.attrs = {**kept, "style": style, MARKER: role}


def _flatten_layout_table(table: Tag) -> None:
    for section in table.find_all(["thead", "tbody", "tfoot"]):
        if section.find_parent("table") is table:
            section.unwrap()
    for row in table.find_all("tr"):
        if row.find_parent("table") is not table:
            continue
        for cell in row.find_all(["td", "th"], recursive=False):
            if _is_blank(cell):
                cell.decompose()
            else:
                _as_div(cell, "cell", CELL_STYLE)
        if _is_blank(row):
            row.decompose()
        else:
            _as_div(row, "row", ROW_STYLE)
    if _is_blank(table):
        table.decompose()
    else:
        _as_div(table, "layout", LAYOUT_TABLE_STYLE)


def reclassify_tables(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Keep data tables as tables and turn layout tables into flex divs."""
    for table in soup.find_all("table"):
        if table.decomposed or _is_marked(table):
            continue
        if _is_data_table(table):
            table["style"] = DATA_TABLE_STYLE
            table[MARKER] = "table"
        else:
            _flatten_layout_table(table)


def strip_bare_urls(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Remove printed URLs that are not also the target of a link."""
    linked = {str(anchor["href"]) for anchor in soup.find_all("a", href=True)}

    def _build(match: re.Match[str]) -> str | None:
        return None if match.group(0) in linked else ""

    if replace_text(soup, _BARE_URL, _build, skip_inside=("a", "script", "style")):
        _remove_blank(soup, ("div", "span"))


def _declarations(style: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for part in style.split(";"):
        prop, separator, value = part.partition(":")
        if separator and prop.strip():
            parsed[prop.strip().lower()] = value.strip()
    return parsed


def _merge_style(tag: Tag, addition: str) -> None:
    merged = _declarations(str(tag.get("style", "")))
    merged.update(_declarations(addition))
    tag["style"] = "; ".join(f"{prop}:{value}" for prop, value in merged.items())


def add_responsive_styles(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Constrain lists, quotes and images to the page width."""
    for tag in soup.find_all(["ul", "ol", "blockquote"]):
        if _is_marked(tag):
            continue
        _merge_style(tag, QUOTE_STYLE if tag.name == "blockquote" else LIST_STYLE)
        tag[MARKER] = "block"
    for img in soup.find_all("img"):
        if _is_marked(img):
            continue
        if "max-width" not in str(img.get("style", "")):
            _merge_style(img, IMAGE_STYLE)
        if not img.get("alt"):
            img["alt"] = "Newsletter image"
        img[MARKER] = "media"


def description_hash(description: str) -> int:
    """32-bit rolling string hash, stable across runs and platforms."""
    value = 0
    for char in description:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def resolve_placeholders(soup: BeautifulSoup, context: RewriteContext) -> None:
    """Swap ``[Image: ...]`` and ``Newsletter image`` text for real images."""
    images = context.usable_images
    if not images:
        return

    def _build(match: re.Match[str]) -> PageElement | str:
        description = (match.group(1) or "Newsletter image").strip()
        if description in context.placeholders_seen:
            return ""
        context.placeholders_seen.add(description)
        record = images[abs(description_hash(description)) % len(images)]
        LOGGER.debug("Placeholder '%s' resolved to image %s", description, record.id)
        return soup.new_tag(
            "img",
            attrs={
                "src": record.src,
                "alt": description,
                "class": "newsletter-image",
                "style": IMAGE_STYLE,
                "data-img-id": record.id,
                MARKER: "media",
            },
        )

    if replace_text(soup, _PLACEHOLDER, _build, skip_inside=("script", "style", "a")):
        _remove_blank(soup, ("div", "span"))


def _slug(text: str) -> str:
    cleaned = _SLUG_DROP.sub("", text.strip().lower())
    return _WHITESPACE.sub("-", cleaned)


def anchor_headings(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Give every heading a stable, unique ``id``."""
    used: set[str] = set()
    for heading in soup.find_all(_HEADINGS):
        base = f"heading-{heading.name[1]}-{_slug(heading.get_text())[:40]}"
        candidate = base
        suffix = 2
        while candidate in used:
            candidate = f"{base}-{suffix}"
            suffix += 1
        used.add(candidate)
        heading["id"] = candidate


def _is_whitespace(node: PageElement) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, Comment) and not node.strip()


def _segments(parent: Tag) -> tuple[list[list[PageElement]], bool]:
    """Split children of ``parent`` at runs of two or more ``<br>``."""
    segments: list[list[PageElement]] = [[]]
    children = list(parent.children)
    found = False
    index = 0
    while index < len(children):
        node = children[index]
        if isinstance(node, Tag) and node.name == "br":
            run = [node]
            cursor = index + 1
            while cursor < len(children):
                candidate = children[cursor]
                if isinstance(candidate, Tag) and candidate.name == "br":
                    run.append(candidate)
                elif not _is_whitespace(candidate):
                    break
                cursor += 1
            if len(run) >= 2:
                found = True
                for item in children[index:cursor]:
                    item.extract()
                segments.append([])
                index = cursor
                continue
        segments[-1].append(node)
        index += 1
    return segments, found


def _is_inline(node: PageElement) -> bool:
    if isinstance(node, NavigableString):
        return True
    return isinstance(node, Tag) and node.name in _INLINE_TAGS


def _trimmed(segment: list[PageElement]) -> list[PageElement]:
    while segment and _is_whitespace(segment[0]):
        segment = segment[1:]
    while segment and _is_whitespace(segment[-1]):
        segment = segment[:-1]
    return segment


def collapse_breaks(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Turn runs of ``<br>`` into paragraph boundaries."""
    parents = {id(br.parent): br.parent for br in soup.find_all("br") if br.parent is not None}
    for parent in parents.values():
        if parent.decomposed:
            continue
        segments, found = _segments(parent)
        if not found:
            continue
        if parent.name == "p":
            _split_paragraph(soup, parent, segments)
        else:
            _wrap_segments(soup, parent, segments)
            if _is_blank(parent) and not _is_marked(parent) and parent.name in ("div", "span"):
                parent.decompose()


def _split_paragraph(
    soup: BeautifulSoup, paragraph: Tag, segments: list[list[PageElement]]
) -> None:
    anchor = paragraph
    for segment in segments[1:]:
        nodes = _trimmed(segment)
        if not nodes:
            continue
        new_paragraph = soup.new_tag("p")
        for node in nodes:
            new_paragraph.append(node.extract())
        anchor.insert_after(new_paragraph)
        anchor = new_paragraph


def _wrap_run(soup: BeautifulSoup, nodes: list[PageElement]) -> None:
    nodes = _trimmed(nodes)
    if not nodes:
        return
    paragraph = soup.new_tag("p")
    nodes[0].insert_before(paragraph)
    for node in nodes:
        paragraph.append(node.extract())


def _inline_run(nodes: Iterable[PageElement]) -> list[PageElement]:
    run: list[PageElement] = []
    for node in nodes:
        if not _is_inline(node):
            break
        run.append(node)
    return run


def _wrap_segments(soup: BeautifulSoup, parent: Tag, segments: list[list[PageElement]]) -> None:
    last = len(segments) - 1
    for position, segment in enumerate(segments):
        nodes = _trimmed(segment)
        if not nodes:
            continue
        if all(_is_inline(node) for node in nodes):
            _wrap_run(soup, nodes)
            continue
        # blocks inside the segment; wrap only the text touching each removed break
        if position > 0:
            _wrap_run(soup, _inline_run(nodes))
        if position < last:
            _wrap_run(soup, list(reversed(_inline_run(reversed(nodes)))))


def mark_first_paragraphs(soup: BeautifulSoup, _context: RewriteContext) -> None:
    """Flag the paragraph right after each heading as unindented."""
    for heading in soup.find_all(_HEADINGS):
        for sibling in heading.next_siblings:
            if _is_whitespace(sibling):
                continue
            if isinstance(sibling, Tag) and sibling.name == "p":
                classes = sibling.get("class") or []
                if isinstance(classes, str):
                    classes = classes.split()
                if "first-paragraph" not in classes:
                    sibling["class"] = [*classes, "first-paragraph"]
            break


DEFAULT_RULES: tuple[tuple[str, RewriteRule], ...] = (
    ("strip-scripts", strip_scripts_and_comments),
    ("unwrap-font", unwrap_font_tags),
    ("filter-styles", filter_inline_styles),
    ("remove-spacers", remove_spacers),
    ("reclassify-tables", reclassify_tables),
    ("strip-bare-urls", strip_bare_urls),
    ("responsive-styles", add_responsive_styles),
    ("resolve-placeholders", resolve_placeholders),
    ("anchor-headings", anchor_headings),
    ("collapse-breaks", collapse_breaks),
    ("first-paragraphs", mark_first_paragraphs),
)


class ContentNormalizer:
    """Apply the ordered Kindle-safe rewrite rules to a document."""

    def __init__(self, rules: Sequence[tuple[str, RewriteRule]] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    def normalize(self, html: str | None, images: Iterable[ImageRecord] = ()) -> str:
        """Return the Kindle-safe rendition of ``html``; never raises."""
        if not html or not html.strip():
            return EMPTY_DOCUMENT
        try:
            soup = parse(html)
            if soup.body is not None:
                soup = parse(inner_html(content_root(soup)))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Could not parse document for normalization: %s", exc)
            return html

        context = RewriteContext(images=tuple(images))
        for name, rule in self._rules:
            snapshot = str(soup)
            try:
                rule(soup, context)
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.error("Rewrite rule %s failed: %s", name, exc, exc_info=True)
                soup = parse(snapshot)

        # removed nodes leave whitespace neighbours that a reparse would merge
        result = str(parse(str(soup))).strip()
        return result or EMPTY_DOCUMENT


__all__ = [
    "DEFAULT_RULES",
    "MARKER",
    "ContentNormalizer",
    "RewriteContext",
    "description_hash",
]
