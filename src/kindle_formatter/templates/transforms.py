"""Publisher specific content transforms.

Each transform takes resolved newsletter HTML and returns a reading-order
fragment: the article content with a rebuilt title header and publisher
markup restyled for Kindle. Transforms may raise; callers guard them.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from ..core.markup import class_string, content_root, find_div, inner_html, parse, replace_text

IMAGE_STYLE = "max-width:95%; height:auto !important; display:block; margin:0.5em auto;"

_MARKDOWN_IMAGE = re.compile(
    r"\[([^\]]+)\]\(([^)\s]+\.(?:jpe?g|png|gif|webp|svg))\)", re.IGNORECASE
)


def _fragment(html: str) -> BeautifulSoup:
    return parse(html)


def _remove_divs(scope: Tag, pattern: str, *, exact: bool = True) -> int:
    regex = re.compile(rf"^(?:{pattern})$" if exact else pattern, re.IGNORECASE)
    removed = 0
    for tag in scope.find_all("div"):
        if tag.decomposed:
            continue
        classes = class_string(tag)
        if classes and regex.search(classes):
            tag.decompose()
            removed += 1
    return removed


def _rename_divs(scope: Tag, pattern: str, new_class: str, *, exact: bool = False) -> None:
    regex = re.compile(rf"^(?:{pattern})$" if exact else pattern, re.IGNORECASE)
    for tag in scope.find_all("div"):
        classes = class_string(tag)
        if classes and regex.search(classes):
            tag.attrs = {"class": [new_class]}


def _blockquotes_to_divs(scope: Tag, new_class: str) -> None:
    for quote in scope.find_all("blockquote"):
        quote.name = "div"
        quote.attrs = {"class": [new_class]}


def _style_image(img: Tag, *, css_class: str | None = None) -> None:
    attrs = {
        "src": img["src"],
        "alt": img.get("alt") or "Newsletter image",
        "style": IMAGE_STYLE,
    }
    if img.has_attr("data-img-id"):
        attrs["data-img-id"] = img["data-img-id"]
    if css_class:
        attrs["class"] = [css_class]
    img.attrs = attrs


def _style_images(scope: Tag, *, css_class: str | None = None) -> None:
    for img in scope.find_all("img", src=True):
        _style_image(img, css_class=css_class)


def _captioned_figures(soup: BeautifulSoup, scope: Tag, *, css_class: str | None = None) -> None:
    for figure in scope.find_all("figure"):
        img = figure.find("img", src=True)
        if img is None:
            continue
        caption_tag = figure.find("figcaption")
        caption = inner_html(caption_tag).strip()
        block = soup.new_tag("div", attrs={"class": "figure"})
        new_img = soup.new_tag(
            "img",
            attrs={
                "src": img["src"],
                "alt": caption_tag.get_text(" ", strip=True) if caption_tag else "Figure",
            },
        )
        if img.has_attr("data-img-id"):
            new_img["data-img-id"] = img["data-img-id"]
        if css_class:
            new_img["class"] = [css_class]
        block.append(new_img)
        if caption:
            caption_div = soup.new_tag("div", attrs={"class": "image-caption"})
            caption_div.append(_fragment(caption))
            block.append(caption_div)
        figure.replace_with(block)


def _markdown_images(soup: BeautifulSoup, scope: Tag, *, css_class: str) -> None:
    def _build(match: re.Match[str]) -> Tag:
        return soup.new_tag(
            "img",
            attrs={"src": match.group(2), "alt": match.group(1), "class": css_class},
        )

    replace_text(scope, _MARKDOWN_IMAGE, _build)


def _take(tag: Tag | None) -> str:
    """Detach ``tag`` from its tree and return its inner HTML."""
    if tag is None:
        return ""
    html = inner_html(tag).strip()
    tag.extract()
    return html


def _assemble(*parts: str) -> str:
    return "\n".join(part for part in parts if part)


def stratechery_transform(html: str) -> str:
    """Rebuild a Stratechery article with title, date and meta header."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)

    title_tag = root.find("h1", class_=re.compile(r"^(?:post-title|entry-title)$")) or find_div(
        root, "article-title", exact=True
    )
    title = _take(title_tag) or "Stratechery"
    meta = _take(find_div(root, "post-meta|entry-meta", exact=True))
    date = ""
    time_tag = root.find("time", datetime=True)
    if time_tag is not None:
        date = time_tag.get_text(strip=True) or str(time_tag["datetime"])
        time_tag.extract()
    else:
        date = _take(find_div(root, "date", exact=True))

    content = find_div(root, "post-content|entry-content", exact=True)
    body = _fragment(inner_html(content) if content is not None else inner_html(root))

    _captioned_figures(body, body, css_class="newsletter-image")
    _markdown_images(body, body, css_class="newsletter-image")
    for img in body.find_all("img", src=True):
        if img.find_parent("div", class_="figure") is None:
            _style_image(img, css_class="newsletter-image")
    _rename_divs(body, "footnote", "footnote", exact=True)
    _remove_divs(body, "footer|comments|related|subscription")

    return _assemble(
        f"<h1>{title}</h1>",
        f'<div class="date">{date}</div>' if date else "",
        f'<div class="article-info">{meta}</div>' if meta else "",
        f'<div class="article-content">{body.decode()}</div>',
    )


def substack_transform(html: str) -> str:
    """Put the Substack post header first and drop prompts and widgets."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)
    header = find_div(root, "post-header", exact=True)
    content = find_div(root, "post-content", exact=True)
    if header is not None and content is not None:
        markup = _assemble(
            f'<div class="kindle-header">{inner_html(header)}</div>',
            f'<div class="kindle-content">{inner_html(content)}</div>',
        )
    else:
        markup = inner_html(root)

    body = _fragment(markup)
    _remove_divs(body, "footer|social|subscribe-prompt|comments-prompt")
    _style_images(body)
    for heading in body.find_all("h3", style=True):
        if heading.find(True) is not None:
            continue
        text = heading.get_text()
        if len(text) < 100 and "." not in text:
            heading.name = "h2"
            del heading["style"]
    _captioned_figures(body, body)
    for img in body.select("div.figure img"):
        img["style"] = IMAGE_STYLE
    return body.decode()


def axios_transform(html: str) -> str:
    """Collect Axios story blocks and turn short list items into bullets."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)

    title_tag = root.find("h1") or find_div(root, "headline")
    title = inner_html(title_tag).strip() if title_tag is not None else "Axios Newsletter"

    stories = [
        tag
        for tag in root.find_all("div", class_=re.compile("story"))
        if tag.find_parent("div", class_=re.compile("story")) is None
    ]
    markup = "\n".join(str(story) for story in stories) if stories else inner_html(root)
    body = _fragment(markup)
    if title_tag is not None:
        for heading in body.find_all("h1"):
            if inner_html(heading).strip() == title:
                heading.decompose()

    for item in body.find_all("li"):
        content = inner_html(item).strip()
        if len(content) >= 150:
            continue
        paragraph = body.new_tag("p")
        bullet = body.new_tag("span", attrs={"class": "bullet-point"})
        bullet.string = "•"
        paragraph.append(bullet)
        paragraph.append(" ")
        paragraph.append(_fragment(content))
        item.replace_with(paragraph)
    for listing in body.find_all(["ul", "ol"]):
        if listing.find("li") is None:
            listing.unwrap()

    _rename_divs(body, "content-block", "axios-section")
    _rename_divs(body, "go-deeper", "axios-highlight")
    _blockquotes_to_divs(body, "quote")

    return _assemble(
        f"<h1>{title}</h1>",
        '<div class="byline">Axios</div>',
        f'<div class="axios-content">{body.decode()}</div>',
    )


def bulletinmedia_transform(html: str) -> str:
    """Group Bulletin Media headlines with their briefs."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)

    headline = find_div(root, "headline", exact=True)
    if headline is not None:
        title = inner_html(headline).strip()
    elif soup.title is not None and soup.title.string:
        title = soup.title.string.strip()
    else:
        title = "Bulletin Media Newsletter"
    date = _take(find_div(root, "date", exact=True))

    content = find_div(root, "content", attribute="id", exact=True) or find_div(
        root, "content", exact=True
    )
    body = _fragment(inner_html(content) if content is not None else inner_html(root))

    _rename_divs(body, "category", "bulletin-category", exact=True)
    for head in body.find_all("div", class_="headline"):
        brief = head.find_next_sibling("div")
        if brief is None or class_string(brief) != "brief":
            continue
        section = body.new_tag("div", attrs={"class": "bulletin-section"})
        head.insert_before(section)
        head.attrs = {"class": ["bulletin-headline"]}
        brief.attrs = {"class": ["bulletin-brief"]}
        section.append(head.extract())
        section.append(brief.extract())
    _rename_divs(body, "source", "bulletin-source", exact=True)

    return _assemble(
        f"<h1>{title}</h1>",
        f'<div class="bulletin-date">{date}</div>' if date else "",
        f'<div class="bulletin-content">{body.decode()}</div>',
    )


def onetech_transform(html: str) -> str:
    """Restyle OneTech sections, highlights and data tables."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)

    title_tag = root.find("h1") or find_div(root, "title")
    title = _take(title_tag) or "OneTech Newsletter"
    author = _take(find_div(root, "author"))

    content = find_div(root, "content")
    body = _fragment(inner_html(content) if content is not None else inner_html(root))

    _rename_divs(body, "section", "ot-section")
    _rename_divs(body, "highlight", "ot-highlight")
    for table in body.find_all("table"):
        if table.find("th") is not None or len(table.find_all("td")) > 4:
            table["style"] = "width:95%; margin:0.2in auto; border-collapse:collapse;"

    return _assemble(
        f"<h1>{title}</h1>",
        f'<div class="ot-author">{author}</div>' if author else "",
        f'<div class="onetech-content">{body.decode()}</div>',
    )


def jeffselingo_transform(html: str) -> str:
    """Restyle Jeff Selingo sections, summaries and quotes."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)

    title_tag = find_div(root, "title") or root.find("h1")
    title = _take(title_tag) or "Jeff Selingo Newsletter"
    issue = _take(find_div(root, "issue"))

    content = find_div(root, "content-body") or find_div(root, "main-content")
    body = _fragment(inner_html(content) if content is not None else inner_html(root))

    _rename_divs(body, "section", "js-section")
    _rename_divs(body, "summary", "js-summary")
    _blockquotes_to_divs(body, "js-quote")
    _remove_divs(body, "bottom", exact=False)

    return _assemble(
        f"<h1>{title}</h1>",
        f'<div class="js-issue-number">{issue}</div>' if issue else "",
        f'<div class="js-content">{body.decode()}</div>',
    )


_CLUTTER = re.compile(
    r"footer|unsubscribe|social-media|advertisement|banner|promo", re.IGNORECASE
)
_TEXT_ALIGN = re.compile(r"text-align\s*:\s*([^;]+)", re.IGNORECASE)


def generic_transform(html: str) -> str:
    """Remove common clutter blocks and reduce heading styles to alignment."""
    if not html:
        return ""
    soup = parse(html)
    root = content_root(soup)
    for tag in root.find_all("div"):
        if tag.decomposed:
            continue
        marker = f"{class_string(tag)} {tag.get('id', '')}"
        if _CLUTTER.search(marker):
            tag.decompose()
    for heading in root.find_all(re.compile(r"^h[1-6]$"), style=True):
        align = _TEXT_ALIGN.search(str(heading["style"]))
        if align:
            heading["style"] = f"text-align:{align.group(1).strip()};"
        else:
            del heading["style"]
    return inner_html(root)


__all__ = [
    "axios_transform",
    "bulletinmedia_transform",
    "generic_transform",
    "jeffselingo_transform",
    "onetech_transform",
    "stratechery_transform",
    "substack_transform",
]
