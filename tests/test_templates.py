"""Tests for publisher templates and their registry."""

from __future__ import annotations

import pytest

from kindle_formatter.core.models import Template
from kindle_formatter.templates import BASE_KINDLE_CSS, TemplateRegistry, default_registry
from kindle_formatter.templates import transforms


def test_registry_falls_back_to_generic() -> None:
    registry = default_registry()

    generic = registry.get_template("generic")
    assert registry.get_template("unknown-publisher") is generic
    assert registry.get_template(None) is generic
    assert registry.get_template("axios") is not generic
    assert set(registry.types) == {
        "stratechery",
        "substack",
        "axios",
        "bulletinmedia",
        "onetech",
        "jeffselingo",
        "generic",
    }
    assert "axios" in registry
    assert BASE_KINDLE_CSS.strip()


def test_registry_requires_generic_template() -> None:
    with pytest.raises(ValueError):
        TemplateRegistry({"axios": Template("", transforms.axios_transform)})


def test_every_transform_accepts_empty_input() -> None:
    registry = default_registry()
    for newsletter_type in registry.types:
        assert registry.get_template(newsletter_type).transform("") == ""


def test_stratechery_transform_rebuilds_article() -> None:
    html = (
        '<html><body><h1 class="entry-title">Aggregation Theory</h1>'
        '<time datetime="2025-03-03">March 3, 2025</time>'
        '<div class="entry-content"><p>Intro [Chart](https://cdn.example.com/chart.png)</p>'
        '<figure><img src="https://cdn.example.com/a.png"><figcaption>Market share</figcaption></figure>'
        '<div class="footer">Share this</div></div></body></html>'
    )

    output = transforms.stratechery_transform(html)

    assert output.startswith("<h1>Aggregation Theory</h1>")
    assert '<div class="date">March 3, 2025</div>' in output
    assert '<div class="figure">' in output
    assert '<div class="image-caption">Market share</div>' in output
    assert 'src="https://cdn.example.com/chart.png"' in output
    assert "[Chart]" not in output
    assert "Share this" not in output


def test_substack_transform_orders_header_and_drops_prompts() -> None:
    html = (
        '<div class="post-content"><p>Body</p>'
        '<div class="subscribe-prompt">Subscribe</div>'
        '<h3 style="font-weight:bold">Section title</h3></div>'
        '<div class="post-header"><h1>Post</h1></div>'
    )

    output = transforms.substack_transform(html)

    assert output.startswith('<div class="kindle-header"><h1>Post</h1></div>')
    assert "Subscribe" not in output
    assert "<h2>Section title</h2>" in output


def test_axios_transform_turns_short_items_into_bullets() -> None:
    html = (
        "<body><h1>Axios AM</h1>"
        '<div class="story"><h1>Axios AM</h1><ul><li>Short point</li></ul>'
        '<div class="go-deeper">Go deeper</div><blockquote>Said</blockquote></div>'
        '<div class="story"><p>Second</p></div></body>'
    )

    output = transforms.axios_transform(html)

    assert output.startswith("<h1>Axios AM</h1>")
    assert output.count("Axios AM") == 1
    assert '<span class="bullet-point">•</span> Short point' in output
    assert "<ul>" not in output
    assert 'class="axios-highlight"' in output
    assert '<div class="quote">Said</div>' in output
    assert "<p>Second</p>" in output


def test_bulletinmedia_transform_groups_headlines_with_briefs() -> None:
    html = (
        '<div class="headline">Daily Brief</div><div class="date">March 3</div>'
        '<div id="content"><div class="category">Tech</div>'
        '<div class="headline">Chips rally</div><div class="brief">Stocks rose.</div>'
        '<div class="source">Reuters</div></div>'
    )

    output = transforms.bulletinmedia_transform(html)

    assert output.startswith("<h1>Daily Brief</h1>")
    assert '<div class="bulletin-date">March 3</div>' in output
    assert (
        '<div class="bulletin-section"><div class="bulletin-headline">Chips rally</div>'
        '<div class="bulletin-brief">Stocks rose.</div></div>'
    ) in output
    assert '<div class="bulletin-category">Tech</div>' in output
    assert '<div class="bulletin-source">Reuters</div>' in output


def test_onetech_and_jeffselingo_transforms_restyle_sections() -> None:
    onetech = transforms.onetech_transform(
        '<h1>OneTech Weekly</h1><div class="author">By Sam</div>'
        '<div class="content"><div class="section">News</div></div>'
    )
    selingo = transforms.jeffselingo_transform(
        '<div class="title">Next</div><div class="issue">Issue 12</div>'
        '<div class="content-body"><blockquote>Quote</blockquote>'
        '<div class="bottom-links">More</div></div>'
    )

    assert onetech.startswith("<h1>OneTech Weekly</h1>")
    assert '<div class="ot-author">By Sam</div>' in onetech
    assert '<div class="ot-section">News</div>' in onetech
    assert selingo.startswith("<h1>Next</h1>")
    assert '<div class="js-issue-number">Issue 12</div>' in selingo
    assert '<div class="js-quote">Quote</div>' in selingo
    assert "More" not in selingo


def test_generic_transform_removes_clutter() -> None:
    html = (
        '<div class="footer">Bye</div><div id="unsubscribe-box">Leave</div>'
        '<h2 style="color:red; text-align:center">Hi</h2>'
        '<h3 style="color:blue">Yo</h3><p>Body</p>'
    )

    output = transforms.generic_transform(html)

    assert "Bye" not in output
    assert "Leave" not in output
    assert '<h2 style="text-align:center;">Hi</h2>' in output
    assert "<h3>Yo</h3>" in output
    assert "<p>Body</p>" in output
