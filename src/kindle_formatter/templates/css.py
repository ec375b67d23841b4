"""Stylesheets for Kindle output, shared and per publisher."""

from __future__ import annotations

BASE_KINDLE_CSS = """
body { font-family: 'Bookerly', Georgia, 'Times New Roman', serif; font-size: 1em;
  line-height: 1.6; margin: 0; padding: 0; color: #000; }
.content-wrapper { margin: 0; padding: 0; }
p { margin: 0.7em 0; text-indent: 1em; orphans: 2; widows: 2; }
h1 + p, h2 + p, h3 + p, h4 + p, h5 + p, h6 + p, .first-paragraph { text-indent: 0; }
li p, blockquote p { text-indent: 0; }
h1, h2, h3, h4, h5, h6 { margin-top: 1.4em; margin-bottom: 0.6em; line-height: 1.3;
  font-family: 'Bookerly', Georgia, serif; }
h1 { font-size: 1.5em; text-align: center; margin-top: 1em; margin-bottom: 1em; }
h2 { font-size: 1.3em; margin-top: 1.2em; }
h3 { font-size: 1.2em; }
h4 { font-size: 1.1em; }
img { max-width: 100%; height: auto !important; display: block; margin: 1em auto; }
table { width: 100%; border-collapse: collapse; margin: 1em 0; font-size: 0.9em; }
th, td { padding: 8px; border: 1px solid #ddd; vertical-align: top; }
th { background-color: #f5f5f5; font-weight: bold; }
a { color: #000; text-decoration: underline; }
blockquote { margin: 1em 1em; padding: 0.5em 1em; border-left: 3px solid #ddd; font-style: italic; }
.kindle-meta { text-align: center; font-style: italic; color: #555; margin-bottom: 1.5em; }
.figure { margin: 1.5em 0; text-align: center; }
.image-caption { font-size: 0.9em; color: #555; font-style: italic; text-align: center; margin-top: 0.3em; }
ul, ol { margin: 1em 0; padding: 0 0 0 1.2em; }
li { margin-bottom: 0.5em; }
.date { text-align: center; font-style: italic; color: #666; margin-bottom: 1.5em; }
.enhanced-toc { margin: 1.5em 0; }
.enhanced-toc h1 { font-size: 1.6em; text-align: center; margin-bottom: 1em; }
.enhanced-toc ol { list-style-type: decimal; margin-left: 1em; }
.enhanced-toc li { margin-bottom: 1em; }
.toc-title { font-weight: bold; font-size: 1.1em; }
.toc-link { text-decoration: none; color: #0066cc; }
.toc-meta { font-size: 0.9em; color: #666; margin-top: 0.3em; }
"""

_READING_BODY = """
body { font-family: 'Bookerly', Georgia, serif; font-size: 12pt; line-height: %s; }
h1 { font-size: 22pt; margin-bottom: 0.3in; text-align: center; line-height: 1.2; }
h3 { font-size: 16pt; margin-top: 0.2in; margin-bottom: 0.1in; }
img { max-width: 95%%; height: auto !important; margin: 1em auto; display: block; }
"""

_DATA_TABLE = """
table { width: 95%; margin: 1em auto; border-collapse: collapse; }
th, td { padding: 0.5em; border: 1px solid #ddd; font-size: 11pt; }
"""

STRATECHERY_CSS = (
    _READING_BODY % "1.7"
    + _DATA_TABLE
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.2in; line-height: 1.2; }
p { margin: 0.8em 0; text-indent: 0.2in; text-align: justify; }
h1 + p, h2 + p, h3 + p, .article-info + p, blockquote p, li p, .date + p { text-indent: 0; }
blockquote { margin: 1em 1em; font-style: italic; border-left: 2px solid #666; padding-left: 0.5em; }
.article-info { font-style: italic; text-align: center; margin-bottom: 0.3in; font-size: 12pt; }
.footnote { font-size: 10pt; color: #666; margin-top: 0.1in; line-height: 1.4; }
.footnote p { text-indent: 0; }
.date { text-align: center; font-style: italic; color: #666; margin-bottom: 0.2in; font-size: 12pt; }
.figure { margin: 1em 0; text-align: center; page-break-inside: avoid; }
.image-caption { font-size: 10pt; color: #666; font-style: italic; text-align: center; margin-top: 0.5em; }
.newsletter-image { max-width: 95%; height: auto !important; margin: 1em auto; display: block;
  border: 1px solid #eee; background-color: #f9f9f9; padding: 4px; }
"""
)

SUBSTACK_CSS = (
    _READING_BODY % "1.6"
    + _DATA_TABLE
    + """
body { margin: 0.5in; }
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.2in; line-height: 1.2; }
.subtitle, .byline { font-style: italic; margin-bottom: 0.2in; font-size: 14pt; text-align: center; }
p { margin: 0.7em 0; text-indent: 0.2in; text-align: justify; }
h1 + p, h2 + p, h3 + p, h4 + p, h5 + p, h6 + p, .byline + p, .subtitle + p { text-indent: 0; }
blockquote { margin: 1em 1em; padding-left: 0.5em; border-left: 2px solid #666; font-style: italic; }
.kindle-header { margin-bottom: 1em; }
.kindle-content { margin-top: 0.5em; }
.footer, .unsubscribe, .social { display: none; }
.figure { margin: 1em 0; page-break-inside: avoid; }
figcaption, .image-caption { font-size: 10pt; color: #666; text-align: center; font-style: italic; margin-top: 0.3em; }
"""
)

AXIOS_CSS = (
    _READING_BODY % "1.5"
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.1in; line-height: 1.2;
  border-bottom: 1px solid #ccc; padding-bottom: 0.05in; }
h3 { font-weight: bold; }
.bullet-point { font-weight: bold; color: #444; }
p { margin: 0.6em 0; text-indent: 0; }
ul, ol { margin-top: 0.1in; margin-bottom: 0.2in; }
li { margin-bottom: 0.1in; }
.byline { font-style: italic; text-align: center; margin-bottom: 0.2in; font-size: 11pt; color: #555; }
.axios-section { margin-top: 0.3in; margin-bottom: 0.3in; }
.axios-highlight { background-color: #f2f2f2; padding: 0.1in; margin: 0.1in 0; border-left: 3px solid #888; }
.quote { font-style: italic; margin: 0.2in 0.3in; padding-left: 0.1in; border-left: 2px solid #888; }
"""
)

BULLETINMEDIA_CSS = (
    _READING_BODY % "1.5"
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.1in; border-bottom: 1px solid #ccc; padding-bottom: 5px; }
h3 { font-weight: bold; }
p { margin: 0.7em 0; text-indent: 0; }
.bulletin-section { margin-bottom: 0.3in; }
.bulletin-headline { font-weight: bold; margin-bottom: 0.1in; }
.bulletin-brief { margin-left: 0.2in; }
.bulletin-source { font-style: italic; font-size: 10pt; color: #666; margin-top: 0.05in; }
.bulletin-date { text-align: center; font-style: italic; margin-bottom: 0.2in; }
.bulletin-category { background-color: #f5f5f5; padding: 0.05in; margin-top: 0.2in; font-weight: bold;
  text-transform: uppercase; font-size: 11pt; }
"""
)

ONETECH_CSS = (
    _READING_BODY % "1.6"
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.2in; color: #444; }
p { margin: 0.7em 0; text-indent: 0.2in; }
h1 + p, h2 + p, h3 + p, h4 + p, h5 + p, h6 + p { text-indent: 0; }
.ot-section { margin: 0.3in 0; padding-bottom: 0.1in; border-bottom: 1px solid #eee; }
.ot-highlight { background-color: #f5f5f5; padding: 0.1in; margin: 0.2in 0; border-left: 3px solid #888; }
.ot-author { text-align: center; font-style: italic; margin-bottom: 0.2in; }
table { width: 95%; margin: 0.2in auto; border-collapse: collapse; }
th, td { padding: 0.1in; border: 1px solid #ddd; }
th { background-color: #f5f5f5; font-weight: bold; }
"""
)

JEFFSELINGO_CSS = (
    _READING_BODY % "1.6"
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.1in; color: #333; }
h3 { font-weight: normal; font-style: italic; }
p { margin: 0.7em 0; text-indent: 0.2in; text-align: justify; }
h1 + p, h2 + p, h3 + p { text-indent: 0; }
.js-section { margin: 0.3in 0; padding-bottom: 0.1in; }
.js-summary { font-style: italic; margin: 0.2in 0; padding: 0.1in; border-left: 3px solid #888; }
.js-quote { margin: 0.2in 1em; padding-left: 0.5em; border-left: 2px solid #888; font-style: italic; }
.js-quote p { text-indent: 0; }
.js-issue-number { text-align: center; font-style: italic; color: #555; margin-bottom: 0.2in; }
"""
)

GENERIC_CSS = (
    _READING_BODY % "1.5"
    + _DATA_TABLE
    + """
h2 { font-size: 18pt; margin-top: 0.3in; margin-bottom: 0.2in; line-height: 1.2; }
p { margin: 0.8em 0; text-indent: 0.2in; text-align: justify; }
h1 + p, h2 + p, h3 + p, blockquote p, li p { text-indent: 0; }
a { color: #000; text-decoration: underline; }
blockquote { margin: 0.2in 1em; padding-left: 0.5em; border-left: 2px solid #666; font-style: italic; }
.figure { margin: 1em 0; text-align: center; page-break-inside: avoid; }
.image-caption { font-size: 10pt; color: #666; font-style: italic; text-align: center; margin-top: 0.3em; }
ul, ol { margin: 0.5em 0 0.5em 1em; }
li { margin-bottom: 0.3em; }
"""
)


__all__ = [
    "AXIOS_CSS",
    "BASE_KINDLE_CSS",
    "BULLETINMEDIA_CSS",
    "GENERIC_CSS",
    "JEFFSELINGO_CSS",
    "ONETECH_CSS",
    "STRATECHERY_CSS",
    "SUBSTACK_CSS",
]
