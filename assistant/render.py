"""Markdown to safe HTML for model output.

Model replies are untrusted. They are rendered with Python-Markdown, cleaned
against a small allow-list with bleach, and every surviving link is forced to
open in a new tab without an opener reference.
"""

from __future__ import annotations

import re

import bleach
import markdown as md

ALLOWED_TAGS = frozenset([
    "p", "strong", "em", "ul", "ol", "li", "a", "br",
    "h1", "h2", "h3", "h4", "h5", "h6", "pre", "code", "blockquote",
])
ALLOWED_ATTRIBUTES = {"a": ["href"]}
ALLOWED_PROTOCOLS = frozenset(["http", "https", "mailto", "tel"])

_ANCHOR_OPEN = re.compile(r"<a(\s[^>]*)?>")


def harden_links(html: str) -> str:
    return _ANCHOR_OPEN.sub(
        lambda m: f'<a{m.group(1) or ""} target="_blank" rel="noopener noreferrer">',
        html,
    )


def render_markdown(text: str) -> str:
    html = md.markdown(
        text or "",
        extensions=["fenced_code", "nl2br", "sane_lists"],
        output_format="html5",
    )
    cleaned = bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
    return harden_links(cleaned)


def has_markdown(text: str, html: str) -> bool:
    return text != html
