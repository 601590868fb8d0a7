"""Markup rendering: front matter, HTML body, heading and link extraction.

The body is rendered with Python-Markdown. Headings and links are then
pulled out of the rendered HTML with a small HTMLParser, so what gets
validated is exactly what the browser will see.
"""

from __future__ import annotations

import dataclasses
import re
from html.parser import HTMLParser
from typing import Any

import markdown
import yaml
from markdown.extensions.toc import TocExtension

from markrealm.content.models import Heading, Link

# Leading "---" block, closed by a line of "---" (or "..." per YAML).
_FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)\r?\n(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.DOTALL,
)
_EMPTY_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)")

_HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


class FrontMatterError(ValueError):
    """The leading metadata block is not a valid YAML mapping."""


@dataclasses.dataclass
class RenderResult:
    html: str
    front_matter: dict[str, Any]
    headings: list[Heading]
    links: list[Link]


def heading_id(text: str, separator: str = "-") -> str:
    """Anchor id for a heading: lowercase, punctuation dropped, hyphenated."""
    slug = text.strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split a leading YAML block from the body. Returns (front_matter, body)."""
    m = _EMPTY_FRONT_MATTER_RE.match(source)
    if m:
        return {}, source[m.end():]
    m = _FRONT_MATTER_RE.match(source)
    if not m:
        return {}, source

    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as e:
        raise FrontMatterError(f"invalid front matter: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return {str(k): v for k, v in data.items()}, source[m.end():]


def classify_link(href: str, text: str) -> Link:
    """Build a Link, deciding internal vs external from the href shape."""
    is_internal = not (
        href.startswith("http")
        or href.startswith("//")
        or href.startswith("mailto:")
        or href.startswith("#")
    )
    if not is_internal:
        return Link(href=href, text=text, type="external")

    target, _, fragment = href.partition("#")
    return Link(
        href=href,
        text=text,
        type="internal",
        target=target,
        hash=fragment or None,
    )


class _ExtractingParser(HTMLParser):
    """Collect headings and anchors from rendered HTML."""

    def __init__(self):
        super().__init__()
        self.headings: list[Heading] = []
        self.links: list[Link] = []
        self._heading_level = 0
        self._heading_buf: list[str] = []
        self._heading_attr_id: str | None = None
        self._href: str | None = None
        self._link_buf: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]):
        if tag in _HEADING_TAGS:
            self._heading_level = _HEADING_TAGS[tag]
            self._heading_buf = []
            self._heading_attr_id = dict(attrs).get("id")
        elif tag == "a":
            self._href = dict(attrs).get("href") or ""
            self._link_buf = []

    def handle_endtag(self, tag: str):
        if tag in _HEADING_TAGS and self._heading_level:
            text = "".join(self._heading_buf).strip()
            self.headings.append(
                Heading(
                    level=self._heading_level,
                    text=text,
                    id=self._heading_attr_id or heading_id(text),
                )
            )
            self._heading_level = 0
        elif tag == "a" and self._href is not None:
            text = "".join(self._link_buf).strip()
            # Links with no target or no label are not worth validating
            if self._href and text:
                self.links.append(classify_link(self._href, text))
            self._href = None

    def handle_data(self, data: str):
        if self._heading_level:
            self._heading_buf.append(data)
        if self._href is not None:
            self._link_buf.append(data)


def render_markup(
    source: str,
    *,
    extract_headings: bool = True,
    extract_links: bool = True,
) -> RenderResult:
    """Render markup *source* to HTML and extract its metadata.

    Raises FrontMatterError for a malformed metadata block. With extraction
    disabled the corresponding lists are simply empty.
    """
    front_matter, body = split_front_matter(source)

    md = markdown.Markdown(
        extensions=[*MARKDOWN_EXTENSIONS, TocExtension(slugify=heading_id)],
    )
    html = md.convert(body)

    headings: list[Heading] = []
    links: list[Link] = []
    if extract_headings or extract_links:
        parser = _ExtractingParser()
        parser.feed(html)
        parser.close()
        if extract_headings:
            headings = parser.headings
        if extract_links:
            links = parser.links

    return RenderResult(html=html, front_matter=front_matter, headings=headings, links=links)
