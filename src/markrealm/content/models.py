"""Data models for indexed documents and the navigation sidebar."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Literal

logger = logging.getLogger(__name__)

LinkType = Literal["internal", "external"]


@dataclasses.dataclass(frozen=True)
class Heading:
    level: int  # 1-6
    text: str
    id: str  # anchor id, see markup.heading_id


@dataclasses.dataclass(frozen=True)
class Link:
    """A hyperlink found in a document body."""

    href: str  # as authored
    text: str
    type: LinkType
    target: str | None = None  # internal only, href without "#fragment"
    hash: str | None = None  # fragment without "#"


@dataclasses.dataclass(frozen=True)
class Document:
    """One rendered source file. Replaced, never mutated, on change."""

    path: str  # absolute file path
    route: str  # e.g. "/guide/getting-started"
    title: str
    headings: tuple[Heading, ...]
    front_matter: dict[str, Any]
    links: tuple[Link, ...]
    html: str

    def has_anchor(self, anchor: str) -> bool:
        return any(h.id == anchor for h in self.headings)


@dataclasses.dataclass
class SidebarItem:
    title: str
    route: str
    children: list[SidebarItem] | None = None  # set for directory nodes only

    @property
    def is_directory(self) -> bool:
        return self.children is not None


class ContentIndex:
    """Documents keyed by route and by path.

    Both maps always hold the same documents; only ``add`` and ``remove``
    write to them.
    """

    def __init__(self):
        self.by_route: dict[str, Document] = {}
        self.by_path: dict[str, Document] = {}

    def __len__(self) -> int:
        return len(self.by_route)

    def __contains__(self, path: object) -> bool:
        return path in self.by_path

    def documents(self) -> list[Document]:
        """Documents in insertion order."""
        return list(self.by_route.values())

    def get(self, route: str) -> Document | None:
        return self.by_route.get(route)

    def add(self, doc: Document) -> None:
        """Insert *doc* under both keys, replacing any entry for its path.

        When another file already owns the route, the last one added wins
        and the displaced document is dropped from both maps.
        """
        previous = self.by_path.get(doc.path)
        if previous is not None and previous.route != doc.route:
            del self.by_route[previous.route]
        displaced = self.by_route.get(doc.route)
        if displaced is not None and displaced.path != doc.path:
            logger.warning(
                "Route %s is claimed by both %s and %s; keeping %s",
                doc.route, displaced.path, doc.path, doc.path,
            )
            del self.by_path[displaced.path]
        self.by_route[doc.route] = doc
        self.by_path[doc.path] = doc

    def remove(self, path: str) -> Document | None:
        """Remove the document for *path* from both maps. Returns it, if any."""
        doc = self.by_path.pop(path, None)
        if doc is not None:
            del self.by_route[doc.route]
        return doc
