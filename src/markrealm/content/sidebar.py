"""Navigation sidebar derived from the content index."""

from __future__ import annotations

import locale
from collections.abc import Sequence

from markrealm.constants import strip_markup_extension
from markrealm.content.ignore import pattern_to_regex
from markrealm.content.models import ContentIndex, SidebarItem


def directory_title(segment: str) -> str:
    """Title-case a route segment: getting-started -> Getting Started."""
    return " ".join(word[:1].upper() + word[1:] for word in segment.split("-"))


def _title_key(title: str) -> str:
    return locale.strxfrm(title.casefold())


def sort_items(items: list[SidebarItem]) -> list[SidebarItem]:
    """Directories first, then by title; applied recursively. Stable."""
    for item in items:
        if item.children:
            item.children = sort_items(item.children)
    return sorted(items, key=lambda i: (not i.is_directory, _title_key(i.title)))


def generate_sidebar(
    index: ContentIndex,
    order: Sequence[str] = (),
    *,
    hierarchical: bool = True,
) -> list[SidebarItem]:
    """Build the sidebar for *index*, honouring the configured *order*."""
    if hierarchical:
        return _hierarchical_sidebar(index, order)
    return _flat_sidebar(index, order)


# ------------------------------------------------------------
# Flat mode
# ------------------------------------------------------------

def _order_rank(route: str, order: Sequence[str]) -> int | None:
    for rank, pattern in enumerate(order):
        stem = strip_markup_extension(pattern)
        if "*" in stem:
            if pattern_to_regex(stem).search(route):
                return rank
        elif stem in route:
            return rank
    return None


def _flat_sidebar(index: ContentIndex, order: Sequence[str]) -> list[SidebarItem]:
    items = [SidebarItem(title=doc.title, route=doc.route) for doc in index.documents()]
    if not order:
        return sorted(items, key=lambda i: _title_key(i.title))

    def key(item: SidebarItem):
        rank = _order_rank(item.route, order)
        if rank is None:
            return (1, 0, _title_key(item.title))
        return (0, rank, "")

    return sorted(items, key=key)


# ------------------------------------------------------------
# Hierarchical mode
# ------------------------------------------------------------

def build_tree(index: ContentIndex) -> list[SidebarItem]:
    """Nest documents by route segment, unsorted (encounter order)."""
    top: list[SidebarItem] = []
    directories: dict[str, SidebarItem] = {}

    for doc in index.documents():
        segments = [s for s in doc.route.split("/") if s]
        if not segments:
            continue  # the homepage is not listed

        level = top
        for depth, segment in enumerate(segments[:-1]):
            partial = "/" + "/".join(segments[: depth + 1])
            node = directories.get(partial)
            if node is None:
                node = SidebarItem(title=directory_title(segment), route=partial, children=[])
                directories[partial] = node
                level.append(node)
            level = node.children
        level.append(SidebarItem(title=doc.title, route=doc.route))

    return top


def _hierarchical_sidebar(index: ContentIndex, order: Sequence[str]) -> list[SidebarItem]:
    items = build_tree(index)
    if not order:
        return sort_items(items)

    unplaced = list(items)
    result: list[SidebarItem] = []

    for pattern in order:
        if "*" in pattern:
            continue
        stem = strip_markup_extension(pattern)
        wanted = (f"/{stem}", f"/{stem}/")
        for item in unplaced:
            if item.route in wanted:
                unplaced.remove(item)
                result.extend(sort_items([item]))
                break

    for pattern in order:
        if "*" not in pattern:
            continue
        regex = pattern_to_regex(pattern)
        matched = [item for item in unplaced if regex.search(item.route[1:])]
        if matched:
            taken = {id(item) for item in matched}
            unplaced = [item for item in unplaced if id(item) not in taken]
            result.extend(sort_items(matched))

    result.extend(sort_items(unplaced))
    return result
