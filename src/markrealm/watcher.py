"""File-change subscription for the dev server, built on watchfiles."""

import dataclasses
import logging
import os
from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Literal

from watchfiles import Change, awatch

from markrealm.constants import is_markup_file
from markrealm.content.ignore import is_ignored_path
from markrealm.content.loader import (
    discover_markup_files,
    remove_document_from_index,
    update_document_in_index,
)
from markrealm.content.models import ContentIndex

logger = logging.getLogger(__name__)

EventKind = Literal["added", "changed", "removed"]


@dataclasses.dataclass(frozen=True)
class FileEvent:
    kind: EventKind
    path: str


def _files_in_new_directory(path: str, ignore_patterns: list[str]) -> list[str]:
    try:
        found = list(discover_markup_files(Path(path)))
    except OSError as e:
        logger.warning("Cannot scan new directory %s: %s", path, e)
        return []
    return [p for p in found if not is_ignored_path(p, ignore_patterns)]


def _indexed_under(path: str, indexed_paths: list[str]) -> list[str]:
    prefix = path.rstrip(os.sep) + os.sep
    return [p for p in indexed_paths if p.startswith(prefix)]


def translate_changes(
    changes: Iterable[tuple[Change, str]],
    ignore_patterns: Iterable[str],
    indexed_paths: Iterable[str] = (),
) -> list[FileEvent]:
    """Collapse a raw watchfiles batch into one event per markup file.

    Editors often save by delete-then-create, so the final kind of a file
    is decided by whether it exists now, not by the order of raw changes.
    A directory that appears yields ``added`` for every markup file inside
    it; a path that vanished yields ``removed`` for every indexed file
    below it.
    """
    ignore_patterns = list(ignore_patterns)
    indexed_paths = list(indexed_paths)
    by_path: dict[str, set[Change]] = {}
    kinds: dict[str, EventKind] = {}

    for change, path in changes:
        if is_markup_file(path):
            if not is_ignored_path(path, ignore_patterns):
                by_path.setdefault(path, set()).add(change)
        elif os.path.isdir(path):
            if change == Change.added:
                for file_path in _files_in_new_directory(path, ignore_patterns):
                    kinds[file_path] = "added"
        elif not os.path.exists(path):
            for file_path in _indexed_under(path, indexed_paths):
                kinds.setdefault(file_path, "removed")

    for path, seen in by_path.items():
        if not os.path.exists(path):
            kinds[path] = "removed"
        elif Change.added in seen:
            kinds[path] = "added"
        else:
            kinds[path] = "changed"

    return [FileEvent(kind=kinds[path], path=path) for path in sorted(kinds)]


def apply_event(index: ContentIndex, event: FileEvent, root_dir, ignore_patterns) -> None:
    """Exactly one index mutation per event."""
    if event.kind == "removed":
        remove_document_from_index(index, event.path)
    else:
        update_document_in_index(index, event.path, root_dir, ignore_patterns)


async def watch_content(
    root_dir,
    ignore_patterns: Iterable[str],
    *,
    index: ContentIndex | None = None,
    stop_event=None,
) -> AsyncIterator[list[FileEvent]]:
    """Yield batches of FileEvents for markup files under *root_dir*.

    *index* supplies the currently indexed paths, so removing or moving a
    directory can be expanded into per-file removals.
    """
    ignore_patterns = list(ignore_patterns)
    async for changes in awatch(root_dir, stop_event=stop_event):
        indexed_paths = list(index.by_path) if index is not None else []
        events = translate_changes(changes, ignore_patterns, indexed_paths)
        if events:
            yield events
