"""Load markup files into Documents and maintain the ContentIndex."""

import logging
import os
from pathlib import Path

from markrealm.constants import UNTITLED, is_markup_file
from markrealm.content.ignore import is_ignored_path
from markrealm.content.markup import render_markup
from markrealm.content.models import ContentIndex, Document, Heading
from markrealm.content.routes import derive_route
from markrealm.errors import ReadError, RenderError

logger = logging.getLogger(__name__)

SKIP_DIRS: set[str] = {
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
}


def extract_title(front_matter: dict, headings: list[Heading]) -> str:
    """Front-matter title, else the first H1, else a placeholder."""
    title = front_matter.get("title")
    if title is not None and str(title).strip():
        return str(title)
    for heading in headings:
        if heading.level == 1:
            return heading.text
    return UNTITLED


def load_document(
    file_path,
    root_dir,
    *,
    extract_headings: bool = True,
    extract_links: bool = True,
) -> Document:
    """Read and render one file. Raises ReadError or RenderError."""
    path = os.fspath(file_path)
    try:
        source = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(path, str(e)) from e

    try:
        result = render_markup(
            source,
            extract_headings=extract_headings,
            extract_links=extract_links,
        )
    except Exception as e:
        raise RenderError(path, str(e)) from e

    return Document(
        path=path,
        route=derive_route(path, root_dir),
        title=extract_title(result.front_matter, result.headings),
        headings=tuple(result.headings),
        front_matter=result.front_matter,
        links=tuple(result.links),
        html=result.html,
    )


def discover_markup_files(root_dir: Path):
    """Yield absolute paths of markup files under *root_dir*, sorted per directory."""
    stack: list[Path] = [root_dir]
    while stack:
        current = stack.pop()
        try:
            entries = sorted(current.iterdir(), key=lambda p: p.name)
        except PermissionError as e:
            if current == root_dir:
                raise
            logger.warning("Skipping unreadable directory %s: %s", current, e)
            continue

        dirs: list[Path] = []
        for entry in entries:
            if entry.is_dir():
                if entry.name not in SKIP_DIRS:
                    dirs.append(entry)
            elif entry.is_file() and is_markup_file(entry.name):
                yield str(entry)
        # Reverse so the stack pops directories in name order
        stack.extend(reversed(dirs))


def _load_into(index: ContentIndex, file_path: str, root_dir: Path) -> bool:
    try:
        doc = load_document(file_path, root_dir)
    except (ReadError, RenderError) as e:
        logger.warning("Skipping %s", e)
        return False
    index.add(doc)
    return True


def build_content_index(root_dir, ignore_patterns) -> ContentIndex:
    """Load every non-ignored markup file under *root_dir* into a fresh index.

    A file that fails to load is logged and left out. An unusable root
    directory is fatal.
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Content directory not found: {root}")

    index = ContentIndex()
    skipped = 0
    for file_path in discover_markup_files(root):
        if is_ignored_path(file_path, ignore_patterns):
            logger.debug("Ignoring %s", file_path)
            continue
        if not _load_into(index, file_path, root):
            skipped += 1

    logger.info("Indexed %d documents (%d skipped)", len(index), skipped)
    return index


def update_document_in_index(
    index: ContentIndex,
    file_path,
    root_dir,
    ignore_patterns,
) -> None:
    """Reload one file. Ignored or unloadable files lose their entry.

    A successful reload replaces the old document in place, so readers see
    either the old or the new version, never neither.
    """
    path = os.fspath(file_path)
    if is_ignored_path(path, ignore_patterns):
        index.remove(path)
        return

    try:
        doc = load_document(path, Path(root_dir))
    except (ReadError, RenderError) as e:
        logger.warning("Skipping %s", e)
        index.remove(path)
        return
    index.add(doc)


def remove_document_from_index(index: ContentIndex, file_path) -> None:
    """Forget one file. No-op when it is not indexed."""
    index.remove(os.fspath(file_path))
