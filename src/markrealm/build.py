"""Static site build: index, link check, then one HTML file per route."""

import asyncio
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from markrealm.config import SiteConfig, load_config
from markrealm.content.links import (
    ExternalCheckResult,
    LinkCheckResult,
    check_external_links,
    check_internal_links,
    collect_external_urls,
)
from markrealm.content.loader import build_content_index
from markrealm.content.models import ContentIndex
from markrealm.content.sidebar import generate_sidebar
from markrealm.errors import BuildFailed
from markrealm.pages import render_not_found, render_page, render_sidebar, static_file

logger = logging.getLogger(__name__)


@dataclass
class SiteCheck:
    """Everything the link check learned about a content directory."""

    config: SiteConfig
    index: ContentIndex
    links: LinkCheckResult
    external: ExternalCheckResult | None = None

    @property
    def broken_count(self) -> int:
        return len(self.links.broken)


@dataclass
class BuildResult:
    documents: int
    broken_links: int
    out_dir: Path
    files_written: list[Path] = field(default_factory=list)
    duration_ms: int = 0


def check_site(docs_dir: Path, config: SiteConfig | None = None) -> SiteCheck:
    """Index *docs_dir* and validate its links (external ones if enabled)."""
    if config is None:
        config = load_config(docs_dir)
    index = build_content_index(docs_dir, config.ignore)
    links = check_internal_links(index)

    external = None
    if config.linkcheck.enabled and links.external:
        urls = collect_external_urls(links)
        if urls:
            external = asyncio.run(
                check_external_links(urls, config.linkcheck.external_timeout_ms)
            )
    return SiteCheck(config=config, index=index, links=links, external=external)


def output_path_for(route: str, out_dir: Path) -> Path:
    """``/`` -> index.html, ``/guide/a`` -> guide/a/index.html."""
    if route == "/":
        return out_dir / "index.html"
    return out_dir / route.lstrip("/") / "index.html"


def write_static_site(index: ContentIndex, config: SiteConfig, out_dir: Path) -> list[Path]:
    """Recreate *out_dir* and write every page, the stylesheet and 404.html."""
    if out_dir.exists():
        shutil.rmtree(out_dir)
    out_dir.mkdir(parents=True)

    written: list[Path] = []
    styles = out_dir / "styles.css"
    shutil.copyfile(static_file("styles.css"), styles)
    written.append(styles)

    sidebar = generate_sidebar(
        index, config.sidebar.order, hierarchical=config.sidebar.hierarchical,
    )
    sidebar_html = render_sidebar(sidebar, base_url=config.site.base_url)

    for doc in index.documents():
        output_path = output_path_for(doc.route, out_dir)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_page(doc, sidebar_html, config), encoding="utf-8")
        logger.debug("Generated %s", output_path.relative_to(out_dir))
        written.append(output_path)

    not_found = out_dir / "404.html"
    not_found.write_text(render_not_found("", sidebar_html, config), encoding="utf-8")
    written.append(not_found)
    return written


def build_static_site(
    docs_dir: Path,
    out_dir: Path,
    *,
    strict: bool = True,
    check: SiteCheck | None = None,
) -> BuildResult:
    """Build the site. Raises BuildFailed on broken internal links when strict.

    Nothing is written when the build fails. *check* lets a caller that has
    already run ``check_site`` (to print its summary) skip a second pass.
    """
    start = time.monotonic()
    if check is None:
        check = check_site(docs_dir)

    if check.broken_count and strict:
        raise BuildFailed(check.broken_count)
    if check.broken_count:
        logger.warning("Found %d broken links (not strict, continuing)", check.broken_count)

    written = write_static_site(check.index, check.config, Path(out_dir))
    return BuildResult(
        documents=len(check.index),
        broken_links=check.broken_count,
        out_dir=Path(out_dir),
        files_written=written,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
