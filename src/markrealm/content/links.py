"""Link validation: internal routes/anchors and external URLs.

Internal links are resolved against the content index. External URLs are
checked over HTTP in fixed-size batches; every request is bounded by its
own timeout and a failed HEAD is retried once as GET. Broken links are
results, never exceptions.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging

import httpx

from markrealm.constants import (
    LINK_CHECK_BATCH_SIZE,
    LINK_CHECK_USER_AGENT,
    strip_markup_extension,
)
from markrealm.content.models import ContentIndex, Link

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LinkReport:
    """A link together with the route of the document it appears in."""

    link: Link
    source: str

    @property
    def href(self) -> str:
        return self.link.href

    @property
    def text(self) -> str:
        return self.link.text


@dataclasses.dataclass
class LinkCheckResult:
    valid: list[LinkReport] = dataclasses.field(default_factory=list)
    broken: list[LinkReport] = dataclasses.field(default_factory=list)
    external: list[LinkReport] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class ExternalCheckResult:
    valid: list[str] = dataclasses.field(default_factory=list)
    broken: list[str] = dataclasses.field(default_factory=list)


# ============================================================
# Internal links
# ============================================================

def normalize_target(target: str) -> str:
    """Turn an internal link target into the route it should resolve to."""
    route = target if target.startswith("/") else f"/{target}"
    route = strip_markup_extension(route)
    if route == "/index" or route.endswith("/index"):
        route = route[: -len("index")]
    if route.endswith("/") and route != "/":
        route = route[:-1]
    return route


def is_internal_link_valid(link: Link, index: ContentIndex) -> bool:
    """Resolve one internal link: the route must exist, and so must the anchor."""
    if not link.target:
        return False

    target_doc = index.get(normalize_target(link.target))
    if target_doc is None:
        return False

    if link.hash and not target_doc.has_anchor(link.hash):
        return False
    return True


def check_internal_links(index: ContentIndex) -> LinkCheckResult:
    """Partition every link in the index into valid, broken and external."""
    result = LinkCheckResult()

    for doc in index.documents():
        for link in doc.links:
            report = LinkReport(link=link, source=doc.route)
            if link.type == "external":
                result.external.append(report)
            elif is_internal_link_valid(link, index):
                result.valid.append(report)
            else:
                result.broken.append(report)

    return result


def collect_external_urls(result: LinkCheckResult) -> list[str]:
    """Unique checkable URLs from ``result.external``, first occurrence first.

    mailto: links and bare fragments are not HTTP resources and are skipped;
    protocol-relative URLs are checked over https.
    """
    seen: set[str] = set()
    urls: list[str] = []
    for report in result.external:
        href = report.href
        if href.startswith("#") or href.startswith("mailto:"):
            continue
        if href.startswith("//"):
            href = f"https:{href}"
        if href not in seen:
            seen.add(href)
            urls.append(href)
    return urls


# ============================================================
# External links
# ============================================================

async def _request_ok(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    timeout_s: float,
) -> bool:
    request = client.build_request(
        method, url, headers={"User-Agent": LINK_CHECK_USER_AGENT},
    )
    response = await asyncio.wait_for(client.send(request, stream=True), timeout_s)
    await response.aclose()
    return 200 <= response.status_code < 400


async def check_single_external_link(
    client: httpx.AsyncClient,
    url: str,
    timeout_ms: int,
) -> bool:
    """HEAD, then GET if HEAD did not succeed. Status 2xx/3xx is valid."""
    timeout_s = timeout_ms / 1000
    for method in ("HEAD", "GET"):
        try:
            if await _request_ok(client, method, url, timeout_s):
                return True
            logger.debug("%s %s returned an error status", method, url)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            logger.debug("%s %s failed: %r", method, url, e)
    return False


async def check_external_links(
    urls: list[str],
    timeout_ms: int = 5000,
    *,
    client: httpx.AsyncClient | None = None,
) -> ExternalCheckResult:
    """Check absolute URLs in batches of ten.

    Requests inside a batch run concurrently; batches run one after another.
    Deduplication is up to the caller. Pass *client* to reuse a configured
    httpx client (its transport is used as-is).
    """
    result = ExternalCheckResult()
    if not urls:
        return result

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(follow_redirects=True, timeout=timeout_ms / 1000)

    try:
        for start in range(0, len(urls), LINK_CHECK_BATCH_SIZE):
            batch = urls[start:start + LINK_CHECK_BATCH_SIZE]
            outcomes = await asyncio.gather(
                *(check_single_external_link(client, url, timeout_ms) for url in batch),
                return_exceptions=True,
            )
            for url, outcome in zip(batch, outcomes):
                if outcome is True:
                    result.valid.append(url)
                else:
                    if isinstance(outcome, BaseException):
                        logger.warning("Unexpected error checking %s: %r", url, outcome)
                    result.broken.append(url)
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        "Checked %d external links: %d valid, %d broken",
        len(urls), len(result.valid), len(result.broken),
    )
    return result


# ============================================================
# Reporting
# ============================================================

def format_link_summary(result: LinkCheckResult) -> list[str]:
    """Human-readable summary lines for an internal link check."""
    lines = [
        "Link Check Summary",
        "==================",
        f"Valid internal links:  {len(result.valid)}",
        f"Broken internal links: {len(result.broken)}",
        f"External links:        {len(result.external)}",
    ]
    if result.broken:
        lines.append("")
        lines.append("Broken links:")
        for report in result.broken:
            lines.append(f"  - {report.href} ({report.text}) in {report.source}")
    return lines


def format_external_summary(result: ExternalCheckResult) -> list[str]:
    """Human-readable summary lines for an external link check."""
    lines = [
        f"Valid external links:  {len(result.valid)}",
        f"Broken external links: {len(result.broken)}",
    ]
    if result.broken:
        lines.append("")
        lines.append("Broken external links:")
        lines.extend(f"  - {url}" for url in result.broken)
    return lines
