"""Tests for content/links.py."""

import asyncio

import httpx

from markrealm.constants import LINK_CHECK_USER_AGENT
from markrealm.content.links import (
    ExternalCheckResult,
    LinkCheckResult,
    LinkReport,
    check_external_links,
    check_internal_links,
    collect_external_urls,
    format_external_summary,
    format_link_summary,
    is_internal_link_valid,
    normalize_target,
)
from markrealm.content.loader import build_content_index
from markrealm.content.models import ContentIndex, Document, Heading, Link


def _doc(route, links=(), headings=()):
    return Document(
        path=f"/docs{route}.md",
        route=route,
        title=route,
        headings=tuple(headings),
        front_matter={},
        links=tuple(links),
        html="",
    )


def _internal(target, hash=None):
    href = target + (f"#{hash}" if hash else "")
    return Link(href=href, text="x", type="internal", target=target, hash=hash)


def _index(*docs):
    index = ContentIndex()
    for doc in docs:
        index.add(doc)
    return index


ROUTES = _index(
    _doc("/"),
    _doc("/guide", headings=[Heading(2, "Install", "install")]),
    _doc("/guide/getting-started"),
    _doc("/api/reference"),
)


class TestNormalizeTarget:
    def test_adds_leading_slash(self):
        assert normalize_target("guide") == "/guide"

    def test_strips_trailing_slash(self):
        assert normalize_target("/guide/") == "/guide"

    def test_root_kept(self):
        assert normalize_target("/") == "/"

    def test_markup_extension_dropped(self):
        assert normalize_target("guide/b.md") == "/guide/b"
        assert normalize_target("/guide/b.mdoc") == "/guide/b"

    def test_index_file_maps_to_directory(self):
        assert normalize_target("guide/index.md") == "/guide"
        assert normalize_target("index.md") == "/"


class TestInternalLink:
    def test_existing_route(self):
        assert is_internal_link_valid(_internal("/guide/getting-started"), ROUTES)

    def test_relative_form_resolved_from_root(self):
        assert is_internal_link_valid(_internal("guide/getting-started"), ROUTES)

    def test_missing_route(self):
        assert not is_internal_link_valid(_internal("/guide/missing"), ROUTES)

    def test_anchor_present(self):
        assert is_internal_link_valid(_internal("/guide", hash="install"), ROUTES)

    def test_anchor_missing(self):
        assert not is_internal_link_valid(_internal("/guide", hash="missing"), ROUTES)

    def test_missing_target_is_broken(self):
        link = Link(href="", text="x", type="internal", target=None)
        assert not is_internal_link_valid(link, ROUTES)

    def test_empty_target_is_broken(self):
        link = Link(href="#x", text="x", type="internal", target="", hash="x")
        assert not is_internal_link_valid(link, ROUTES)


class TestCheckInternalLinks:
    def test_partition(self):
        index = _index(
            _doc("/", links=[
                _internal("/guide/getting-started"),
                _internal("/broken-link"),
                Link(href="https://example.com", text="Example", type="external"),
            ]),
            _doc("/guide/getting-started"),
        )
        result = check_internal_links(index)
        assert len(result.valid) == 1
        assert len(result.broken) == 1
        assert len(result.external) == 1
        assert result.broken[0].href == "/broken-link"
        assert result.broken[0].source == "/"

    def test_no_links(self):
        result = check_internal_links(_index(_doc("/")))
        assert (result.valid, result.broken, result.external) == ([], [], [])

    def test_end_to_end(self, sample_site):
        index = build_content_index(sample_site, [])
        result = check_internal_links(index)
        assert len(result.valid) == 1
        assert len(result.broken) == 0
        assert len(result.external) == 0

    def test_anchor_in_real_documents(self, docs_dir):
        (docs_dir / "guide.md").write_text("# Guide\n\n## Install\n", encoding="utf-8")
        (docs_dir / "index.md").write_text(
            "[ok](/guide#install) [bad](/guide#missing)\n", encoding="utf-8",
        )
        result = check_internal_links(build_content_index(docs_dir, []))
        assert [r.href for r in result.valid] == ["/guide#install"]
        assert [r.href for r in result.broken] == ["/guide#missing"]

    def test_anchor_of_repeated_heading(self, docs_dir):
        (docs_dir / "a.md").write_text("## Install\n\nx\n\n## Install\n", encoding="utf-8")
        (docs_dir / "index.md").write_text("[second](/a#install_1)\n", encoding="utf-8")
        result = check_internal_links(build_content_index(docs_dir, []))
        assert [r.href for r in result.valid] == ["/a#install_1"]
        assert result.broken == []


class TestCollectExternalUrls:
    def test_dedupes_and_filters(self):
        result = LinkCheckResult(external=[
            LinkReport(Link("https://a.example", "a", "external"), "/"),
            LinkReport(Link("https://a.example", "a", "external"), "/x"),
            LinkReport(Link("mailto:me@example.com", "m", "external"), "/"),
            LinkReport(Link("#top", "t", "external"), "/"),
            LinkReport(Link("//cdn.example/x.js", "c", "external"), "/"),
        ])
        assert collect_external_urls(result) == ["https://a.example", "https://cdn.example/x.js"]


def _run(urls, handler, timeout_ms=5000):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await check_external_links(urls, timeout_ms, client=client)
    return asyncio.run(go())


class TestCheckExternalLinks:
    def test_head_ok(self):
        seen = []

        def handler(request):
            seen.append(request.method)
            return httpx.Response(200)

        result = _run(["https://ok.example"], handler)
        assert result.valid == ["https://ok.example"]
        assert result.broken == []
        assert seen == ["HEAD"]

    def test_redirect_status_is_valid(self):
        result = _run(["https://moved.example"], lambda request: httpx.Response(301))
        assert result.valid == ["https://moved.example"]

    def test_head_timeout_then_get_ok(self):
        def handler(request):
            if request.method == "HEAD":
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200)

        result = _run(["https://slow-head.example"], handler)
        assert result.valid == ["https://slow-head.example"]

    def test_slow_head_aborted_by_timeout_then_get_ok(self):
        async def handler(request):
            if request.method == "HEAD":
                await asyncio.sleep(5)
            return httpx.Response(200)

        result = _run(["https://slow.example"], handler, timeout_ms=50)
        assert result.valid == ["https://slow.example"]

    def test_head_error_status_retried_with_get(self):
        def handler(request):
            return httpx.Response(405 if request.method == "HEAD" else 200)

        assert _run(["https://nohead.example"], handler).valid == ["https://nohead.example"]

    def test_both_fail(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = _run(["https://down.example"], handler)
        assert result.valid == []
        assert result.broken == ["https://down.example"]

    def test_get_error_status_is_broken(self):
        result = _run(["https://gone.example"], lambda request: httpx.Response(404))
        assert result.broken == ["https://gone.example"]

    def test_user_agent_sent(self):
        agents = []

        def handler(request):
            agents.append(request.headers.get("user-agent"))
            return httpx.Response(200)

        _run(["https://ua.example"], handler)
        assert agents == [LINK_CHECK_USER_AGENT]

    def test_batches_of_ten(self):
        in_flight = 0
        peak = 0

        async def handler(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200)

        urls = [f"https://site{i}.example" for i in range(25)]
        result = _run(urls, handler)
        assert peak == 10
        assert sorted(result.valid) == sorted(urls)

    def test_mixed_partition(self):
        def handler(request):
            return httpx.Response(200 if "good" in request.url.host else 500)

        urls = ["https://good1.example", "https://bad.example", "https://good2.example"]
        result = _run(urls, handler)
        assert set(result.valid) == {"https://good1.example", "https://good2.example"}
        assert result.broken == ["https://bad.example"]

    def test_empty_input(self):
        result = asyncio.run(check_external_links([]))
        assert result == ExternalCheckResult()


class TestSummaries:
    def test_link_summary_lists_broken(self):
        result = LinkCheckResult(broken=[LinkReport(_internal("/nope"), "/guide")])
        lines = format_link_summary(result)
        assert "Broken internal links: 1" in lines
        assert any("/nope" in line and "/guide" in line for line in lines)

    def test_external_summary(self):
        lines = format_external_summary(ExternalCheckResult(valid=["a"], broken=["b"]))
        assert "Valid external links:  1" in lines
        assert "  - b" in lines
