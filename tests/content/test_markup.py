"""Tests for content/markup.py."""

import pytest

from markrealm.content.markup import (
    FrontMatterError,
    classify_link,
    heading_id,
    render_markup,
    split_front_matter,
)


class TestHeadingId:
    def test_lowercase_and_hyphens(self):
        assert heading_id("Getting Started") == "getting-started"

    def test_special_characters_removed(self):
        assert heading_id("What's new?") == "whats-new"

    def test_hyphen_runs_collapsed(self):
        assert heading_id("a - b") == "a-b"

    def test_outer_whitespace_ignored(self):
        assert heading_id("  Install  ") == "install"


class TestFrontMatter:
    def test_no_front_matter(self):
        fm, body = split_front_matter("# Hello\n")
        assert fm == {}
        assert body == "# Hello\n"

    def test_mapping(self):
        fm, body = split_front_matter("---\ntitle: Home\ntags: [a, b]\n---\nBody\n")
        assert fm == {"title": "Home", "tags": ["a", "b"]}
        assert body == "Body\n"

    def test_empty_block(self):
        fm, body = split_front_matter("---\n---\nBody\n")
        assert fm == {}
        assert body == "Body\n"

    def test_non_mapping_rejected(self):
        with pytest.raises(FrontMatterError, match="mapping"):
            split_front_matter("---\n- a\n- b\n---\nBody\n")

    def test_invalid_yaml_rejected(self):
        with pytest.raises(FrontMatterError):
            split_front_matter("---\ntitle: [unclosed\n---\nBody\n")

    def test_unclosed_block_is_body(self):
        fm, body = split_front_matter("---\nnot closed\n")
        assert fm == {}
        assert body == "---\nnot closed\n"


class TestClassifyLink:
    def test_relative_is_internal(self):
        link = classify_link("guide/b.md", "B")
        assert link.type == "internal"
        assert link.target == "guide/b.md"
        assert link.hash is None

    def test_fragment_split(self):
        link = classify_link("/guide#install", "Install")
        assert link.type == "internal"
        assert link.target == "/guide"
        assert link.hash == "install"

    def test_empty_fragment_dropped(self):
        assert classify_link("/guide#", "G").hash is None

    @pytest.mark.parametrize("href", [
        "https://example.com",
        "http://example.com/x",
        "//cdn.example.com/a.js",
        "mailto:someone@example.com",
        "#top",
    ])
    def test_external_shapes(self, href):
        link = classify_link(href, "x")
        assert link.type == "external"
        assert link.target is None
        assert link.hash is None


class TestRenderMarkup:
    def test_front_matter_excluded_from_html(self):
        result = render_markup("---\ntitle: Home\n---\n\nHello **world**\n")
        assert result.front_matter == {"title": "Home"}
        assert "title" not in result.html
        assert "<strong>world</strong>" in result.html

    def test_headings_extracted_in_order(self):
        result = render_markup("# Intro\n\n## Install it\n\n### Linux & Mac\n")
        assert [(h.level, h.text, h.id) for h in result.headings] == [
            (1, "Intro", "intro"),
            (2, "Install it", "install-it"),
            (3, "Linux & Mac", "linux-mac"),
        ]

    def test_heading_ids_present_in_html(self):
        result = render_markup("## Install it\n")
        assert 'id="install-it"' in result.html

    def test_repeated_headings_use_rendered_ids(self):
        result = render_markup("## Install\n\ntext\n\n## Install\n")
        assert [h.id for h in result.headings] == ["install", "install_1"]
        assert 'id="install_1"' in result.html

    def test_explicit_heading_id(self):
        result = render_markup("## Setup {#custom-setup}\n")
        assert result.headings[0].id == "custom-setup"
        assert result.headings[0].text == "Setup"

    def test_links_extracted(self):
        result = render_markup(
            "See [B](guide/b.md#setup), [site](https://example.com) and [top](#top).\n"
        )
        assert [(l.href, l.text, l.type) for l in result.links] == [
            ("guide/b.md#setup", "B", "internal"),
            ("https://example.com", "site", "external"),
            ("#top", "top", "external"),
        ]
        assert result.links[0].target == "guide/b.md"
        assert result.links[0].hash == "setup"

    def test_link_without_label_skipped(self):
        result = render_markup('<a href="/x"></a>\n\n[ok](/y)\n')
        assert [l.href for l in result.links] == ["/y"]

    def test_extraction_can_be_disabled(self):
        result = render_markup(
            "# Title\n\n[x](/x)\n", extract_headings=False, extract_links=False,
        )
        assert result.headings == []
        assert result.links == []
        assert "<h1" in result.html
