"""Shared test fixtures."""

import pytest


def write_file(path, content=""):
    """Write a file, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def docs_dir(tmp_path):
    """Empty content root."""
    root = tmp_path / "docs"
    root.mkdir()
    return root


@pytest.fixture
def sample_site(docs_dir):
    """Three-page site: home, and a guide section with two pages."""
    write_file(docs_dir / "index.md", "---\ntitle: Home\n---\n\nWelcome.\n")
    write_file(
        docs_dir / "guide" / "a.md",
        "---\ntitle: A\n---\n\nSee [page B](guide/b.md).\n",
    )
    write_file(docs_dir / "guide" / "b.md", "---\ntitle: B\n---\n\n## Install\n\nSteps.\n")
    return docs_dir
