"""Centralized file extension and naming constants."""

from markrealm import __version__

MARKUP_EXTENSIONS: tuple[str, ...] = (".md", ".mdoc")

CONFIG_FILENAMES: tuple[str, ...] = (
    "markrealm.config.yaml",
    "markrealm.config.yml",
    "markrealm.config.json",
)

UNTITLED = "Untitled"

LINK_CHECK_BATCH_SIZE = 10
LINK_CHECK_USER_AGENT = f"markrealm-link-checker/{__version__}"

LIVERELOAD_PATH = "/_livereload"

DEFAULT_PORT = 5173
DEFAULT_DOCS_DIR = "./docs"
DEFAULT_OUT_DIR = "dist"


def is_markup_file(file_path: str) -> bool:
    """True if the path has one of the recognised markup extensions."""
    return str(file_path).endswith(MARKUP_EXTENSIONS)


def strip_markup_extension(value: str) -> str:
    """Remove a single trailing markup extension, if any."""
    for ext in MARKUP_EXTENSIONS:
        if value.endswith(ext):
            return value[: -len(ext)]
    return value
