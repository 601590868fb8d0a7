"""Site config loader (YAML or JSON) with per-field defaults."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from markrealm.constants import CONFIG_FILENAMES
from markrealm.errors import ConfigParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteSection:
    title: str = "My Docs"
    base_url: str = "/"


@dataclass(frozen=True)
class SidebarSection:
    order: tuple[str, ...] = ()
    hierarchical: bool = True


@dataclass(frozen=True)
class LinkcheckSection:
    enabled: bool = True
    external_timeout_ms: int = 5000


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide settings, read once per build or serve session."""

    site: SiteSection = field(default_factory=SiteSection)
    sidebar: SidebarSection = field(default_factory=SidebarSection)
    linkcheck: LinkcheckSection = field(default_factory=LinkcheckSection)
    ignore: tuple[str, ...] = ()


DEFAULT_CONFIG = SiteConfig()


def load_config(docs_dir: Path) -> SiteConfig:
    """Load the first config file found in *docs_dir*, or the defaults.

    A file that fails to parse is logged and skipped; the search continues
    with the next candidate name.
    """
    docs_dir = Path(docs_dir)
    for name in CONFIG_FILENAMES:
        config_path = docs_dir / name
        if not config_path.is_file():
            continue
        try:
            return parse_config(config_path)
        except ConfigParseError as e:
            logger.warning("Failed to parse config file %s: %s", name, e)
    return DEFAULT_CONFIG


def parse_config(config_path: Path) -> SiteConfig:
    """Parse one config file. Raises ConfigParseError on any problem."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"cannot read {config_path}: {e}") from e

    try:
        if config_path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"top level must be a mapping, got {type(data).__name__}"
        )
    return merge_config(data)


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigParseError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _string_list(value, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParseError(f"'{key}' must be a list of strings")
    return tuple(value)


def _bool(value, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigParseError(f"'{key}' must be true or false")
    return value


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"


def merge_config(data: dict) -> SiteConfig:
    """Overlay a raw config mapping on the defaults. Unknown keys are ignored."""
    site = _section(data, "site")
    sidebar = _section(data, "sidebar")
    linkcheck = _section(data, "linkcheck")

    default = DEFAULT_CONFIG
    order = default.sidebar.order
    if sidebar.get("order") is not None:
        order = _string_list(sidebar["order"], "sidebar.order")
    ignore = default.ignore
    if data.get("ignore"):
        ignore = _string_list(data["ignore"], "ignore")

    timeout_ms = linkcheck.get("externalTimeoutMs", default.linkcheck.external_timeout_ms)
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)) or timeout_ms <= 0:
        raise ConfigParseError("'linkcheck.externalTimeoutMs' must be a positive number")

    return SiteConfig(
        site=SiteSection(
            title=str(site.get("title", default.site.title)),
            base_url=_with_trailing_slash(str(site.get("baseUrl", default.site.base_url))),
        ),
        sidebar=SidebarSection(
            order=order,
            hierarchical=_bool(
                sidebar.get("hierarchical", default.sidebar.hierarchical),
                "sidebar.hierarchical",
            ),
        ),
        linkcheck=LinkcheckSection(
            enabled=_bool(
                linkcheck.get("enabled", default.linkcheck.enabled), "linkcheck.enabled",
            ),
            external_timeout_ms=int(timeout_ms),
        ),
        ignore=ignore,
    )


def create_default_config(docs_dir: Path) -> Path:
    """Create a default markrealm.config.yaml in *docs_dir*. Returns the path."""
    docs_dir = Path(docs_dir)
    docs_dir.mkdir(parents=True, exist_ok=True)
    for name in CONFIG_FILENAMES:
        existing = docs_dir / name
        if existing.exists():
            raise FileExistsError(f"Config already exists: {existing}")
    config_path = docs_dir / CONFIG_FILENAMES[0]
    config_path.write_text(
        'site:\n'
        '  title: "My Docs"\n'
        '  baseUrl: "/"\n'
        '\n'
        'sidebar:\n'
        '  # Top-level entries listed first, in this order. Literal names match\n'
        '  # a single page or section; "*" matches any characters.\n'
        '  order: []\n'
        '  # order: ["getting-started.md", "guide/*"]\n'
        '  hierarchical: true\n'
        '\n'
        'linkcheck:\n'
        '  enabled: true\n'
        '  externalTimeoutMs: 5000\n'
        '\n'
        '# Paths containing these strings are skipped; "*" matches any characters.\n'
        'ignore: []\n'
        '# ignore: ["drafts/*", "*.draft.md"]\n',
        encoding="utf-8",
    )
    return config_path
