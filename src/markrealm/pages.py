"""HTML page layout: Jinja2 templates for pages, the sidebar and 404s."""

from importlib import resources
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape

from markrealm.config import SiteConfig
from markrealm.content.models import Document, SidebarItem

_env = Environment(
    loader=PackageLoader("markrealm", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def site_url(route: str, base_url: str = "/") -> str:
    """Public URL of *route* on a site mounted at *base_url*."""
    return base_url.rstrip("/") + route if route != "/" else base_url


_env.filters["site_url"] = site_url


def static_file(name: str) -> Path:
    """Path of a bundled static asset (styles.css, reload-client.js)."""
    return Path(str(resources.files("markrealm") / "static" / name))


def render_sidebar(
    items: list[SidebarItem],
    current_route: str | None = None,
    base_url: str = "/",
) -> str:
    """Nested <ul> navigation; titles are HTML-escaped, links carry *base_url*."""
    return _env.get_template("sidebar.html").render(
        items=items, current_route=current_route, base_url=base_url,
    )


def render_page(
    doc: Document,
    sidebar_html: str,
    config: SiteConfig,
    *,
    is_dev: bool = False,
) -> str:
    return _env.get_template("page.html").render(
        site_title=config.site.title,
        base_url=config.site.base_url,
        page_title=doc.title,
        sidebar=sidebar_html,
        body=doc.html,
        is_dev=is_dev,
    )


def render_not_found(
    route: str,
    sidebar_html: str,
    config: SiteConfig,
    *,
    is_dev: bool = False,
) -> str:
    """Full 404 page, used by the static build and the dev server."""
    body = _env.get_template("404.html").render(route=route, base_url=config.site.base_url)
    return _env.get_template("page.html").render(
        site_title=config.site.title,
        base_url=config.site.base_url,
        page_title="Page Not Found",
        sidebar=sidebar_html,
        body=body,
        is_dev=is_dev,
    )
