"""Click CLI for markrealm."""

import click

from markrealm import __version__
from markrealm.constants import DEFAULT_DOCS_DIR, DEFAULT_OUT_DIR, DEFAULT_PORT

_dir_option = click.option(
    "--dir", "docs_dir",
    default=DEFAULT_DOCS_DIR,
    envvar="DOCS_DIR",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Documentation directory.",
)
_strict_option = click.option(
    "--strict/--no-strict",
    default=True,
    show_default=True,
    help="Fail on broken internal links.",
)
_verbose_option = click.option("-v", "--verbose", is_flag=True, help="Verbose output.")


def _setup_logging(verbose: bool) -> None:
    import logging

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)


def _resolve_docs_dir(docs_dir: str):
    from pathlib import Path

    docs = Path(docs_dir).resolve()
    if not docs.is_dir():
        raise click.UsageError(f"Documentation directory not found: {docs}")
    return docs


def _echo_check(check) -> None:
    from markrealm.content.links import format_external_summary, format_link_summary

    click.echo("")
    for line in format_link_summary(check.links):
        click.echo(line)
    if check.external is not None:
        click.echo("")
        for line in format_external_summary(check.external):
            click.echo(line)


@click.group()
@click.version_option(__version__, "--version", prog_name="markrealm")
def cli():
    """markrealm: documentation site generator with live reload."""


@cli.command()
@click.argument("docs_dir", default=DEFAULT_DOCS_DIR, type=click.Path(file_okay=False))
def init(docs_dir):
    """Create a default markrealm.config.yaml in DOCS_DIR."""
    from pathlib import Path

    from markrealm.config import create_default_config

    try:
        config_path = create_default_config(Path(docs_dir).resolve())
    except FileExistsError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Created {config_path}")


@cli.command()
@_dir_option
@click.option("--port", default=DEFAULT_PORT, show_default=True, type=int, help="Port for the dev server.")
@_verbose_option
def dev(docs_dir, port, verbose):
    """Start the development server with live reload."""
    from markrealm.server import run_dev_server

    _setup_logging(verbose)
    docs = _resolve_docs_dir(docs_dir)
    click.echo("Starting markrealm development server...")
    click.echo(f"  Docs directory: {docs}")
    click.echo(f"  Port:           {port}")
    run_dev_server(docs, port)


@cli.command()
@_dir_option
@click.option("--out", "out_dir", default=DEFAULT_OUT_DIR, show_default=True,
              type=click.Path(file_okay=False), help="Output directory.")
@_strict_option
@_verbose_option
def build(docs_dir, out_dir, strict, verbose):
    """Build the static site."""
    from pathlib import Path

    from markrealm.build import build_static_site, check_site
    from markrealm.errors import BuildFailed

    _setup_logging(verbose)
    docs = _resolve_docs_dir(docs_dir)
    out = Path(out_dir).resolve()
    click.echo(f"Building {docs} -> {out}")

    check = check_site(docs)
    _echo_check(check)

    try:
        result = build_static_site(docs, out, strict=strict, check=check)
    except BuildFailed as e:
        click.echo(f"\n{e} Use --no-strict to ignore.")
        raise SystemExit(1) from e
    except OSError as e:
        raise click.ClickException(f"Cannot write output directory {out}: {e}") from e

    if result.broken_links:
        click.echo(f"\nFound {result.broken_links} broken links (ignored due to --no-strict).")
    click.echo(f"\nBuilt {result.documents} pages into {result.out_dir}")
    click.echo(f"  Files written: {len(result.files_written)}")
    click.echo(f"  Duration:      {result.duration_ms}ms")


@cli.command()
@_dir_option
@_strict_option
@_verbose_option
def check(docs_dir, strict, verbose):
    """Check internal and external links."""
    from markrealm.build import check_site

    _setup_logging(verbose)
    docs = _resolve_docs_dir(docs_dir)
    click.echo(f"Checking links in {docs}")

    result = check_site(docs)
    _echo_check(result)

    if result.broken_count and strict:
        click.echo(f"\nFound {result.broken_count} broken links. Use --no-strict to ignore.")
        raise SystemExit(1)
    if result.broken_count:
        click.echo(f"\nFound {result.broken_count} broken links (ignored due to --no-strict).")
    else:
        click.echo("\nAll links are valid!")
