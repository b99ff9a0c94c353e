from __future__ import annotations

import logging
import sys

import click

from .config import load_settings, read_template
from .errors import ModpagesError
from .fetch import PageFetcher
from .render import TemplateRenderer
from .server import create_app, page_cache
from .util.logging import setup_logging

LOGGER = logging.getLogger(__name__)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def main():
    """Serve Python package documentation rendered on demand."""


@main.command()
@click.argument("root", required=False)
@click.option("--host", type=str, help="Interface to bind")
@click.option("--port", type=int, help="Port to listen on")
@click.option("--refresh-interval", type=float, help="Seconds between background re-renders")
@click.option("--template", type=click.Path(path_type=str), help="Jinja2 template file")
@click.option("--stylesheet-url", type=str, help="Stylesheet linked from rendered pages")
@click.option("--mimetype", type=str, help="Content type of rendered pages")
@click.option("--logs-dir", type=click.Path(path_type=str), help="Log directory")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def serve(**kwargs):
    """Serve documentation for the ROOT package namespace."""
    settings = load_settings(kwargs)
    setup_logging(settings.logs_dir, settings.log_level)
    app = create_app(settings)
    try:
        app.run(host=settings.host, port=settings.port, threaded=True)
    finally:
        page_cache(app).shutdown(timeout=1.0)


@main.command()
@click.argument("name")
@click.option("--template", type=click.Path(path_type=str), help="Jinja2 template file")
@click.option("--stylesheet-url", type=str, default="", help="Stylesheet linked from the page")
def render(name: str, template: str | None, stylesheet_url: str):
    """Render the page for NAME once and write it to stdout."""
    text = read_template(template) if template else None
    try:
        fetcher = PageFetcher(TemplateRenderer(text, stylesheet_url))
        artifact = fetcher(name)
    except ModpagesError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)
    click.echo(artifact.payload, nl=False)


if __name__ == "__main__":  # pragma: no cover
    main()
