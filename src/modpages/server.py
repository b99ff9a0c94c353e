from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Callable, List, Optional

from flask import Flask, Request, redirect, request, send_file
from flask.typing import ResponseReturnValue

from .cache import PageCache
from .config import Settings
from .errors import PackageImportError
from .fetch import Clock, Inspector, PageFetcher
from .refresh import ErrorHook
from .render import Renderer, TemplateRenderer

LOGGER = logging.getLogger(__name__)

EXTENSION_KEY = "modpages"

ErrorHandler = Callable[[Request, Exception], ResponseReturnValue]


def default_error_handler(req: Request, exc: Exception) -> ResponseReturnValue:
    status = HTTPStatus.NOT_FOUND if isinstance(exc, PackageImportError) else HTTPStatus.INTERNAL_SERVER_ERROR
    if status is HTTPStatus.INTERNAL_SERVER_ERROR:
        LOGGER.error("Serving %s failed: %s", req.path, exc)
    return status.phrase + "\n", status.value, {"Content-Type": "text/plain; charset=utf-8"}


def namespace_for(root: str, path: str) -> str:
    """Map a request path below the mount point to a dotted namespace name."""
    parts: List[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return ".".join([root, *parts])


def create_app(
    settings: Settings,
    *,
    render: Optional[Renderer] = None,
    error_handler: Optional[ErrorHandler] = None,
    on_refresh_error: Optional[ErrorHook] = None,
    inspector: Optional[Inspector] = None,
    clock: Optional[Clock] = None,
) -> Flask:
    if render is None:
        render = TemplateRenderer(settings.template, settings.stylesheet_url)
    handle_error = error_handler or default_error_handler
    fetcher = PageFetcher(render, inspector=inspector, clock=clock)
    cache = PageCache(fetcher, settings.refresh_interval, on_refresh_error=on_refresh_error)

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = cache

    @app.route("/", defaults={"subpath": ""}, methods=["GET", "HEAD"])
    @app.route("/<path:subpath>", methods=["GET", "HEAD"])
    def page(subpath: str):
        if not request.path.endswith("/"):
            location = request.script_root + request.path + "/"
            query = request.query_string.decode("latin-1")
            if query:
                location += "?" + query
            return redirect(location, code=HTTPStatus.MOVED_PERMANENTLY)

        name = namespace_for(settings.root, subpath)
        try:
            artifact = cache.resolve(name)
        except Exception as exc:
            return handle_error(request, exc)
        return send_file(
            artifact.reader(),
            mimetype=settings.mimetype,
            last_modified=artifact.created_at,
            conditional=True,
            etag=False,
        )

    LOGGER.info("Serving documentation for %s (refresh every %ss)", settings.root, settings.refresh_interval)
    return app


def page_cache(app: Flask) -> PageCache:
    return app.extensions[EXTENSION_KEY]
