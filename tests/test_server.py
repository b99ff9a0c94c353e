from datetime import UTC, datetime

import pytest
from werkzeug.http import http_date

from modpages.config import Settings
from modpages.errors import RenderError
from modpages.server import create_app, namespace_for, page_cache

from conftest import PKG

T1 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def app(sample_pkg):
    app = create_app(Settings(root=PKG, refresh_interval=3600), clock=lambda: T1)
    yield app
    page_cache(app).shutdown(timeout=1)


@pytest.fixture
def client(app):
    return app.test_client()


def test_root_page_is_rendered(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert resp.headers["Last-Modified"] == http_date(T1)
    body = resp.get_data(as_text=True)
    assert f"<title>{PKG}</title>" in body
    assert '<a href="sub/">sub</a>' in body


def test_subpackage_page_is_rendered(app, client):
    resp = client.get("/sub/")
    assert resp.status_code == 200
    assert "def helper(*args, **kwargs)" in resp.get_data(as_text=True)
    assert page_cache(app).names() == [f"{PKG}.sub"]


def test_missing_trailing_slash_redirects_with_query(client):
    resp = client.get("/sub?tab=index&x=1")
    assert resp.status_code == 301
    assert resp.headers["Location"] == "/sub/?tab=index&x=1"


def test_unknown_package_is_not_found_and_not_cached(app, client):
    resp = client.get("/nope/")
    assert resp.status_code == 404
    assert resp.get_data(as_text=True) == "Not Found\n"
    assert len(page_cache(app)) == 0


def test_conditional_get_returns_not_modified(client):
    client.get("/")
    resp = client.get("/", headers={"If-Modified-Since": http_date(T1)})
    assert resp.status_code == 304


def test_range_request_returns_partial_content(client):
    resp = client.get("/", headers={"Range": "bytes=0-14"})
    assert resp.status_code == 206
    assert resp.get_data() == b"<!DOCTYPE html>"


def test_repeat_requests_use_one_refresher(app, client):
    for _ in range(3):
        assert client.get("/").status_code == 200
    assert page_cache(app).refreshers.names() == [PKG]


def test_render_failures_map_to_internal_error(sample_pkg):
    def render(doc):
        raise RenderError("no")

    app = create_app(Settings(root=PKG), render=render)
    resp = app.test_client().get("/")
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == "Internal Server Error\n"


def test_custom_renderer_and_error_handler(sample_pkg):
    seen = []

    def handle(req, exc):
        seen.append((req.path, type(exc).__name__))
        return "custom", 410

    app = create_app(
        Settings(root=PKG, mimetype="text/plain"),
        render=lambda doc: doc.import_path,
        error_handler=handle,
    )
    client = app.test_client()
    resp = client.get("/tools/")
    assert resp.get_data(as_text=True) == f"{PKG}.tools"
    assert resp.mimetype == "text/plain"
    resp = client.get("/absent/")
    assert resp.status_code == 410
    assert seen == [("/absent/", "PackageImportError")]
    page_cache(app).shutdown(timeout=1)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("", "root"),
        ("a/", "root.a"),
        ("a/b/", "root.a.b"),
        ("a//./b/", "root.a.b"),
        ("a/../b/", "root.b"),
        ("../../", "root"),
    ],
)
def test_namespace_for(path, expected):
    assert namespace_for("root", path) == expected
