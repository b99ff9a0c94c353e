from pathlib import Path
from textwrap import dedent

import pytest

PKG = "mp_sample"

INIT_SOURCE = dedent(
    '''
    """Sample package for documentation tests.

    It has a second paragraph.

        indented = "example"
    """

    __all__ = ["MAX_SIZE", "registry", "greet", "Widget"]

    MAX_SIZE = 10
    """Largest widget size."""

    registry: dict = {}

    _hidden = 1


    def greet(name: str, punctuation: str = "!") -> str:
        """Return a greeting for <name>."""
        return f"hello {name}{punctuation}"


    def not_exported():
        pass


    class Widget(object):
        """A small widget."""

        KIND = "widget"

        def __init__(self, size: int = 1):
            self.size = size

        @classmethod
        def build(cls, size):
            """Build a widget."""
            return cls(size)

        async def spin(self, times: int) -> None:
            """Spin the widget."""

        def _private(self):
            pass
    '''
)

SUB_SOURCE = dedent(
    '''
    """Helpers."""

    def helper(*args, **kwargs):
        pass
    '''
)


def write_sample_package(root: Path, init_source: str = INIT_SOURCE) -> Path:
    pkg = root / PKG
    (pkg / "sub").mkdir(parents=True, exist_ok=True)
    (pkg / "__init__.py").write_text(init_source, encoding="utf-8")
    (pkg / "sub" / "__init__.py").write_text(SUB_SOURCE, encoding="utf-8")
    (pkg / "tools.py").write_text('"""Tools module."""\n', encoding="utf-8")
    (pkg / "_internal.py").write_text("", encoding="utf-8")
    return pkg


@pytest.fixture
def sample_pkg(tmp_path, monkeypatch):
    pkg = write_sample_package(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    return pkg
