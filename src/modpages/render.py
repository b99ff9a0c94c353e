from __future__ import annotations

import re
from dataclasses import asdict
from pathlib import Path
from typing import Callable, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, select_autoescape
from markupsafe import Markup, escape

from .errors import RenderError
from .models import Package

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = "package.html.j2"

Renderer = Callable[[Package], Union[bytes, str]]

_BLANK = re.compile(r"\n\s*\n")


def doc_html(text: str | None) -> Markup:
    """Turn a cleaned docstring into paragraphs, keeping indented blocks preformatted."""
    if not text:
        return Markup("")
    blocks: List[str] = []
    for block in _BLANK.split(text.strip()):
        lines = block.splitlines()
        if all(line.startswith((" ", "\t")) for line in lines):
            blocks.append(f"<pre>{escape(_dedent(lines))}</pre>")
        else:
            blocks.append(f"<p>{escape(' '.join(line.strip() for line in lines))}</p>")
    return Markup("\n".join(blocks))


def _dedent(lines: List[str]) -> str:
    margin = min(len(line) - len(line.lstrip()) for line in lines)
    return "\n".join(line[margin:] for line in lines)


def _env() -> Environment:
    loader = FileSystemLoader(TEMPLATE_DIR)
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"], default_for_string=True))
    env.filters["doc_html"] = doc_html
    return env


class TemplateRenderer:
    """Default renderer: applies a Jinja2 template to a documentation record."""

    def __init__(self, template: Optional[str] = None, stylesheet_url: str = "") -> None:
        self.stylesheet_url = stylesheet_url
        self._env = _env()
        try:
            if template is None:
                self._template: Template = self._env.get_template(DEFAULT_TEMPLATE)
            else:
                self._template = self._env.from_string(template)
        except TemplateError as exc:
            raise RenderError(f"invalid template: {exc}") from exc

    def __call__(self, doc: Package) -> bytes:
        context = asdict(doc)
        context["synopsis"] = doc.synopsis
        context["stylesheet_url"] = self.stylesheet_url
        try:
            return self._template.render(**context).encode("utf-8")
        except TemplateError as exc:
            raise RenderError(f"rendering {doc.import_path} failed: {exc}") from exc
