from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from .errors import PackageImportError, RenderError
from .inspector import inspect_package
from .models import Artifact, Package
from .render import Renderer
from .util.time import now_utc

LOGGER = logging.getLogger(__name__)

Inspector = Callable[[str], Package]
Clock = Callable[[], datetime]


class PageFetcher:
    """Turns a namespace name into a freshly rendered Artifact.

    Holds no shared state, so concurrent calls need no coordination here.
    """

    def __init__(self, render: Renderer, inspector: Optional[Inspector] = None, clock: Optional[Clock] = None) -> None:
        self.render = render
        self.inspector = inspector or inspect_package
        self.clock = clock or now_utc

    def _inspect(self, name: str) -> Package:
        try:
            doc = self.inspector(name)
        except PackageImportError:
            raise
        except Exception as exc:
            raise RenderError(f"inspecting {name} failed: {exc}") from exc
        if doc is None or not doc.name:
            raise PackageImportError(f"{name} did not resolve to a package")
        return doc

    def _render(self, doc: Package) -> bytes:
        try:
            payload = self.render(doc)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"rendering {doc.import_path} failed: {exc}") from exc
        if isinstance(payload, str):
            return payload.encode("utf-8")
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        raise RenderError(f"rendering {doc.import_path} returned {type(payload).__name__}")

    def __call__(self, name: str) -> Artifact:
        doc = self._inspect(name)
        payload = self._render(doc)
        LOGGER.debug("Rendered %s (%d bytes)", name, len(payload))
        return Artifact(payload=payload, created_at=self.clock())
