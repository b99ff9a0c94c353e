from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional

from .models import Artifact
from .refresh import ErrorHook, RefresherSet

LOGGER = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 3600.0


class PageCache:
    """In-memory, grow-only cache of rendered pages keyed by namespace name.

    ``resolve`` renders a name on first use and starts its refresher. Only one
    fetch runs per name at a time: concurrent callers for a name that is
    still being fetched wait on the first caller's result. Misses for
    different names proceed in parallel.
    """

    def __init__(
        self,
        fetch: Callable[[str], Artifact],
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        on_refresh_error: Optional[ErrorHook] = None,
        autostart_refreshers: bool = True,
    ) -> None:
        self.fetch = fetch
        self._lock = threading.Lock()
        self._entries: Dict[str, Artifact] = {}
        self._inflight: Dict[str, Future] = {}
        self.refreshers = RefresherSet(
            fetch,
            self.replace_if_changed,
            refresh_interval,
            on_error=on_refresh_error,
            autostart=autostart_refreshers,
        )

    def resolve(self, name: str) -> Artifact:
        with self._lock:
            artifact = self._entries.get(name)
            if artifact is not None:
                return artifact
            pending = self._inflight.get(name)
            if pending is None:
                pending = Future()
                self._inflight[name] = pending
                owner = True
            else:
                owner = False
        if not owner:
            return pending.result()

        LOGGER.info("Cache miss for %s; rendering", name)
        try:
            artifact = self.fetch(name)
        except BaseException as exc:
            with self._lock:
                del self._inflight[name]
            pending.set_exception(exc)
            raise
        with self._lock:
            try:
                self.refreshers.start(name)
                self._entries[name] = artifact
            except BaseException as exc:
                pending.set_exception(exc)
                raise
            finally:
                del self._inflight[name]
        pending.set_result(artifact)
        return artifact

    def replace_if_changed(self, name: str, artifact: Artifact) -> bool:
        with self._lock:
            current = self._entries.get(name)
            if current is not None and current.payload == artifact.payload:
                LOGGER.debug("Refresh of %s unchanged", name)
                return False
            self._entries[name] = artifact
        LOGGER.info("Refreshed %s (%d bytes)", name, len(artifact.payload))
        return True

    def get(self, name: str) -> Optional[Artifact]:
        with self._lock:
            return self._entries.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        self.refreshers.shutdown(timeout)
