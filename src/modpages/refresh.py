from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from .models import Artifact

LOGGER = logging.getLogger(__name__)

Fetch = Callable[[str], Artifact]
Replace = Callable[[str, Artifact], bool]
ErrorHook = Callable[[str, Exception], None]


class Refresher(threading.Thread):
    """Background loop that re-renders one name every ``interval`` seconds.

    Failed cycles are skipped; the previously cached artifact stays in place
    until a later cycle succeeds.
    """

    def __init__(
        self,
        name: str,
        fetch: Fetch,
        replace: Replace,
        interval: float,
        on_error: Optional[ErrorHook] = None,
    ) -> None:
        super().__init__(name=f"refresh:{name}", daemon=True)
        self.namespace = name
        self.fetch = fetch
        self.replace = replace
        self.interval = interval
        self.on_error = on_error
        self._stop_event = threading.Event()
        self.cycles = 0

    def run_once(self) -> bool:
        """Run a single fetch/compare cycle. Returns True if the cache changed."""
        self.cycles += 1
        try:
            artifact = self.fetch(self.namespace)
        except Exception as exc:
            LOGGER.debug("Refresh of %s skipped: %s", self.namespace, exc)
            if self.on_error is not None:
                try:
                    self.on_error(self.namespace, exc)
                except Exception:
                    LOGGER.exception("Refresh error hook failed for %s", self.namespace)
            return False
        return self.replace(self.namespace, artifact)

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.run_once()

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()


class RefresherSet:
    """Refreshers keyed by name; at most one per name for the life of the set."""

    def __init__(
        self,
        fetch: Fetch,
        replace: Replace,
        interval: float,
        on_error: Optional[ErrorHook] = None,
        autostart: bool = True,
    ) -> None:
        self.fetch = fetch
        self.replace = replace
        self.interval = interval
        self.on_error = on_error
        self.autostart = autostart
        self._lock = threading.Lock()
        self._tasks: Dict[str, Refresher] = {}

    def start(self, name: str) -> bool:
        with self._lock:
            if name in self._tasks:
                return False
            task = Refresher(name, self.fetch, self.replace, self.interval, self.on_error)
            self._tasks[name] = task
        if self.autostart:
            try:
                task.start()
            except BaseException:
                with self._lock:
                    del self._tasks[name]
                raise
        LOGGER.debug("Started refresher for %s every %ss", name, self.interval)
        return True

    def get(self, name: str) -> Optional[Refresher]:
        with self._lock:
            return self._tasks.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tasks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            tasks = list(self._tasks.values())
        for task in tasks:
            task.stop()
        for task in tasks:
            if task.is_alive():
                task.join(timeout)
        LOGGER.info("Stopped %d refresher(s)", len(tasks))
