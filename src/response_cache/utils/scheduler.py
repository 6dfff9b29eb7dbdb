"""Background periodic execution on a daemon thread."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a callable every ``interval`` seconds until stopped.

    The first run happens one interval after ``start()``. A failing callback
    is logged and the loop keeps going. ``stop()`` joins the thread, so no
    run is in flight once it returns. The task can be started again after
    being stopped.

    Example:
        ```python
        task = PeriodicTask(store.persist, interval=300, name="cache-persist")
        task.start()
        ...
        task.stop()
        ```
    """

    def __init__(self, func: Callable[[], object], interval: float, name: str = "periodic-task") -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._func = func
        self._interval = interval
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread (no-op if already running)."""
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.debug(f"Started {self._name} every {self._interval}s")

    def stop(self, timeout: float | None = None) -> None:
        """Signal the thread to exit and wait for it."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug(f"Stopped {self._name}")

    def _run(self) -> None:
        stop_event = self._stop_event
        while not stop_event.wait(self._interval):
            try:
                self._func()
            except Exception:
                logger.exception(f"{self._name} run failed")
