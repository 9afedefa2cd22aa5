"""Background execution of organize batches."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from cadence.core.models import BatchState, FileResult, OrganizeRequest, OrganizeResult
from cadence.core.organizer import NullReporter, OrganizeEngine, validate_request
from cadence.core.ports import MetadataProvider, TaskReporter

logger = logging.getLogger(__name__)

_STOP = object()


class ProgressDispatcher:
    """Forwards reporter notifications from a dedicated thread.

    Callers never block on the reporter; notifications are delivered in the
    order they were emitted.
    """

    def __init__(self, reporter: TaskReporter) -> None:
        self._reporter = reporter
        self._queue: queue.Queue = queue.Queue()
        self._thread = threading.Thread(
            target=self._drain, name="cadence-progress", daemon=True
        )
        self._thread.start()

    def on_progress(self, processed: int, total: int, outcome: FileResult) -> None:
        self._queue.put(("on_progress", (processed, total, outcome)))

    def on_complete(self, result: OrganizeResult) -> None:
        self._queue.put(("on_complete", (result,)))

    def close(self, timeout: Optional[float] = None) -> None:
        """Deliver everything queued so far, then stop the thread."""
        self._queue.put(_STOP)
        self._thread.join(timeout)

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            method, args = item
            try:
                getattr(self._reporter, method)(*args)
            except Exception:  # noqa: BLE001 - a broken reporter must not stall delivery
                logger.exception("Task reporter failed in %s", method)


class OrganizeHandle:
    """Caller-owned handle to a running batch."""

    def __init__(self, engine: OrganizeEngine, future: Future) -> None:
        self._engine = engine
        self._future = future

    def cancel(self) -> None:
        self._engine.cancel()

    def done(self) -> bool:
        return self._future.done()

    @property
    def state(self) -> BatchState:
        return self._engine.state

    def result(self, timeout: Optional[float] = None) -> OrganizeResult:
        """Wait for the batch; returns after every notification was delivered."""
        return self._future.result(timeout)


def start_organize(
    request: OrganizeRequest,
    metadata_provider: MetadataProvider,
    reporter: Optional[TaskReporter] = None,
) -> OrganizeHandle:
    """Validate a request and run it on its own worker thread.

    Raises:
        ParseError / ValidationError: synchronously, before any work starts
    """
    validate_request(request)
    dispatcher = ProgressDispatcher(reporter or NullReporter())
    engine = OrganizeEngine(request, metadata_provider, reporter=dispatcher)

    def _run() -> OrganizeResult:
        try:
            return engine.run()
        finally:
            dispatcher.close()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cadence-organize")
    future = executor.submit(_run)
    executor.shutdown(wait=False)
    return OrganizeHandle(engine, future)
