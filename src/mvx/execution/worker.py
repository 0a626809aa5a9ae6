"""Background worker that executes a batch and publishes progress events."""

from __future__ import annotations

import logging
import queue
import threading
from typing import List, Optional, Sequence

from mvx.progress.events import ProgressEvent

from .batch import BatchReport, BatchRequest, BatchRunner

LOGGER = logging.getLogger(__name__)


class ConversionWorker:
    """Run a :class:`BatchRunner` on one dedicated thread.

    The runner's executor is expected to report to a ``ChannelSink`` writing to
    :attr:`channel`; the worker is the only producer on that queue. Observers
    read events from the queue and poll :attr:`done`; they never touch the
    runner directly.
    """

    def __init__(
        self,
        runner: BatchRunner,
        requests: Sequence[BatchRequest],
        channel: "queue.Queue[ProgressEvent]",
    ) -> None:
        self.runner = runner
        self.requests: List[BatchRequest] = list(requests)
        self.channel = channel
        self.done = threading.Event()
        self.report: Optional[BatchReport] = None
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def labels(self) -> List[str]:
        """Labels of every queued request, in processing order."""
        return [str(request.source) for request in self.requests]

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None:
            raise RuntimeError("Worker already started.")
        self._thread = threading.Thread(target=self._run, name="mvx-worker", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> Optional[BatchReport]:
        """Wait for the worker to finish and return its report."""
        if self._thread is not None:
            self._thread.join(timeout)
        if self.error is not None:
            raise self.error
        return self.report

    def _run(self) -> None:
        try:
            self.report = self.runner.run(self.requests)
        except Exception as exc:  # pragma: no cover - surfaced through join()
            LOGGER.exception("Conversion worker failed")
            self.error = exc
        finally:
            self.done.set()


__all__ = ["ConversionWorker"]
