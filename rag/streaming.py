"""Bounded, cancellable consumption of a token stream.

A producer thread drains the network iterator into a bounded queue; the
consumer iterates fragments as they arrive. The consumer can tell three
outcomes apart:

  - the producer put the end-of-stream sentinel   -> iteration ends normally
  - no fragment arrived within ``stall_timeout``  -> UpstreamFailure (stalled)
  - ``deadline`` seconds elapsed in total         -> UpstreamFailure (deadline)

If the consumer stops early (stall, deadline, cancel or closing the iterator)
the producer is told to stop, ``on_abort`` is called to close the network
response the producer may be blocked on, and the producer thread is joined.
"""

import logging
import queue
import threading
import time
from typing import Callable, Iterable, Iterator, Optional

from rag.errors import RAGError, UpstreamFailure

logger = logging.getLogger(__name__)

_STREAM_CLOSED = object()
_PUT_POLL_SECONDS = 0.1
_JOIN_TIMEOUT_SECONDS = 2.0


class _ProducerFailure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


class BoundedStream:
    """Iterate a fragment source through a bounded buffer with timeouts."""

    def __init__(
        self,
        source: Iterable[str],
        maxsize: int = 1000,
        stall_timeout: float = 10.0,
        deadline: Optional[float] = None,
        service: str = "generation",
        on_abort: Optional[Callable[[], None]] = None,
    ):
        self._source = source
        self._on_abort = on_abort
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._produce, name="stream-producer", daemon=True)
        self.stall_timeout = stall_timeout
        self.deadline = deadline
        self.service = service

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def _put(self, item) -> bool:
        """Enqueue ``item``, giving up if the consumer has cancelled."""
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _produce(self) -> None:
        try:
            for fragment in self._source:
                if not self._put(fragment):
                    logger.debug("Stream producer stopped after cancellation")
                    return
            self._put(_STREAM_CLOSED)
        except Exception as e:
            self._put(_ProducerFailure(e))
        finally:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()

    def __iter__(self) -> Iterator[str]:
        self._thread.start()
        started = time.monotonic()
        finished = False
        try:
            while True:
                if self._cancelled.is_set():
                    raise UpstreamFailure(self.service, "stream cancelled")
                wait_for = self.stall_timeout
                if self.deadline is not None:
                    remaining = self.deadline - (time.monotonic() - started)
                    if remaining <= 0:
                        raise UpstreamFailure(self.service, f"stream exceeded deadline of {self.deadline:.1f}s")
                    wait_for = min(wait_for, remaining)

                try:
                    item = self._queue.get(timeout=wait_for)
                except queue.Empty:
                    if self.deadline is not None and time.monotonic() - started >= self.deadline:
                        raise UpstreamFailure(self.service, f"stream exceeded deadline of {self.deadline:.1f}s")
                    raise UpstreamFailure(self.service, f"stream stalled for {self.stall_timeout:.1f}s")

                if item is _STREAM_CLOSED:
                    finished = True
                    return
                if isinstance(item, _ProducerFailure):
                    finished = True
                    if isinstance(item.error, RAGError):
                        raise item.error
                    raise UpstreamFailure(self.service, str(item.error)) from item.error
                yield item
        finally:
            self.cancel()
            if not finished and self._on_abort is not None:
                self._on_abort()
            self._thread.join(timeout=_JOIN_TIMEOUT_SECONDS)
            if self._thread.is_alive():
                logger.warning("Stream producer still running %.1fs after the consumer stopped", _JOIN_TIMEOUT_SECONDS)
