"""Bounded in-process event channel.

Producers on any thread publish events; a single consumer applies
them to the engine in arrival order. A full queue drops the new event
instead of growing, so slow consumers never cause unbounded buffering.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional

from ..core.config import Config
from ..core.errors import LocatorError

logger = logging.getLogger(__name__)


@dataclass
class ChannelStats:
    """Counters for channel traffic."""
    published: int = 0
    dispatched: int = 0
    dropped: int = 0
    failed: int = 0

    @property
    def drop_rate(self) -> float:
        """Fraction of published events that were dropped."""
        total = self.published + self.dropped
        if total == 0:
            return 0.0
        return self.dropped / total


class EventChannel:
    """Serializes events from many producers into one engine."""

    def __init__(self, engine, config: Config):
        """Initialize channel.

        Args:
            engine: Object with a handle_event(event) method.
            config: System configuration with channel settings.
        """
        self._engine = engine
        self._poll_timeout = config.channel.poll_timeout_s
        self._queue: "queue.Queue" = queue.Queue(maxsize=config.channel.max_pending)
        self._stats = ChannelStats()
        self._stats_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def publish(self, event) -> bool:
        """Queue an event without blocking.

        Returns:
            True if queued, False if dropped because the queue is full.
        """
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._stats_lock:
                self._stats.dropped += 1
                dropped = self._stats.dropped
            if dropped == 1 or dropped % 100 == 0:
                logger.warning("Event channel full, %d events dropped", dropped)
            return False

        with self._stats_lock:
            self._stats.published += 1
        return True

    def dispatch_pending(self, max_events: Optional[int] = None) -> int:
        """Apply queued events on the calling thread.

        Args:
            max_events: Stop after this many events. None drains the queue.

        Returns:
            Number of events taken from the queue.
        """
        count = 0
        while max_events is None or count < max_events:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            self._dispatch(event)
            count += 1
        return count

    def _dispatch(self, event) -> None:
        """Apply one event, logging rejected ones."""
        try:
            self._engine.handle_event(event)
        except (LocatorError, ValueError, TypeError) as e:
            with self._stats_lock:
                self._stats.failed += 1
            logger.warning("Event rejected: %s", e)
        except Exception as e:
            # the consumer thread must outlive a failing handler
            with self._stats_lock:
                self._stats.failed += 1
            logger.error("Error applying %s: %s", type(event).__name__, e)
        else:
            with self._stats_lock:
                self._stats.dispatched += 1
        finally:
            self._queue.task_done()

    def start(self) -> None:
        """Start the consumer thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="locator-event-channel",
            daemon=True,
        )
        self._thread.start()
        logger.info("Event channel started")

    def stop(self, drain: bool = True) -> None:
        """Stop the consumer thread.

        Args:
            drain: Apply remaining events on the calling thread first.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if drain:
            self.dispatch_pending()
        logger.info("Event channel stopped")

    def _run(self) -> None:
        """Consumer loop."""
        while not self._stop_event.is_set():
            try:
                event = self._queue.get(timeout=self._poll_timeout)
            except queue.Empty:
                continue
            self._dispatch(event)

    def join(self) -> None:
        """Block until every queued event has been processed."""
        self._queue.join()

    @property
    def pending(self) -> int:
        """Approximate number of queued events."""
        return self._queue.qsize()

    @property
    def stats(self) -> ChannelStats:
        """Channel counters."""
        with self._stats_lock:
            return ChannelStats(**vars(self._stats))

    def __enter__(self) -> "EventChannel":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
