"""
Fire-and-forget delivery of session records to a persistence adapter.

Gameplay never waits on storage: every publish call returns immediately
and a failing write is logged and counted, never raised into the caller.

Writes run on a single background worker thread with its own event loop,
whether or not the caller is inside a running loop. Blocking adapter I/O
therefore never stalls the caller's loop, and writes land in submission
order.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Awaitable, Callable, Optional

from ..models import AnalyticsRecord, InteractionRecord, LeadPayload
from .base import PersistenceAdapter


logger = logging.getLogger(__name__)

WriteFactory = Callable[[], Awaitable[None]]


class EventPublisher:
    """
    Non-blocking writer in front of a PersistenceAdapter.

    Usage:
        publisher = EventPublisher(SQLitePersistenceAdapter("puzzle.db"))
        session = GameSession(game_model, publisher=publisher)
        ...
        publisher.close()
    """

    def __init__(self, adapter: PersistenceAdapter):
        self.adapter = adapter
        self.failures = 0
        self.delivered = 0
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future] = []
        self._closed = False

    def publish_interaction(self, record: InteractionRecord) -> None:
        self._submit(lambda: self.adapter.record_interaction(record), "interaction")

    def publish_analytics(self, record: AnalyticsRecord) -> None:
        self._submit(lambda: self.adapter.record_analytics(record), "analytics")

    def publish_lead(self, payload: LeadPayload) -> None:
        self._submit(lambda: self.adapter.record_lead(payload), "lead")

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for f in self._futures if not f.done())

    def _submit(self, factory: WriteFactory, label: str) -> None:
        with self._lock:
            if self._closed:
                logger.warning(f"Publisher closed; dropping {label} write")
                return
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="connection-puzzle-publisher"
                )
            future = self._executor.submit(self._run, factory, label)
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)

    def _run(self, factory: WriteFactory, label: str) -> None:
        asyncio.run(self._deliver(factory, label))

    async def _deliver(self, factory: WriteFactory, label: str) -> None:
        try:
            await factory()
        except Exception as e:
            with self._lock:
                self.failures += 1
            logger.warning(f"Failed to persist {label}: {e}")
        else:
            with self._lock:
                self.delivered += 1

    def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every submitted write finishes.

        Returns:
            True if nothing is left pending
        """
        with self._lock:
            futures = list(self._futures)
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    async def join(self) -> None:
        """Await every pending write without blocking the running loop."""
        with self._lock:
            futures = list(self._futures)
        for future in futures:
            await asyncio.wrap_future(future)

    def close(self, timeout: Optional[float] = None) -> None:
        """Flush pending writes and stop accepting new ones."""
        with self._lock:
            self._closed = True
        self.drain(timeout)
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "EventPublisher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
