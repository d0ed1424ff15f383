"""Bounded worker pool that fetches restaurant detail pages."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from restaurant_inspections.models import Restaurant

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 16

# How long a blocked producer waits before re-checking that a worker is still alive.
_PUT_POLL_SECONDS = 0.05


@dataclass
class FetchSummary:
    scheduled: int = 0
    skipped: int = 0
    fetched: int = 0
    failed: int = 0
    abandoned: int = 0
    workers_stopped: int = 0


def _put_while_consumed(
    work: "queue.Queue[Optional[Restaurant]]",
    item: Optional[Restaurant],
    no_workers: threading.Event,
) -> bool:
    """Put ``item``, giving up (``False``) once every worker has exited."""
    while True:
        try:
            work.put(item, timeout=_PUT_POLL_SECONDS)
            return True
        except queue.Full:
            if no_workers.is_set():
                return False


class DetailFetchScheduler:
    """Fetch detail pages for restaurants with a fixed number of worker threads.

    ``fetch_detail`` must fetch and parse a restaurant's page and write the
    result onto the record it is given. A record is handed to exactly one
    worker, so no locking is needed around it.

    With ``stop_worker_on_error`` a worker that hits an error logs it and stops
    taking work; the run carries on with the remaining workers. Nothing is
    retried. If every worker stops, the restaurants not yet handed out are
    counted as abandoned instead of blocking the producer.
    """

    def __init__(
        self,
        fetch_detail: Callable[[Restaurant], None],
        *,
        workers: int = DEFAULT_WORKERS,
        stop_worker_on_error: bool = True,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.fetch_detail = fetch_detail
        self.workers = workers
        self.stop_worker_on_error = stop_worker_on_error

    @staticmethod
    def needs_fetch(restaurant: Restaurant, force_refetch: bool) -> bool:
        return force_refetch or not restaurant.has_details

    def run(self, restaurants: Sequence[Restaurant], force_refetch: bool = False) -> FetchSummary:
        summary = FetchSummary()
        counter_lock = threading.Lock()
        # None is the stop sentinel; one is queued per worker once all work is in.
        work: "queue.Queue[Optional[Restaurant]]" = queue.Queue(maxsize=self.workers)
        no_workers = threading.Event()
        live = [self.workers]

        def worker(worker_id: int) -> None:
            try:
                while True:
                    restaurant = work.get()
                    if restaurant is None:
                        return
                    try:
                        self.fetch_detail(restaurant)
                    except Exception as exc:  # noqa: BLE001
                        logger.warning("Failed to fetch details for %s (%s): %s", restaurant.name, restaurant.detail_url, exc)
                        with counter_lock:
                            summary.failed += 1
                        if self.stop_worker_on_error:
                            logger.warning("Worker %d stopping after error", worker_id)
                            with counter_lock:
                                summary.workers_stopped += 1
                            return
                        continue
                    with counter_lock:
                        summary.fetched += 1
            finally:
                with counter_lock:
                    live[0] -= 1
                    if live[0] == 0:
                        no_workers.set()

        threads = [
            threading.Thread(target=worker, args=(i,), name=f"detail-worker-{i}", daemon=True)
            for i in range(self.workers)
        ]
        for thread in threads:
            thread.start()

        pending: List[Restaurant] = []
        seen = set()
        for restaurant in restaurants:
            if not self.needs_fetch(restaurant, force_refetch):
                summary.skipped += 1
            elif id(restaurant) not in seen:
                seen.add(id(restaurant))
                pending.append(restaurant)

        try:
            for index, restaurant in enumerate(pending):
                if not _put_while_consumed(work, restaurant, no_workers):
                    summary.abandoned = len(pending) - index
                    logger.error(
                        "All %d workers stopped; %d restaurants were not fetched",
                        self.workers,
                        summary.abandoned,
                    )
                    break
                summary.scheduled += 1
        finally:
            for _ in threads:
                if not _put_while_consumed(work, None, no_workers):
                    break

        for thread in threads:
            thread.join()

        leftover = 0
        while True:
            try:
                item = work.get_nowait()
            except queue.Empty:
                break
            if item is not None:
                leftover += 1
        if leftover:
            summary.abandoned += leftover
            summary.scheduled -= leftover

        logger.info(
            "Detail fetch finished: scheduled=%d fetched=%d failed=%d skipped=%d abandoned=%d workers_stopped=%d",
            summary.scheduled,
            summary.fetched,
            summary.failed,
            summary.skipped,
            summary.abandoned,
            summary.workers_stopped,
        )
        return summary
