import queue
import threading
import time

import pytest

from restaurant_inspections.core import scheduler as scheduler_module
from restaurant_inspections.core.scheduler import DetailFetchScheduler
from restaurant_inspections.models import Inspection, Restaurant


def _restaurants(count, fetched=()):
    restaurants = []
    for i in range(count):
        inspections = [Inspection(date="01-Jan-2024")] if i in fetched else []
        restaurants.append(Restaurant(id=str(i), name=f"R{i}", inspections=inspections))
    return restaurants


class RecordingFetcher:
    def __init__(self, fail_ids=(), delay=0.0):
        self.fail_ids = set(fail_ids)
        self.delay = delay
        self.calls = []
        self.lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def __call__(self, restaurant):
        with self.lock:
            self.calls.append(restaurant.id)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if restaurant.id in self.fail_ids:
                raise ConnectionError(f"boom {restaurant.id}")
            restaurant.inspections = [Inspection(date="01-Jan-2024", identifier=restaurant.id)]
        finally:
            with self.lock:
                self.active -= 1


def test_fetches_only_restaurants_without_inspections():
    restaurants = _restaurants(5, fetched={1, 3})
    fetcher = RecordingFetcher()

    summary = DetailFetchScheduler(fetcher, workers=2).run(restaurants)

    assert sorted(fetcher.calls) == ["0", "2", "4"]
    assert summary.scheduled == 3
    assert summary.fetched == 3
    assert summary.skipped == 2


def test_force_refetch_fetches_everything():
    restaurants = _restaurants(4, fetched={0, 1, 2, 3})
    fetcher = RecordingFetcher()

    DetailFetchScheduler(fetcher, workers=3).run(restaurants, force_refetch=True)

    assert sorted(fetcher.calls) == ["0", "1", "2", "3"]


def test_second_run_is_idempotent():
    restaurants = _restaurants(10)
    fetcher = RecordingFetcher()
    scheduler = DetailFetchScheduler(fetcher, workers=4)

    scheduler.run(restaurants)
    first_calls = len(fetcher.calls)
    summary = scheduler.run(restaurants)

    assert first_calls == 10
    assert len(fetcher.calls) == 10
    assert summary.scheduled == 0
    assert summary.skipped == 10


def test_parallelism_is_bounded_by_worker_count():
    fetcher = RecordingFetcher(delay=0.02)

    DetailFetchScheduler(fetcher, workers=3).run(_restaurants(12))

    assert len(fetcher.calls) == 12
    assert 1 <= fetcher.max_active <= 3


def test_duplicate_references_are_fetched_once():
    restaurant = Restaurant(id="dup", name="Dup")
    fetcher = RecordingFetcher()

    summary = DetailFetchScheduler(fetcher, workers=2).run([restaurant, restaurant])

    assert fetcher.calls == ["dup"]
    assert summary.scheduled == 1


def test_failing_worker_stops_but_run_completes():
    restaurants = _restaurants(6)
    fetcher = RecordingFetcher(fail_ids={"0"})

    summary = DetailFetchScheduler(fetcher, workers=2).run(restaurants)

    assert summary.failed == 1
    assert summary.workers_stopped == 1
    assert summary.fetched == 5
    assert restaurants[0].inspections == []
    assert all(r.inspections for r in restaurants[1:])


def test_all_workers_stopping_does_not_hang():
    restaurants = _restaurants(20)
    fetcher = RecordingFetcher(fail_ids={r.id for r in restaurants})

    summary = DetailFetchScheduler(fetcher, workers=2).run(restaurants)

    assert summary.failed == 2
    assert summary.workers_stopped == 2
    assert summary.fetched == 0
    assert summary.scheduled + summary.abandoned == 20
    assert summary.scheduled - summary.failed == 0
    assert len(fetcher.calls) == 2


def test_continue_policy_keeps_worker_alive():
    restaurants = _restaurants(6)
    fetcher = RecordingFetcher(fail_ids={"0", "1", "2"})

    summary = DetailFetchScheduler(fetcher, workers=1, stop_worker_on_error=False).run(restaurants)

    assert fetcher.calls == ["0", "1", "2", "3", "4", "5"]
    assert summary.failed == 3
    assert summary.fetched == 3
    assert summary.workers_stopped == 0


def test_single_worker_preserves_listing_order():
    fetcher = RecordingFetcher()
    DetailFetchScheduler(fetcher, workers=1).run(_restaurants(5))
    assert fetcher.calls == ["0", "1", "2", "3", "4"]


def test_failures_are_logged(caplog):
    fetcher = RecordingFetcher(fail_ids={"0"})
    with caplog.at_level("WARNING"):
        DetailFetchScheduler(fetcher, workers=1).run(_restaurants(1))
    assert "Failed to fetch details for R0" in caplog.text


def test_workers_must_be_positive():
    with pytest.raises(ValueError):
        DetailFetchScheduler(RecordingFetcher(), workers=0)


def test_put_gives_up_once_workers_are_gone():
    work = queue.Queue(maxsize=1)
    work.put("a")
    no_workers = threading.Event()
    threading.Timer(0.1, no_workers.set).start()

    assert scheduler_module._put_while_consumed(work, "b", no_workers) is False
    assert work.get_nowait() == "a"


def test_put_succeeds_when_space_frees_up():
    work = queue.Queue(maxsize=1)
    work.put("a")
    threading.Timer(0.1, work.get).start()

    assert scheduler_module._put_while_consumed(work, "b", threading.Event()) is True


def test_all_workers_stopping_reports_abandoned(caplog):
    restaurants = _restaurants(30)
    fetcher = RecordingFetcher(fail_ids={r.id for r in restaurants}, delay=0.02)

    with caplog.at_level("ERROR"):
        summary = DetailFetchScheduler(fetcher, workers=3).run(restaurants)

    assert summary.workers_stopped == 3
    assert summary.abandoned == 27
    assert "All 3 workers stopped" in caplog.text
