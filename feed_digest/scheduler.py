from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from .models import FeedDescriptor, FeedStatus, ParsedItem
from .utils.logging import get_logger

logger = get_logger("fd.scheduler")

BATCH_CONCURRENCY = 20
OVERALL_DEADLINE_SECONDS = 25.0

# (feed, cancel_event) -> items
FeedFetchFn = Callable[[FeedDescriptor, threading.Event], List[ParsedItem]]


@dataclass(frozen=True, slots=True)
class FeedTask:
    category: str
    feed: FeedDescriptor


@dataclass(slots=True)
class SchedulerResult:
    results_by_category: Dict[str, List[ParsedItem]] = field(default_factory=dict)
    feed_statuses: Dict[str, FeedStatus] = field(default_factory=dict)


class FeedScheduler:
    """Run feed fetches in fixed-width batches under one wall-clock deadline.

    Batches run one after another; tasks inside a batch run concurrently.
    When the deadline passes, the shared cancellation event is set, no further
    batch starts, and in-flight tasks are left to wind down in the background
    while the caller gets the results collected so far. Feeds that did not
    finish in time are reported as ``timeout``.
    """

    def __init__(
        self,
        fetch: FeedFetchFn,
        *,
        batch_size: int = BATCH_CONCURRENCY,
        deadline: float = OVERALL_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.fetch = fetch
        self.batch_size = batch_size
        self.deadline = deadline
        self._clock = clock

    def _run_task(self, task: FeedTask, cancel_event: threading.Event) -> List[ParsedItem]:
        try:
            return list(self.fetch(task.feed, cancel_event) or [])
        except Exception as exc:  # noqa: BLE001 - isolate failures per feed
            logger.exception("Feed task failed for %s: %s", task.feed.name, exc)
            return []

    def run_all(self, tasks: Iterable[FeedTask]) -> SchedulerResult:
        task_list = list(tasks)
        result = SchedulerResult()
        if not task_list:
            return result

        cancel_event = threading.Event()
        deadline_at = self._clock() + self.deadline
        workers = min(self.batch_size, len(task_list))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed")
        logger.debug("Scheduling %d feed(s) in batches of %d (deadline=%.1fs)", len(task_list), self.batch_size, self.deadline)

        try:
            for start in range(0, len(task_list), self.batch_size):
                remaining = deadline_at - self._clock()
                if remaining <= 0:
                    cancel_event.set()
                    logger.warning("Digest deadline reached; %d feed(s) not started", len(task_list) - start)
                    break

                batch = task_list[start : start + self.batch_size]
                future_map: Dict[Future[List[ParsedItem]], FeedTask] = {
                    executor.submit(self._run_task, task, cancel_event): task for task in batch
                }
                done, pending = wait(future_map, timeout=remaining)

                for fut in done:
                    task = future_map[fut]
                    items = fut.result()
                    self._record(result, task, items)

                if pending:
                    cancel_event.set()
                    logger.warning(
                        "Digest deadline reached with %d feed(s) in flight: %s",
                        len(pending),
                        ", ".join(sorted(future_map[f].feed.name for f in pending)),
                    )
                    break
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for task in task_list:
            result.feed_statuses.setdefault(task.feed.name, FeedStatus.TIMEOUT)

        logger.info(
            "Feed run complete: feeds=%d ok=%d empty=%d timeout=%d",
            len(result.feed_statuses),
            sum(1 for s in result.feed_statuses.values() if s is FeedStatus.OK),
            sum(1 for s in result.feed_statuses.values() if s is FeedStatus.EMPTY),
            sum(1 for s in result.feed_statuses.values() if s is FeedStatus.TIMEOUT),
        )
        return result

    @staticmethod
    def _record(result: SchedulerResult, task: FeedTask, items: List[ParsedItem]) -> None:
        result.results_by_category.setdefault(task.category, []).extend(items)
        name = task.feed.name
        # A name can appear under several categories; one success is enough
        if items:
            result.feed_statuses[name] = FeedStatus.OK
        elif result.feed_statuses.get(name) is not FeedStatus.OK:
            result.feed_statuses[name] = FeedStatus.EMPTY
