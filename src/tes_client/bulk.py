"""Concurrent lookup of many tasks.

``dispatch`` pre-allocates one result slot per request and feeds the slots,
in request order, through a queue to a fixed pool of worker threads. Each
worker writes only into the slot it took off the queue, and every slot is
queued exactly once, so ``results[i]`` always answers ``requests[i]`` no matter
which lookup finishes first.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from tes_client.errors import DispatchCanceled
from tes_client.models import GetTaskRequest, Task, TaskGetter, TaskView

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5

# How often dispatch checks the cancel event while workers are running.
_CANCEL_POLL_SECONDS = 0.05


@dataclass(slots=True)
class GetTaskResult:
    """The outcome of one lookup in a bulk request.

    Exactly one of ``task`` and ``error`` is set once the lookup has finished.
    """

    request: GetTaskRequest
    task: Task | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.task is not None

    @property
    def finished(self) -> bool:
        return self.task is not None or self.error is not None


class _Batch:
    """Completion tracking for one dispatch call.

    Once closed, late results from workers are dropped so that the list handed
    back to the caller no longer changes.
    """

    def __init__(self, slots: list[GetTaskResult]) -> None:
        self._slots = slots
        self._lock = threading.Lock()
        self._remaining = len(slots)
        self._closed = False
        self.done = threading.Event()

    def commit(
        self,
        slot: GetTaskResult,
        *,
        task: Task | None = None,
        error: Exception | None = None,
    ) -> None:
        with self._lock:
            if self._closed:
                return
            slot.task = task
            slot.error = error
            self._remaining -= 1
            if self._remaining == 0:
                self.done.set()

    def close(self) -> int:
        """Stop accepting results and mark every unfinished slot as canceled."""

        canceled = 0
        with self._lock:
            self._closed = True
            for slot in self._slots:
                if not slot.finished:
                    slot.error = DispatchCanceled(
                        f"lookup of task {slot.request.id} was canceled"
                    )
                    canceled += 1
        return canceled


def dispatch(
    client: TaskGetter,
    requests: Sequence[GetTaskRequest],
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    cancel: threading.Event | None = None,
) -> list[GetTaskResult]:
    """Look up every request with at most ``concurrency`` lookups in flight.

    Blocks until every lookup has finished (or ``cancel`` is set) and returns
    one result per request, in request order. A failed lookup is recorded in
    its own result and does not affect the others.

    Args:
        client: Performs the individual lookups.
        requests: Lookups to perform.
        concurrency: Number of worker threads; values <= 0 use the default of 5.
        cancel: When set, lookups that have not started are skipped and this
            function returns promptly. Unfinished results carry a
            ``DispatchCanceled`` error.
    """

    results = [GetTaskResult(request=req) for req in requests]
    if not results:
        return results

    threads = concurrency if concurrency > 0 else DEFAULT_CONCURRENCY
    threads = min(threads, len(results))

    batch = _Batch(results)
    work: queue.Queue[GetTaskResult | None] = queue.Queue()
    for slot in results:
        work.put(slot)
    # One stop marker per worker.
    for _ in range(threads):
        work.put(None)

    logger.debug(
        "Dispatching task lookups",
        extra={"count": len(results), "threads": threads},
    )

    workers = [
        threading.Thread(
            target=_worker,
            name=f"tes-bulk-{i}",
            daemon=True,
            args=(client, work, batch, cancel),
        )
        for i in range(threads)
    ]
    for worker in workers:
        worker.start()

    if cancel is None:
        for worker in workers:
            worker.join()
    else:
        while not batch.done.wait(_CANCEL_POLL_SECONDS):
            if cancel.is_set():
                canceled = batch.close()
                logger.warning(
                    "Bulk task lookup canceled",
                    extra={"count": len(results), "canceled": canceled},
                )
                return results
        for worker in workers:
            worker.join()

    failed = sum(1 for r in results if r.error is not None)
    logger.debug(
        "Task lookups finished",
        extra={"count": len(results), "failed": failed},
    )
    return results


def dispatch_by_id(
    client: TaskGetter,
    task_ids: Sequence[str],
    view: TaskView = TaskView.MINIMAL,
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    cancel: threading.Event | None = None,
) -> list[GetTaskResult]:
    """Like ``dispatch``, building one request per id with the same ``view``."""

    requests = [GetTaskRequest(id=task_id, view=view) for task_id in task_ids]
    return dispatch(client, requests, concurrency, cancel=cancel)


def _worker(
    client: TaskGetter,
    work: queue.Queue[GetTaskResult | None],
    batch: _Batch,
    cancel: threading.Event | None,
) -> None:
    while True:
        slot = work.get()
        if slot is None:
            return

        if cancel is not None and cancel.is_set():
            batch.commit(
                slot,
                error=DispatchCanceled(f"lookup of task {slot.request.id} was canceled"),
            )
            continue

        try:
            task = client.get_task(slot.request.id, view=slot.request.view)
        except Exception as e:
            logger.debug(
                "Task lookup failed",
                extra={"task_id": slot.request.id, "error": str(e)},
            )
            batch.commit(slot, error=e)
        else:
            batch.commit(slot, task=task)


class BulkClient:
    """Runs ``client.get_task`` for many tasks in parallel."""

    def __init__(self, client: TaskGetter, *, threads: int = DEFAULT_CONCURRENCY) -> None:
        self._client = client
        self.threads = threads

    def get_tasks(
        self,
        requests: Sequence[GetTaskRequest],
        *,
        cancel: threading.Event | None = None,
    ) -> list[GetTaskResult]:
        return dispatch(self._client, requests, self.threads, cancel=cancel)

    def get_tasks_by_id(
        self,
        task_ids: Sequence[str],
        view: TaskView = TaskView.MINIMAL,
        *,
        cancel: threading.Event | None = None,
    ) -> list[GetTaskResult]:
        return dispatch_by_id(self._client, task_ids, view, self.threads, cancel=cancel)
