"""Polling until a set of tasks has finished."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence

from tes_client.errors import TaskFailureError, WaitCanceled
from tes_client.models import State, TaskGetter, TaskView

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


def wait_for_tasks(
    client: TaskGetter,
    task_ids: Sequence[str],
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
) -> None:
    """Poll each task until all of them are COMPLETE.

    Every cycle issues one MINIMAL lookup per task. The wait succeeds once all
    tasks report COMPLETE in the same cycle. There is no timeout; use
    ``cancel`` to stop waiting.

    Raises:
        TaskFailureError: a task reached EXECUTOR_ERROR, SYSTEM_ERROR or CANCELED.
        WaitCanceled: ``cancel`` was set before the tasks finished.
        TesError: a lookup failed; lookups are not retried.
    """

    if poll_interval <= 0:
        raise ValueError("poll_interval must be > 0")

    ids = list(task_ids)
    if not ids:
        return

    logger.info(
        "Waiting for tasks",
        extra={"task_ids": ids, "poll_interval": poll_interval},
    )

    cycle = 0
    while True:
        cycle += 1
        pending: list[str] = []
        for task_id in ids:
            _check_canceled(cancel)
            task = client.get_task(task_id, view=TaskView.MINIMAL)
            if task.state == State.COMPLETE:
                continue
            if task.state.is_failure:
                logger.warning(
                    "Task failed",
                    extra={"task_id": task_id, "state": task.state.value},
                )
                raise TaskFailureError(task_id, task.state)
            pending.append(task_id)

        if not pending:
            logger.info("All tasks complete", extra={"task_ids": ids, "cycles": cycle})
            return

        logger.debug("Tasks still pending", extra={"pending": pending, "cycle": cycle})
        _sleep(poll_interval, cancel)


def _check_canceled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise WaitCanceled("waiting for tasks was canceled")


def _sleep(seconds: float, cancel: threading.Event | None) -> None:
    if cancel is None:
        time.sleep(seconds)
        return
    if cancel.wait(seconds):
        raise WaitCanceled("waiting for tasks was canceled")
