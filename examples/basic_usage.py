#!/usr/bin/env python3
"""Programmatic usage example.

This demonstrates using the client components directly:

* load settings from `.env`
* submit a few copies of a task
* fetch them all in parallel
* wait until they have finished

The server address comes from `TES_SERVER` (see `tes_client.config`).
"""

from __future__ import annotations

import argparse
from typing import Sequence

from tes_client.bulk import BulkClient
from tes_client.client import TesClient
from tes_client.config import TesSettings
from tes_client.errors import TaskFailureError
from tes_client.logging import configure_logging
from tes_client.models import Executor, Task, TaskView


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit and wait for TES tasks (example).")
    parser.add_argument("--image", default="alpine", help="Container image to run")
    parser.add_argument("--count", type=int, default=3, help="Number of tasks to submit")
    parser.add_argument("command", nargs="*", default=["echo", "hello"], help="Command to run")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = TesSettings()
    configure_logging(settings.log_level)

    with TesClient(settings.server, timeout=settings.request_timeout) as client:
        task_ids: list[str] = []
        for i in range(args.count):
            task = Task(
                name=f"example-{i}",
                executors=[Executor(image=args.image, command=list(args.command))],
            )
            task_ids.append(client.create_task(task).id)
        print(f"Submitted: {', '.join(task_ids)}")

        bulk = BulkClient(client, threads=settings.concurrency)
        for result in bulk.get_tasks_by_id(task_ids, TaskView.MINIMAL):
            if result.task is not None:
                print(f"{result.request.id}: {result.task.state.value}")
            else:
                print(f"{result.request.id}: error: {result.error}")

        try:
            client.wait_for_tasks(*task_ids, poll_interval=settings.poll_interval)
        except TaskFailureError as exc:
            print(str(exc))
            return 1

    print("All tasks complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
