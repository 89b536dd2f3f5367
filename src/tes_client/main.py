"""CLI entrypoint for the TES client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from tes_client import __version__
from tes_client.bulk import BulkClient
from tes_client.client import TesClient
from tes_client.config import TesSettings
from tes_client.errors import TaskFailureError, TaskValidationError, TesError
from tes_client.logging import configure_logging
from tes_client.models import ListTasksRequest, TaskView
from tes_client.serialization import (
    MarshalOptions,
    marshal_model,
    marshal_task,
    to_payload,
    unmarshal_task,
)

logger = logging.getLogger(__name__)

_VIEW_CHOICES = [v.value for v in TaskView]


def _add_view_argument(parser: argparse.ArgumentParser, default: str) -> None:
    parser.add_argument(
        "--view",
        type=str.upper,
        choices=_VIEW_CHOICES,
        default=default,
        help=f"How much of each task to return (default: {default})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tes",
        description="Client for a GA4GH Task Execution Service",
    )
    parser.add_argument("--version", action="version", version=f"tes-client {__version__}")
    parser.add_argument(
        "--server",
        default=None,
        help="TES server address (overrides TES_SERVER)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    get = subparsers.add_parser("get", help="Fetch one task")
    get.add_argument("task_id", help="Task ID")
    _add_view_argument(get, "FULL")

    list_tasks = subparsers.add_parser("list", help="List tasks")
    list_tasks.add_argument(
        "--name-prefix", default="", help="Only tasks whose name starts with this"
    )
    list_tasks.add_argument("--page-size", type=int, default=0, help="Tasks per page")
    list_tasks.add_argument(
        "--page-token", default="", help="Page token from a previous listing"
    )
    _add_view_argument(list_tasks, "MINIMAL")

    create = subparsers.add_parser("create", help="Submit a task from a JSON file")
    create.add_argument("path", help="Path to a JSON task document, or '-' for stdin")

    cancel = subparsers.add_parser("cancel", help="Cancel a task")
    cancel.add_argument("task_id", help="Task ID")

    subparsers.add_parser("service-info", help="Show server information")

    wait = subparsers.add_parser("wait", help="Wait until every task is COMPLETE")
    wait.add_argument("task_ids", nargs="+", help="Task IDs")
    wait.add_argument(
        "--poll-seconds",
        type=float,
        default=None,
        help="Polling interval in seconds (overrides TES_POLL_INTERVAL)",
    )

    get_many = subparsers.add_parser("get-many", help="Fetch several tasks in parallel")
    get_many.add_argument("task_ids", nargs="+", help="Task IDs")
    _add_view_argument(get_many, "MINIMAL")
    get_many.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Parallel lookups (overrides TES_CONCURRENCY)",
    )

    return parser


def _read_task_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _run(args: argparse.Namespace, client: TesClient, settings: TesSettings) -> int:
    options: MarshalOptions = settings.marshal_options

    if args.command == "get":
        task = client.get_task(args.task_id, view=TaskView(args.view))
        print(marshal_task(task, options))
        return 0

    if args.command == "list":
        response = client.list_tasks(
            ListTasksRequest(
                name_prefix=args.name_prefix,
                page_size=args.page_size,
                page_token=args.page_token,
                view=TaskView(args.view),
            )
        )
        print(marshal_model(response, options))
        return 0

    if args.command == "create":
        task = unmarshal_task(_read_task_text(args.path))
        created = client.create_task(task)
        print(created.id)
        return 0

    if args.command == "cancel":
        client.cancel_task(args.task_id)
        print(f"Cancel requested for task {args.task_id}")
        return 0

    if args.command == "service-info":
        print(marshal_model(client.get_service_info(), options))
        return 0

    if args.command == "wait":
        poll = args.poll_seconds if args.poll_seconds is not None else settings.poll_interval
        try:
            client.wait_for_tasks(*args.task_ids, poll_interval=poll)
        except TaskFailureError as e:
            print(str(e), file=sys.stderr)
            return 4
        print(f"All {len(args.task_ids)} task(s) complete")
        return 0

    if args.command == "get-many":
        threads = args.concurrency if args.concurrency is not None else settings.concurrency
        bulk = BulkClient(client, threads=threads)
        results = bulk.get_tasks_by_id(args.task_ids, TaskView(args.view))

        rendered: list[dict[str, object]] = []
        for result in results:
            if result.task is not None:
                payload = to_payload(result.task, show_state=True)
                rendered.append({"id": result.request.id, "task": payload})
            else:
                rendered.append({"id": result.request.id, "error": str(result.error)})
        print(json.dumps(rendered, indent=options.indent, ensure_ascii=False))

        return 0 if all(r.ok for r in results) else 4

    logger.error("Unknown command", extra={"command": args.command})
    return 2


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = TesSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    server = args.server or settings.server
    configure_logging(settings.log_level, context={"server": server})

    try:
        client = TesClient(
            server,
            timeout=settings.request_timeout,
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return _run(args, client, settings)

    except TaskValidationError as e:
        logger.warning("Task rejected before submission", extra={"problems": e.problems})
        print(str(e), file=sys.stderr)
        return 3

    except TesError as e:
        logger.error("Request failed", extra={"command": args.command, "error": str(e)})
        print(str(e), file=sys.stderr)
        return 1

    except Exception:
        logger.exception("Command failed")
        return 1

    finally:
        client.close()


if __name__ == "__main__":
    raise SystemExit(main())
