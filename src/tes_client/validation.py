"""Pre-flight validation of task documents before submission."""

from __future__ import annotations

from tes_client.errors import TaskValidationError
from tes_client.models import Task


def validate(task: Task) -> list[str]:
    """Return a list of problems with ``task``; empty when the task is valid.

    Each problem is prefixed with the path of the offending field, e.g.
    ``executors[0].image: required``.
    """

    problems: list[str] = []

    if not task.executors:
        problems.append("executors: at least one executor is required")

    for i, executor in enumerate(task.executors):
        if not executor.image.strip():
            problems.append(f"executors[{i}].image: required")
        if not executor.command:
            problems.append(f"executors[{i}].command: required")

    for i, item in enumerate(task.inputs):
        _check_path(problems, f"inputs[{i}].path", item.path)
        if item.url and item.content is not None:
            problems.append(f"inputs[{i}]: url and content are mutually exclusive")
        elif not item.url and item.content is None:
            problems.append(f"inputs[{i}]: one of url or content is required")

    for i, out in enumerate(task.outputs):
        if not out.url:
            problems.append(f"outputs[{i}].url: required")
        _check_path(problems, f"outputs[{i}].path", out.path)

    if task.resources is not None:
        for field in ("cpu_cores", "ram_gb", "disk_gb"):
            value = getattr(task.resources, field)
            if value is not None and value < 0:
                problems.append(f"resources.{field}: must be >= 0")

    return problems


def ensure_valid(task: Task) -> None:
    """Raise ``TaskValidationError`` listing every problem with ``task``."""

    problems = validate(task)
    if problems:
        raise TaskValidationError(problems)


def _check_path(problems: list[str], where: str, path: str | None) -> None:
    if not path:
        problems.append(f"{where}: required")
    elif not path.startswith("/"):
        problems.append(f"{where}: must be an absolute path")
