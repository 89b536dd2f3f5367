"""Projections of a task document onto the MINIMAL/BASIC/FULL views.

Each view keeps a fixed set of fields:

- MINIMAL: ``id`` and ``state`` only.
- BASIC: everything except input ``content`` and executor ``stdout``/``stderr``.
- FULL: everything.

Every projection returns a new task; the argument is never modified.
"""

from __future__ import annotations

from collections.abc import Callable

from tes_client.models import Task, TaskView


def minimal_view(task: Task) -> Task:
    return Task(id=task.id, state=task.state)


def basic_view(task: Task) -> Task:
    view = task.model_copy(deep=True)
    for item in view.inputs:
        item.content = None
    for task_log in view.logs:
        for exec_log in task_log.logs:
            exec_log.stdout = None
            exec_log.stderr = None
    return view


def full_view(task: Task) -> Task:
    return task.model_copy(deep=True)


_PROJECTIONS: dict[TaskView, Callable[[Task], Task]] = {
    TaskView.MINIMAL: minimal_view,
    TaskView.BASIC: basic_view,
    TaskView.FULL: full_view,
}


def project(task: Task, view: TaskView) -> Task:
    """Return ``task`` reduced to ``view``."""

    return _PROJECTIONS[TaskView(view)](task)
