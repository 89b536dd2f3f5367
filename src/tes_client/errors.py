"""Error types raised by the TES client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tes_client.models import State


class TesError(Exception):
    """Base class for every error raised by this package."""


class TransportError(TesError):
    """The HTTP request could not be completed (connection, DNS, timeout)."""


class ProtocolError(TesError):
    """The server answered with a non-2xx status or a body we could not decode."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TaskFailureError(TesError):
    """A polled task reached a failure-terminal state."""

    def __init__(self, task_id: str, state: State) -> None:
        self.task_id = task_id
        self.state = state
        super().__init__(f"Task {task_id} exited with state {state.value}")


class TaskValidationError(TesError):
    """A task failed validation and was not sent to the server."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("invalid task message: " + "; ".join(self.problems))


class DispatchCanceled(TesError):
    """A bulk lookup was canceled before its result was recorded."""


class WaitCanceled(TesError):
    """Waiting for tasks was canceled by the caller."""
