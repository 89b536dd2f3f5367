"""Task document models for the TES HTTP API.

The server may answer with snake_case or lowerCamelCase keys; both are accepted
on input. Output always uses snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel

# Largest index the log accessors will grow a list to.
MAX_LOG_INDEX = 1024

# Serialization context key. When true, every dumped Task keeps its ``state``
# even when it is UNKNOWN.
SHOW_STATE = "show_state"


class State(str, Enum):
    """Lifecycle state of a task."""

    UNKNOWN = "UNKNOWN"
    QUEUED = "QUEUED"
    INITIALIZING = "INITIALIZING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETE = "COMPLETE"
    EXECUTOR_ERROR = "EXECUTOR_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    CANCELED = "CANCELED"

    @property
    def is_final(self) -> bool:
        """True for complete, executor error, system error and canceled."""

        return self in _FINAL_STATES

    @property
    def is_active(self) -> bool:
        """True for queued, initializing and running."""

        return self in _ACTIVE_STATES

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATES


_FINAL_STATES = frozenset(
    {State.COMPLETE, State.EXECUTOR_ERROR, State.SYSTEM_ERROR, State.CANCELED}
)
_ACTIVE_STATES = frozenset({State.QUEUED, State.INITIALIZING, State.RUNNING})
_FAILURE_STATES = frozenset({State.EXECUTOR_ERROR, State.SYSTEM_ERROR, State.CANCELED})


class TaskView(str, Enum):
    """How much of a task document the server should return."""

    MINIMAL = "MINIMAL"
    BASIC = "BASIC"
    FULL = "FULL"


class FileType(str, Enum):
    FILE = "FILE"
    DIRECTORY = "DIRECTORY"


class TesModel(BaseModel):
    """Base model for every wire document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Input(TesModel):
    name: str | None = None
    description: str | None = None
    url: str | None = None
    path: str | None = None
    type: FileType = FileType.FILE
    content: str | None = None


class Output(TesModel):
    name: str | None = None
    description: str | None = None
    url: str | None = None
    path: str | None = None
    type: FileType = FileType.FILE


class Resources(TesModel):
    cpu_cores: int | None = None
    preemptible: bool = False
    ram_gb: float | None = None
    disk_gb: float | None = None
    zones: list[str] = Field(default_factory=list)


class Executor(TesModel):
    image: str = ""
    command: list[str] = Field(default_factory=list)
    workdir: str | None = None
    stdin: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    env: dict[str, str] = Field(default_factory=dict)


class ExecutorLog(TesModel):
    start_time: str | None = None
    end_time: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    exit_code: int | None = None


class OutputFileLog(TesModel):
    url: str | None = None
    path: str | None = None
    size_bytes: str | None = None


class TaskLog(TesModel):
    logs: list[ExecutorLog] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    start_time: str | None = None
    end_time: str | None = None
    outputs: list[OutputFileLog] = Field(default_factory=list)
    system_logs: list[str] = Field(default_factory=list)


class Task(TesModel):
    """A task document as submitted to or returned by the server."""

    id: str | None = None
    state: State = State.UNKNOWN
    name: str | None = None
    description: str | None = None
    inputs: list[Input] = Field(default_factory=list)
    outputs: list[Output] = Field(default_factory=list)
    resources: Resources | None = None
    executors: list[Executor] = Field(default_factory=list)
    volumes: list[str] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)
    logs: list[TaskLog] = Field(default_factory=list)
    creation_time: str | None = None

    @model_serializer(mode="wrap")
    def _serialize(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        if info.context and info.context.get(SHOW_STATE):
            data.setdefault("state", self.state.value if info.mode_is_json() else self.state)
        return data

    def get_task_log(self, attempt: int) -> TaskLog:
        """Return the log entry for ``attempt``, appending empty entries up to it.

        Raises:
            IndexError: if ``attempt`` is negative or above ``MAX_LOG_INDEX``.
        """

        _check_log_index("attempt", attempt)
        while len(self.logs) <= attempt:
            self.logs.append(TaskLog())
        return self.logs[attempt]

    def get_exec_log(self, attempt: int, index: int) -> ExecutorLog:
        """Return executor log ``index`` of ``attempt``, growing both lists as needed."""

        _check_log_index("index", index)
        task_log = self.get_task_log(attempt)
        while len(task_log.logs) <= index:
            task_log.logs.append(ExecutorLog())
        return task_log.logs[index]


def _check_log_index(name: str, value: int) -> None:
    if value < 0:
        raise IndexError(f"{name} must be >= 0, got {value}")
    if value > MAX_LOG_INDEX:
        raise IndexError(f"{name} must be <= {MAX_LOG_INDEX}, got {value}")


class CreateTaskResponse(TesModel):
    id: str


class CancelTaskResponse(TesModel):
    pass


class ListTasksResponse(TesModel):
    tasks: list[Task] = Field(default_factory=list)
    next_page_token: str | None = None


class ServiceInfo(TesModel):
    """Server metadata. Keys we do not model are kept as extra fields."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    doc: str | None = None
    storage: list[str] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GetTaskRequest:
    """A single task lookup: which task, and how much of it."""

    id: str
    view: TaskView = TaskView.MINIMAL


@dataclass(frozen=True, slots=True)
class ListTasksRequest:
    """Query parameters for listing tasks. Empty values are not sent."""

    name_prefix: str = ""
    page_size: int = 0
    page_token: str = ""
    view: TaskView = TaskView.MINIMAL


class TaskGetter(Protocol):
    """Anything that can look up a single task, such as ``TesClient``."""

    def get_task(self, task_id: str, *, view: TaskView = ...) -> Task: ...
