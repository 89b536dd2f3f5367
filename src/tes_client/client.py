"""HTTP client for the TES task endpoints.

One method per endpoint, one request per call. Failures are mapped onto the
error types in ``tes_client.errors``; nothing is retried.
"""

from __future__ import annotations

import logging
import threading
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote, urlparse

import requests
from pydantic import BaseModel, ValidationError

from tes_client.errors import ProtocolError, TransportError
from tes_client.models import (
    CancelTaskResponse,
    CreateTaskResponse,
    ListTasksRequest,
    ListTasksResponse,
    ServiceInfo,
    Task,
    TaskView,
)
from tes_client.serialization import to_payload
from tes_client.validation import ensure_valid
from tes_client.waiter import wait_for_tasks

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

M = TypeVar("M", bound=BaseModel)


def normalize_address(address: str) -> str:
    """Reduce ``address`` to ``scheme://host[:port]``.

    A missing scheme defaults to ``http://``. Any path, query or fragment is
    dropped.

    Raises:
        ValueError: for an empty address or a scheme other than http/https.
    """

    address = address.strip()
    if not address:
        raise ValueError("TES server address is required")

    if "://" not in address:
        address = "http://" + address

    parsed = urlparse(address)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError(
            f"invalid protocol: '{parsed.scheme}://'; expected: 'http://' or 'https://'"
        )
    if not parsed.netloc:
        raise ValueError(f"invalid TES server address: {address!r}")
    return f"{parsed.scheme}://{parsed.netloc}"


class TesClient:
    """Client for the Create/List/Get/Cancel task endpoints of a TES server."""

    def __init__(
        self,
        address: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self._address = normalize_address(address)
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "tes-client",
            }
        )
        logger.debug("TES client created", extra={"address": self._address})

    @property
    def address(self) -> str:
        """Return the normalized server address."""

        return self._address

    def _tasks_url(self, suffix: str = "") -> str:
        return f"{self._address}/v1/tasks{suffix}"

    def _task_url(self, task_id: str, suffix: str = "") -> str:
        if not task_id.strip():
            raise ValueError("task_id is required")
        return self._tasks_url("/" + quote(task_id, safe="") + suffix)

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        headers = {"Content-Type": "application/json"} if method == "POST" else None
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if resp.status_code // 100 != 2:
            body = resp.text
            raise ProtocolError(
                f"[STATUS CODE - {resp.status_code}]\t{body}",
                status_code=resp.status_code,
                body=body,
            )
        return resp

    @staticmethod
    def _decode(resp: requests.Response, model: type[M], *, allow_empty: bool = False) -> M:
        content = resp.content or b""
        if not content.strip():
            if not allow_empty:
                raise ProtocolError(
                    f"error decoding {model.__name__}: empty response body",
                    status_code=resp.status_code,
                    body=resp.text,
                )
            content = b"{}"
        try:
            return model.model_validate_json(content)
        except ValidationError as e:
            raise ProtocolError(
                f"error decoding {model.__name__}: {e}",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

    def get_task(self, task_id: str, *, view: TaskView = TaskView.MINIMAL) -> Task:
        """GET /v1/tasks/{id}"""

        view = TaskView(view)
        logger.debug("Fetching task", extra={"task_id": task_id, "view": view.value})
        resp = self._request("GET", self._task_url(task_id), params={"view": view.value})
        return self._decode(resp, Task)

    def list_tasks(self, request: ListTasksRequest | None = None) -> ListTasksResponse:
        """GET /v1/tasks

        Empty or zero request fields are left out of the query string.
        """

        request = request or ListTasksRequest()
        params: dict[str, str] = {}
        if request.name_prefix:
            params["name_prefix"] = request.name_prefix
        if request.page_size:
            params["page_size"] = str(request.page_size)
        if request.page_token:
            params["page_token"] = request.page_token
        params["view"] = TaskView(request.view).value

        logger.debug("Listing tasks", extra={"params": params})
        resp = self._request("GET", self._tasks_url(), params=params)
        return self._decode(resp, ListTasksResponse)

    def create_task(self, task: Task) -> CreateTaskResponse:
        """POST a task to /v1/tasks.

        The task is validated first; an invalid task raises
        ``TaskValidationError`` without contacting the server.
        """

        ensure_valid(task)
        resp = self._request("POST", self._tasks_url(), json_body=to_payload(task))
        created = self._decode(resp, CreateTaskResponse)
        logger.info("Task created", extra={"task_id": created.id})
        return created

    def cancel_task(self, task_id: str) -> CancelTaskResponse:
        """POST /v1/tasks/{id}:cancel"""

        resp = self._request("POST", self._task_url(task_id, ":cancel"))
        logger.info("Task cancel requested", extra={"task_id": task_id})
        return self._decode(resp, CancelTaskResponse, allow_empty=True)

    def get_service_info(self) -> ServiceInfo:
        """GET /v1/tasks/service-info"""

        resp = self._request("GET", self._tasks_url("/service-info"))
        return self._decode(resp, ServiceInfo)

    def wait_for_tasks(
        self,
        *task_ids: str,
        poll_interval: float = 2.0,
        cancel: threading.Event | None = None,
    ) -> None:
        """Block until every task is COMPLETE; see ``tes_client.waiter``."""

        wait_for_tasks(self, list(task_ids), poll_interval=poll_interval, cancel=cancel)

    def close(self) -> None:
        """Close the underlying HTTP session."""

        self._session.close()
        logger.debug("TES client closed", extra={"address": self._address})

    def __enter__(self) -> TesClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
