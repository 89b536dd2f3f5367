"""Unit tests for the TES HTTP client (mocked session)."""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest
import requests

from tes_client.client import TesClient, normalize_address
from tes_client.errors import ProtocolError, TaskValidationError, TransportError
from tes_client.models import Executor, ListTasksRequest, State, Task, TaskView

from ..fakes import make_response


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("localhost:8000", "http://localhost:8000"),
        ("http://localhost:8000", "http://localhost:8000"),
        ("https://tes.example.org", "https://tes.example.org"),
        ("https://tes.example.org/", "https://tes.example.org"),
        ("https://tes.example.org/v1/tasks?view=FULL", "https://tes.example.org"),
        ("  tes.example.org:443/ga4gh  ", "http://tes.example.org:443"),
    ],
)
def test_normalize_address(address: str, expected: str) -> None:
    assert normalize_address(address) == expected


def test_normalize_address_rejects_other_protocols() -> None:
    with pytest.raises(ValueError) as excinfo:
        normalize_address("ftp://tes.example.org")

    assert str(excinfo.value) == (
        "invalid protocol: 'ftp://'; expected: 'http://' or 'https://'"
    )


def test_normalize_address_rejects_empty() -> None:
    with pytest.raises(ValueError):
        normalize_address("   ")


def test_client_rejects_non_positive_timeout(session: Mock) -> None:
    with pytest.raises(ValueError):
        TesClient("localhost", timeout=0, session=session)


def test_get_task_builds_url_and_decodes(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(
        200,
        {
            "id": "task-1",
            "state": "RUNNING",
            "name": "hello",
            "creationTime": "2025-01-01T00:00:00Z",
        },
    )

    task = client.get_task("task-1", view=TaskView.BASIC)

    assert task.id == "task-1"
    assert task.state == State.RUNNING
    assert task.creation_time == "2025-01-01T00:00:00Z"

    args, kwargs = session.request.call_args
    assert args == ("GET", "http://tes.example.org:8000/v1/tasks/task-1")
    assert kwargs["params"] == {"view": "BASIC"}
    assert kwargs["timeout"] == 60.0
    assert kwargs["json"] is None


def test_get_task_default_view_is_minimal(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {"id": "t", "state": "QUEUED"})

    client.get_task("t")

    _, kwargs = session.request.call_args
    assert kwargs["params"] == {"view": "MINIMAL"}


def test_get_task_quotes_identifier(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {"id": "a/b"})

    client.get_task("a/b")

    args, _ = session.request.call_args
    assert args[1] == "http://tes.example.org:8000/v1/tasks/a%2Fb"


def test_get_task_rejects_blank_identifier(client: TesClient, session: Mock) -> None:
    with pytest.raises(ValueError):
        client.get_task("  ")

    session.request.assert_not_called()


def test_non_2xx_raises_protocol_error(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(404, "task not found")

    with pytest.raises(ProtocolError) as excinfo:
        client.get_task("missing")

    assert excinfo.value.status_code == 404
    assert excinfo.value.body == "task not found"
    assert str(excinfo.value) == "[STATUS CODE - 404]\ttask not found"


def test_undecodable_body_raises_protocol_error(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, "<html>oops</html>")

    with pytest.raises(ProtocolError) as excinfo:
        client.get_task("t")

    assert excinfo.value.status_code == 200


@pytest.mark.parametrize("body", ["", "  \n"])
def test_empty_body_for_a_task_raises_protocol_error(
    client: TesClient, session: Mock, body: str
) -> None:
    session.request.return_value = make_response(200, body)

    with pytest.raises(ProtocolError, match="empty response body") as excinfo:
        client.get_task("t1")

    assert excinfo.value.status_code == 200


@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.list_tasks(),
        lambda c: c.create_task(
            Task(executors=[Executor(image="alpine", command=["true"])])
        ),
        lambda c: c.get_service_info(),
    ],
    ids=["list", "create", "service-info"],
)
def test_empty_body_is_rejected_outside_cancel(client: TesClient, session: Mock, call) -> None:
    session.request.return_value = make_response(200, "")

    with pytest.raises(ProtocolError):
        call(client)


def test_unknown_state_value_raises_protocol_error(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {"id": "t", "state": "EXPLODED"})

    with pytest.raises(ProtocolError):
        client.get_task("t")


def test_transport_failure_raises_transport_error(client: TesClient, session: Mock) -> None:
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(TransportError) as excinfo:
        client.get_task("t")

    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_timeout_raises_transport_error(client: TesClient, session: Mock) -> None:
    session.request.side_effect = requests.Timeout("read timed out")

    with pytest.raises(TransportError):
        client.get_task("t")


def test_list_tasks_omits_empty_parameters(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(
        200,
        {
            "tasks": [{"id": "a", "state": "COMPLETE"}, {"id": "b", "state": "QUEUED"}],
            "nextPageToken": "page-2",
        },
    )

    response = client.list_tasks()

    assert [t.id for t in response.tasks] == ["a", "b"]
    assert response.next_page_token == "page-2"

    args, kwargs = session.request.call_args
    assert args == ("GET", "http://tes.example.org:8000/v1/tasks")
    assert kwargs["params"] == {"view": "MINIMAL"}


def test_list_tasks_sends_all_set_parameters(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {"tasks": []})

    client.list_tasks(
        ListTasksRequest(
            name_prefix="align-",
            page_size=50,
            page_token="tok",
            view=TaskView.FULL,
        )
    )

    _, kwargs = session.request.call_args
    assert kwargs["params"] == {
        "name_prefix": "align-",
        "page_size": "50",
        "page_token": "tok",
        "view": "FULL",
    }


def test_create_task_posts_json(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {"id": "new-task"})
    task = Task(name="hello", executors=[Executor(image="alpine", command=["echo", "hi"])])

    created = client.create_task(task)

    assert created.id == "new-task"
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://tes.example.org:8000/v1/tasks")
    assert kwargs["headers"] == {"Content-Type": "application/json"}
    assert kwargs["json"] == {
        "name": "hello",
        "executors": [{"image": "alpine", "command": ["echo", "hi"]}],
    }
    # The body must be plain JSON.
    json.dumps(kwargs["json"])


def test_create_invalid_task_never_reaches_the_network(
    client: TesClient, session: Mock
) -> None:
    with pytest.raises(TaskValidationError) as excinfo:
        client.create_task(Task(name="no executors"))

    assert excinfo.value.problems == ["executors: at least one executor is required"]
    session.request.assert_not_called()


def test_cancel_task(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, {})

    client.cancel_task("task-9")

    args, kwargs = session.request.call_args
    assert args == ("POST", "http://tes.example.org:8000/v1/tasks/task-9:cancel")
    assert kwargs["json"] is None


def test_cancel_task_accepts_empty_body(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(200, "")

    client.cancel_task("task-9")


def test_get_service_info_keeps_unknown_fields(client: TesClient, session: Mock) -> None:
    session.request.return_value = make_response(
        200,
        {"name": "funnel", "doc": "docs", "storage": ["file:///tmp"], "version": "1.2"},
    )

    info = client.get_service_info()

    assert info.name == "funnel"
    assert info.storage == ["file:///tmp"]
    assert info.model_extra == {"version": "1.2"}
    args, _ = session.request.call_args
    assert args == ("GET", "http://tes.example.org:8000/v1/tasks/service-info")


def test_session_headers_and_close(session: Mock) -> None:
    with TesClient("localhost:8000", session=session) as client:
        assert client.address == "http://localhost:8000"
        assert session.headers["Accept"] == "application/json"

    session.close.assert_called_once_with()
