"""JSON encoding and decoding of task documents.

Formatting is controlled by an explicit ``MarshalOptions`` value passed to each
call; there is no module-level marshaler to reconfigure.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from tes_client.errors import ProtocolError
from tes_client.models import SHOW_STATE, Task


@dataclass(frozen=True, slots=True)
class MarshalOptions:
    """How documents are rendered as JSON.

    Attributes:
        indent: Spaces per indentation level, or ``None`` for compact output.
    """

    indent: int | None = 2


COMPACT = MarshalOptions(indent=None)


def to_payload(model: BaseModel, *, show_state: bool = False) -> dict[str, Any]:
    """Return the JSON-ready dict for ``model`` with unset fields omitted.

    With ``show_state``, every task in the document keeps its ``state``, even
    UNKNOWN. Request bodies leave it out; rendered output keeps it.
    """

    return model.model_dump(
        mode="json",
        exclude_defaults=True,
        context={SHOW_STATE: show_state},
    )


def marshal_model(model: BaseModel, options: MarshalOptions = COMPACT) -> str:
    payload = to_payload(model, show_state=True)
    return json.dumps(payload, indent=options.indent, ensure_ascii=False)


def marshal_task(task: Task | None, options: MarshalOptions = COMPACT) -> str:
    """Encode a task as JSON.

    Raises:
        ValueError: if ``task`` is None.
    """

    if task is None:
        raise ValueError("can't marshal nil task")
    return marshal_model(task, options)


def unmarshal_task(text: str | bytes) -> Task:
    """Decode a task from JSON text.

    Raises:
        ProtocolError: if the text is not a valid task document.
    """

    try:
        return Task.model_validate_json(text)
    except ValidationError as e:
        raise ProtocolError(f"error unmarshaling task message: {e}") from e
