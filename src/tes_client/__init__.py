"""Client for a GA4GH Task Execution Service (TES).

Provides:
- a `requests` based client for the task endpoints
- concurrent bulk task lookup with a bounded worker pool
- polling until a set of tasks has finished
"""

__version__ = "0.1.0"

from tes_client.bulk import BulkClient, GetTaskResult, dispatch, dispatch_by_id
from tes_client.client import TesClient
from tes_client.models import GetTaskRequest, State, Task, TaskView
from tes_client.waiter import wait_for_tasks

__all__ = [
    "__version__",
    "BulkClient",
    "GetTaskRequest",
    "GetTaskResult",
    "State",
    "Task",
    "TaskView",
    "TesClient",
    "dispatch",
    "dispatch_by_id",
    "wait_for_tasks",
]
