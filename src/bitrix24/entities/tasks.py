"""Task service."""

from typing import Any, Dict, Optional, Sequence

from bitrix24.entities.base import AddMixin, EntityService, ListMixin


class TaskService(AddMixin, ListMixin, EntityService):
    """
    Tasks (``tasks.task.*``): retrieval, listing and creation.

    List responses nest items under ``tasks`` with lowercase keys, so tasks
    are listed by offset only.
    """

    prefix = "tasks.task"
    label = "TASK"
    id_param = "taskId"
    accepts_params = False
    list_result_key = "tasks"

    def fields(self) -> Dict[str, Any]:
        return self.api.request(self.action("getFields"))

    def get(self, task_id: Any, select: Optional[Sequence[str]] = None) -> Optional[Dict[str, Any]]:
        """Return a task by ID."""
        return self.api.request(
            self.action("get"),
            {self.id_param: task_id, "select": list(select or [])},
        )
