"""Task entry form: one text field shared by create and edit."""

import logging
from enum import Enum

from tasklist.store import TaskStore
from tasklist.todo import Task

logger = logging.getLogger(__name__)


class FormMode(str, Enum):
    """Form modes."""

    CREATE = "create"
    EDIT = "edit"


class TaskForm:
    """Text field state plus the edit cursor.

    With no cursor the form creates tasks; with a cursor it rewrites the
    text of the task the cursor names.
    """

    def __init__(self):
        self.value: str = ""
        self.edit_id: str | None = None
        self.selected: bool = False
        self.focused: bool = False

    @property
    def mode(self) -> FormMode:
        return FormMode.CREATE if self.edit_id is None else FormMode.EDIT

    @property
    def submit_label(self) -> str:
        return "Add" if self.mode is FormMode.CREATE else "Edit"

    @property
    def field_label(self) -> str:
        return "Add Task" if self.mode is FormMode.CREATE else "Edit Task"

    def set_value(self, text: str) -> None:
        """Type into the field. Typing over a selection replaces it."""
        self.value = text
        self.selected = False

    def begin_edit(self, task: Task) -> None:
        """Enter edit mode with the field pre-filled and selected."""
        self.edit_id = task.id
        self.value = task.text
        self.selected = True
        self.focused = True

    def _reset(self) -> None:
        self.edit_id = None
        self.value = ""
        self.selected = False
        self.focused = False

    def cancel(self) -> None:
        self._reset()

    def forget(self, task_id: str) -> None:
        """Drop the cursor if it points at ``task_id``."""
        if self.edit_id == task_id:
            logger.debug("Task %s deleted while being edited; leaving edit mode", task_id)
            self._reset()

    def submit(self, store: TaskStore) -> bool:
        """Submit the field contents.

        Returns:
            True if a task was created or edited, False if the submission
            was rejected.
        """
        if not self.value.strip():
            return False

        if self.edit_id is None:
            store.create(self.value)
        elif store.get(self.edit_id) is None:
            logger.warning("Edit target %s no longer exists; discarding edit", self.edit_id)
            self._reset()
            return False
        else:
            store.edit(self.edit_id, self.value)

        self._reset()
        return True
