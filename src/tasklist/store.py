"""In-memory task list and the operations that mutate it.

The task list is a tuple. Every operation returns a new tuple and leaves
its input untouched; a no-op returns the input object itself, so callers
can detect changes with an identity check.
"""

import logging
from collections.abc import Callable

from tasklist.todo import Task

logger = logging.getLogger(__name__)

Tasks = tuple[Task, ...]
Listener = Callable[[Tasks], None]


def _index_of(tasks: Tasks, task_id: str) -> int | None:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    return None


def find(tasks: Tasks, task_id: str) -> Task | None:
    """Return the task with ``task_id`` or None."""
    i = _index_of(tasks, task_id)
    return None if i is None else tasks[i]


def create(tasks: Tasks, text: str) -> Tasks:
    """Append a new task; blank text is rejected."""
    text = text.strip()
    if not text:
        return tasks
    existing = {t.id for t in tasks}
    task = Task(text=text)
    while task.id in existing:
        task = Task(text=text)
    return tasks + (task,)


def toggle(tasks: Tasks, task_id: str) -> Tasks:
    """Flip ``completed`` on the matching task."""
    i = _index_of(tasks, task_id)
    if i is None:
        return tasks
    return tasks[:i] + (tasks[i].toggled(),) + tasks[i + 1:]


def edit(tasks: Tasks, task_id: str, new_text: str) -> Tasks:
    """Replace the text of the matching task, keeping its position."""
    new_text = new_text.strip()
    if not new_text:
        return tasks
    i = _index_of(tasks, task_id)
    if i is None:
        return tasks
    return tasks[:i] + (tasks[i].with_text(new_text),) + tasks[i + 1:]


def delete(tasks: Tasks, task_id: str) -> Tasks:
    """Remove the matching task."""
    i = _index_of(tasks, task_id)
    if i is None:
        return tasks
    return tasks[:i] + tasks[i + 1:]


class TaskStore:
    """Owned holder of the current task list.

    Subscribers are called with the new list after every change. No-op
    operations do not notify.
    """

    def __init__(self, tasks: Tasks = ()):
        self.tasks: Tasks = tuple(tasks)
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _replace(self, new_tasks: Tasks, operation: str, detail: str) -> Tasks:
        if new_tasks is self.tasks:
            logger.debug("%s ignored: %s", operation, detail)
            return self.tasks
        self.tasks = new_tasks
        logger.debug("%s applied: %s (total=%d)", operation, detail, len(new_tasks))
        for listener in self._listeners:
            listener(new_tasks)
        return new_tasks

    def get(self, task_id: str) -> Task | None:
        return find(self.tasks, task_id)

    def create(self, text: str) -> Tasks:
        return self._replace(create(self.tasks, text), "create", repr(text))

    def toggle(self, task_id: str) -> Tasks:
        return self._replace(toggle(self.tasks, task_id), "toggle", task_id)

    def edit(self, task_id: str, new_text: str) -> Tasks:
        return self._replace(edit(self.tasks, task_id, new_text), "edit", task_id)

    def delete(self, task_id: str) -> Tasks:
        return self._replace(delete(self.tasks, task_id), "delete", task_id)

    def __len__(self) -> int:
        return len(self.tasks)
