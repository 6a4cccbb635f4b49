"""Application shell: owns the store, the form and the display preference."""

import logging
from dataclasses import dataclass

from tasklist.form import TaskForm
from tasklist.storage import DEFAULT_KEY, DEFAULT_PATH, LocalStorage, PersistenceBridge
from tasklist.store import TaskStore
from tasklist.todo import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stats:
    """Progress counts."""

    completed: int
    total: int

    @property
    def fraction(self) -> float | None:
        if self.total == 0:
            return None
        return self.completed / self.total

    @property
    def percent(self) -> int | None:
        fraction = self.fraction
        return None if fraction is None else round(fraction * 100)


class TodoApp:
    """Todo application state and the callbacks the UI binds to."""

    def __init__(self, store: TaskStore, form: TaskForm | None = None, dark: bool = False):
        self.store = store
        self.form = form or TaskForm()
        self.dark = dark

    @classmethod
    def open(cls, path: str = DEFAULT_PATH, key: str = DEFAULT_KEY, dark: bool = False) -> "TodoApp":
        """Load the stored list and wire write-through persistence."""
        bridge = PersistenceBridge(LocalStorage(path), key)
        store = TaskStore(bridge.load())
        bridge.attach(store)
        logger.info("Opened %s with %d tasks", bridge.storage.path, len(store))
        return cls(store, dark=dark)

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.store.tasks

    def task_at(self, number: int) -> Task | None:
        """Return the task shown at 1-based row ``number``."""
        if 1 <= number <= len(self.store.tasks):
            return self.store.tasks[number - 1]
        return None

    def stats(self) -> Stats:
        completed = sum(1 for t in self.store.tasks if t.completed)
        return Stats(completed=completed, total=len(self.store.tasks))

    def toggle_complete(self, task_id: str) -> None:
        self.store.toggle(task_id)

    def edit_todo(self, task_id: str) -> bool:
        """Load a task into the form for editing."""
        task = self.store.get(task_id)
        if task is None:
            return False
        self.form.begin_edit(task)
        return True

    def delete_todo(self, task_id: str) -> None:
        self.store.delete(task_id)
        self.form.forget(task_id)

    def submit(self, text: str | None = None) -> bool:
        """Submit the form, optionally typing ``text`` into it first."""
        if text is not None:
            self.form.set_value(text)
        return self.form.submit(self.store)

    def toggle_dark_mode(self) -> bool:
        self.dark = not self.dark
        return self.dark
