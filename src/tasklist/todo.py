"""Task item model."""

import uuid
from dataclasses import dataclass, field, replace


def new_id() -> str:
    """Return a fresh opaque task id."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Task:
    """A single task.

    Instances are immutable; store operations build new ones with
    ``dataclasses.replace`` so the previous list is never touched.
    """

    text: str
    completed: bool = False
    id: str = field(default_factory=new_id)

    def with_text(self, text: str) -> "Task":
        return replace(self, text=text)

    def toggled(self) -> "Task":
        return replace(self, completed=not self.completed)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create from dictionary.

        Raises:
            TypeError: If ``data`` or one of its fields has the wrong type.
            ValueError: If ``id`` or ``text`` is empty.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Task record must be an object, got {type(data).__name__}")

        task_id = data.get("id")
        if not isinstance(task_id, str):
            raise TypeError(f"'id' must be a string, got {type(task_id).__name__}")
        if not task_id:
            raise ValueError("'id' must not be empty")

        text = data.get("text")
        if not isinstance(text, str):
            raise TypeError(f"'text' must be a string, got {type(text).__name__}")
        if not text.strip():
            raise ValueError(f"Task {task_id} has empty text")

        completed = data.get("completed", False)
        if not isinstance(completed, bool):
            raise TypeError(f"'completed' must be a bool, got {type(completed).__name__}")

        return cls(id=task_id, text=text.strip(), completed=completed)
