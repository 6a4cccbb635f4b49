"""Rendering of tasks, progress and the entry form for the terminal.

Decisions:
- Two palettes, light and dark; the dark flag only changes colours.
- Colour is disabled when NO_COLOR is set, or when the stream is not a
  TTY unless FORCE_COLOR is set.
- Completed tasks render struck through in a muted colour.
"""

import json
import os
import sys
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from tasklist.form import FormMode, TaskForm
from tasklist.todo import Task

if TYPE_CHECKING:
    from tasklist.app import Stats, TodoApp

BAR_WIDTH = 20
EMPTY_MESSAGE = "No tasks yet!"
PLACEHOLDER = "Enter the task"


def _code(part: str) -> str:
    return f"\033[{part}m"


RESET = _code("0")
BOLD = _code("1")
STRIKE = _code("9")
REVERSE = _code("7")


def color_enabled(stream: TextIO | None = None) -> bool:
    """Return True if ANSI styles should be written to ``stream``."""
    if os.environ.get("NO_COLOR") is not None:
        return False
    if os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}:
        return True
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


@dataclass(frozen=True)
class Theme:
    """ANSI styles for one display mode."""

    name: str
    text: str
    muted: str
    accent: str
    done_row: str
    bar_fill: str
    bar_empty: str
    enabled: bool = True

    @classmethod
    def for_mode(cls, dark: bool, enabled: bool = True) -> "Theme":
        palette = DARK if dark else LIGHT
        return replace(palette, enabled=enabled)

    def paint(self, text: str, *styles: str) -> str:
        """Apply ANSI styles to ``text``."""
        if not self.enabled or not any(styles):
            return text
        return "".join(styles) + text + RESET


LIGHT = Theme(
    name="light",
    text=_code("38;5;235"),
    muted=_code("38;5;245"),
    accent=_code("38;5;26"),
    done_row=_code("38;5;28"),
    bar_fill=_code("38;5;26"),
    bar_empty=_code("38;5;250"),
)

DARK = Theme(
    name="dark",
    text=_code("38;5;252"),
    muted=_code("38;5;242"),
    accent=_code("38;5;75"),
    done_row=_code("38;5;114"),
    bar_fill=_code("38;5;75"),
    bar_empty=_code("38;5;238"),
)


class TaskRenderer:
    """Turn application state into lines of text."""

    def __init__(self, theme: Theme):
        self.theme = theme

    def render_item(self, number: int, task: Task) -> str:
        t = self.theme
        if task.completed:
            box = t.paint("[x]", t.done_row)
            text = t.paint(task.text, STRIKE, t.muted)
        else:
            box = "[ ]"
            text = t.paint(task.text, t.text)
        return f"{t.paint(f'{number:>2}.', t.accent, BOLD)} {box} {text}"

    def render_list(self, tasks: tuple[Task, ...]) -> str:
        if not tasks:
            return self.theme.paint(EMPTY_MESSAGE, self.theme.muted)
        return "\n".join(self.render_item(n, task) for n, task in enumerate(tasks, start=1))

    def render_progress(self, stats: "Stats") -> str | None:
        """Progress line and bar; None when there are no tasks."""
        fraction = stats.fraction
        if fraction is None:
            return None
        t = self.theme
        filled = round(fraction * BAR_WIDTH)
        bar = t.paint("█" * filled, t.bar_fill) + t.paint("░" * (BAR_WIDTH - filled), t.bar_empty)
        return f"Progress: {stats.completed} / {stats.total} tasks completed\n{bar} {stats.percent}%"

    def render_form(self, form: TaskForm) -> str:
        t = self.theme
        if form.value:
            field = form.value
            if form.selected:
                field = t.paint(field, REVERSE)
        else:
            field = t.paint(PLACEHOLDER, t.muted)
        label = t.paint(form.field_label, BOLD)
        button = t.paint(f"[{form.submit_label}]", t.accent, BOLD)
        return f"{label}\n> {field} {button}"

    def render_screen(self, app: "TodoApp") -> str:
        t = self.theme
        sections = [t.paint("Todo App", t.accent, BOLD)]
        progress = self.render_progress(app.stats())
        if progress is not None:
            sections.append(progress)
        sections.append(self.render_form(app.form))
        sections.append(t.paint("Tasks", t.accent, BOLD))
        sections.append(self.render_list(app.tasks))
        mode = "edit" if app.form.mode is FormMode.EDIT else "add"
        sections.append(
            t.paint(
                f"/toggle N  /edit N  /delete N  /cancel  /dark ({t.name})  /help  /quit  [{mode}]",
                t.muted,
            )
        )
        return "\n\n".join(sections)


class FormatType(str, Enum):
    """Output format types."""

    TABLE = "table"
    JSON = "json"
    COMPACT = "compact"


class Formatter:
    """Format tasks for non-interactive output."""

    def __init__(self, format_type: FormatType = FormatType.TABLE):
        self.format_type = format_type

    def format(self, tasks: tuple[Task, ...]) -> str:
        """Format tasks for display."""
        if self.format_type == FormatType.JSON:
            return json.dumps([t.to_dict() for t in tasks], indent=2)
        if not tasks:
            return EMPTY_MESSAGE
        if self.format_type == FormatType.COMPACT:
            return "\n".join(f"{n}. {t.text}" for n, t in enumerate(tasks, start=1))
        return self._format_table(tasks)

    def _format_table(self, tasks: tuple[Task, ...]) -> str:
        lines = [f"{'#':<4} {'Done':<6} {'Text'}", "-" * 60]
        for n, task in enumerate(tasks, start=1):
            lines.append(f"{n:<4} {'[x]' if task.completed else '[ ]':<6} {task.text}")
        return "\n".join(lines)
