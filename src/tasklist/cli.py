"""Command-line interface: interactive shell and one-shot commands."""

import argparse
import logging
import os
import sys
from collections.abc import Callable
from typing import TextIO

from tasklist import __version__
from tasklist.app import TodoApp
from tasklist.form import FormMode
from tasklist.formatter import Formatter, FormatType, TaskRenderer, Theme, color_enabled
from tasklist.storage import DEFAULT_KEY, DEFAULT_PATH
from tasklist.todo import Task

try:
    import readline
except ImportError:  # pragma: no cover - Windows
    readline = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[H\033[2J"

HELP_TEXT = """\
Type text and press Enter to add a task (or to save the task being edited).
  /toggle N   Mark task N done or not done
  /edit N     Load task N into the field for editing
  /delete N   Delete task N
  /cancel     Leave edit mode
  /dark       Switch between light and dark mode
  /help       Show this help
  /quit       Exit
Start the text with // to add a task that begins with a slash."""


def _truthy_env(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_config(args: argparse.Namespace) -> tuple[str, str, bool]:
    """Resolve storage path, key and dark mode.

    Priority: command-line flag > environment variable > default.
    """
    path = args.db or os.environ.get("TASKLIST_DB") or DEFAULT_PATH
    key = args.key or os.environ.get("TASKLIST_KEY") or DEFAULT_KEY
    dark = args.dark or _truthy_env(os.environ.get("TASKLIST_DARK"))
    return path, key, dark


class Shell:
    """Interactive read-render loop around a TodoApp."""

    def __init__(
        self,
        app: TodoApp,
        input_func: Callable[[str], str] = input,
        out: TextIO | None = None,
    ):
        self.app = app
        self.input_func = input_func
        self.out = out or sys.stdout
        self.notice: str | None = None

    def _write(self, text: str) -> None:
        print(text, file=self.out)

    def redraw(self) -> None:
        colored = color_enabled(self.out)
        if colored:
            self.out.write(CLEAR_SCREEN)
        renderer = TaskRenderer(Theme.for_mode(self.app.dark, enabled=colored))
        self._write(renderer.render_screen(self.app))
        if self.notice:
            self._write("")
            self._write(self.notice)
            self.notice = None

    def _read_line(self) -> str:
        form = self.app.form
        prompt = f"{form.submit_label}> "
        prefill = form.value if form.mode is FormMode.EDIT and form.focused else ""
        if readline is None or not prefill or self.input_func is not input:
            return self.input_func(prompt)
        readline.set_startup_hook(lambda: readline.insert_text(prefill))
        try:
            return self.input_func(prompt)
        finally:
            readline.set_startup_hook()

    def run(self) -> int:
        while True:
            self.redraw()
            try:
                line = self._read_line()
            except (EOFError, KeyboardInterrupt):
                self._write("")
                return 0
            if not self.handle(line):
                return 0

    def _task_arg(self, raw: list[str]) -> Task | None:
        if len(raw) != 1 or not raw[0].isdigit():
            self.notice = "✗ Expected a task number"
            return None
        task = self.app.task_at(int(raw[0]))
        if task is None:
            self.notice = f"✗ Task #{raw[0]} not found"
        return task

    def handle(self, line: str) -> bool:
        """Apply one input line. Returns False when the user quits."""
        stripped = line.strip()
        escaped = stripped.startswith("//")
        if escaped:
            # Escaped slash: the rest of the line is task text
            line = stripped = stripped[1:]
        if escaped or not stripped.startswith("/"):
            if not stripped:
                self.notice = "✗ Task text cannot be empty"
            elif not self.app.submit(line):
                self.notice = "✗ Task no longer exists"
            return True

        words = stripped[1:].split()
        if not words:
            self.notice = "Unknown command. Type /help for instructions."
            return True
        command, *rest = words
        command = command.lower()
        if command in {"quit", "exit", "q"}:
            return False
        if command == "help":
            self.notice = HELP_TEXT
        elif command == "dark":
            self.app.toggle_dark_mode()
        elif command == "cancel":
            self.app.form.cancel()
        elif command in {"toggle", "edit", "delete"}:
            task = self._task_arg(rest)
            if task is not None:
                if command == "toggle":
                    self.app.toggle_complete(task.id)
                elif command == "edit":
                    self.app.edit_todo(task.id)
                else:
                    self.app.delete_todo(task.id)
        else:
            self.notice = "Unknown command. Type /help for instructions."
        return True


def _arg_text(words: list[str]) -> str:
    """Join argv words, replacing bytes that were not valid UTF-8."""
    text = " ".join(words)
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _error(message: str) -> int:
    print(f"✗ {message}", file=sys.stderr)
    return 1


def _resolve_number(app: TodoApp, number: int) -> Task | None:
    task = app.task_at(number)
    if task is None:
        _error(f"Task #{number} not found")
    return task


def run_command(args: argparse.Namespace) -> int:
    """Run the parsed command and return the exit status."""
    path, key, dark = resolve_config(args)
    app = TodoApp.open(path, key, dark=dark)
    command = args.command or "shell"
    logger.debug("Running %s against %s (key=%s)", command, path, key)

    if command == "shell":
        return Shell(app).run()

    if command == "add":
        if not app.submit(_arg_text(args.text)):
            return _error("Task text cannot be empty")
        number = len(app.tasks)
        print(f"✓ Added task #{number}: {app.tasks[-1].text}")
        return 0

    if command == "list":
        formatter = Formatter(FormatType(args.format) if args.format else FormatType.TABLE)
        print(formatter.format(app.tasks))
        return 0

    if command == "stats":
        progress = TaskRenderer(Theme.for_mode(dark, enabled=False)).render_progress(app.stats())
        print(progress if progress is not None else "No tasks yet!")
        return 0

    task = _resolve_number(app, args.number)
    if task is None:
        return 1

    if command == "toggle":
        app.toggle_complete(task.id)
        state = "done" if app.store.get(task.id).completed else "not done"
        print(f"✓ Marked task #{args.number} {state}")
    elif command == "edit":
        app.edit_todo(task.id)
        if not app.submit(_arg_text(args.text)):
            return _error("Task text cannot be empty")
        print(f"✓ Updated task #{args.number}")
    elif command == "delete":
        app.delete_todo(task.id)
        print(f"✓ Deleted task #{args.number}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasklist", description="Terminal todo list")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", help=f"Storage file (default: $TASKLIST_DB or {DEFAULT_PATH})")
    parser.add_argument("--key", help=f"Storage key (default: $TASKLIST_KEY or {DEFAULT_KEY})")
    parser.add_argument("--dark", action="store_true", help="Start in dark mode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("shell", help="Interactive mode (default)")

    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("text", nargs="+", help="Task text")

    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument("-f", "--format", choices=[f.value for f in FormatType])

    toggle_parser = subparsers.add_parser("toggle", help="Mark a task done or not done")
    toggle_parser.add_argument("number", type=int, help="Task number")

    edit_parser = subparsers.add_parser("edit", help="Replace a task's text")
    edit_parser.add_argument("number", type=int, help="Task number")
    edit_parser.add_argument("text", nargs="+", help="New text")

    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("number", type=int, help="Task number")

    subparsers.add_parser("stats", help="Show progress")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    for stream in (sys.stdout, sys.stderr):
        # Unencodable characters are replaced rather than raising on print
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(run_command(args))


if __name__ == "__main__":
    main()
