# src/tickly/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..core.state import AppState
from ..errors import BundleError, TaskValidationError
from ..storage.bundle import export_bundle, export_progress_text, load_bundle
from ..tasks.date_math import next_weekday_on_or_after
from ..tasks.recurrence import Advance, describe_schedule
from ..tasks.task_models import RepetitionRule, Task, TaskPriority, TimeType, Weekday

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


class UsageError(Exception):
    pass


def _task_at(state: AppState, raw: str) -> Task:
    """Resolve a 1-based list position, falling back to an id prefix."""
    tasks = state.tracker.tasks
    if raw.isdigit() and 1 <= int(raw) <= len(tasks):
        return tasks[int(raw) - 1]

    matches = [t for t in tasks if t.id.startswith(raw)]
    if len(matches) == 1:
        return matches[0]
    if raw.isdigit():
        raise UsageError(f"No task at position {int(raw)}.")
    raise UsageError(f"No unique task matches {raw!r}.")


def _parse_add_args(args: list[str], today: date) -> Task:
    title_parts: list[str] = []
    time_type = TimeType.NONE
    rule: RepetitionRule | None = None
    weekday: Weekday | None = None
    due: date | None = None
    priority = TaskPriority.MEDIUM

    it = iter(args)
    for tok in it:
        if tok == "--daily":
            time_type, rule = TimeType.REPEATING, RepetitionRule.DAILY
        elif tok in ("--alt", "--alternate"):
            time_type, rule = TimeType.REPEATING, RepetitionRule.ALTERNATE_DAY
        elif tok == "--weekly":
            weekday = Weekday.from_raw(next(it, None))
            if weekday is None:
                raise UsageError("--weekly needs a day name, e.g. --weekly monday")
            time_type, rule = TimeType.REPEATING, RepetitionRule.WEEKLY
        elif tok == "--on":
            raw = next(it, "")
            try:
                due = date.fromisoformat(raw)
            except ValueError:
                raise UsageError(f"--on needs a YYYY-MM-DD date, got {raw!r}") from None
            if time_type == TimeType.NONE:
                time_type = TimeType.SPECIFIC_DATE
        elif tok in ("--priority", "-p"):
            priority = TaskPriority.from_raw(next(it, None), TaskPriority.MEDIUM)
        else:
            title_parts.append(tok)

    if time_type == TimeType.REPEATING and due is None:
        due = next_weekday_on_or_after(today, weekday) if weekday is not None else today

    return Task(
        title=" ".join(title_parts),
        time_type=time_type,
        due_date=due,
        repetition_rule=rule,
        repetition_weekday=weekday,
        priority=priority,
    )


def _render_list(state: AppState) -> str:
    tracker = state.tracker
    today = tracker.today()
    tasks = tracker.tasks
    if not tasks:
        return "No tasks."

    lines = []
    for t in tasks:
        color = t.display_color.to_hex() if t.display_color else "-"
        lines.append(f"{t.index + 1:>3}. [{color}] {t.title} ({describe_schedule(t, today)})")

    list_state = tracker.state
    if list_state is not None:
        lines.append(f"Not due today: {list_state.progress:.0%} [{list_state.progress_color.to_hex()}]")
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return _render_list(state)


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add <title> [--daily | --alt | --weekly <day>] [--on YYYY-MM-DD] [-p high|medium|low]"
    try:
        task = _parse_add_args(args, state.tracker.today())
        state.tracker.add(task)
    except (UsageError, TaskValidationError) as e:
        return str(e)
    return f"Added: {task.title} ({describe_schedule(task, state.tracker.today())})"


def cmd_done(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /done <n>"
    try:
        task = _task_at(state, args[0])
    except UsageError as e:
        return str(e)
    outcome = state.tracker.mark_done(task.id)
    if outcome == Advance.UPDATED:
        return f"Done: {task.title}, next {describe_schedule(task, state.tracker.today())}"
    return f"Done and removed: {task.title}"


def cmd_reset(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /reset <n>"
    try:
        task = _task_at(state, args[0])
    except UsageError as e:
        return str(e)
    if state.tracker.reset_daily(task.id):
        return f"Reset to today: {task.title}"
    return "Only a daily task due tomorrow can be reset."


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) != 2 or not all(a.isdigit() for a in args):
        return "Usage: /move <from> <to>"
    src, dst = int(args[0]) - 1, int(args[1]) - 1
    if not state.tracker.move(src, dst):
        return "Nothing moved."
    return _render_list(state)


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <n>"
    try:
        task = _task_at(state, args[0])
    except UsageError as e:
        return str(e)
    state.tracker.delete(task.id)
    return f"Deleted: {task.title}"


def cmd_progress(state: AppState, args: list[str]) -> str:
    list_state = state.tracker.state
    if list_state is None:
        return "No progress yet."
    return f"Not due today: {list_state.progress:.0%} [{list_state.progress_color.to_hex()}]"


def cmd_history(state: AppState, args: list[str]) -> str:
    descending = bool(args) and args[0].lower() in ("desc", "descending")
    text = export_progress_text(state.tracker.progress_history, descending=descending)
    return text.rstrip("\n") or "No progress history."


def cmd_clear_history(state: AppState, args: list[str]) -> str:
    state.tracker.clear_progress()
    return "Progress history cleared."


def cmd_export(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /export <path.json>"
    tracker = state.tracker
    try:
        path = export_bundle(args[0], tracker.tasks, tracker.progress_history, tracker.sort_order)
    except OSError as e:
        logger.exception("Export failed")
        return f"Export failed: {e}"
    return f"Exported to {path}"


def cmd_import(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /import <path.json>"
    try:
        bundle = load_bundle(args[0])
    except BundleError as e:
        return f"Import failed: {e}"
    state.tracker.sort_order = bundle.sort_order
    state.tracker.replace_all(bundle.tasks, bundle.progress)
    return f"Imported {len(bundle.tasks)} tasks and {len(bundle.progress)} progress entries."


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"])
registry.register("list", cmd_list, "List tasks", aliases=["ls"])
registry.register("add", cmd_add, "Add a task: /add <title> [--daily|--alt|--weekly <day>] [--on DATE] [-p LEVEL]")
registry.register("done", cmd_done, "Complete the task at position n")
registry.register("reset", cmd_reset, "Pull a daily task due tomorrow back to today")
registry.register("move", cmd_move, "Move a task: /move <from> <to>")
registry.register("delete", cmd_delete, "Delete the task at position n", aliases=["rm"])
registry.register("progress", cmd_progress, "Show today's progress")
registry.register("history", cmd_history, "Show progress history [desc]")
registry.register("clear-history", cmd_clear_history, "Clear the progress history")
registry.register("export", cmd_export, "Export tasks and progress to a JSON bundle")
registry.register("import", cmd_import, "Import a JSON bundle (replaces current data)")
