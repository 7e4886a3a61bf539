"""Tasks screen: task list on the left, details of the selected task on the right."""

from __future__ import annotations

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .state import AppState, TaskSummary
from .util import strip_ansi

_STATUS_COLORS = {
    "in-progress": "yellow",
    "inprogress": "yellow",
    "done": "green",
    "blocked": "red",
    "cancelled": "red",
}


def status_color(status: str) -> str:
    """Colour used to show a task status."""
    return _STATUS_COLORS.get(status, "white")


def _text_lines(s: str) -> list[str]:
    """Split on newlines, dropping a trailing empty line and carriage returns."""
    if not s:
        return []
    parts = s.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


def render(state: AppState) -> RenderableType:
    """Task list (40%) beside the detail of the selected task (60%)."""
    if not state.tasks:
        return Panel(Text("No tasks"), title=Text("Tasks"))

    selected = state.selected_task_idx
    lines = []
    for i, task in enumerate(state.tasks):
        line = Text(style="bold on blue" if i == selected else "")
        line.append(f"[{task.status[:4]}] ", style=status_color(task.status))
        line.append(task.title)
        lines.append(line)
    task_list = Panel(Text("\n").join(lines), title=Text("Tasks"))

    task = state.tasks[selected] if 0 <= selected < len(state.tasks) else None

    grid = Table.grid(expand=True)
    grid.add_column(ratio=40)
    grid.add_column(ratio=60)
    grid.add_row(task_list, render_detail(task, state.task_detail_scroll))
    return grid


def render_detail(task: TaskSummary | None, scroll: int) -> Panel:
    """All fields of one task, skipping the first ``scroll`` lines."""
    title = Text("Detail ([ ] scroll)")
    if task is None:
        return Panel(Text("Select a task"), title=title)

    bold = "bold"
    lines = [
        Text.assemble(("ID: ", bold), task.id),
        Text.assemble(("Title: ", bold), task.title),
        Text.assemble(("Status: ", bold), (task.status, status_color(task.status))),
        Text.assemble(("Assigned: ", bold), task.assigned or "-"),
    ]
    if task.tags:
        lines.append(Text.assemble(("Tags: ", bold), (", ".join(task.tags), "cyan")))
    for heading, body in (("Description:", task.description), ("Result:", task.result)):
        if body is None:
            continue
        lines.append(Text(""))
        lines.append(Text(heading, style=bold))
        lines.extend(Text(line) for line in _text_lines(strip_ansi(body)))

    visible = lines[max(scroll, 0):]
    return Panel(Text("\n").join(visible), title=title)