"""Dashboard screen: screen tabs, agent status and a task queue preview."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..types import Agent
from .state import AppState

if TYPE_CHECKING:
    from .app import App

_PREVIEW_TASKS = 5

_TABS = (
    ("1:Dashboard", "dashboard"),
    ("2:Tasks", "tasks"),
    ("3:Board", "message-board"),
    ("4:Agents", "agents"),
    ("5:Settings", "settings"),
)

_TASK_COLORS = {
    "in-progress": "yellow",
    "done": "green",
    "blocked": "red",
    "cancelled": "red",
}


def render_header(app: App) -> Text:
    """Tab bar with the current screen highlighted."""
    text = Text()
    for label, screen_value in _TABS:
        style = "bold yellow" if app.screen.value == screen_value else "bright_black"
        text.append(label, style=style)
        text.append("  ")
    return text


def agent_status(agent: Agent, now: datetime | None = None) -> tuple[str, str]:
    """Connection label and style for an agent, from how long it has been silent."""
    if agent.last_seen_at is None:
        return "stale", "red"
    current = now or datetime.now(timezone.utc)
    secs = int((current - agent.last_seen_at).total_seconds())
    if secs < 0:
        return "stale", "red"
    if secs > 300:
        return "timed out", "red"
    if secs > 60:
        return "degraded", "dim yellow"
    return "connected", "green"


def _render_agents(state: AppState) -> Panel:
    if not state.agents:
        return Panel(Text("No agents connected"), title="Agents")
    table = Table(expand=True, header_style="bold", box=None)
    table.add_column("Agent", ratio=60)
    table.add_column("Status", ratio=40)
    now = datetime.now(timezone.utc)
    for agent in state.agents:
        label, style = agent_status(agent, now)
        table.add_row(Text(agent.name), Text(label), style=style)
    return Panel(table, title="Agents")


def _render_tasks(state: AppState) -> Panel:
    if not state.tasks:
        return Panel(Text("No pending tasks"), title="Next Tasks")
    lines = [
        Text.assemble(
            (f"[{task.status}] ", _TASK_COLORS.get(task.status, "white")),
            task.title,
        )
        for task in state.tasks[:_PREVIEW_TASKS]
    ]
    return Panel(Text("\n").join(lines), title="Next Tasks")


def render(state: AppState) -> RenderableType:
    """Agents on the left, the first few tasks on the right."""
    grid = Table.grid(expand=True)
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)
    grid.add_row(_render_agents(state), _render_tasks(state))
    return grid