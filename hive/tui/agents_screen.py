"""Agents screen: connected agents on the left, details of the selected one on the right."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..types import Agent
from .state import AppState, TaskSummary

_STALE_AFTER = 300
_DEGRADED_AFTER = 60


def staleness_secs(agent: Agent, now: datetime | None = None) -> int | None:
    """Whole seconds since the agent was last seen, or ``None`` if never seen."""
    if agent.last_seen_at is None:
        return None
    current = now or datetime.now(timezone.utc)
    return int((current - agent.last_seen_at).total_seconds())


def current_task(tasks: Sequence[TaskSummary], agent_id: str) -> TaskSummary | None:
    """The in-progress task assigned to ``agent_id``, if any."""
    return next(
        (t for t in tasks if t.status == "inprogress" and t.assigned == agent_id),
        None,
    )


def _agent_line(agent: Agent, busy: bool, selected: bool, now: datetime) -> Text:
    if busy:
        marker, marker_style = "● ", "green"
    else:
        marker, marker_style = "○ ", "bright_black"
    secs = staleness_secs(agent, now)
    if secs is None or secs < 0 or secs > _STALE_AFTER:
        name, name_style = f"{agent.name} (stale)", "red"
    elif secs > _DEGRADED_AFTER:
        name, name_style = agent.name, "dim yellow"
    else:
        name, name_style = agent.name, ""
    line = Text(style="reverse" if selected else "")
    line.append(marker, style=marker_style)
    line.append(name, style=name_style)
    return line


def render(state: AppState) -> RenderableType:
    """Agent list (40%) beside the detail of the selected agent (60%)."""
    if not state.agents:
        return Panel(Text("No agents connected"), title=Text("Agents"))

    selected = min(state.selected_agent_idx, max(len(state.agents) - 1, 0))
    now = datetime.now(timezone.utc)
    lines = [
        _agent_line(agent, current_task(state.tasks, agent.id) is not None, i == selected, now)
        for i, agent in enumerate(state.agents)
    ]
    agent_list = Panel(Text("\n").join(lines), title=Text("Agents"))

    selected_agent = state.agents[selected] if selected < len(state.agents) else None
    selected_task = (
        current_task(state.tasks, selected_agent.id) if selected_agent is not None else None
    )

    grid = Table.grid(expand=True)
    grid.add_column(ratio=40)
    grid.add_column(ratio=60)
    grid.add_row(agent_list, render_detail(selected_agent, selected_task))
    return grid


def render_detail(agent: Agent | None, task: TaskSummary | None) -> Panel:
    """Identity, tags, last-seen time and current work of one agent."""
    title = Text("Detail")
    if agent is None:
        return Panel(Text("Select an agent"), title=title)

    tags = ", ".join(agent.tags) if agent.tags else "-"
    secs = staleness_secs(agent)
    if secs is None:
        last_seen, seen_style = "-", "red"
    elif secs > _STALE_AFTER:
        last_seen, seen_style = f"{secs}s ago (stale)", "red"
    elif secs > _DEGRADED_AFTER:
        last_seen, seen_style = f"{secs}s ago", "yellow"
    else:
        last_seen, seen_style = f"{secs}s ago", "green"

    if task is not None:
        status_text, status_style = f"● Working on: {task.title}", "green"
    else:
        status_text, status_style = "○ Idle", "bright_black"

    lines = [
        Text.assemble(("ID: ", "bold"), agent.id),
        Text.assemble(("Name: ", "bold"), agent.name),
        Text.assemble(("Tags: ", "bold"), (tags, "cyan")),
        Text.assemble(("Last seen: ", "bold"), (last_seen, seen_style)),
        Text.assemble(("Status: ", "bold"), (status_text, status_style)),
    ]
    return Panel(Text("\n").join(lines), title=title)