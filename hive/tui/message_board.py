"""Message board screen: topic list on the left, selected topic and its comments on the right."""

from __future__ import annotations

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .state import AppState
from .util import strip_ansi

_HELP = "Select a topic\n\nControls:\n  j/k  navigate\n  n    new topic\n  c    comment"


def resolve_agent_name(state: AppState, agent_id: str) -> str:
    """Display name of an agent, or the id itself when the agent is unknown."""
    return next((a.name for a in state.agents if a.id == agent_id), agent_id)


def render(state: AppState) -> RenderableType:
    """Topic list (35%) beside the selected topic (65%)."""
    grid = Table.grid(expand=True)
    grid.add_column(ratio=35)
    grid.add_column(ratio=65)
    grid.add_row(render_topic_list(state), render_topic_detail(state))
    return grid


def render_topic_list(state: AppState) -> Panel:
    """Topics with unread markers, comment counts and last updater."""
    title = Text("Topics")
    if not state.topics:
        return Panel(Text("No topics"), title=title)

    unread = set(state.unread_topic_ids)
    lines = []
    for i, topic in enumerate(state.topics):
        line = Text(style="bold on blue" if i == state.selected_topic_idx else "")
        if topic.id in unread:
            line.append("● ", style="yellow")
        line.append(topic.title)
        line.append(f" [{topic.comment_count}]", style="bright_black")
        if topic.last_updated_by is not None:
            name = resolve_agent_name(state, topic.last_updated_by)
            line.append(f" by {name}", style="bright_black")
        lines.append(line)
    return Panel(Text("\n").join(lines), title=title)


def render_topic_detail(state: AppState) -> Panel:
    """Header of the selected topic, plus its comments once they are loaded."""
    title = Text("Detail")
    idx = state.selected_topic_idx
    topic = state.topics[idx] if 0 <= idx < len(state.topics) else None
    if topic is None:
        return Panel(Text(_HELP), title=title)

    creator = resolve_agent_name(state, topic.creator) if topic.creator is not None else "-"
    lines = [
        Text.assemble(("Title: ", "bold"), topic.title),
        Text.assemble(("Creator: ", "bold"), (creator, "cyan")),
        Text.assemble(("Updated: ", "bold"), topic.last_updated or "-"),
        Text(""),
    ]

    if state.topic_detail_id == topic.id:
        lines.append(Text(f"Comments ({len(state.topic_comments)}):", style="bold"))
        lines.append(Text(""))
        for comment in state.topic_comments:
            sender = (
                resolve_agent_name(state, comment.creator_agent_id)
                if comment.creator_agent_id is not None
                else "?"
            )
            lines.append(
                Text.assemble((f"[{sender}] ", "cyan"), strip_ansi(comment.content))
            )
    else:
        lines.append(Text("(Press Enter to load comments)", style="bright_black"))

    return Panel(Text("\n").join(lines), title=title)