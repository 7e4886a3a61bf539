"""Display state of the terminal interface, fed from the server."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..types import Agent, Comment, Task, Topic


@dataclass
class TaskSummary:
    """Lightweight view of a task for display."""

    id: str = ""
    title: str = ""
    status: str = ""
    assigned: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    result: str | None = None

    @classmethod
    def from_task(cls, task: Task) -> TaskSummary:
        # The status label is the variant name folded to lower case,
        # so "in progress" shows up as "inprogress".
        return cls(
            id=task.id,
            title=task.title,
            status=task.status.name.replace("_", "").lower(),
            assigned=task.assigned_agent_id,
            description=task.description,
            tags=list(task.tags),
            result=task.result,
        )


@dataclass
class TopicSummary:
    """Lightweight view of a topic for display."""

    id: str = ""
    title: str = ""
    comment_count: int = 0
    last_updated: str | None = None
    creator: str | None = None
    last_updated_by: str | None = None

    @classmethod
    def from_topic(cls, topic: Topic) -> TopicSummary:
        return cls(
            id=topic.id,
            title=topic.title,
            comment_count=topic.comment_count,
            last_updated=topic.last_updated_at.isoformat(),
            creator=topic.creator_agent_id,
            last_updated_by=topic.last_updated_by,
        )


@dataclass
class AppState:
    """Everything the screens show, plus the current selections."""

    agents: list[Agent] = field(default_factory=list)
    tasks: list[TaskSummary] = field(default_factory=list)
    selected_task_idx: int = 0
    task_detail_scroll: int = 0
    topics: list[TopicSummary] = field(default_factory=list)
    selected_topic_idx: int = 0
    selected_agent_idx: int = 0
    topic_detail_id: str | None = None
    topic_comments: list[Comment] = field(default_factory=list)
    unread_topic_ids: list[str] = field(default_factory=list)