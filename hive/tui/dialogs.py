"""Modal input dialogs of the terminal interface.

Each dialog edits its own text fields. ``handle`` returns a
:class:`DialogOutcome` telling the caller whether the dialog should close
and which command, if any, to send to the server.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from ..types import Agent
from .events import Action, ActionKind
from .poller import CreateComment, CreateTask, CreateTopic, SendPush, TuiCmd, UpdateTask


class TopicDialogField(enum.Enum):
    """Which field of the topic dialog is active."""

    TITLE = "title"
    CONTENT = "content"


class TaskDialogField(enum.Enum):
    """Which field of a task dialog is active."""

    TITLE = "title"
    DESCRIPTION = "description"
    TAGS = "tags"


_NEXT_TOPIC_FIELD = {
    TopicDialogField.TITLE: TopicDialogField.CONTENT,
    TopicDialogField.CONTENT: TopicDialogField.TITLE,
}

_NEXT_TASK_FIELD = {
    TaskDialogField.TITLE: TaskDialogField.DESCRIPTION,
    TaskDialogField.DESCRIPTION: TaskDialogField.TAGS,
    TaskDialogField.TAGS: TaskDialogField.TITLE,
}


@dataclass(frozen=True)
class DialogOutcome:
    """Result of feeding one action to a dialog."""

    close: bool = False
    command: TuiCmd | None = None


_KEEP = DialogOutcome()
_CLOSE = DialogOutcome(close=True)


def parse_tags(text: str) -> list[str]:
    """Split a comma-separated tag string, dropping blanks."""
    return [tag for tag in (part.strip() for part in text.split(",")) if tag]


def _edited(text: str, action: Action) -> str | None:
    """Apply a typing action to ``text``; ``None`` if the action is not typing."""
    if action.kind is ActionKind.CHAR and action.ch is not None:
        return text + action.ch
    if action.kind is ActionKind.BACKSPACE:
        return text[:-1]
    return None


def _edit_field(dialog: object, name: str, action: Action) -> bool:
    current = getattr(dialog, name)
    updated = _edited(current, action)
    if updated is None:
        return False
    setattr(dialog, name, updated)
    return True


def _handle_task_fields(dialog: TaskDialog | TaskEditDialog, action: Action) -> DialogOutcome | None:
    """Shared editing of title/description/tags; ``None`` for Select."""
    if action.kind is ActionKind.BACK:
        return _CLOSE
    if action.kind is ActionKind.TAB:
        dialog.active_field = _NEXT_TASK_FIELD[dialog.active_field]
        return _KEEP
    if action.kind is ActionKind.SELECT:
        return None
    _edit_field(dialog, dialog.active_field.value, action)
    return _KEEP


@dataclass
class PushDialog:
    """Composes a push message to the agent at ``target_agent_idx``."""

    target_agent_idx: int = 0
    content: str = ""

    def handle(self, action: Action, agents: Sequence[Agent]) -> DialogOutcome:
        if action.kind is ActionKind.BACK:
            return _CLOSE
        if action.kind is ActionKind.SELECT:
            if 0 <= self.target_agent_idx < len(agents):
                agent = agents[self.target_agent_idx]
                return DialogOutcome(True, SendPush(to_agent_id=agent.id, content=self.content))
            return _CLOSE
        _edit_field(self, "content", action)
        return _KEEP


@dataclass
class TopicDialog:
    """Creates a new topic."""

    title: str = ""
    content: str = ""
    active_field: TopicDialogField = TopicDialogField.TITLE

    def handle(self, action: Action) -> DialogOutcome:
        if action.kind is ActionKind.BACK:
            return _CLOSE
        if action.kind is ActionKind.TAB:
            self.active_field = _NEXT_TOPIC_FIELD[self.active_field]
            return _KEEP
        if action.kind is ActionKind.SELECT:
            if self.title.strip():
                return DialogOutcome(True, CreateTopic(title=self.title, content=self.content))
            return _CLOSE
        _edit_field(self, self.active_field.value, action)
        return _KEEP


@dataclass
class CommentDialog:
    """Adds a comment to the topic ``topic_id``."""

    topic_id: str
    content: str = ""

    def handle(self, action: Action) -> DialogOutcome:
        if action.kind is ActionKind.BACK:
            return _CLOSE
        if action.kind is ActionKind.SELECT:
            if self.content.strip():
                return DialogOutcome(
                    True, CreateComment(topic_id=self.topic_id, content=self.content)
                )
            return _CLOSE
        _edit_field(self, "content", action)
        return _KEEP


@dataclass
class TaskDialog:
    """Creates a new task."""

    title: str = ""
    description: str = ""
    tags: str = ""
    active_field: TaskDialogField = TaskDialogField.TITLE

    def handle(self, action: Action) -> DialogOutcome:
        outcome = _handle_task_fields(self, action)
        if outcome is not None:
            return outcome
        if self.title.strip():
            return DialogOutcome(
                True,
                CreateTask(
                    title=self.title,
                    description=self.description,
                    tags=parse_tags(self.tags),
                ),
            )
        return _CLOSE


@dataclass
class TaskEditDialog:
    """Edits the existing task ``id``."""

    id: str
    title: str = ""
    description: str = ""
    tags: str = ""
    active_field: TaskDialogField = TaskDialogField.TITLE

    def handle(self, action: Action) -> DialogOutcome:
        outcome = _handle_task_fields(self, action)
        if outcome is not None:
            return outcome
        if self.title.strip():
            return DialogOutcome(
                True,
                UpdateTask(
                    id=self.id,
                    title=self.title,
                    description=self.description,
                    tags=parse_tags(self.tags),
                ),
            )
        return _CLOSE