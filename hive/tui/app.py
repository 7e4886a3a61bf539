"""Top-level state machine of the terminal interface."""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from .dialogs import (
    CommentDialog,
    DialogOutcome,
    PushDialog,
    TaskDialog,
    TaskDialogField,
    TaskEditDialog,
    TopicDialog,
)
from .events import Action, ActionKind
from .poller import (
    ClearStaleAgents,
    FetchTopic,
    MarkTopicRead,
    SetTaskStatus,
    StateUpdate,
    TuiCmd,
)
from .state import AppState, TaskSummary, TopicSummary

_T = TypeVar("_T")

_MAX_SCROLL = 65535

CommandSink = Callable[[TuiCmd], Any]
DockerAction = Callable[[str, Path], Any]


class Screen(enum.Enum):
    """Top-level screens, in tab order."""

    DASHBOARD = "dashboard"
    TASKS = "tasks"
    MESSAGE_BOARD = "message-board"
    AGENTS = "agents"
    SETTINGS = "settings"


_SCREENS: tuple[Screen, ...] = tuple(Screen)

_SCREEN_KEYS = {
    "1": Screen.DASHBOARD,
    "2": Screen.TASKS,
    "3": Screen.MESSAGE_BOARD,
    "4": Screen.AGENTS,
    "5": Screen.SETTINGS,
}

_NEXT_STATUS = {
    "pending": "in-progress",
    "in-progress": "done",
    "done": "pending",
}

# Settings-screen keys and the container operation each one requests.
_DOCKER_KEYS = {
    "s": "start",
    "S": "stop",
    "r": "restart",
    "R": "reset",
}


def _selected(items: Sequence[_T], idx: int) -> _T | None:
    return items[idx] if 0 <= idx < len(items) else None


@dataclass
class App:
    """Interface state: current screen, open dialog and server data.

    ``cmd_sink`` receives the commands meant for the server. When set,
    ``docker_action`` is called on a background thread with the operation
    name (``start``, ``stop``, ``restart`` or ``reset``) and the project
    directory.
    """

    cmd_sink: CommandSink | None = None
    project_dir: Path = field(default_factory=lambda: Path("."))
    docker_action: DockerAction | None = None
    screen: Screen = Screen.DASHBOARD
    should_quit: bool = False
    state: AppState = field(default_factory=AppState)
    push_dialog: PushDialog | None = None
    topic_dialog: TopicDialog | None = None
    task_dialog: TaskDialog | None = None
    comment_dialog: CommentDialog | None = None
    task_edit_dialog: TaskEditDialog | None = None

    def _send(self, cmd: TuiCmd) -> None:
        if self.cmd_sink is not None:
            self.cmd_sink(cmd)

    def _finish(self, outcome: DialogOutcome, attr: str) -> None:
        if outcome.command is not None:
            self._send(outcome.command)
        if outcome.close:
            setattr(self, attr, None)

    def _handle_dialog(self, action: Action) -> bool:
        """Route the action to the open dialog; False if none is open."""
        if self.task_edit_dialog is not None:
            self._finish(self.task_edit_dialog.handle(action), "task_edit_dialog")
        elif self.comment_dialog is not None:
            self._finish(self.comment_dialog.handle(action), "comment_dialog")
        elif self.task_dialog is not None:
            self._finish(self.task_dialog.handle(action), "task_dialog")
        elif self.topic_dialog is not None:
            self._finish(self.topic_dialog.handle(action), "topic_dialog")
        elif self.push_dialog is not None:
            self._finish(self.push_dialog.handle(action, self.state.agents), "push_dialog")
        else:
            return False
        return True

    def handle(self, action: Action) -> None:
        """Apply one user action."""
        if self._handle_dialog(action):
            return

        kind = action.kind
        if kind is ActionKind.QUIT or (kind is ActionKind.CHAR and action.ch in ("q", "Q")):
            self.should_quit = True
        elif kind is ActionKind.TAB:
            pos = _SCREENS.index(self.screen)
            self.screen = _SCREENS[(pos + 1) % len(_SCREENS)]
        elif kind is ActionKind.CHAR and action.ch is not None:
            self._handle_char(action.ch)
        elif kind is ActionKind.SELECT and self.screen is Screen.MESSAGE_BOARD:
            topic = _selected(self.state.topics, self.state.selected_topic_idx)
            if topic is not None:
                self._send(FetchTopic(topic_id=topic.id))
                self._send(MarkTopicRead(topic_id=topic.id))
        elif kind is ActionKind.DOWN:
            self._move_down()
        elif kind is ActionKind.UP:
            self._move_up()

    def _handle_char(self, ch: str) -> None:
        if ch in _SCREEN_KEYS:
            self.screen = _SCREEN_KEYS[ch]
        elif self.screen is Screen.TASKS:
            self._handle_tasks_char(ch)
        elif self.screen is Screen.MESSAGE_BOARD:
            if ch == "n":
                self.topic_dialog = TopicDialog()
            elif ch == "c":
                topic = _selected(self.state.topics, self.state.selected_topic_idx)
                if topic is not None:
                    self.comment_dialog = CommentDialog(topic_id=topic.id)
        elif self.screen is Screen.SETTINGS:
            if ch in _DOCKER_KEYS:
                self._run_docker(_DOCKER_KEYS[ch])
        elif self.screen is Screen.AGENTS:
            if ch == "d":
                self._send(ClearStaleAgents())
            elif ch == "p" and self.state.agents:
                self.push_dialog = PushDialog(target_agent_idx=self.state.selected_agent_idx)

    def _handle_tasks_char(self, ch: str) -> None:
        if ch == "n":
            self.task_dialog = TaskDialog()
            return
        if ch == "[":
            self.state.task_detail_scroll = max(self.state.task_detail_scroll - 1, 0)
            return
        if ch == "]":
            self.state.task_detail_scroll = min(self.state.task_detail_scroll + 1, _MAX_SCROLL)
            return
        task = _selected(self.state.tasks, self.state.selected_task_idx)
        if task is None:
            return
        if ch == "s":
            self._send(SetTaskStatus(id=task.id, status=_NEXT_STATUS.get(task.status, "pending")))
        elif ch == "r":
            self._send(SetTaskStatus(id=task.id, status="pending"))
        elif ch == "x":
            self._send(SetTaskStatus(id=task.id, status="cancelled"))
        elif ch == "e":
            self.task_edit_dialog = TaskEditDialog(
                id=task.id,
                title=task.title,
                description=task.description or "",
                tags=", ".join(task.tags),
                active_field=TaskDialogField.TITLE,
            )

    def _run_docker(self, operation: str) -> None:
        if self.docker_action is None:
            return
        threading.Thread(
            target=self.docker_action,
            args=(operation, self.project_dir),
            name=f"hive-docker-{operation}",
            daemon=True,
        ).start()

    def _move_down(self) -> None:
        state = self.state
        if self.screen is Screen.TASKS:
            if state.selected_task_idx + 1 < len(state.tasks):
                state.selected_task_idx += 1
                state.task_detail_scroll = 0
        elif self.screen is Screen.MESSAGE_BOARD:
            if state.selected_topic_idx + 1 < len(state.topics):
                state.selected_topic_idx += 1
        elif self.screen is Screen.AGENTS:
            if state.selected_agent_idx + 1 < len(state.agents):
                state.selected_agent_idx += 1

    def _move_up(self) -> None:
        state = self.state
        if self.screen is Screen.TASKS:
            prev = state.selected_task_idx
            state.selected_task_idx = max(prev - 1, 0)
            if state.selected_task_idx != prev:
                state.task_detail_scroll = 0
        elif self.screen is Screen.MESSAGE_BOARD:
            state.selected_topic_idx = max(state.selected_topic_idx - 1, 0)
        elif self.screen is Screen.AGENTS:
            state.selected_agent_idx = max(state.selected_agent_idx - 1, 0)

    def apply_update(self, update: StateUpdate) -> None:
        """Replace the displayed data with a snapshot from the server link."""
        self.state.agents = list(update.agents)
        self.state.tasks = [TaskSummary.from_task(t) for t in update.tasks]
        self.state.topics = [TopicSummary.from_topic(t) for t in update.topics]
        if update.topic_detail_id is not None:
            self.state.topic_detail_id = update.topic_detail_id
            self.state.topic_comments = list(update.topic_comments)
        if update.unread_topic_ids is not None:
            self.state.unread_topic_ids = list(update.unread_topic_ids)

    def in_dialog(self) -> bool:
        """Whether any dialog is open (keys are then typed as text)."""
        return any(
            d is not None
            for d in (
                self.task_dialog,
                self.task_edit_dialog,
                self.topic_dialog,
                self.comment_dialog,
                self.push_dialog,
            )
        )

    def footer_hint(self) -> str:
        """Key help shown at the bottom of the screen."""
        if self.task_edit_dialog is not None or self.task_dialog is not None:
            return "Tab:next field  Enter:save  Esc:cancel"
        if self.topic_dialog is not None:
            return "Tab:next field  Enter:create  Esc:cancel"
        if self.comment_dialog is not None or self.push_dialog is not None:
            return "Enter:send  Esc:cancel"
        if self.screen is Screen.TASKS:
            return "n:new  e:edit  s:cycle  r:reset  x:cancel  ↑↓:select  []:scroll  q:quit"
        if self.screen is Screen.MESSAGE_BOARD:
            return "n:new topic  c:comment  q:quit"
        if self.screen is Screen.AGENTS:
            return "p:push message  d:clear stale  q:quit"
        if self.screen is Screen.SETTINGS:
            return "s:start  S:stop  r:restart  R:reset  q:quit"
        return "Tab:switch screens  1-5:go to screen  q:quit"