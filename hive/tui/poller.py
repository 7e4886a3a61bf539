"""Background WebSocket link between the terminal interface and the server.

The link connects as the special ``__tui__`` observer, seeds its state with
one-shot requests, then stays connected and reacts to server pushes. State
changes go out through an ``updates`` callable; commands come in through a
queue.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Union

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from ..errors import SerializationError
from ..types import Agent, ApiMessage, Comment, MessageType, Task, Topic

logger = logging.getLogger(__name__)

TUI_AGENT_ID = "__tui__"
RECONNECT_DELAY = 3.0


@dataclass
class StateUpdate:
    """A full snapshot of what the server told the interface."""

    agents: list[Agent] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)
    topic_detail_id: str | None = None
    topic_comments: list[Comment] = field(default_factory=list)
    unread_topic_ids: list[str] | None = None

    @classmethod
    def empty(cls) -> StateUpdate:
        return cls()


@dataclass(frozen=True)
class SendPush:
    to_agent_id: str
    content: str


@dataclass(frozen=True)
class CreateTopic:
    title: str
    content: str


@dataclass(frozen=True)
class CreateTask:
    title: str
    description: str
    tags: list[str]


@dataclass(frozen=True)
class CreateComment:
    topic_id: str
    content: str


@dataclass(frozen=True)
class UpdateTask:
    id: str
    title: str
    description: str
    tags: list[str]


@dataclass(frozen=True)
class SetTaskStatus:
    id: str
    status: str


@dataclass(frozen=True)
class FetchTopic:
    topic_id: str


@dataclass(frozen=True)
class ClearStaleAgents:
    pass


@dataclass(frozen=True)
class MarkTopicRead:
    topic_id: str


TuiCmd = Union[
    SendPush,
    CreateTopic,
    CreateTask,
    CreateComment,
    UpdateTask,
    SetTaskStatus,
    FetchTopic,
    ClearStaleAgents,
    MarkTopicRead,
]

Updates = Callable[[StateUpdate], Any]


def build_request(request_id: str, method: str, params: Any = None) -> ApiMessage:
    """Build a request envelope."""
    return ApiMessage(MessageType.REQUEST, request_id, method=method, params=params)


def seed_requests() -> list[ApiMessage]:
    """The requests that load the initial state after connecting."""
    return [
        build_request("seed-agents", "agent.list"),
        build_request("seed-tasks", "task.list"),
        build_request("seed-topics", "topic.list"),
        build_request("seed-unread", "topic.unread"),
    ]


def _fresh_id() -> str:
    return str(uuid.uuid4())


def command_requests(cmd: TuiCmd) -> list[ApiMessage]:
    """The requests that carry out a command, in the order they are sent."""
    match cmd:
        case SendPush(to_agent_id=to_agent_id, content=content):
            return [
                build_request(
                    _fresh_id(), "push.send", {"to_agent_id": to_agent_id, "content": content}
                )
            ]
        case CreateTopic(title=title, content=content):
            return [
                build_request(
                    _fresh_id(),
                    "topic.create",
                    {"title": title, "content": content, "creator_agent_id": TUI_AGENT_ID},
                )
            ]
        case CreateTask(title=title, description=description, tags=tags):
            return [
                build_request(
                    _fresh_id(),
                    "task.create",
                    {"title": title, "description": description, "tags": list(tags)},
                )
            ]
        case SetTaskStatus(id=task_id, status=status):
            return [build_request(_fresh_id(), "task.update", {"id": task_id, "status": status})]
        case UpdateTask(id=task_id, title=title, description=description, tags=tags):
            return [
                build_request(
                    _fresh_id(),
                    "task.update",
                    {"id": task_id, "title": title, "description": description, "tags": list(tags)},
                )
            ]
        case CreateComment(topic_id=topic_id, content=content):
            return [
                build_request(
                    _fresh_id(),
                    "topic.comment",
                    {"topic_id": topic_id, "content": content, "creator_agent_id": TUI_AGENT_ID},
                )
            ]
        case FetchTopic(topic_id=topic_id):
            return [build_request("fetch-topic", "topic.get", {"id": topic_id})]
        case MarkTopicRead(topic_id=topic_id):
            return [
                build_request("mark-read", "topic.mark_read", {"topic_id": topic_id}),
                build_request("refresh-unread", "topic.unread"),
            ]
        case ClearStaleAgents():
            return [build_request(_fresh_id(), "agent.clear_stale")]
    raise TypeError(f"unknown command: {cmd!r}")


def _parse_records(cls: type, value: Any) -> list:
    if not isinstance(value, list):
        return []
    try:
        return [cls.from_dict(item) for item in value]
    except (SerializationError, TypeError, ValueError, AttributeError):
        return []


def _parse_strings(value: Any) -> list[str]:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    return []


@dataclass
class PollerState:
    """What the link has learned from the server so far."""

    agents: list[Agent] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)
    topic_detail_id: str | None = None
    topic_comments: list[Comment] = field(default_factory=list)
    unread_topic_ids: list[str] = field(default_factory=list)

    def apply(self, msg: ApiMessage) -> tuple[bool, list[ApiMessage]]:
        """Fold a server message into the state.

        Returns whether the state changed and any requests that should be
        sent in response.
        """
        if msg.msg_type is MessageType.RESPONSE:
            if msg.result is None:
                return False, []
            return self._apply_response(msg.id, msg.result), []
        if msg.msg_type is MessageType.PUSH:
            if msg.params is None:
                return False, []
            return self._apply_push(msg.method or "", msg.params)
        return False, []

    def _apply_response(self, request_id: str, result: Any) -> bool:
        if request_id == "seed-agents":
            self.agents = _parse_records(Agent, result)
        elif request_id == "seed-tasks":
            self.tasks = _parse_records(Task, result)
        elif request_id == "seed-topics":
            self.topics = _parse_records(Topic, result)
        elif request_id in ("seed-unread", "refresh-unread"):
            self.unread_topic_ids = _parse_strings(result)
        elif request_id == "fetch-topic":
            body = result if isinstance(result, dict) else {}
            topic = body.get("topic")
            topic_id = topic.get("id") if isinstance(topic, dict) else None
            if isinstance(topic_id, str):
                self.topic_detail_id = topic_id
            self.topic_comments = _parse_records(Comment, body.get("comments"))
        else:
            return False
        return True

    def _apply_push(self, method: str, params: Any) -> tuple[bool, list[ApiMessage]]:
        if method == "agents.updated":
            self.agents = _parse_records(Agent, params)
        elif method == "tasks.updated":
            self.tasks = _parse_records(Task, params)
        elif method == "topics.updated":
            self.topics = _parse_records(Topic, params)
            return True, [build_request("refresh-unread", "topic.unread")]
        else:
            return False, []
        return True, []

    def snapshot(self) -> StateUpdate:
        """Copy the state into an update for the interface."""
        return StateUpdate(
            agents=list(self.agents),
            tasks=list(self.tasks),
            topics=list(self.topics),
            topic_detail_id=self.topic_detail_id,
            topic_comments=list(self.topic_comments),
            unread_topic_ids=list(self.unread_topic_ids),
        )


async def _send_quietly(ws: Any, requests: list[ApiMessage]) -> None:
    for request in requests:
        with contextlib.suppress(WebSocketException, OSError):
            await ws.send(request.to_json())


async def _handle_incoming(ws: Any, state: PollerState, raw: Any, updates: Updates) -> bool:
    """Process one frame; return False once the interface has gone away."""
    if not isinstance(raw, str):
        return True
    try:
        msg = ApiMessage.from_json(raw)
    except SerializationError:
        return True
    changed, follow_up = state.apply(msg)
    await _send_quietly(ws, follow_up)
    if changed and updates(state.snapshot()) is False:
        return False
    return True


async def connect_and_listen(
    server_url: str, updates: Updates, commands: asyncio.Queue
) -> None:
    """Hold one connection open until the server closes it or the interface exits.

    ``updates`` receives every new state; it returns ``False`` once its
    consumer has gone away. ``commands`` yields commands; ``None`` means no
    more commands will come. Connection errors are raised.
    """
    url = f"{server_url}?agent_id={TUI_AGENT_ID}"
    async with websockets.connect(url) as ws:
        for request in seed_requests():
            await ws.send(request.to_json())
        state = PollerState()
        incoming = asyncio.ensure_future(ws.recv())
        outgoing = asyncio.ensure_future(commands.get())
        try:
            while True:
                done, _ = await asyncio.wait(
                    {incoming, outgoing}, return_when=asyncio.FIRST_COMPLETED
                )
                if incoming in done:
                    try:
                        raw = incoming.result()
                    except ConnectionClosedOK:
                        return
                    incoming = asyncio.ensure_future(ws.recv())
                    if not await _handle_incoming(ws, state, raw, updates):
                        return
                if outgoing in done:
                    cmd = outgoing.result()
                    if cmd is None:
                        # Leave the end marker for any later connection.
                        commands.put_nowait(None)
                        return
                    outgoing = asyncio.ensure_future(commands.get())
                    await _send_quietly(ws, command_requests(cmd))
        finally:
            incoming.cancel()
            outgoing.cancel()


async def run(server_url: str, updates: Updates, commands: asyncio.Queue) -> None:
    """Keep reconnecting until the interface has gone away."""
    while True:
        try:
            await connect_and_listen(server_url, updates, commands)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("TUI server connection lost: %s", exc)
        if updates(StateUpdate.empty()) is False:
            break
        await asyncio.sleep(RECONNECT_DELAY)


class _CommandChannel:
    """Thread-safe way to hand commands to the background link."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
        self._loop = loop
        self._queue = queue

    def send(self, cmd: TuiCmd | None) -> None:
        with contextlib.suppress(RuntimeError):
            self._loop.call_soon_threadsafe(self._queue.put_nowait, cmd)

    def close(self) -> None:
        self.send(None)


def spawn(server_url: str, updates: Updates) -> _CommandChannel:
    """Start the link on a background thread and return its command channel."""
    loop = asyncio.new_event_loop()
    queue: asyncio.Queue = asyncio.Queue()
    channel = _CommandChannel(loop, queue)

    def target() -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(run(server_url, updates, queue))
        finally:
            loop.close()

    threading.Thread(target=target, name="hive-poller", daemon=True).start()
    return channel