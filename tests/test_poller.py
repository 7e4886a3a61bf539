import asyncio
import json
import threading

import pytest
import websockets

from hive.tui.poller import (
    ClearStaleAgents,
    CreateComment,
    CreateTask,
    CreateTopic,
    FetchTopic,
    MarkTopicRead,
    PollerState,
    SendPush,
    SetTaskStatus,
    StateUpdate,
    UpdateTask,
    build_request,
    command_requests,
    connect_and_listen,
    run,
    seed_requests,
    spawn,
)
from hive.types import ApiMessage, Comment, MessageType, Task, Topic

UNREACHABLE = "ws://127.0.0.1:1"


def agent_dict(agent_id, name):
    return {"id": agent_id, "name": name, "tags": []}


def response(request_id, result):
    return ApiMessage(MessageType.RESPONSE, request_id, result=result)


def push(method, params):
    return ApiMessage(MessageType.PUSH, "p", method=method, params=params)


def test_build_request_envelope():
    msg = build_request("r1", "task.list")
    assert msg.msg_type is MessageType.REQUEST
    assert msg.id == "r1"
    assert msg.method == "task.list"
    assert msg.params is None
    assert json.loads(msg.to_json())["type"] == "request"


def test_seed_requests():
    pairs = [(m.id, m.method) for m in seed_requests()]
    assert pairs == [
        ("seed-agents", "agent.list"),
        ("seed-tasks", "task.list"),
        ("seed-topics", "topic.list"),
        ("seed-unread", "topic.unread"),
    ]


def test_command_requests_methods_and_params():
    [msg] = command_requests(SendPush("agent-b", "ping"))
    assert msg.method == "push.send"
    assert msg.params == {"to_agent_id": "agent-b", "content": "ping"}

    [msg] = command_requests(CreateTopic("T", "C"))
    assert msg.method == "topic.create"
    assert msg.params == {"title": "T", "content": "C", "creator_agent_id": "__tui__"}

    [msg] = command_requests(CreateTask("T", "D", ["a"]))
    assert msg.method == "task.create"
    assert msg.params == {"title": "T", "description": "D", "tags": ["a"]}

    [msg] = command_requests(SetTaskStatus("t1", "done"))
    assert msg.method == "task.update"
    assert msg.params == {"id": "t1", "status": "done"}

    [msg] = command_requests(UpdateTask("t1", "T", "D", ["x"]))
    assert msg.params == {"id": "t1", "title": "T", "description": "D", "tags": ["x"]}

    [msg] = command_requests(CreateComment("top", "hi"))
    assert msg.method == "topic.comment"
    assert msg.params == {"topic_id": "top", "content": "hi", "creator_agent_id": "__tui__"}

    [msg] = command_requests(ClearStaleAgents())
    assert msg.method == "agent.clear_stale"
    assert msg.params is None


def test_fetch_and_mark_read_use_fixed_ids():
    [fetch] = command_requests(FetchTopic("top"))
    assert (fetch.id, fetch.method, fetch.params) == ("fetch-topic", "topic.get", {"id": "top"})
    mark, refresh = command_requests(MarkTopicRead("top"))
    assert (mark.id, mark.method, mark.params) == ("mark-read", "topic.mark_read", {"topic_id": "top"})
    assert (refresh.id, refresh.method) == ("refresh-unread", "topic.unread")


def test_generated_ids_are_unique():
    first = command_requests(ClearStaleAgents())[0].id
    second = command_requests(ClearStaleAgents())[0].id
    assert first != second and len(first) == 36


def test_unknown_command_rejected():
    with pytest.raises(TypeError):
        command_requests("not a command")


def test_seed_responses_update_state():
    state = PollerState()
    task = Task.create("job")
    topic = Topic.create("t", "c")
    assert state.apply(response("seed-agents", [agent_dict("a", "worker")])) == (True, [])
    assert state.apply(response("seed-tasks", [task.to_dict()]))[0] is True
    assert state.apply(response("seed-topics", [topic.to_dict()]))[0] is True
    assert state.apply(response("seed-unread", [topic.id]))[0] is True
    assert [a.name for a in state.agents] == ["worker"]
    assert state.tasks[0].id == task.id
    assert state.topics[0].id == topic.id
    assert state.unread_topic_ids == [topic.id]


def test_bad_payload_falls_back_to_empty():
    state = PollerState()
    state.apply(response("seed-agents", [agent_dict("a", "n")]))
    changed, _ = state.apply(response("seed-agents", [{"id": "a"}]))
    assert changed is True
    assert state.agents == []
    state.apply(response("refresh-unread", "nope"))
    assert state.unread_topic_ids == []


def test_response_without_result_or_unknown_id_is_ignored():
    state = PollerState()
    assert state.apply(response("seed-agents", None)) == (False, [])
    assert state.apply(response("mark-read", {"ok": True})) == (False, [])
    assert state.apply(ApiMessage(MessageType.ERROR, "seed-agents")) == (False, [])


def test_fetch_topic_response():
    state = PollerState()
    comment = Comment.create("top-1", "hello", "a")
    result = {"topic": {"id": "top-1"}, "comments": [comment.to_dict()]}
    assert state.apply(response("fetch-topic", result))[0] is True
    assert state.topic_detail_id == "top-1"
    assert [c.content for c in state.topic_comments] == ["hello"]
    state.apply(response("fetch-topic", {"comments": []}))
    assert state.topic_detail_id == "top-1"
    assert state.topic_comments == []


def test_push_updates():
    state = PollerState()
    assert state.apply(push("agents.updated", [agent_dict("a", "n")])) == (True, [])
    assert state.apply(push("tasks.updated", [Task.create("x").to_dict()]))[0] is True
    changed, follow_up = state.apply(push("topics.updated", [Topic.create("t", "c").to_dict()]))
    assert changed is True
    assert [(m.id, m.method) for m in follow_up] == [("refresh-unread", "topic.unread")]
    assert len(state.agents) == len(state.tasks) == len(state.topics) == 1


def test_push_without_params_or_unknown_method_ignored():
    state = PollerState()
    assert state.apply(push("agents.updated", None)) == (False, [])
    assert state.apply(push("task.assign", {"x": 1})) == (False, [])


def test_snapshot_copies_state():
    state = PollerState()
    state.apply(response("seed-unread", ["t1"]))
    snap = state.snapshot()
    assert snap.unread_topic_ids == ["t1"]
    snap.unread_topic_ids.append("t2")
    assert state.unread_topic_ids == ["t1"]


def test_empty_update():
    empty = StateUpdate.empty()
    assert empty.agents == [] and empty.tasks == [] and empty.topics == []
    assert empty.topic_detail_id is None
    assert empty.unread_topic_ids is None


@pytest.mark.asyncio
async def test_run_stops_when_consumer_is_gone():
    received = []

    def updates(update):
        received.append(update)
        return False

    await asyncio.wait_for(run(UNREACHABLE, updates, asyncio.Queue()), timeout=10)
    assert received == [StateUpdate.empty()]


@pytest.mark.asyncio
async def test_connect_and_listen_round_trip():
    received = []

    async def handler(ws, *_):
        for _ in range(4):
            received.append(json.loads(await ws.recv()))
        reply = response("seed-agents", [agent_dict("a1", "worker")])
        await ws.send(reply.to_json())
        received.append(json.loads(await ws.recv()))

    updates = []
    commands = asyncio.Queue()
    commands.put_nowait(FetchTopic("top-1"))
    async with websockets.serve(handler, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        await asyncio.wait_for(
            connect_and_listen(f"ws://127.0.0.1:{port}", updates.append, commands), timeout=10
        )

    assert [m["method"] for m in received] == [
        "agent.list",
        "task.list",
        "topic.list",
        "topic.unread",
        "topic.get",
    ]
    assert received[-1]["params"] == {"id": "top-1"}
    assert updates[-1].agents[0].name == "worker"
    assert updates[-1].unread_topic_ids == []


def test_spawn_reports_and_stops():
    done = threading.Event()
    received = []

    def updates(update):
        received.append(update)
        done.set()
        return False

    channel = spawn(UNREACHABLE, updates)
    channel.send(ClearStaleAgents())
    assert done.wait(timeout=10)
    assert received[0] == StateUpdate.empty()