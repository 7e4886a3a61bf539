import json
from datetime import datetime, timezone

import pytest

from hive.errors import SerializationError
from hive.types import (
    Agent,
    ApiError,
    ApiMessage,
    Comment,
    MessageType,
    PushMessage,
    Task,
    TaskStatus,
    Topic,
    from_json,
    to_json,
)

# ── Task ─────────────────────────────────────────────────────────────────


def test_task_new_defaults():
    task = Task.create("My Task", None, [])
    assert task.id != ""
    assert task.title == "My Task"
    assert task.description is None
    assert task.status == TaskStatus.PENDING
    assert task.assigned_agent_id is None
    assert task.tags == []
    assert task.result is None
    assert task.position == 0


def test_task_new_with_all_fields():
    tags = ["rust", "backend"]
    task = Task.create("Full Task", "A description", tags)
    assert task.description == "A description"
    assert task.tags == tags


def test_task_new_generates_unique_ids():
    t1 = Task.create("T1", None, [])
    t2 = Task.create("T2", None, [])
    assert t1.id != t2.id


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (TaskStatus.IN_PROGRESS, '"in-progress"'),
        (TaskStatus.PENDING, '"pending"'),
        (TaskStatus.DONE, '"done"'),
        (TaskStatus.BLOCKED, '"blocked"'),
        (TaskStatus.CANCELLED, '"cancelled"'),
    ],
)
def test_task_status_serde_kebab_case(status, expected):
    assert to_json(status) == expected


def test_task_status_deserialize_kebab_case():
    assert from_json(TaskStatus, '"in-progress"') == TaskStatus.IN_PROGRESS
    assert from_json(TaskStatus, '"pending"') == TaskStatus.PENDING


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (TaskStatus.PENDING, "pending"),
        (TaskStatus.IN_PROGRESS, "in-progress"),
        (TaskStatus.DONE, "done"),
        (TaskStatus.BLOCKED, "blocked"),
        (TaskStatus.CANCELLED, "cancelled"),
    ],
)
def test_task_status_display(status, expected):
    assert str(status) == expected


def test_task_status_deserialize_unknown_returns_error():
    with pytest.raises(SerializationError):
        from_json(TaskStatus, '"unknown"')


def test_task_roundtrip_json():
    task = Task.create("Round Trip", "desc", ["tag1"])
    decoded = from_json(Task, to_json(task))
    assert decoded.id == task.id
    assert decoded.title == task.title
    assert decoded.description == task.description
    assert decoded.status == task.status
    assert decoded.tags == task.tags
    assert decoded.created_at == task.created_at


def test_task_json_field_names():
    data = json.loads(to_json(Task.create("T", None, [])))
    assert data["status"] == "pending"
    assert data["description"] is None
    assert data["created_at"].endswith("Z")


def test_task_from_dict_missing_field():
    with pytest.raises(SerializationError):
        Task.from_dict({"id": "x", "title": "t"})


def test_task_parses_nanosecond_timestamp():
    data = Task.create("T", None, []).to_dict()
    data["created_at"] = "2024-05-01T12:30:45.123456789Z"
    task = Task.from_dict(data)
    assert task.created_at == datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def test_invalid_json_raises_serialization_error():
    with pytest.raises(SerializationError):
        from_json(Task, "{bad}")


# ── Topic ─────────────────────────────────────────────────────────────────


def test_topic_new_defaults():
    topic = Topic.create("My Topic", "Content here", "agent-1")
    assert topic.id != ""
    assert topic.title == "My Topic"
    assert topic.content == "Content here"
    assert topic.creator_agent_id == "agent-1"
    assert topic.last_updated_by == "agent-1"
    assert topic.comment_count == 0


def test_topic_new_without_creator():
    topic = Topic.create("Anon Topic", "Body", None)
    assert topic.creator_agent_id is None


def test_topic_new_timestamps_equal():
    topic = Topic.create("T", "C", None)
    assert topic.last_updated_at >= topic.created_at


def test_topic_roundtrip_json():
    topic = Topic.create("Round", "Trip", "a")
    decoded = from_json(Topic, to_json(topic))
    assert decoded.id == topic.id
    assert decoded.title == topic.title
    assert decoded.content == topic.content


def test_topic_defaults_when_fields_missing():
    data = Topic.create("T", "C", "a").to_dict()
    del data["comment_count"]
    del data["last_updated_by"]
    decoded = Topic.from_dict(data)
    assert decoded.comment_count == 0
    assert decoded.last_updated_by is None


# ── Comment ───────────────────────────────────────────────────────────────


def test_comment_new_defaults():
    c = Comment.create("topic-1", "Hello", "agent-2")
    assert c.id != ""
    assert c.topic_id == "topic-1"
    assert c.content == "Hello"
    assert c.creator_agent_id == "agent-2"


def test_comment_new_without_creator():
    c = Comment.create("t", "C", None)
    assert c.creator_agent_id is None


def test_comment_roundtrip_json():
    c = Comment.create("tid", "body", None)
    decoded = from_json(Comment, to_json(c))
    assert decoded.id == c.id
    assert decoded.topic_id == c.topic_id
    assert decoded.content == c.content


# ── PushMessage ───────────────────────────────────────────────────────────


def test_push_message_new_defaults():
    m = PushMessage.create("agent-b", "ping", "agent-a")
    assert m.id != ""
    assert m.to_agent_id == "agent-b"
    assert m.content == "ping"
    assert m.from_agent_id == "agent-a"
    assert m.delivered is False


def test_push_message_new_no_sender():
    m = PushMessage.create("agent-b", "msg", None)
    assert m.from_agent_id is None


def test_push_message_roundtrip_json():
    m = PushMessage.create("b", "text", "a")
    decoded = from_json(PushMessage, to_json(m))
    assert decoded.id == m.id
    assert decoded.delivered is False


# ── Agent ─────────────────────────────────────────────────────────────────


def test_agent_capacity_max_defaults_to_1():
    agent = from_json(Agent, '{"id":"a","name":"n","tags":[]}')
    assert agent.capacity_max == 1
    assert agent.last_seen_at is None


def test_agent_capacity_max_explicit():
    agent = from_json(Agent, '{"id":"a","name":"n","tags":[],"capacity_max":4}')
    assert agent.capacity_max == 4


def test_agent_capacity_max_out_of_range():
    with pytest.raises(SerializationError):
        from_json(Agent, '{"id":"a","name":"n","tags":[],"capacity_max":300}')


def test_agent_roundtrip_with_timestamps():
    seen = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    agent = Agent(id="a", name="n", tags=["x"], connected_at=seen, last_seen_at=seen)
    decoded = from_json(Agent, to_json(agent))
    assert decoded == agent


# ── ApiMessage / MessageType ──────────────────────────────────────────────


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (MessageType.REQUEST, '"request"'),
        (MessageType.RESPONSE, '"response"'),
        (MessageType.PUSH, '"push"'),
        (MessageType.ERROR, '"error"'),
    ],
)
def test_message_type_serde(kind, expected):
    assert to_json(kind) == expected


def test_api_message_roundtrip_json():
    msg = ApiMessage(
        msg_type=MessageType.REQUEST,
        id="req-1",
        method="task.create",
        params={"title": "T"},
        result=None,
        error=None,
    )
    decoded = ApiMessage.from_json(msg.to_json())
    assert decoded.id == "req-1"
    assert decoded.method == "task.create"
    assert decoded.params == {"title": "T"}
    assert decoded.result is None
    assert decoded.error is None


def test_api_message_uses_type_key():
    msg = ApiMessage(msg_type=MessageType.PUSH, id="p")
    data = json.loads(msg.to_json())
    assert data["type"] == "push"
    assert "msg_type" not in data


def test_api_message_with_error():
    text = '{"type":"error","id":"r","error":{"code":404,"message":"not found"}}'
    decoded = ApiMessage.from_json(text)
    assert decoded.msg_type == MessageType.ERROR
    assert decoded.error == ApiError(code=404, message="not found")


def test_api_message_unknown_type():
    with pytest.raises(SerializationError):
        ApiMessage.from_json('{"type":"bogus","id":"x"}')


def test_api_error_serde():
    err = ApiError(code=404, message="not found")
    decoded = from_json(ApiError, to_json(err))
    assert decoded.code == 404
    assert decoded.message == "not found"