"""Records exchanged between Hive components, with their JSON forms."""

from __future__ import annotations

import enum
import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .errors import SerializationError

_I32_MIN, _I32_MAX = -(2**31), 2**31 - 1

_DATETIME_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _format_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_datetime(value: Any, key: str) -> datetime:
    if not isinstance(value, str):
        raise SerializationError(f"field {key!r}: expected a timestamp string")
    match = _DATETIME_RE.match(value)
    if match is None:
        raise SerializationError(f"field {key!r}: invalid timestamp {value!r}")
    base, fraction, offset = match.groups()
    micro = (fraction or "")[:6].ljust(6, "0")
    tz = "+00:00" if offset in ("Z", "z") else offset
    try:
        parsed = datetime.fromisoformat(f"{base.replace(' ', 'T').replace('t', 'T')}.{micro}{tz}")
    except ValueError as exc:
        raise SerializationError(f"field {key!r}: {exc}") from exc
    return parsed.astimezone(timezone.utc)


def _require(data: Any, key: str) -> Any:
    if not isinstance(data, dict):
        raise SerializationError("expected a JSON object")
    if key not in data:
        raise SerializationError(f"missing field {key!r}")
    return data[key]


def _str(data: dict, key: str) -> str:
    value = _require(data, key)
    if not isinstance(value, str):
        raise SerializationError(f"field {key!r}: expected a string")
    return value


def _opt_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise SerializationError(f"field {key!r}: expected a string or null")
    return value


def _str_list(data: dict, key: str) -> list[str]:
    value = _require(data, key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SerializationError(f"field {key!r}: expected a list of strings")
    return list(value)


def _int(value: Any, key: str, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(f"field {key!r}: expected an integer")
    if not low <= value <= high:
        raise SerializationError(f"field {key!r}: {value} out of range")
    return value


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise SerializationError(f"field {key!r}: expected a boolean")
    return value


def _opt_datetime(data: dict, key: str) -> datetime | None:
    value = data.get(key)
    return None if value is None else _parse_datetime(value, key)


def _enum(enum_cls: type[enum.Enum], value: Any, key: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise SerializationError(f"field {key!r}: unknown variant {value!r}") from exc


class TaskStatus(str, enum.Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class MessageType(str, enum.Enum):
    """Discriminator of the message envelope."""

    REQUEST = "request"
    RESPONSE = "response"
    ERROR = "error"
    PUSH = "push"

    def __str__(self) -> str:
        return self.value


@dataclass
class Task:
    """A task in the queue."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    assigned_agent_id: str | None
    tags: list[str]
    result: str | None
    created_at: datetime
    updated_at: datetime
    position: int = 0

    @classmethod
    def create(cls, title: str, description: str | None = None, tags=()) -> Task:
        now = _now()
        return cls(
            id=_new_id(),
            title=title,
            description=description,
            status=TaskStatus.PENDING,
            assigned_agent_id=None,
            tags=list(tags),
            result=None,
            created_at=now,
            updated_at=now,
            position=0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "assigned_agent_id": self.assigned_agent_id,
            "tags": list(self.tags),
            "result": self.result,
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            description=_opt_str(data, "description"),
            status=_enum(TaskStatus, _require(data, "status"), "status"),
            assigned_agent_id=_opt_str(data, "assigned_agent_id"),
            tags=_str_list(data, "tags"),
            result=_opt_str(data, "result"),
            created_at=_parse_datetime(_require(data, "created_at"), "created_at"),
            updated_at=_parse_datetime(_require(data, "updated_at"), "updated_at"),
            position=_int(_require(data, "position"), "position", _I32_MIN, _I32_MAX),
        )


@dataclass
class Topic:
    """A topic on the message board."""

    id: str
    title: str
    content: str
    creator_agent_id: str | None
    created_at: datetime
    last_updated_at: datetime
    comment_count: int = 0
    last_updated_by: str | None = None

    @classmethod
    def create(cls, title: str, content: str, creator_agent_id: str | None = None) -> Topic:
        now = _now()
        return cls(
            id=_new_id(),
            title=title,
            content=content,
            creator_agent_id=creator_agent_id,
            created_at=now,
            last_updated_at=now,
            comment_count=0,
            last_updated_by=creator_agent_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "creator_agent_id": self.creator_agent_id,
            "created_at": _format_datetime(self.created_at),
            "last_updated_at": _format_datetime(self.last_updated_at),
            "comment_count": self.comment_count,
            "last_updated_by": self.last_updated_by,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Topic:
        count = data.get("comment_count", 0) if isinstance(data, dict) else 0
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            content=_str(data, "content"),
            creator_agent_id=_opt_str(data, "creator_agent_id"),
            created_at=_parse_datetime(_require(data, "created_at"), "created_at"),
            last_updated_at=_parse_datetime(
                _require(data, "last_updated_at"), "last_updated_at"
            ),
            comment_count=_int(count, "comment_count", 0, 2**64 - 1),
            last_updated_by=_opt_str(data, "last_updated_by"),
        )


@dataclass
class Comment:
    """A comment on a topic."""

    id: str
    topic_id: str
    content: str
    creator_agent_id: str | None
    created_at: datetime

    @classmethod
    def create(cls, topic_id: str, content: str, creator_agent_id: str | None = None) -> Comment:
        return cls(
            id=_new_id(),
            topic_id=topic_id,
            content=content,
            creator_agent_id=creator_agent_id,
            created_at=_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "topic_id": self.topic_id,
            "content": self.content,
            "creator_agent_id": self.creator_agent_id,
            "created_at": _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Comment:
        return cls(
            id=_str(data, "id"),
            topic_id=_str(data, "topic_id"),
            content=_str(data, "content"),
            creator_agent_id=_opt_str(data, "creator_agent_id"),
            created_at=_parse_datetime(_require(data, "created_at"), "created_at"),
        )


@dataclass
class PushMessage:
    """A message pushed from one agent (or the operator) to another."""

    id: str
    from_agent_id: str | None
    to_agent_id: str
    content: str
    delivered: bool
    created_at: datetime

    @classmethod
    def create(cls, to_agent_id: str, content: str, from_agent_id: str | None = None) -> PushMessage:
        return cls(
            id=_new_id(),
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            content=content,
            delivered=False,
            created_at=_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_agent_id": self.from_agent_id,
            "to_agent_id": self.to_agent_id,
            "content": self.content,
            "delivered": self.delivered,
            "created_at": _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> PushMessage:
        return cls(
            id=_str(data, "id"),
            from_agent_id=_opt_str(data, "from_agent_id"),
            to_agent_id=_str(data, "to_agent_id"),
            content=_str(data, "content"),
            delivered=_bool(_require(data, "delivered"), "delivered"),
            created_at=_parse_datetime(_require(data, "created_at"), "created_at"),
        )


@dataclass
class Agent:
    """A registered agent.

    ``capacity_max`` is the number of tasks it may work on at once (default 1).
    """

    id: str
    name: str
    tags: list[str] = field(default_factory=list)
    connected_at: datetime | None = None
    last_seen_at: datetime | None = None
    capacity_max: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tags": list(self.tags),
            "connected_at": None if self.connected_at is None else _format_datetime(self.connected_at),
            "last_seen_at": None if self.last_seen_at is None else _format_datetime(self.last_seen_at),
            "capacity_max": self.capacity_max,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Agent:
        capacity = data.get("capacity_max", 1) if isinstance(data, dict) else 1
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            tags=_str_list(data, "tags"),
            connected_at=_opt_datetime(data, "connected_at"),
            last_seen_at=_opt_datetime(data, "last_seen_at"),
            capacity_max=_int(capacity, "capacity_max", 0, 255),
        )


@dataclass
class ApiError:
    """Error detail carried by an error message."""

    code: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}

    @classmethod
    def from_dict(cls, data: Any) -> ApiError:
        return cls(
            code=_int(_require(data, "code"), "code", _I32_MIN, _I32_MAX),
            message=_str(data, "message"),
        )


@dataclass
class ApiMessage:
    """Envelope used for all WebSocket traffic.

    Requests carry ``method`` and ``params``; responses echo ``id`` and carry
    ``result``; errors echo ``id`` and carry ``error``; pushes are server
    initiated, name the event in ``method`` and expect no reply.
    """

    msg_type: MessageType
    id: str
    method: str | None = None
    params: Any = None
    result: Any = None
    error: ApiError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.msg_type.value,
            "id": self.id,
            "method": self.method,
            "params": self.params,
            "result": self.result,
            "error": None if self.error is None else self.error.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> ApiMessage:
        raw_error = data.get("error") if isinstance(data, dict) else None
        return cls(
            msg_type=_enum(MessageType, _require(data, "type"), "type"),
            id=_str(data, "id"),
            method=_opt_str(data, "method"),
            params=data.get("params"),
            result=data.get("result"),
            error=None if raw_error is None else ApiError.from_dict(raw_error),
        )

    def to_json(self) -> str:
        return to_json(self)

    @classmethod
    def from_json(cls, text: str | bytes) -> ApiMessage:
        return from_json(cls, text)


def _to_plain(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.value
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, (list, tuple)):
        return [_to_plain(item) for item in obj]
    return obj


def to_json(obj: Any) -> str:
    """Encode a record, enum value or list of records as compact JSON."""
    try:
        return json.dumps(_to_plain(obj), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(exc) from exc


def from_json(cls: type, text: str | bytes) -> Any:
    """Decode JSON text into ``cls``, a record class or an enum."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SerializationError(exc) from exc
    if isinstance(cls, type) and issubclass(cls, enum.Enum):
        return _enum(cls, data, "value")
    return cls.from_dict(data)