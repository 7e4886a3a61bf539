"""Error types shared by every Hive component."""

from __future__ import annotations


class HiveError(Exception):
    """Base class for all Hive errors.

    Each subclass carries a fixed prefix; the string form is ``"<prefix>: <detail>"``.
    """

    prefix = "Hive error"

    def __init__(self, detail: object) -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class DatabaseError(HiveError):
    """A storage operation failed."""

    prefix = "Database error"


class NetworkError(HiveError):
    """A network operation failed."""

    prefix = "Network error"


class SerializationError(HiveError):
    """Encoding or decoding JSON failed."""

    prefix = "Serialization error"


class HiveIOError(HiveError):
    """A filesystem or other I/O operation failed."""

    prefix = "IO error"


class ConfigError(HiveError):
    """The configuration is missing or invalid."""

    prefix = "Configuration error"


class AgentError(HiveError):
    """An agent failed; also the catch-all for plain string errors."""

    prefix = "Agent error"


class TaskNotFound(HiveError):
    """No task exists with the given id."""

    prefix = "Task not found"


class TopicNotFound(HiveError):
    """No topic exists with the given id."""

    prefix = "Topic not found"


class AgentNotFound(HiveError):
    """No agent exists with the given id."""

    prefix = "Agent not found"


def error_from(message: object) -> AgentError:
    """Turn a plain message into the generic catch-all error."""
    return AgentError(str(message))