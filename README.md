# hive

`hive` holds the shared data model, the WebSocket message format and the
terminal dashboard model for The Hive. The Hive is a system in which a central
server coordinates a swarm of coding agents.

## What is inside

- `hive.types` defines the records `Task`, `Topic`, `Comment`, `PushMessage`
  and `Agent`. Each record has `to_dict` / `from_dict`. The module-level
  functions `to_json(obj)` and `from_json(cls, text)` turn records, enum values
  and lists of records into compact JSON and back.
  - `Task.create`, `Topic.create`, `Comment.create` and `PushMessage.create`
    fill in a fresh UUID and the current UTC time.
  - `TaskStatus` serialises in kebab-case, for example `"in-progress"`.
  - `Agent.capacity_max` defaults to `1` when it is missing from the JSON.
  - Decoding bad input raises `hive.errors.SerializationError`.
- `hive.types.ApiMessage` is the envelope used for all WebSocket traffic. It
  has a `msg_type` field (`MessageType`: request, response, error or push),
  which appears as `"type"` in JSON, and an optional `ApiError`.
- `hive.errors` holds `HiveError` and its subclasses: `DatabaseError`,
  `NetworkError`, `SerializationError`, `HiveIOError`, `ConfigError`,
  `AgentError`, `TaskNotFound`, `TopicNotFound` and `AgentNotFound`. Each one
  prints as `"<prefix>: <detail>"`. `error_from(message)` wraps a plain message
  in an `AgentError`.
- `hive.version` provides `VERSION`, `BUILD_TARGET` and `user_agent()`.
  `BUILD_TARGET` comes from the `HIVE_BUILD_TARGET` environment variable when
  that is set.
- `hive.tui` is the dashboard model:
  - `app`: `App` and `Screen`. They handle navigation and key actions and
    apply server snapshots with `App.apply_update`.
  - `dialogs`: the dialogs for push messages, topics, comments, new tasks and
    task edits.
  - `events`: `map_key`, `Key`, `Action` and `ActionKind`.
  - `state`: `AppState`, `TaskSummary` and `TopicSummary`.
  - `dashboard`, `tasks_screen`, `message_board` and `agents_screen`: these
    build `rich` renderables for the screens of the same names.
  - `poller`: keeps a WebSocket link to the server.
  - `util.strip_ansi`: removes ANSI escape sequences.
  - `config_state`: the navigation state of the configuration wizard
    (`WizardScreen`, `WizardCmd` and `ConfigWizardState`).

## Installing

```
pip install .
```

## Examples

Round-trip a task through JSON:

```python
from hive.types import Task, TaskStatus, to_json, from_json

task = Task.create("Write docs", "Describe the API", ["docs"])
assert task.status is TaskStatus.PENDING

restored = from_json(Task, to_json(task))
assert restored.id == task.id
```

Drive the dashboard model and render a screen with `rich`:

```python
from rich.console import Console

from hive.tui.app import App, Screen
from hive.tui.events import Action, ActionKind
from hive.tui import tasks_screen

app = App()
app.handle(Action(ActionKind.TAB))
assert app.screen is Screen.TASKS
Console().print(tasks_screen.render(app.state))
```

Connect to a server:

```python
import queue

from hive.tui.app import App
from hive.tui.poller import spawn

updates = queue.Queue()
channel = spawn("ws://localhost:8080/ws", updates.put)
app = App(cmd_sink=channel.send)

app.apply_update(updates.get())  # blocks until the first snapshot arrives
channel.close()
```

How the poller behaves:

- `spawn(server_url, updates)` runs the link on a daemon thread.
- The link connects to `<server_url>?agent_id=__tui__` and sends the seed
  requests.
- Every change of state is passed to `updates` as a `StateUpdate`. If
  `updates` returns `False`, the link stops.
- When the connection drops, the link sends an empty `StateUpdate` and
  reconnects after 3 seconds.
- The object that `spawn` returns has `send(cmd)`, which queues a command such
  as `SendPush` or `CreateTask`, and `close()`.

## What this package does not do

- It has no command-line program.
- It has no interactive terminal loop: nothing reads the keyboard or redraws
  the screen. You feed `Action` values to `App.handle` yourself.
- It does not render the Settings screen or the configuration wizard screens.
  `config_state` covers only the wizard's navigation state.
- Pressing the Settings keys (`s`, `S`, `r`, `R`) does nothing unless you
  provide an `App.docker_action` callable. The package itself manages no
  containers.
- It contains no server, no agent runner, no storage and no self-updater.

## Running the tests

```
pip install ".[test]"
pytest
```