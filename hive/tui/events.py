"""Mapping of key presses to the actions the interface understands."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Key(enum.Enum):
    """Non-character keys."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESC = "esc"
    TAB = "tab"
    BACKSPACE = "backspace"
    HOME = "home"
    END = "end"
    PAGE_UP = "page-up"
    PAGE_DOWN = "page-down"
    DELETE = "delete"
    INSERT = "insert"


class ActionKind(enum.Enum):
    """Kinds of action produced from key presses."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    SELECT = "select"
    BACK = "back"
    QUIT = "quit"
    TAB = "tab"
    BACKSPACE = "backspace"
    CHAR = "char"
    NONE = "none"


@dataclass(frozen=True)
class Action:
    """A simplified key action; ``ch`` is set only for ``ActionKind.CHAR``."""

    kind: ActionKind
    ch: str | None = None

    @classmethod
    def char(cls, c: str) -> Action:
        return cls(ActionKind.CHAR, c)


_KEY_ACTIONS = {
    Key.UP: ActionKind.UP,
    Key.DOWN: ActionKind.DOWN,
    Key.LEFT: ActionKind.LEFT,
    Key.RIGHT: ActionKind.RIGHT,
    Key.ENTER: ActionKind.SELECT,
    Key.ESC: ActionKind.BACK,
    Key.TAB: ActionKind.TAB,
    Key.BACKSPACE: ActionKind.BACKSPACE,
}

_VI_KEYS = {
    "k": ActionKind.UP,
    "j": ActionKind.DOWN,
    "h": ActionKind.LEFT,
    "l": ActionKind.RIGHT,
}


def map_key(code: Key | str, ctrl: bool = False, text_mode: bool = False) -> Action:
    """Translate a key press into an action.

    ``code`` is a :class:`Key` or a single character. Ctrl-C always quits.
    In ``text_mode`` (a dialog is open) h/j/k/l are typed as characters
    instead of navigating.
    """
    if isinstance(code, Key):
        return Action(_KEY_ACTIONS.get(code, ActionKind.NONE))
    if code == "c" and ctrl:
        return Action(ActionKind.QUIT)
    if not text_mode and code in _VI_KEYS:
        return Action(_VI_KEYS[code])
    return Action.char(code)