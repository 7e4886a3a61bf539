"""State of the configuration wizard, shared by all its screens."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class WizardScreen(enum.Enum):
    """Steps of the wizard, in order."""

    SERVER = "Server"
    AGENTS = "Agents"
    APP = "App"
    EXEC = "Exec"
    LOGGING = "Logging"
    REVIEW = "Review"

    def index(self) -> int:
        """Position of the step, starting at 0."""
        return WIZARD_SCREENS.index(self)

    def next(self) -> WizardScreen:
        """The following step; the last step stays put."""
        return WIZARD_SCREENS[min(self.index() + 1, len(WIZARD_SCREENS) - 1)]

    def prev(self) -> WizardScreen:
        """The preceding step; the first step stays put."""
        return WIZARD_SCREENS[max(self.index() - 1, 0)]

    def label(self) -> str:
        """Name shown in the step indicator."""
        return self.value


WIZARD_SCREENS: tuple[WizardScreen, ...] = tuple(WizardScreen)


class WizardCmd(enum.Enum):
    """What a screen asks the wizard loop to do next."""

    CONTINUE = "continue"
    SAVE = "save"
    CANCEL = "cancel"


@dataclass
class ConfigWizardState:
    """The configuration being edited plus the wizard's cursor state.

    ``agent_edit`` is the index of the agent being edited, or ``None`` in
    list mode; ``kilo_providers`` holds the provider ids offered for
    selection.
    """

    config: Any
    project_dir: Path = field(default_factory=lambda: Path("."))
    screen: WizardScreen = WizardScreen.SERVER
    field_idx: int = 0
    editing: bool = False
    input: str = ""
    agent_edit: int | None = None
    agent_subfield: int = 0
    kilo_providers: list[str] = field(default_factory=list)
    kilo_provider_sel: int = 0

    def _reset_cursor(self) -> None:
        self.field_idx = 0
        self.editing = False
        self.input = ""

    def go_next_screen(self) -> None:
        self.screen = self.screen.next()
        self._reset_cursor()

    def go_prev_screen(self) -> None:
        self.screen = self.screen.prev()
        self._reset_cursor()

    def start_editing(self, current: str) -> None:
        self.editing = True
        self.input = current

    def stop_editing(self) -> None:
        self.editing = False
        self.input = ""