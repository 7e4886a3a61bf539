"""Helpers shared by the terminal screens."""

from __future__ import annotations

import re

# ESC followed by: a CSI sequence up to its final byte (0x40-0x7E), an OSC
# sequence up to BEL or ESC (optionally followed by a backslash), or any
# single character. A lone trailing ESC is dropped as well.
_ANSI_RE = re.compile(
    r"\x1b(?:"
    r"\[[^\x40-\x7e]*[\x40-\x7e]?"
    r"|\][^\x07\x1b]*(?:\x07|\x1b\\?)?"
    r"|."
    r")?",
    re.DOTALL,
)


def strip_ansi(s: str) -> str:
    """Remove ANSI escape sequences (CSI, OSC and two-byte forms) from ``s``."""
    return _ANSI_RE.sub("", s)