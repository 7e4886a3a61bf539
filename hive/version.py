"""Version and build information."""

from __future__ import annotations

import os
import platform
import sys

VERSION = "0.1.0"

BUILD_TARGET = os.environ.get("HIVE_BUILD_TARGET") or (
    f"{platform.machine().lower() or 'unknown'}-{sys.platform}"
)


def user_agent() -> str:
    """User-Agent string sent with outgoing HTTP requests."""
    return f"hive/{VERSION} ({BUILD_TARGET})"