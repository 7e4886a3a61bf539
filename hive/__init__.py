"""Shared types, errors, version information and terminal dashboard model for The Hive."""

__version__ = "0.1.0"