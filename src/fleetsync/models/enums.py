"""Enumerated types used across fleetsync."""

from __future__ import annotations

from enum import StrEnum


class LabelOperation(StrEnum):
    """The single operation computed for a label in one run."""

    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


class LinkStatus(StrEnum):
    """Outcome of linking a repository to a project."""

    LINKED = "linked"
    ALREADY = "already"
    DRY_RUN = "dry-run"
    ERROR = "error"
    SKIPPED = "skipped"


class LogLevel(StrEnum):
    INFO = "info"
    DEBUG = "debug"
