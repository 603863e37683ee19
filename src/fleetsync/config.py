"""Run-level configuration.

:class:`SyncOptions` carries every run input the discovery, resolution and
orchestration phases need; it is built once (by the CLI or a caller) and
threaded through explicitly. :func:`load_config` reads the desired-state
JSON document into a :class:`~fleetsync.models.config.DesiredConfig`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fleetsync.exceptions import ConfigError
from fleetsync.models.config import DesiredConfig
from fleetsync.models.enums import LogLevel


class CustomProperty(BaseModel):
    """A ``key=value`` discovery filter; all filters must match (AND)."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    value: str = Field(min_length=1)


class SyncOptions(BaseModel):
    """Top-level options for a ``fleetsync`` run.

    Attributes:
        org: Organization used for property discovery, project resolution,
            and as the default owner of bare repository names.
        config_path: Path to the desired-state JSON file.
        custom_properties: Discovery filters (AND semantics).
        repos: Explicit repositories (``name`` or ``owner/name``).
        dry_run: When *True*, no mutating call is issued.
        remove_custom_labels: Delete labels that are not in the config.
        sync_settings: Diff and patch repository settings.
        sync_projects: Link project-tracked repositories and backfill items.
        skip_backfill: Link only; do not add existing issues/PRs.
        skip_token_revoke: Keep the installation token alive after the run.
        log_level: ``info`` or ``debug``.
    """

    model_config = ConfigDict(frozen=True)

    org: str = Field(min_length=1)
    config_path: Path = Path(".github/fleetsync.json")
    custom_properties: list[CustomProperty] = Field(default_factory=list)
    repos: list[str] = Field(default_factory=list)
    dry_run: bool = False
    remove_custom_labels: bool = False
    sync_settings: bool = True
    sync_projects: bool = True
    skip_backfill: bool = False
    skip_token_revoke: bool = False
    log_level: LogLevel = LogLevel.INFO


def _format_validation_error(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        lines.append(f"  - {location}: {error['msg']}")
    return "Schema validation failed:\n" + "\n".join(lines)


def load_config(path: str | Path) -> DesiredConfig:
    """Load and validate the desired-state config file.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or fails validation.
    """
    config_path = Path(path).expanduser()

    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(str(config_path), f"File not found or not readable: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(str(config_path), f"Invalid JSON: {exc}") from exc

    try:
        return DesiredConfig.model_validate(raw_payload)
    except ValidationError as exc:
        raise ConfigError(str(config_path), _format_validation_error(exc)) from exc
