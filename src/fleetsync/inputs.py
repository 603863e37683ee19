"""Run-input parsing and validation.

Discovery filters arrive as ``key=value`` lines and repositories as one name
per line (blank lines and ``#`` comments ignored), so the same strings work
from a CLI flag, an environment variable, or a workflow input.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from fleetsync.config import CustomProperty, SyncOptions
from fleetsync.exceptions import InvalidInputError
from fleetsync.models.enums import LogLevel


def parse_multiline_input(raw: str | Iterable[str]) -> list[str]:
    """Split *raw* into trimmed, non-empty, non-comment lines."""
    lines = raw.splitlines() if isinstance(raw, str) else [part for chunk in raw for part in chunk.splitlines()]
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def parse_custom_properties(raw: str | Iterable[str]) -> list[CustomProperty]:
    """Parse ``key=value`` lines into discovery filters.

    Raises:
        InvalidInputError: If a line has no ``=`` or an empty key/value.
    """
    properties: list[CustomProperty] = []
    for line in parse_multiline_input(raw):
        key, sep, value = line.partition("=")
        if not sep:
            raise InvalidInputError("custom-properties", f'Expected "key=value" format, got "{line}"', value=line)
        key = key.strip()
        value = value.strip()
        if not key:
            raise InvalidInputError("custom-properties", "Property key must not be empty", value=line)
        if not value:
            raise InvalidInputError("custom-properties", f'Property value for "{key}" must not be empty', value=line)
        properties.append(CustomProperty(key=key, value=value))
    return properties


def parse_repos_input(raw: str | Iterable[str]) -> list[str]:
    return parse_multiline_input(raw)


def parse_log_level(raw: str | None) -> LogLevel:
    candidate = (raw or "info").strip().lower()
    try:
        return LogLevel(candidate)
    except ValueError:
        raise InvalidInputError("log-level", 'Must be "info" or "debug"', value=raw) from None


def build_options(
    *,
    org: str,
    config_path: str | Path,
    custom_properties: str | Iterable[str] = "",
    repos: str | Iterable[str] = "",
    dry_run: bool = False,
    remove_custom_labels: bool = False,
    sync_settings: bool = True,
    sync_projects: bool = True,
    skip_backfill: bool = False,
    skip_token_revoke: bool = False,
    log_level: str | None = None,
) -> SyncOptions:
    """Validate raw run inputs and build :class:`SyncOptions`.

    Raises:
        InvalidInputError: If no discovery method is configured, the org is
            empty, or any individual input is malformed.
    """
    if not org.strip():
        raise InvalidInputError("org", "Organization must not be empty", value=org)

    properties = parse_custom_properties(custom_properties)
    repo_names = parse_repos_input(repos)
    if not properties and not repo_names:
        raise InvalidInputError(
            "repos / custom-properties",
            "At least one discovery method must be configured: provide 'repos' and/or 'custom-properties'",
        )

    return SyncOptions(
        org=org.strip(),
        config_path=Path(config_path),
        custom_properties=properties,
        repos=repo_names,
        dry_run=dry_run,
        remove_custom_labels=remove_custom_labels,
        sync_settings=sync_settings,
        sync_projects=sync_projects,
        skip_backfill=skip_backfill,
        skip_token_revoke=skip_token_revoke,
        log_level=parse_log_level(log_level),
    )
