"""Repository settings diff and apply."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from fleetsync.exceptions import GitHubApiError, ProviderError, SettingsSyncError
from fleetsync.models.config import RepositorySettings
from fleetsync.models.github import GitHubRepo
from fleetsync.models.sync import SettingChange
from fleetsync.providers.base import RestClient

logger = logging.getLogger(__name__)

SYNCABLE_KEYS: tuple[str, ...] = (
    "has_wiki",
    "has_issues",
    "has_projects",
    "has_discussions",
    "allow_merge_commit",
    "allow_squash_merge",
    "squash_merge_commit_title",
    "squash_merge_commit_message",
    "allow_rebase_merge",
    "allow_update_branch",
    "delete_branch_on_merge",
    "web_commit_signoff_required",
    "allow_auto_merge",
)


@dataclass
class SettingsOutcome:
    changes: list[SettingChange] = field(default_factory=list)
    applied: bool = True


def diff_settings(desired: RepositorySettings, observed: GitHubRepo) -> tuple[list[SettingChange], dict[str, Any]]:
    """Compare declared settings with the repository snapshot.

    Only keys in :data:`SYNCABLE_KEYS` that the config sets are considered.

    Returns:
        The ordered list of drifted settings and the minimal patch payload.
    """
    declared = desired.declared()
    changes: list[SettingChange] = []
    patch: dict[str, Any] = {}
    for key in SYNCABLE_KEYS:
        if key not in declared:
            continue
        wanted = declared[key]
        current = getattr(observed, key)
        if current != wanted:
            changes.append(SettingChange(key=key, from_=current, to=wanted))
            patch[key] = wanted
    return changes, patch


async def _apply(rest: RestClient, owner: str, repo: str, patch: dict[str, Any]) -> None:
    try:
        await rest.update_repo(owner, repo, patch)
    except GitHubApiError as exc:
        if exc.is_validation_failed:
            raise
        raise SettingsSyncError(f"{owner}/{repo}", exc.reason) from exc
    except ProviderError as exc:
        raise SettingsSyncError(f"{owner}/{repo}", exc.reason) from exc


async def sync_settings(
    rest: RestClient,
    owner: str,
    repo: str,
    desired: RepositorySettings,
    observed: GitHubRepo,
    *,
    dry_run: bool,
) -> SettingsOutcome:
    """Patch the drifted settings of ``owner/repo``.

    A rejected patch never fails the repository: org policy rejections (422)
    are logged as warnings and any other failure is logged, both leaving
    ``applied`` false.
    """
    changes, patch = diff_settings(desired, observed)
    if not changes:
        logger.debug("%s: all settings match", repo)
        return SettingsOutcome(changes=[], applied=True)

    prefix = "[DRY-RUN] Would change" if dry_run else "Changed"
    for change in changes:
        logger.info("  %s: %s: %s -> %s", prefix, change.key, json.dumps(change.from_), json.dumps(change.to))

    if dry_run:
        return SettingsOutcome(changes=changes, applied=False)

    try:
        await _apply(rest, owner, repo, patch)
    except GitHubApiError as exc:
        logger.warning("  Warning: some settings rejected by org policy (422): %s", exc.reason)
        return SettingsOutcome(changes=changes, applied=False)
    except SettingsSyncError as exc:
        logger.warning("  Failed to apply settings: %s", exc)
        return SettingsOutcome(changes=changes, applied=False)

    logger.info("  Settings applied successfully")
    return SettingsOutcome(changes=changes, applied=True)
