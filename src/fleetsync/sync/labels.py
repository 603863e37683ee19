"""Label diff and apply.

Labels are matched case-insensitively. An existing label whose color,
description or exact casing differs from its definition is updated in place,
so a rename only ever changes case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fleetsync.exceptions import LabelSyncError, ProviderError
from fleetsync.models.config import LabelDefinition
from fleetsync.models.enums import LabelOperation
from fleetsync.models.github import GitHubLabel
from fleetsync.models.sync import LabelResult, SyncErrorRecord
from fleetsync.providers.base import RestClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelChange:
    """One planned label operation.

    ``current_name`` is the label's name in the repository (``None`` for a
    create); ``desired`` is ``None`` for a remove.
    """

    name: str
    operation: LabelOperation
    current_name: str | None = None
    desired: LabelDefinition | None = None
    changes: tuple[str, ...] = ()


@dataclass(frozen=True)
class LabelPlan:
    changes: list[LabelChange]
    custom_labels: list[str]


@dataclass
class LabelSyncOutcome:
    results: list[LabelResult] = field(default_factory=list)
    custom_labels: list[str] = field(default_factory=list)
    errors: list[SyncErrorRecord] = field(default_factory=list)


def _describe_changes(existing: GitHubLabel, desired: LabelDefinition) -> list[str]:
    changes: list[str] = []
    if existing.name != desired.name:
        changes.append(f'name: "{existing.name}" -> "{desired.name}"')
    if (existing.description or "") != desired.description:
        changes.append("description")
    if existing.color.lower() != desired.color.lower():
        changes.append(f"color: #{existing.color} -> #{desired.color}")
    return changes


def plan_labels(
    observed: list[GitHubLabel],
    desired: list[LabelDefinition],
    remove_custom: bool,
) -> LabelPlan:
    """Compute the label operations that converge *observed* onto *desired*.

    Every desired label yields exactly one of created/updated/unchanged, in
    config order. Existing labels absent from the config are reported as
    custom and, when *remove_custom* is set, planned for removal after them.
    """
    by_name = {label.name.lower(): label for label in observed}
    desired_names = {label.name.lower() for label in desired}
    custom_labels = [label.name for label in observed if label.name.lower() not in desired_names]

    changes: list[LabelChange] = []
    for definition in desired:
        existing = by_name.get(definition.name.lower())
        if existing is None:
            changes.append(LabelChange(definition.name, LabelOperation.CREATED, desired=definition))
            continue

        diff = _describe_changes(existing, definition)
        if diff:
            changes.append(
                LabelChange(
                    definition.name,
                    LabelOperation.UPDATED,
                    current_name=existing.name,
                    desired=definition,
                    changes=tuple(diff),
                )
            )
        else:
            changes.append(LabelChange(definition.name, LabelOperation.UNCHANGED, current_name=existing.name))

    if remove_custom:
        changes.extend(LabelChange(name, LabelOperation.REMOVED, current_name=name) for name in custom_labels)

    return LabelPlan(changes=changes, custom_labels=custom_labels)


_VERBS = {
    LabelOperation.CREATED: "create",
    LabelOperation.UPDATED: "update",
    LabelOperation.REMOVED: "remove",
}


async def _apply_change(rest: RestClient, owner: str, repo: str, change: LabelChange) -> None:
    try:
        if change.operation is LabelOperation.CREATED:
            assert change.desired is not None
            await rest.create_label(owner, repo, change.desired)
        elif change.operation is LabelOperation.UPDATED:
            assert change.desired is not None and change.current_name is not None
            await rest.update_label(owner, repo, change.current_name, change.desired)
        elif change.operation is LabelOperation.REMOVED:
            await rest.delete_label(owner, repo, change.name)
    except ProviderError as exc:
        raise LabelSyncError(change.name, _VERBS[change.operation], exc.reason) from exc


def _log_applied(change: LabelChange, dry_run: bool) -> None:
    detail = f" ({', '.join(change.changes)})" if change.changes else ""
    if dry_run:
        logger.info("  [DRY-RUN] Would %s: %s%s", _VERBS[change.operation], change.name, detail)
    else:
        logger.info("  %s: %s%s", change.operation.value.capitalize(), change.name, detail)


async def sync_labels(
    rest: RestClient,
    owner: str,
    repo: str,
    desired: list[LabelDefinition],
    *,
    dry_run: bool,
    remove_custom: bool,
) -> LabelSyncOutcome:
    """Converge the labels of ``owner/repo`` onto *desired*.

    Each change is applied independently: a failed mutation is logged and
    recorded, and its label is still reported with the intended operation.
    """
    outcome = LabelSyncOutcome()

    try:
        observed = await rest.list_labels(owner, repo)
    except ProviderError as exc:
        logger.warning("  Warning: could not list labels for %s/%s: %s", owner, repo, exc)
        outcome.errors.append(SyncErrorRecord(target="labels", operation="list", error=exc.reason))
        observed = []

    logger.debug("%s: %d existing labels", repo, len(observed))

    plan = plan_labels(observed, desired, remove_custom)
    outcome.custom_labels = plan.custom_labels

    for change in plan.changes:
        outcome.results.append(
            LabelResult(name=change.name, operation=change.operation, changes=list(change.changes) or None)
        )
        if change.operation is LabelOperation.UNCHANGED:
            continue
        if not dry_run:
            try:
                await _apply_change(rest, owner, repo, change)
            except LabelSyncError as exc:
                logger.warning("  Failed to %s \"%s\": %s", exc.operation, change.name, exc.reason)
                outcome.errors.append(exc.to_record())
                continue
        _log_applied(change, dry_run)

    return outcome
