"""Fold per-repository results into run-level totals."""

from __future__ import annotations

from collections import Counter

from fleetsync.models.enums import LabelOperation, LinkStatus
from fleetsync.models.sync import (
    LabelStats,
    ProjectStats,
    RepoCounts,
    RepoErrorDetail,
    RepoSyncResult,
    RunResult,
    SettingsStats,
    SyncStats,
)

_LINKED_STATUSES = frozenset({LinkStatus.LINKED, LinkStatus.DRY_RUN})


def aggregate_stats(results: list[RepoSyncResult]) -> SyncStats:
    """Sum label, settings and project counters across *results*.

    A dry-run link counts as linked.
    """
    operations: Counter[LabelOperation] = Counter(label.operation for r in results for label in r.labels)
    drifted = [r for r in results if r.setting_changes]
    succeeded = sum(1 for r in results if r.success)

    return SyncStats(
        repos=RepoCounts(total=len(results), succeeded=succeeded, failed=len(results) - succeeded),
        labels=LabelStats(
            created=operations[LabelOperation.CREATED],
            updated=operations[LabelOperation.UPDATED],
            removed=operations[LabelOperation.REMOVED],
            unchanged=operations[LabelOperation.UNCHANGED],
            custom_count=sum(len(r.custom_labels) for r in results),
        ),
        settings=SettingsStats(
            changed=sum(len(r.setting_changes) for r in drifted),
            repos_with_drift=len(drifted),
        ),
        projects=ProjectStats(
            linked=sum(1 for r in results if r.project_link_status in _LINKED_STATUSES),
            already_linked=sum(1 for r in results if r.project_link_status is LinkStatus.ALREADY),
            items_added=sum(r.items_added for r in results),
            items_already_present=sum(r.items_already_present for r in results),
        ),
    )


def build_run_result(results: list[RepoSyncResult], dry_run: bool) -> RunResult:
    """Build the structured terminal output of a run."""
    stats = aggregate_stats(results)
    return RunResult(
        success=stats.repos.failed == 0,
        dry_run=dry_run,
        repos=stats.repos,
        labels=stats.labels,
        settings=stats.settings,
        projects=stats.projects,
        errors=[RepoErrorDetail(repo=r.full_name, details=r.errors) for r in results if not r.success],
    )
