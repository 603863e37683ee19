"""Plain-text run summary printed at the end of a run."""

from __future__ import annotations

from fleetsync.models.sync import RepoSyncResult, SyncStats

_RULE = "=" * 60


def _label_lines(stats: SyncStats, dry_run: bool) -> list[str]:
    labels = stats.labels
    lines = [
        "Label Statistics:",
        f"  {'To create' if dry_run else 'Created'}: {labels.created}",
        f"  {'To update' if dry_run else 'Updated'}: {labels.updated}",
    ]
    if labels.removed:
        lines.append(f"  {'To remove' if dry_run else 'Removed'}: {labels.removed}")
    lines.append(f"  Unchanged: {labels.unchanged}")
    if labels.custom_count:
        lines.append(f"  Custom labels found: {labels.custom_count}")
    lines.append("")
    return lines


def _settings_lines(stats: SyncStats, dry_run: bool) -> list[str]:
    if not stats.settings.changed and not stats.settings.repos_with_drift:
        return []
    return [
        "Settings Statistics:",
        f"  Settings {'to change' if dry_run else 'changed'}: {stats.settings.changed}",
        f"  Repos with drift: {stats.settings.repos_with_drift}",
        "",
    ]


def _project_lines(stats: SyncStats, dry_run: bool) -> list[str]:
    projects = stats.projects
    if not projects.linked and not projects.already_linked:
        return []
    return [
        "Project Statistics:",
        f"  Repos {'to link' if dry_run else 'linked'}: {projects.linked}",
        f"  Repos already linked: {projects.already_linked}",
        f"  Items {'to add' if dry_run else 'added'}: {projects.items_added}",
        f"  Items already in project: {projects.items_already_present}",
        "",
    ]


def format_summary(results: list[RepoSyncResult], stats: SyncStats, *, dry_run: bool) -> str:
    repos = stats.repos
    lines = [
        "",
        _RULE,
        "DRY-RUN COMPLETE - SUMMARY" if dry_run else "SYNC COMPLETE - SUMMARY",
        _RULE,
        "",
        f"Repositories: {repos.total} processed, {repos.succeeded} succeeded, {repos.failed} failed",
        "",
        *_label_lines(stats, dry_run),
        *_settings_lines(stats, dry_run),
        *_project_lines(stats, dry_run),
    ]

    failed = [r for r in results if not r.success]
    if failed:
        lines.append("Partial Failures:")
        for result in failed:
            lines.append(f"  {result.full_name} ({len(result.errors)} errors):")
            lines.extend(f"    - {err.operation} {err.target}: {err.error}" for err in result.errors)
        lines.append("")

    lines.append(_RULE)
    if dry_run:
        lines.append("  [dry-run] No changes were made")
    lines.append("")
    return "\n".join(lines)
