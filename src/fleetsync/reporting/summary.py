"""Markdown run summary for CI step summaries.

When ``GITHUB_STEP_SUMMARY`` names a file, :func:`write_step_summary`
appends the rendered report to it.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from fleetsync.config import SyncOptions
from fleetsync.models.sync import LabelStats, ProjectStats, RepoSyncResult, SettingsStats, SyncStats
from fleetsync.reporting.aggregate import aggregate_stats

if TYPE_CHECKING:
    from fleetsync.sync.projects import ProjectCache

logger = logging.getLogger(__name__)

STEP_SUMMARY_ENV = "GITHUB_STEP_SUMMARY"


def _details(summary: str, body: str) -> list[str]:
    return ["<details>", f"<summary>{summary}</summary>", "", body, "", "</details>", ""]


def _label_section(stats: LabelStats, dry_run: bool, remove_custom: bool) -> list[str]:
    lines = [
        "### Label Statistics",
        "",
        f"- Labels {'to create' if dry_run else 'created'}: {stats.created}",
        f"- Labels {'to update' if dry_run else 'updated'}: {stats.updated}",
    ]
    if remove_custom or stats.removed:
        lines.append(f"- Labels {'to remove' if dry_run else 'removed'}: {stats.removed}")
    lines.append("")
    return lines


def _settings_section(results: list[RepoSyncResult], stats: SettingsStats, dry_run: bool) -> list[str]:
    drifted = [r for r in results if r.setting_changes]
    lines = [
        "### Settings Statistics",
        "",
        f"- Settings {'to change' if dry_run else 'changed'}: {stats.changed}",
        f"- Repos with settings drift: {stats.repos_with_drift}",
        "",
    ]
    if drifted:
        lines += ["#### Settings Drift", ""]
        for result in drifted:
            lines.append(f"**{result.repo}** ({len(result.setting_changes)} settings):")
            lines.extend(
                f"- `{change.key}`: `{json.dumps(change.from_)}` → `{json.dumps(change.to)}`"
                for change in result.setting_changes
            )
            lines.append("")
    return lines


def _project_section(
    results: list[RepoSyncResult], stats: ProjectStats, cache: ProjectCache, dry_run: bool, skip_backfill: bool
) -> list[str]:
    tracked = [r for r in results if r.project_number is not None]
    if not tracked:
        return []

    lines = ["### Project Statistics", ""]
    for number in cache:
        entry = cache.get(number)
        if entry is not None and entry.ok and entry.project is not None:
            count = sum(1 for r in tracked if r.project_number == number)
            lines.append(f'- **Project #{number} "{entry.project.title}":** {count} repos')
        elif entry is not None:
            lines.append(f"- **Project #{number}:** {entry.error}")

    lines.append(f"- Repos {'to link' if dry_run else 'linked'}: {stats.linked}")
    lines.append(f"- Repos already linked: {stats.already_linked}")
    if not skip_backfill:
        lines.append(f"- Items {'to add' if dry_run else 'added'}: {stats.items_added}")
        lines.append(f"- Items already in project: {stats.items_already_present}")

    lines += [
        "",
        "#### Project Details",
        "",
        "| Repository | Project | Title | Link Status | Backfill | Status |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for r in tracked:
        backfill = "skipped" if skip_backfill else f"{r.items_added} added, {r.items_already_present} existing"
        status = r.project_link_status.value if r.project_link_status is not None else "skipped"
        lines.append(
            f"| {r.repo} | #{r.project_number} | {r.project_title or 'N/A'} | {status} | {backfill} | "
            f"{'errors' if r.errors else 'ok'} |"
        )
    lines.append("")
    return lines


def render_step_summary(
    results: list[RepoSyncResult],
    cache: ProjectCache,
    options: SyncOptions,
    stats: SyncStats | None = None,
) -> str:
    """Render the markdown report of a run.

    Totals are read from *stats*, folded from *results* when omitted.
    """
    if stats is None:
        stats = aggregate_stats(results)
    dry_run = options.dry_run
    failed = [r for r in results if not r.success]

    if dry_run:
        lines = ["## Dry-Run Sync Results", "", "**Mode:** Preview only (no changes applied)", ""]
    else:
        lines = ["## Sync Results", ""]
    lines.append(f"**Repositories processed:** {stats.repos.total}  ")
    lines.append(f"**Successful:** {stats.repos.succeeded}  ")
    if stats.repos.failed:
        lines.append(f"**Partially failed:** {stats.repos.failed}  ")
    lines.append("")

    lines += _label_section(stats.labels, dry_run, options.remove_custom_labels)
    if options.sync_settings:
        lines += _settings_section(results, stats.settings, dry_run)
    if options.sync_projects:
        lines += _project_section(results, stats.projects, cache, dry_run, options.skip_backfill)

    if failed:
        lines += ["### Partial Failures", ""]
        for result in failed:
            body = "\n".join(f"- {err.operation} `{err.target}`: {err.error}" for err in result.errors)
            lines += _details(f"{result.full_name} ({len(result.errors)} errors)", body)

    with_custom = [r for r in results if r.custom_labels]
    if with_custom:
        body = "\n\n".join(
            f"**{r.full_name}** ({len(r.custom_labels)} custom):\n" + "\n".join(f"- `{name}`" for name in r.custom_labels)
            for r in with_custom
        )
        lines += ["### Custom Labels Detected", "", *_details(f"{len(with_custom)} repos with custom labels", body)]

    return "\n".join(lines)


def write_step_summary(
    results: list[RepoSyncResult],
    cache: ProjectCache,
    options: SyncOptions,
    path: str | Path | None = None,
    stats: SyncStats | None = None,
) -> Path | None:
    """Append the markdown report to *path* (default: ``$GITHUB_STEP_SUMMARY``).

    Returns the path written, or ``None`` when no destination is configured.
    """
    target = path or os.environ.get(STEP_SUMMARY_ENV)
    if not target:
        return None
    destination = Path(target)
    with destination.open("a", encoding="utf-8") as handle:
        handle.write(render_step_summary(results, cache, options, stats))
        handle.write("\n")
    logger.debug("Step summary written to %s", destination)
    return destination
