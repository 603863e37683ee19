"""Tests for the plain-text run summary."""

from __future__ import annotations

from fleetsync.models.enums import LabelOperation, LinkStatus
from fleetsync.models.sync import LabelResult, RepoSyncResult, SettingChange, SyncErrorRecord
from fleetsync.reporting import aggregate_stats, format_summary


def _summary(results: list[RepoSyncResult], *, dry_run: bool) -> str:
    return format_summary(results, aggregate_stats(results), dry_run=dry_run)


def test_apply_summary_shows_counts() -> None:
    results = [
        RepoSyncResult(
            owner="acme",
            repo="api",
            labels=[LabelResult(name="bug", operation=LabelOperation.CREATED)],
            setting_changes=[SettingChange(key="has_wiki", from_=True, to=False)],
            project_number=7,
            project_link_status=LinkStatus.LINKED,
            items_added=2,
        )
    ]

    text = _summary(results, dry_run=False)

    assert "SYNC COMPLETE - SUMMARY" in text
    assert "Repositories: 1 processed, 1 succeeded, 0 failed" in text
    assert "  Created: 1" in text
    assert "Settings changed: 1" in text
    assert "Repos linked: 1" in text
    assert "Items added: 2" in text
    assert "Partial Failures:" not in text
    assert "[dry-run]" not in text


def test_dry_run_summary_uses_intent_wording() -> None:
    results = [
        RepoSyncResult(
            owner="acme",
            repo="api",
            labels=[LabelResult(name="bug", operation=LabelOperation.CREATED)],
            project_number=7,
            project_link_status=LinkStatus.DRY_RUN,
        )
    ]

    text = _summary(results, dry_run=True)

    assert "DRY-RUN COMPLETE - SUMMARY" in text
    assert "  To create: 1" in text
    assert "Repos to link: 1" in text
    assert text.rstrip().endswith("[dry-run] No changes were made")


def test_quiet_sections_are_omitted() -> None:
    text = _summary([RepoSyncResult(owner="acme", repo="api")], dry_run=False)

    assert "Settings Statistics:" not in text
    assert "Project Statistics:" not in text
    assert "Removed" not in text


def test_partial_failures_are_listed() -> None:
    results = [
        RepoSyncResult(
            owner="acme",
            repo="web",
            errors=[SyncErrorRecord(target="project #7", operation="link", error="Forbidden")],
            success=False,
        )
    ]

    text = _summary(results, dry_run=False)

    assert "Partial Failures:" in text
    assert "  acme/web (1 errors):" in text
    assert "    - link project #7: Forbidden" in text
