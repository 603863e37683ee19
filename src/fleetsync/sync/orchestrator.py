"""Sequential per-repository sync loop."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from fleetsync.exceptions import ProviderError
from fleetsync.models.enums import LinkStatus
from fleetsync.models.github import DiscoveredRepo, GitHubRepo
from fleetsync.models.sync import RepoSyncResult, SettingChange, SyncErrorRecord
from fleetsync.sync.context import SyncContext
from fleetsync.sync.labels import LabelSyncOutcome, sync_labels
from fleetsync.sync.projects import sync_project
from fleetsync.sync.settings import sync_settings
from fleetsync.sync.throttle import INTER_REPO_DELAY, REST_CHECK_INTERVAL

logger = logging.getLogger(__name__)

PROCESS_PHASE = "Sync"

PROJECT_TRACKING_PROPERTY = "project-tracking"
PROJECT_NUMBER_PROPERTY = "project-number"


def project_number_for(custom_properties: Mapping[str, str]) -> int | None:
    """Return the tracked project number, or ``None`` when the repository is not tracked.

    A repository is tracked when ``project-tracking`` is ``"true"`` and
    ``project-number`` is a positive integer.
    """
    if custom_properties.get(PROJECT_TRACKING_PROPERTY) != "true":
        return None
    raw = (custom_properties.get(PROJECT_NUMBER_PROPERTY) or "").strip()
    try:
        number = int(raw)
    except ValueError:
        return None
    return number if number > 0 else None


class RepoOrchestrator:
    """Processes discovered repositories one at a time.

    Every repository yields exactly one :class:`RepoSyncResult`; a failure in
    one repository is recorded on its result and never stops the loop.
    """

    def __init__(self, context: SyncContext) -> None:
        self._ctx = context

    async def process_repos(self, repos: list[DiscoveredRepo]) -> list[RepoSyncResult]:
        ctx = self._ctx
        results: list[RepoSyncResult] = []
        ctx.progress.phase_start(PROCESS_PHASE, total=len(repos))

        for i, repo in enumerate(repos):
            if i > 0 and i % REST_CHECK_INTERVAL == 0:
                await ctx.limiter.check_primary()
            if i > 0:
                await ctx.limiter.delay(INTER_REPO_DELAY)

            logger.info("Processing: %s (%d/%d)", repo.full_name, i + 1, len(repos))
            logger.info("-" * 60)

            try:
                result = await self._process_repo(repo)
            except Exception as exc:
                logger.warning("  Unexpected failure while syncing %s: %s", repo.full_name, exc)
                logger.debug("Traceback for %s", repo.full_name, exc_info=True)
                result = RepoSyncResult(
                    owner=repo.owner,
                    repo=repo.name,
                    project_number=project_number_for(repo.custom_properties),
                    errors=[SyncErrorRecord(target="repo", operation="sync", error=str(exc) or type(exc).__name__)],
                    success=False,
                )
            results.append(result)
            ctx.progress.item_done(PROCESS_PHASE)

        ctx.progress.phase_done(PROCESS_PHASE)
        return results

    async def _process_repo(self, repo: DiscoveredRepo) -> RepoSyncResult:
        ctx = self._ctx
        options = ctx.options
        errors: list[SyncErrorRecord] = []

        snapshot: GitHubRepo | None
        try:
            snapshot = await ctx.rest.get_repo(repo.owner, repo.name)
        except ProviderError as exc:
            errors.append(SyncErrorRecord(target="repo", operation="get", error=str(exc)))
            snapshot = None

        labels: LabelSyncOutcome = await sync_labels(
            ctx.rest,
            repo.owner,
            repo.name,
            ctx.config.labels,
            dry_run=options.dry_run,
            remove_custom=options.remove_custom_labels,
        )
        errors.extend(labels.errors)

        setting_changes: list[SettingChange] = []
        settings_applied = True
        if options.sync_settings and snapshot is not None:
            logger.debug("%s: checking settings...", repo.name)
            settings = await sync_settings(
                ctx.rest, repo.owner, repo.name, ctx.config.settings, snapshot, dry_run=options.dry_run
            )
            setting_changes = settings.changes
            settings_applied = settings.applied

        project_number = project_number_for(repo.custom_properties)
        project_title: str | None = None
        link_status: LinkStatus | None = None
        items_added = 0
        items_already_present = 0
        if options.sync_projects and project_number is not None:
            project = await sync_project(
                ctx.rest,
                ctx.graphql,
                ctx.limiter,
                ctx.cache,
                owner=repo.owner,
                repo=repo.name,
                repo_node_id=snapshot.node_id if snapshot is not None else repo.node_id,
                project_number=project_number,
                dry_run=options.dry_run,
                skip_backfill=options.skip_backfill,
            )
            project_title = project.project_title
            link_status = project.link_status
            items_added = project.items_added
            items_already_present = project.items_already_present
            errors.extend(project.errors)

        return RepoSyncResult(
            owner=repo.owner,
            repo=repo.name,
            labels=labels.results,
            custom_labels=labels.custom_labels,
            setting_changes=setting_changes,
            settings_applied=settings_applied,
            project_number=project_number,
            project_title=project_title,
            project_link_status=link_status,
            items_added=items_added,
            items_already_present=items_already_present,
            errors=errors,
            success=not errors,
        )
