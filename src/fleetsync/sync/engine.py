"""Sync engine driving a complete fleet run."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from fleetsync.config import SyncOptions
from fleetsync.models.config import DesiredConfig
from fleetsync.models.github import DiscoveredRepo
from fleetsync.models.sync import RepoSyncResult, RunResult
from fleetsync.providers.base import GraphQLClient, RestClient
from fleetsync.reporting.aggregate import build_run_result
from fleetsync.sync.context import SyncContext
from fleetsync.sync.discovery import discover_repos
from fleetsync.sync.orchestrator import RepoOrchestrator, project_number_for
from fleetsync.sync.progress import NullSyncProgress, SyncProgress
from fleetsync.sync.projects import ProjectCache, resolve_projects
from fleetsync.sync.throttle import RateLimiter, Sleep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncReport:
    """What a run produced."""

    repos: list[DiscoveredRepo]
    results: list[RepoSyncResult]
    run_result: RunResult
    projects: ProjectCache


class SyncEngine:
    """Converges a fleet of repositories onto one desired state.

    The run has four phases:
    1. Discover: select repositories by custom properties and/or name
    2. Resolve: resolve every tracked project number once
    3. Sync: process repositories one at a time
    4. Aggregate: fold results into a :class:`RunResult`

    Discovery failures are fatal; everything after that is recorded per
    repository.

    Args:
        rest: REST client.
        graphql: GraphQL client.
        options: Run inputs.
        config: Desired state.
        progress: Optional phase observer.
        sleep: Awaitable used for every delay and rate-limit pause.
    """

    def __init__(
        self,
        rest: RestClient,
        graphql: GraphQLClient,
        options: SyncOptions,
        config: DesiredConfig,
        *,
        progress: SyncProgress | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._ctx = SyncContext(
            options=options,
            config=config,
            rest=rest,
            graphql=graphql,
            limiter=RateLimiter(rest, sleep=sleep),
            progress=progress or NullSyncProgress(),
        )

    @property
    def context(self) -> SyncContext:
        return self._ctx

    async def sync(self) -> SyncReport:
        options = self._ctx.options
        logger.info("Starting sync for %s (dry-run: %s)", options.org, str(options.dry_run).lower())
        if options.dry_run:
            logger.info("[DRY-RUN] No changes will be made")

        repos = await self._discover()
        await self._resolve(repos)
        results = await RepoOrchestrator(self._ctx).process_repos(repos)
        run_result = build_run_result(results, options.dry_run)

        if run_result.repos.failed:
            logger.warning("%d out of %d repos had errors", run_result.repos.failed, run_result.repos.total)
        return SyncReport(repos=repos, results=results, run_result=run_result, projects=self._ctx.cache)

    async def _discover(self) -> list[DiscoveredRepo]:
        ctx = self._ctx
        ctx.progress.phase_start("Discover")
        try:
            repos = await discover_repos(ctx.rest, ctx.options.org, ctx.options)
        except Exception as exc:
            ctx.progress.phase_error("Discover", exc)
            raise
        ctx.progress.phase_done("Discover")
        return repos

    async def _resolve(self, repos: list[DiscoveredRepo]) -> None:
        ctx = self._ctx
        if not ctx.options.sync_projects:
            return

        numbers = [n for n in (project_number_for(repo.custom_properties) for repo in repos) if n is not None]
        distinct = list(dict.fromkeys(numbers))
        ctx.progress.phase_start("Resolve", total=len(distinct))
        ctx.cache = await resolve_projects(ctx.graphql, ctx.options.org, distinct)
        ctx.progress.phase_done("Resolve")
