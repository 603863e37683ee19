"""Projects (v2) resolution, linking and backfill.

Every project number referenced by the fleet is resolved once, before the
repository loop, into a :class:`ProjectCache`. Per repository,
:func:`sync_project` links the repository to its project and backfills open
issues and pull requests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from fleetsync.exceptions import GraphQLError, ProjectSyncError, ProviderError
from fleetsync.models.enums import LinkStatus
from fleetsync.models.github import ProjectInfo
from fleetsync.models.sync import SyncErrorRecord
from fleetsync.providers.base import PAGE_SIZE, GraphQLClient, RestClient
from fleetsync.sync.throttle import GRAPHQL_CHECK_INTERVAL, INTER_ITEM_DELAY, RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectCacheEntry:
    """Resolution outcome for one project number: a usable project or an error."""

    ok: bool
    project: ProjectInfo | None = None
    error: str | None = None


class ProjectCache:
    """Project resolutions keyed by project number.

    :meth:`resolve` only queries numbers it has not seen, so each number is
    resolved at most once per run.
    """

    def __init__(self) -> None:
        self._entries: dict[int, ProjectCacheEntry] = {}

    def get(self, number: int) -> ProjectCacheEntry | None:
        return self._entries.get(number)

    def __contains__(self, number: object) -> bool:
        return number in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    async def resolve(self, graphql: GraphQLClient, org: str, numbers: Iterable[int]) -> None:
        pending = [number for number in dict.fromkeys(numbers) if number not in self._entries]
        if not pending:
            return

        logger.info("Resolving %d project(s)...", len(pending))
        for number in pending:
            self._entries[number] = await _resolve_one(graphql, org, number)


async def _resolve_one(graphql: GraphQLClient, org: str, number: int) -> ProjectCacheEntry:
    try:
        project = await graphql.resolve_project(org, number)
    except Exception as exc:
        reason = exc.reason if isinstance(exc, ProviderError) else str(exc) or type(exc).__name__
        logger.info("  Failed to resolve project #%d: %s", number, reason)
        return ProjectCacheEntry(ok=False, error=reason)

    if project.closed:
        logger.info('  Project "%s" (#%d) is closed, skipping', project.title, number)
        return ProjectCacheEntry(ok=False, error=f'Project "{project.title}" is closed')

    logger.info('  Resolved: "%s" (#%d)', project.title, number)
    return ProjectCacheEntry(ok=True, project=project)


async def resolve_projects(graphql: GraphQLClient, org: str, numbers: Iterable[int]) -> ProjectCache:
    """Resolve each distinct number in *numbers* (first-seen order) into a new cache."""
    cache = ProjectCache()
    await cache.resolve(graphql, org, numbers)
    return cache


# ------------------------------------------------------------------
# Per-repository
# ------------------------------------------------------------------


@dataclass
class BackfillOutcome:
    added: int = 0
    already_present: int = 0
    errors: list[SyncErrorRecord] = field(default_factory=list)


@dataclass
class ProjectSyncOutcome:
    project_title: str | None
    link_status: LinkStatus
    items_added: int = 0
    items_already_present: int = 0
    errors: list[SyncErrorRecord] = field(default_factory=list)


async def link_repo(
    graphql: GraphQLClient,
    project: ProjectInfo,
    repo_node_id: str,
    *,
    dry_run: bool,
    errors: list[SyncErrorRecord] | None = None,
) -> LinkStatus:
    """Link a repository to *project*.

    A failure other than "already linked" yields :attr:`LinkStatus.ERROR`
    and, when *errors* is given, appends a ``link`` record to it.
    """
    if dry_run:
        logger.info('  [DRY-RUN] Would link to "%s"', project.title)
        return LinkStatus.DRY_RUN

    try:
        await graphql.link_repo_to_project(project.id, repo_node_id)
    except GraphQLError as exc:
        if exc.is_already_exists:
            logger.info('  Already linked to "%s"', project.title)
            return LinkStatus.ALREADY
        failure = ProjectSyncError(project.number, "link", exc.reason)
    except ProviderError as exc:
        failure = ProjectSyncError(project.number, "link", exc.reason)
    else:
        logger.info('  Linked to "%s"', project.title)
        return LinkStatus.LINKED

    logger.warning("  Failed to link: %s", failure.reason)
    if errors is not None:
        errors.append(failure.to_record())
    return LinkStatus.ERROR


async def backfill_items(
    rest: RestClient,
    graphql: GraphQLClient,
    limiter: RateLimiter,
    owner: str,
    repo: str,
    project: ProjectInfo,
    *,
    dry_run: bool,
) -> BackfillOutcome:
    """Add every open issue and pull request of ``owner/repo`` to *project*.

    Pages through open issues until a short page. The GraphQL pool is checked
    before every :data:`GRAPHQL_CHECK_INTERVAL`-th page. In dry-run every item
    counts as added and no mutation is issued.
    """
    outcome = BackfillOutcome()
    page = 1
    page_count = 0

    logger.debug('%s: backfilling open issues/PRs into "%s"...', repo, project.title)

    while True:
        if page_count > 0 and page_count % GRAPHQL_CHECK_INTERVAL == 0:
            await limiter.check_secondary()

        try:
            items = await rest.list_open_issues(owner, repo, page)
        except ProviderError as exc:
            logger.debug("%s: listing open issues (page %d) failed: %s", repo, page, exc)
            break

        if not items:
            break

        for item in items:
            if dry_run:
                outcome.added += 1
                continue

            try:
                await graphql.add_item_to_project(project.id, item.node_id)
            except GraphQLError as exc:
                if exc.is_already_exists:
                    outcome.already_present += 1
                else:
                    outcome.errors.append(ProjectSyncError(project.number, "backfill", exc.reason).to_record())
            except ProviderError as exc:
                outcome.errors.append(ProjectSyncError(project.number, "backfill", exc.reason).to_record())
            else:
                outcome.added += 1

            await limiter.delay(INTER_ITEM_DELAY)

        page_count += 1
        if len(items) < PAGE_SIZE:
            break
        page += 1

    total = outcome.added + outcome.already_present
    if dry_run:
        logger.info("  [DRY-RUN] Backfill: %d items would be added (%d total open)", outcome.added, total)
    else:
        logger.info(
            "  Backfill: %d added, %d already present (%d total)", outcome.added, outcome.already_present, total
        )
    return outcome


async def sync_project(
    rest: RestClient,
    graphql: GraphQLClient,
    limiter: RateLimiter,
    cache: ProjectCache,
    *,
    owner: str,
    repo: str,
    repo_node_id: str,
    project_number: int,
    dry_run: bool,
    skip_backfill: bool,
) -> ProjectSyncOutcome:
    """Link ``owner/repo`` to its project and backfill it.

    Returns :attr:`LinkStatus.SKIPPED` when the project is absent from the
    cache or failed to resolve.
    """
    entry = cache.get(project_number)
    if entry is None or not entry.ok or entry.project is None:
        reason = entry.error if entry is not None else "Project not resolved"
        logger.info("  Skipping project sync: %s", reason)
        return ProjectSyncOutcome(project_title=None, link_status=LinkStatus.SKIPPED)

    project = entry.project
    errors: list[SyncErrorRecord] = []
    status = await link_repo(graphql, project, repo_node_id, dry_run=dry_run, errors=errors)
    outcome = ProjectSyncOutcome(project_title=project.title, link_status=status, errors=errors)

    if skip_backfill:
        logger.debug("%s: backfill skipped (skip-backfill=true)", repo)
    elif status is not LinkStatus.ERROR:
        backfill = await backfill_items(rest, graphql, limiter, owner, repo, project, dry_run=dry_run)
        outcome.items_added = backfill.added
        outcome.items_already_present = backfill.already_present
        outcome.errors.extend(backfill.errors)

    return outcome
