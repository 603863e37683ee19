"""Run-scoped state shared by discovery, resolution and orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field

from fleetsync.config import SyncOptions
from fleetsync.models.config import DesiredConfig
from fleetsync.providers.base import GraphQLClient, RestClient
from fleetsync.sync.progress import NullSyncProgress, SyncProgress
from fleetsync.sync.projects import ProjectCache
from fleetsync.sync.throttle import RateLimiter


@dataclass
class SyncContext:
    """Everything a run needs, owned by a single task.

    The project cache and the rate limiter live here so that one run never
    shares them with another.
    """

    options: SyncOptions
    config: DesiredConfig
    rest: RestClient
    graphql: GraphQLClient
    limiter: RateLimiter
    cache: ProjectCache = field(default_factory=ProjectCache)
    progress: SyncProgress = field(default_factory=NullSyncProgress)
