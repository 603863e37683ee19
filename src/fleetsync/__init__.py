"""Public API surface for fleetsync."""

__version__ = "0.1.0"

from fleetsync.auth import ResolvedToken, TokenResolver, create_token_resolver
from fleetsync.config import CustomProperty, SyncOptions, load_config
from fleetsync.exceptions import (
    AuthenticationError,
    ConfigError,
    DiscoveryError,
    FleetSyncError,
    GitHubApiError,
    GraphQLError,
    InvalidInputError,
    LabelSyncError,
    ProjectSyncError,
    ProviderError,
    SettingsSyncError,
)
from fleetsync.inputs import build_options
from fleetsync.models import DesiredConfig, DiscoveredRepo, RepoSyncResult, RunResult
from fleetsync.providers import GraphQLClient, RestClient
from fleetsync.providers.github import GitHubGraphQLClient, GitHubRestClient
from fleetsync.sync import SyncEngine, SyncReport
from fleetsync.sync.progress import SyncProgress

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "CustomProperty",
    "DesiredConfig",
    "DiscoveredRepo",
    "DiscoveryError",
    "FleetSyncError",
    "GitHubApiError",
    "GitHubGraphQLClient",
    "GitHubRestClient",
    "GraphQLClient",
    "GraphQLError",
    "InvalidInputError",
    "LabelSyncError",
    "ProjectSyncError",
    "ProviderError",
    "RepoSyncResult",
    "ResolvedToken",
    "RestClient",
    "RunResult",
    "SettingsSyncError",
    "SyncEngine",
    "SyncOptions",
    "SyncProgress",
    "SyncReport",
    "TokenResolver",
    "__version__",
    "build_options",
    "create_token_resolver",
    "load_config",
]
