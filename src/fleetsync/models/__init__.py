"""Domain models for fleetsync.

Re-exports all public model classes for convenient access::

    from fleetsync.models import DesiredConfig, DiscoveredRepo, RepoSyncResult
"""

from fleetsync.models.config import DesiredConfig, LabelDefinition, RepositorySettings
from fleetsync.models.enums import LabelOperation, LinkStatus, LogLevel
from fleetsync.models.github import (
    DiscoveredRepo,
    GitHubIssue,
    GitHubLabel,
    GitHubRepo,
    OrgRepoProperties,
    ProjectInfo,
    PropertyValue,
    QuotaReading,
    RateLimitInfo,
    RepoOwner,
)
from fleetsync.models.sync import (
    LabelResult,
    LabelStats,
    ProjectStats,
    RepoCounts,
    RepoErrorDetail,
    RepoSyncResult,
    RunResult,
    SettingChange,
    SettingsStats,
    SyncErrorRecord,
    SyncStats,
)

__all__ = [
    "DesiredConfig",
    "DiscoveredRepo",
    "GitHubIssue",
    "GitHubLabel",
    "GitHubRepo",
    "LabelDefinition",
    "LabelOperation",
    "LabelResult",
    "LabelStats",
    "LinkStatus",
    "LogLevel",
    "OrgRepoProperties",
    "ProjectInfo",
    "ProjectStats",
    "PropertyValue",
    "QuotaReading",
    "RateLimitInfo",
    "RepoCounts",
    "RepoErrorDetail",
    "RepoOwner",
    "RepoSyncResult",
    "RepositorySettings",
    "RunResult",
    "SettingChange",
    "SettingsStats",
    "SyncErrorRecord",
    "SyncStats",
]
