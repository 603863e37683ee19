"""Abstract interfaces for the remote API collaborators.

The sync engine only ever talks to GitHub through these two interfaces, so a
run can be driven by the httpx-backed clients in
:mod:`fleetsync.providers.github` or by in-memory fakes in tests.

All methods are ``async``. Every failure is raised as
:class:`~fleetsync.exceptions.GitHubApiError` (REST) or
:class:`~fleetsync.exceptions.GraphQLError` (GraphQL), carrying the operation
name, an optional status code, and a human-readable reason.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from fleetsync.models.config import LabelDefinition
from fleetsync.models.github import (
    GitHubIssue,
    GitHubLabel,
    GitHubRepo,
    OrgRepoProperties,
    ProjectInfo,
    RateLimitInfo,
)

PAGE_SIZE = 100
"""Page size used for every paginated listing."""


class RestClient(ABC):
    """REST-style operations."""

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_org_repo_properties(self, org: str) -> list[OrgRepoProperties]:
        """List custom property values for every repository in *org* (all pages)."""

    @abstractmethod
    async def get_repo(self, owner: str, repo: str) -> GitHubRepo:
        """Fetch a single repository snapshot.

        Raises:
            GitHubApiError: With ``status_code=404`` if it does not exist.
        """

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_labels(self, owner: str, repo: str) -> list[GitHubLabel]:
        """List every label of a repository (all pages)."""

    @abstractmethod
    async def create_label(self, owner: str, repo: str, label: LabelDefinition) -> None:
        """Create *label*."""

    @abstractmethod
    async def update_label(self, owner: str, repo: str, current_name: str, label: LabelDefinition) -> None:
        """Rename/recolor/redescribe the label currently named *current_name*."""

    @abstractmethod
    async def delete_label(self, owner: str, repo: str, name: str) -> None:
        """Delete the label named *name*."""

    # ------------------------------------------------------------------
    # Settings, issues, quota
    # ------------------------------------------------------------------

    @abstractmethod
    async def update_repo(self, owner: str, repo: str, settings: dict[str, Any]) -> None:
        """Patch repository settings with only the given keys."""

    @abstractmethod
    async def list_open_issues(self, owner: str, repo: str, page: int) -> list[GitHubIssue]:
        """List one page (1-based, :data:`PAGE_SIZE` items) of open issues and PRs."""

    @abstractmethod
    async def get_rate_limit(self) -> RateLimitInfo:
        """Return remaining quota for the REST and GraphQL pools."""


class GraphQLClient(ABC):
    """Graph-style (Projects v2) operations."""

    @abstractmethod
    async def resolve_project(self, org: str, number: int) -> ProjectInfo:
        """Resolve an organization project by its number.

        Raises:
            GraphQLError: If the project does not exist or the query fails.
        """

    @abstractmethod
    async def link_repo_to_project(self, project_id: str, repo_node_id: str) -> None:
        """Link a repository to a project. Already-linked raises an "already exists" error."""

    @abstractmethod
    async def add_item_to_project(self, project_id: str, content_id: str) -> None:
        """Add an issue or pull request to a project."""
