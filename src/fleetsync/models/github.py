"""Models for data read from GitHub and for discovered repositories.

These are thin, validated views over the REST/GraphQL payloads. Only the
fields fleetsync consumes are modelled; anything else in a payload is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# ------------------------------------------------------------------
# Repository snapshot
# ------------------------------------------------------------------


class RepoOwner(BaseModel):
    login: str


class GitHubRepo(BaseModel):
    """Repository snapshot as returned by ``GET /repos/{owner}/{repo}``."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    name: str
    full_name: str
    owner: RepoOwner
    has_wiki: bool | None = None
    has_issues: bool | None = None
    has_projects: bool | None = None
    has_discussions: bool | None = None
    allow_merge_commit: bool | None = None
    allow_squash_merge: bool | None = None
    squash_merge_commit_title: str | None = None
    squash_merge_commit_message: str | None = None
    allow_rebase_merge: bool | None = None
    allow_update_branch: bool | None = None
    delete_branch_on_merge: bool | None = None
    web_commit_signoff_required: bool | None = None
    allow_auto_merge: bool | None = None


class GitHubLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    description: str | None = None
    id: int | None = None


class GitHubIssue(BaseModel):
    """An open issue or pull request (the issues endpoint returns both)."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    number: int
    title: str = ""
    id: int | None = None
    is_pull_request: bool = False


# ------------------------------------------------------------------
# Discovery
# ------------------------------------------------------------------


class PropertyValue(BaseModel):
    property_name: str
    value: str | None = None


class OrgRepoProperties(BaseModel):
    """One row of ``GET /orgs/{org}/properties/values``."""

    repository_id: int
    repository_name: str
    repository_full_name: str
    repository_node_id: str = ""
    properties: list[PropertyValue] = Field(default_factory=list)


class DiscoveredRepo(BaseModel):
    """A repository selected for this run.

    Produced once by discovery and immutable afterwards.
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    full_name: str
    node_id: str
    custom_properties: dict[str, str] = Field(default_factory=dict)


# ------------------------------------------------------------------
# Rate limits
# ------------------------------------------------------------------


class QuotaReading(BaseModel):
    remaining: int
    reset: int
    """Epoch seconds when the quota resets."""


class RateLimitInfo(BaseModel):
    """Primary (REST ``core``) and secondary (``graphql``) quota pools."""

    core: QuotaReading
    graphql: QuotaReading


# ------------------------------------------------------------------
# Projects
# ------------------------------------------------------------------


class ProjectInfo(BaseModel):
    """A resolved Projects (v2) board."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    number: int
    closed: bool = False
