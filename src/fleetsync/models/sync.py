"""Models for per-repository sync results and run-level totals."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fleetsync.models.enums import LabelOperation, LinkStatus


class LabelResult(BaseModel):
    """Outcome of one label in one repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    operation: LabelOperation
    changes: list[str] | None = None


class SettingChange(BaseModel):
    """A single drifted setting: ``{key, from, to}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str
    from_: Any = Field(alias="from")
    to: Any


class SyncErrorRecord(BaseModel):
    """A non-fatal failure recorded against one repository."""

    model_config = ConfigDict(frozen=True)

    target: str
    """What failed: a label name, ``"settings"``, ``"project #7"``, ``"repo"``..."""
    operation: str
    error: str


class RepoSyncResult(BaseModel):
    """Complete, immutable result of syncing one repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    labels: list[LabelResult] = Field(default_factory=list)
    custom_labels: list[str] = Field(default_factory=list)
    setting_changes: list[SettingChange] = Field(default_factory=list)
    settings_applied: bool = True
    project_number: int | None = None
    project_title: str | None = None
    project_link_status: LinkStatus | None = None
    items_added: int = 0
    items_already_present: int = 0
    errors: list[SyncErrorRecord] = Field(default_factory=list)
    success: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


# ------------------------------------------------------------------
# Run-level aggregates (serialised with camelCase keys)
# ------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RepoCounts(_CamelModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0


class LabelStats(_CamelModel):
    created: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: int = 0
    custom_count: int = 0


class SettingsStats(_CamelModel):
    changed: int = 0
    repos_with_drift: int = 0


class ProjectStats(_CamelModel):
    linked: int = 0
    already_linked: int = 0
    items_added: int = 0
    items_already_present: int = 0


class SyncStats(_CamelModel):
    """Totals folded from every :class:`RepoSyncResult` of a run."""

    repos: RepoCounts = Field(default_factory=RepoCounts)
    labels: LabelStats = Field(default_factory=LabelStats)
    settings: SettingsStats = Field(default_factory=SettingsStats)
    projects: ProjectStats = Field(default_factory=ProjectStats)


class RepoErrorDetail(_CamelModel):
    repo: str
    details: list[SyncErrorRecord]


class RunResult(_CamelModel):
    """Structured terminal output of a run."""

    success: bool
    dry_run: bool
    repos: RepoCounts
    labels: LabelStats
    settings: SettingsStats
    projects: ProjectStats
    errors: list[RepoErrorDetail] = Field(default_factory=list)

    def to_json(self, *, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
