"""Desired-state configuration models.

The config file declares an ordered list of labels and a sparse map of
repository settings. It is loaded once per run and never mutated.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_COLOR_PATTERN = r"^[0-9a-fA-F]{6}$"


class LabelDefinition(BaseModel):
    """A label every managed repository should carry."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=100)
    color: str = Field(pattern=HEX_COLOR_PATTERN)
    """Hex color without the leading ``#``."""


class RepositorySettings(BaseModel):
    """Repository settings enforced through ``PATCH /repos/{owner}/{repo}``.

    Every field is optional: a key left unset is never compared or patched.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    has_wiki: bool | None = None
    has_issues: bool | None = None
    has_projects: bool | None = None
    has_discussions: bool | None = None
    allow_merge_commit: bool | None = None
    allow_squash_merge: bool | None = None
    squash_merge_commit_title: Literal["PR_TITLE", "COMMIT_OR_PR_TITLE"] | None = None
    squash_merge_commit_message: Literal["PR_BODY", "COMMIT_MESSAGES", "BLANK"] | None = None
    allow_rebase_merge: bool | None = None
    allow_update_branch: bool | None = None
    delete_branch_on_merge: bool | None = None
    web_commit_signoff_required: bool | None = None
    allow_auto_merge: bool | None = None

    def declared(self) -> dict[str, object]:
        """Return only the keys explicitly set in the config."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class DesiredConfig(BaseModel):
    """The complete desired state for the fleet."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_ref: str | None = Field(default=None, alias="$schema")
    labels: list[LabelDefinition] = Field(default_factory=list)
    settings: RepositorySettings = Field(default_factory=RepositorySettings)

    @field_validator("labels")
    @classmethod
    def _unique_label_names(cls, labels: list[LabelDefinition]) -> list[LabelDefinition]:
        seen: dict[str, str] = {}
        for label in labels:
            key = label.name.lower()
            if key in seen:
                raise ValueError(f'duplicate label name "{label.name}" (collides with "{seen[key]}")')
            seen[key] = label.name
        return labels
