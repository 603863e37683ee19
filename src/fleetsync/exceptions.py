"""Custom exception hierarchy for fleetsync.

All fleetsync exceptions inherit from :class:`FleetSyncError`, making it easy
to catch any library error with a single ``except`` clause while still allowing
callers to handle specific failure modes.

Two families exist:

* Fatal errors (:class:`InvalidInputError`, :class:`ConfigError`,
  :class:`AuthenticationError`, :class:`DiscoveryError`) stop the run before
  the repository loop starts.
* Per-operation errors (:class:`LabelSyncError`, :class:`SettingsSyncError`,
  :class:`ProjectSyncError`) are caught where they happen and folded into the
  owning repository's result via :meth:`to_record`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fleetsync.models.sync import SyncErrorRecord


class FleetSyncError(Exception):
    """Base exception for all fleetsync errors."""


# ----------------------------------------------------------------------
# Fatal
# ----------------------------------------------------------------------


class InvalidInputError(FleetSyncError):
    """Raised when run inputs fail validation.

    Attributes:
        field: The input field that failed validation.
        value: The offending value (may be ``None``).
        reason: Human-readable explanation.
    """

    def __init__(self, field: str, reason: str, value: Any = None) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f'Invalid input for "{field}": {reason}')


class ConfigError(FleetSyncError):
    """Raised when the desired-state config file cannot be loaded or validated."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f'Failed to load config "{path}": {reason}')


class AuthenticationError(FleetSyncError):
    """Raised when a credential cannot be resolved or is rejected."""


class DiscoveryError(FleetSyncError):
    """Raised when repository discovery fails or finds nothing."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Repository discovery failed: {reason}")


# ----------------------------------------------------------------------
# Remote API
# ----------------------------------------------------------------------


class ProviderError(FleetSyncError):
    """Base for failures reported by a remote API call."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        return f"API error during {self.operation}: {self.reason}"


class GitHubApiError(ProviderError):
    """A REST call failed.

    Attributes:
        status_code: HTTP status code, when the failure carried one.
    """

    def __init__(self, operation: str, reason: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(operation, reason)

    def _format(self) -> str:
        status = f" ({self.status_code})" if self.status_code else ""
        return f"GitHub API error{status} during {self.operation}: {self.reason}"

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_validation_failed(self) -> bool:
        return self.status_code == 422


class GraphQLError(ProviderError):
    """A GraphQL call failed or returned ``errors``."""

    def _format(self) -> str:
        return f"GraphQL error during {self.operation}: {self.reason}"

    @property
    def is_already_exists(self) -> bool:
        reason = self.reason.lower()
        return "already" in reason or "exists" in reason


# ----------------------------------------------------------------------
# Per-operation (non-fatal)
# ----------------------------------------------------------------------


class LabelSyncError(FleetSyncError):
    """A single label create/update/remove failed."""

    def __init__(self, label: str, operation: str, reason: str) -> None:
        self.label = label
        self.operation = operation
        self.reason = reason
        super().__init__(f'Label {operation} failed for "{label}": {reason}')

    def to_record(self) -> SyncErrorRecord:
        from fleetsync.models.sync import SyncErrorRecord

        return SyncErrorRecord(target=self.label, operation=self.operation, error=self.reason)


class SettingsSyncError(FleetSyncError):
    """Applying repository settings failed."""

    def __init__(self, repo: str, reason: str) -> None:
        self.repo = repo
        self.reason = reason
        super().__init__(f'Settings sync failed for "{repo}": {reason}')

    def to_record(self) -> SyncErrorRecord:
        from fleetsync.models.sync import SyncErrorRecord

        return SyncErrorRecord(target="settings", operation="update", error=self.reason)


class ProjectSyncError(FleetSyncError):
    """Resolving, linking, or backfilling a project failed."""

    def __init__(self, project_number: int, operation: str, reason: str) -> None:
        self.project_number = project_number
        self.operation = operation
        self.reason = reason
        super().__init__(f"Project #{project_number} {operation} failed: {reason}")

    def to_record(self) -> SyncErrorRecord:
        from fleetsync.models.sync import SyncErrorRecord

        return SyncErrorRecord(target=f"project #{self.project_number}", operation=self.operation, error=self.reason)
