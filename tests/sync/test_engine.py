"""End-to-end tests for SyncEngine over the in-memory GitHub fakes."""

from __future__ import annotations

import pytest

from fleetsync.config import CustomProperty, SyncOptions
from fleetsync.exceptions import DiscoveryError
from fleetsync.models.config import DesiredConfig, LabelDefinition, RepositorySettings
from fleetsync.models.enums import LabelOperation, LinkStatus
from fleetsync.models.github import GitHubLabel
from fleetsync.models.sync import LabelResult, SettingChange
from fleetsync.sync import SyncEngine
from fleetsync.sync.progress import SyncProgress
from tests.fakes.clock import SleepRecorder
from tests.fakes.github import FakeGraphQLClient, FakeRestClient, make_issues, make_property_row, make_repo

TRACKED = {"workflow": "standard", "project-tracking": "true", "project-number": "7"}


class RecordingProgress(SyncProgress):
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def phase_start(self, phase: str, total: int | None = None) -> None:
        self.events.append(("start", phase))

    def item_done(self, phase: str) -> None:
        pass

    def phase_done(self, phase: str) -> None:
        self.events.append(("done", phase))

    def phase_error(self, phase: str, error: BaseException) -> None:
        self.events.append(("error", phase))


def _options(**overrides: object) -> SyncOptions:
    fields: dict[str, object] = {
        "org": "acme",
        "custom_properties": [CustomProperty(key="workflow", value="standard")],
    }
    fields.update(overrides)
    return SyncOptions.model_validate(fields)


def _engine(
    rest: FakeRestClient,
    graphql: FakeGraphQLClient,
    config: DesiredConfig,
    sleep: SleepRecorder,
    **overrides: object,
) -> SyncEngine:
    return SyncEngine(rest, graphql, _options(**overrides), config, sleep=sleep)


@pytest.fixture
def fleet(rest: FakeRestClient, graphql: FakeGraphQLClient) -> FakeRestClient:
    rest.property_rows = [make_property_row("acme", "api", **TRACKED)]
    rest.add_repo(make_repo("acme", "api", has_wiki=True, delete_branch_on_merge=True))
    rest.issues["acme/api"] = make_issues(2)
    graphql.add_project(7, "Roadmap")
    return rest


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_missing_label_is_created(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder
) -> None:
    config = DesiredConfig(labels=[LabelDefinition(name="bug", description="Something is broken", color="d73a4a")])

    report = await _engine(fleet, graphql, config, sleep).sync()

    assert report.results[0].labels == [LabelResult(name="bug", operation=LabelOperation.CREATED)]


@pytest.mark.asyncio
async def test_drifted_setting_is_applied(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder
) -> None:
    config = DesiredConfig(settings=RepositorySettings(has_wiki=False))

    report = await _engine(fleet, graphql, config, sleep).sync()

    result = report.results[0]
    assert result.setting_changes == [SettingChange(key="has_wiki", from_=True, to=False)]
    assert result.settings_applied is True
    assert fleet.calls_to("update_repo") == [("acme", "api", {"has_wiki": False})]


@pytest.mark.asyncio
async def test_dry_run_reports_drift_without_mutating(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_labels: list[LabelDefinition]
) -> None:
    config = DesiredConfig(labels=desired_labels, settings=RepositorySettings(has_wiki=False))

    report = await _engine(fleet, graphql, config, sleep, dry_run=True).sync()

    result = report.results[0]
    assert result.setting_changes == [SettingChange(key="has_wiki", from_=True, to=False)]
    assert result.settings_applied is False
    assert result.project_link_status is LinkStatus.DRY_RUN
    assert result.items_added == 2
    assert fleet.mutation_count == 0
    assert graphql.calls_to("link_repo_to_project") == []
    assert graphql.calls_to("add_item_to_project") == []
    assert report.run_result.dry_run is True
    assert report.run_result.labels.created == 2


@pytest.mark.asyncio
async def test_already_linked_project_is_not_an_error(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    graphql.linked.add(("PVT_7", "R_api"))

    report = await _engine(fleet, graphql, desired_config, sleep).sync()

    result = report.results[0]
    assert result.project_link_status is LinkStatus.ALREADY
    assert result.errors == []
    assert result.success is True
    assert report.run_result.projects.already_linked == 1


# ---------------------------------------------------------------------------
# Run behaviour
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_second_run_converges(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    fleet.labels["acme/api"] = [GitHubLabel(name="Bug", color="D73A4A", description="old")]

    first = await _engine(fleet, graphql, desired_config, sleep, remove_custom_labels=True).sync()
    mutations = fleet.mutation_count
    second = await _engine(fleet, graphql, desired_config, sleep, remove_custom_labels=True).sync()

    assert first.run_result.labels.updated == 1
    assert first.run_result.projects.items_added == 2
    assert fleet.mutation_count == mutations
    assert second.run_result.labels.unchanged == 2
    assert second.run_result.settings.changed == 0
    assert second.results[0].project_link_status is LinkStatus.ALREADY
    assert second.run_result.projects.items_already_present == 2
    assert second.run_result.success is True


@pytest.mark.asyncio
async def test_projects_are_resolved_once_for_the_whole_fleet(
    rest: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    for name in ("api", "web", "cli"):
        rest.property_rows.append(make_property_row("acme", name, **TRACKED))
        rest.add_repo(make_repo("acme", name))
    graphql.add_project(7, "Roadmap")

    report = await _engine(rest, graphql, desired_config, sleep).sync()

    assert graphql.calls_to("resolve_project") == [("acme", 7)]
    assert [r.project_link_status for r in report.results] == [LinkStatus.LINKED] * 3
    assert list(report.projects) == [7]


@pytest.mark.asyncio
async def test_projects_disabled_skips_resolution(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    report = await _engine(fleet, graphql, desired_config, sleep, sync_projects=False).sync()

    assert graphql.calls == []
    assert report.results[0].project_link_status is None


@pytest.mark.asyncio
async def test_partial_failure_still_reports_every_repo(
    rest: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    rest.property_rows = [
        make_property_row("acme", "api", workflow="standard"),
        make_property_row("acme", "gone", workflow="standard"),
    ]
    rest.add_repo(make_repo("acme", "api"))

    report = await _engine(rest, graphql, desired_config, sleep).sync()

    assert [r.full_name for r in report.results] == ["acme/api", "acme/gone"]
    assert report.run_result.success is False
    assert report.run_result.repos.total == 2
    assert report.run_result.repos.failed == 1
    assert report.run_result.errors[0].repo == "acme/gone"


@pytest.mark.asyncio
async def test_discovery_failure_is_fatal_and_reported(
    rest: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    progress = RecordingProgress()
    engine = SyncEngine(rest, graphql, _options(), desired_config, progress=progress, sleep=sleep)

    with pytest.raises(DiscoveryError):
        await engine.sync()

    assert progress.events == [("start", "Discover"), ("error", "Discover")]
    assert rest.mutation_count == 0


@pytest.mark.asyncio
async def test_phases_run_in_order(
    fleet: FakeRestClient, graphql: FakeGraphQLClient, sleep: SleepRecorder, desired_config: DesiredConfig
) -> None:
    progress = RecordingProgress()
    engine = SyncEngine(fleet, graphql, _options(), desired_config, progress=progress, sleep=sleep)

    await engine.sync()

    assert progress.events == [
        ("start", "Discover"),
        ("done", "Discover"),
        ("start", "Resolve"),
        ("done", "Resolve"),
        ("start", "Sync"),
        ("done", "Sync"),
    ]
