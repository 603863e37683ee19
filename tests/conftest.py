"""Shared test fixtures for fleetsync tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fleetsync.config import CustomProperty, SyncOptions
from fleetsync.models.config import DesiredConfig, LabelDefinition, RepositorySettings
from fleetsync.sync.throttle import RateLimiter
from tests.fakes.clock import SleepRecorder
from tests.fakes.github import FakeGraphQLClient, FakeRestClient


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def rest() -> FakeRestClient:
    return FakeRestClient()


@pytest.fixture
def graphql() -> FakeGraphQLClient:
    return FakeGraphQLClient()


@pytest.fixture
def limiter(rest: FakeRestClient, sleep: SleepRecorder) -> RateLimiter:
    return RateLimiter(rest, sleep=sleep)


@pytest.fixture
def desired_labels() -> list[LabelDefinition]:
    return [
        LabelDefinition(name="bug", description="Something isn't working", color="d73a4a"),
        LabelDefinition(name="enhancement", description="New feature or request", color="a2eeef"),
    ]


@pytest.fixture
def desired_config(desired_labels: list[LabelDefinition]) -> DesiredConfig:
    return DesiredConfig(
        labels=desired_labels,
        settings=RepositorySettings(has_wiki=False, delete_branch_on_merge=True),
    )


@pytest.fixture
def options() -> SyncOptions:
    return SyncOptions(org="acme", custom_properties=[CustomProperty(key="workflow", value="standard")])


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "fleetsync.json"
    path.write_text(
        json.dumps(
            {
                "$schema": "./fleetsync.schema.json",
                "labels": [{"name": "bug", "description": "Something isn't working", "color": "d73a4a"}],
                "settings": {"has_wiki": False},
            }
        ),
        encoding="utf-8",
    )
    return path
