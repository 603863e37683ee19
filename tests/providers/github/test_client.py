"""Tests for the httpx-backed GitHub clients."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from fleetsync.exceptions import GitHubApiError, GraphQLError
from fleetsync.models.config import LabelDefinition
from fleetsync.providers.github import GitHubGraphQLClient, GitHubRestClient
from fleetsync.sync.projects import resolve_projects
from fleetsync.sync.throttle import UNLIMITED, RateLimiter
from tests.fakes.clock import SleepRecorder

Handler = Callable[[httpx.Request], httpx.Response]


def _rest(handler: Handler) -> GitHubRestClient:
    return GitHubRestClient(token="tok", transport=httpx.MockTransport(handler), max_retries=0)


def _graphql(handler: Handler) -> GitHubGraphQLClient:
    return GitHubGraphQLClient(token="tok", transport=httpx.MockTransport(handler), max_retries=0)


def _repo_payload(name: str = "api") -> dict[str, object]:
    return {
        "id": 1,
        "node_id": f"R_{name}",
        "name": name,
        "full_name": f"acme/{name}",
        "owner": {"login": "acme", "id": 9},
        "has_wiki": True,
        "allow_squash_merge": True,
        "squash_merge_commit_title": "PR_TITLE",
        "private": False,
    }


# ---------------------------------------------------------------------------
# REST
# ---------------------------------------------------------------------------


class TestRestClient:
    @pytest.mark.asyncio
    async def test_sends_auth_and_version_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_repo_payload())

        async with _rest(handler) as rest:
            repo = await rest.get_repo("acme", "api")

        assert repo.node_id == "R_api"
        assert repo.has_wiki is True
        assert repo.squash_merge_commit_title == "PR_TITLE"
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert seen[0].headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert seen[0].url.path == "/repos/acme/api"

    @pytest.mark.asyncio
    async def test_http_error_becomes_github_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        async with _rest(handler) as rest:
            with pytest.raises(GitHubApiError) as exc_info:
                await rest.get_repo("acme", "ghost")

        assert exc_info.value.is_not_found
        assert exc_info.value.reason == "Not Found"
        assert exc_info.value.operation == "repos.get"

    @pytest.mark.asyncio
    async def test_validation_error_includes_details(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "Validation Failed", "errors": [{"code": "already_exists"}]})

        async with _rest(handler) as rest:
            with pytest.raises(GitHubApiError) as exc_info:
                await rest.create_label("acme", "api", LabelDefinition(name="bug", color="d73a4a"))

        assert exc_info.value.is_validation_failed
        assert exc_info.value.reason.startswith("Validation Failed: ")

    @pytest.mark.asyncio
    async def test_list_labels_follows_pages(self) -> None:
        pages: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            pages.append(page)
            count = 100 if page == 1 else 2
            return httpx.Response(200, json=[{"id": n, "name": f"l{page}-{n}", "color": "ffffff"} for n in range(count)])

        async with _rest(handler) as rest:
            labels = await rest.list_labels("acme", "api")

        assert len(labels) == 102
        assert pages == [1, 2]
        assert labels[0].description is None

    @pytest.mark.asyncio
    async def test_update_label_encodes_current_name(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        async with _rest(handler) as rest:
            await rest.update_label(
                "acme", "api", "Good First Issue", LabelDefinition(name="good first issue", color="7057ff")
            )

        assert seen[0].method == "PATCH"
        assert seen[0].url.raw_path == b"/repos/acme/api/labels/Good%20First%20Issue"
        assert json.loads(seen[0].content) == {"new_name": "good first issue", "description": "", "color": "7057ff"}

    @pytest.mark.asyncio
    async def test_update_repo_sends_patch(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_repo_payload())

        async with _rest(handler) as rest:
            await rest.update_repo("acme", "api", {"has_wiki": False})

        assert seen[0].method == "PATCH"
        assert json.loads(seen[0].content) == {"has_wiki": False}

    @pytest.mark.asyncio
    async def test_org_properties_drop_non_string_values(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/orgs/acme/properties/values"
            return httpx.Response(
                200,
                json=[
                    {
                        "repository_id": 1,
                        "repository_name": "api",
                        "repository_full_name": "acme/api",
                        "properties": [
                            {"property_name": "workflow", "value": "standard"},
                            {"property_name": "teams", "value": ["core", "infra"]},
                            {"property_name": "tier", "value": None},
                        ],
                    }
                ],
            )

        async with _rest(handler) as rest:
            rows = await rest.list_org_repo_properties("acme")

        values = {prop.property_name: prop.value for prop in rows[0].properties}
        assert values == {"workflow": "standard", "teams": None, "tier": None}

    @pytest.mark.asyncio
    async def test_open_issues_flag_pull_requests(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["state"] == "open"
            return httpx.Response(
                200,
                json=[
                    {"id": 1, "node_id": "I_1", "number": 1, "title": "Bug"},
                    {"id": 2, "node_id": "PR_2", "number": 2, "title": "Fix", "pull_request": {"url": "x"}},
                ],
            )

        async with _rest(handler) as rest:
            items = await rest.list_open_issues("acme", "api", page=1)

        assert [item.is_pull_request for item in items] == [False, True]

    @pytest.mark.asyncio
    async def test_rate_limit_reads_both_pools(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "resources": {
                        "core": {"limit": 5000, "remaining": 42, "reset": 1700000000},
                        "graphql": {"limit": 5000, "remaining": 77, "reset": 1700000100},
                    }
                },
            )

        async with _rest(handler) as rest:
            info = await rest.get_rate_limit()

        assert info.core.remaining == 42
        assert info.graphql.remaining == 77

    @pytest.mark.asyncio
    async def test_non_json_body_raises_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy error</html>")

        async with _rest(handler) as rest:
            with pytest.raises(GitHubApiError, match="Response body is not JSON"):
                await rest.get_rate_limit()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"resources": {}}, {"resources": {"core": None}}, ["core"]])
    async def test_unreadable_rate_limit_payload_raises(self, payload: object) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        async with _rest(handler) as rest:
            with pytest.raises(GitHubApiError, match="Unexpected rate limit payload"):
                await rest.get_rate_limit()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["<html>proxy error</html>", '{"resources": {}}'])
    async def test_limiter_reads_unusable_quota_as_unlimited(self, body: str) -> None:
        sleep = SleepRecorder()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=body)

        async with _rest(handler) as rest:
            limiter = RateLimiter(rest, sleep=sleep)
            assert await limiter.check_primary() == UNLIMITED

        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_non_object_rows_raise_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["bug", "enhancement"])

        async with _rest(handler) as rest:
            with pytest.raises(GitHubApiError, match="Expected a JSON array of objects"):
                await rest.list_labels("acme", "api")

    @pytest.mark.asyncio
    async def test_revoke_token_deletes_installation_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        async with _rest(handler) as rest:
            await rest.revoke_token()

        assert (seen[0].method, seen[0].url.path) == ("DELETE", "/installation/token")

    @pytest.mark.asyncio
    async def test_requires_open_client(self) -> None:
        rest = _rest(lambda request: httpx.Response(200))

        with pytest.raises(RuntimeError, match="is not open"):
            await rest.get_repo("acme", "api")


# ---------------------------------------------------------------------------
# GraphQL
# ---------------------------------------------------------------------------


class TestGraphQLClient:
    @pytest.mark.asyncio
    async def test_resolve_project(self) -> None:
        seen: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            project = {"id": "PVT_7", "title": "Roadmap", "number": 7, "closed": False}
            return httpx.Response(200, json={"data": {"organization": {"projectV2": project}}})

        async with _graphql(handler) as graphql:
            project = await graphql.resolve_project("acme", 7)

        assert project.id == "PVT_7"
        assert seen[0]["variables"] == {"org": "acme", "number": 7}

    @pytest.mark.asyncio
    async def test_non_json_body_raises_graphql_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy error</html>")

        async with _graphql(handler) as graphql:
            with pytest.raises(GraphQLError, match="Response body is not JSON"):
                await graphql.resolve_project("acme", 7)

    @pytest.mark.asyncio
    async def test_malformed_project_raises_graphql_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"organization": {"projectV2": {"id": "PVT_7"}}}})

        async with _graphql(handler) as graphql:
            with pytest.raises(GraphQLError, match="Unexpected response shape"):
                await graphql.resolve_project("acme", 7)

    @pytest.mark.asyncio
    async def test_unreadable_resolution_is_cached_as_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy error</html>")

        async with _graphql(handler) as graphql:
            cache = await resolve_projects(graphql, "acme", [7])

        entry = cache.get(7)
        assert entry is not None
        assert entry.ok is False
        assert entry.error == "Response body is not JSON"

    @pytest.mark.asyncio
    async def test_missing_project_is_an_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"organization": {"projectV2": None}}})

        async with _graphql(handler) as graphql:
            with pytest.raises(GraphQLError, match='Project #7 not found in org "acme"'):
                await graphql.resolve_project("acme", 7)

    @pytest.mark.asyncio
    async def test_errors_payload_raises_joined_messages(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"data": None, "errors": [{"message": "Content already exists"}, {"message": "second"}]}
            )

        async with _graphql(handler) as graphql:
            with pytest.raises(GraphQLError) as exc_info:
                await graphql.add_item_to_project("PVT_7", "I_1")

        assert exc_info.value.reason == "Content already exists; second"
        assert exc_info.value.is_already_exists

    @pytest.mark.asyncio
    async def test_http_failure_raises_graphql_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Bad credentials"})

        async with _graphql(handler) as graphql:
            with pytest.raises(GraphQLError, match="HTTP 401: Bad credentials"):
                await graphql.link_repo_to_project("PVT_7", "R_api")

    @pytest.mark.asyncio
    async def test_link_sends_ids(self) -> None:
        seen: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"linkProjectV2ToRepository": {"repository": {"id": "R_api"}}}})

        async with _graphql(handler) as graphql:
            await graphql.link_repo_to_project("PVT_7", "R_api")

        assert seen[0]["variables"] == {"projectId": "PVT_7", "repositoryId": "R_api"}
