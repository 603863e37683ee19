"""httpx-backed GitHub REST and GraphQL clients.

Both clients are async context managers that own one ``httpx.AsyncClient``
wrapped in :class:`RetryingTransport`::

    async with GitHubRestClient(token=token) as rest, GitHubGraphQLClient(token=token) as graphql:
        ...
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from fleetsync.exceptions import GitHubApiError, GraphQLError
from fleetsync.models.config import LabelDefinition
from fleetsync.models.github import (
    GitHubIssue,
    GitHubLabel,
    GitHubRepo,
    OrgRepoProperties,
    ProjectInfo,
    RateLimitInfo,
)
from fleetsync.providers.base import PAGE_SIZE, GraphQLClient, RestClient
from fleetsync.providers.github._retrying_transport import RetryingTransport

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"
_GRAPHQL_POOL_DEFAULT = {"remaining": 5000, "reset": 0}

RESOLVE_PROJECT_QUERY = (
    "query($org:String!, $number:Int!){ organization(login:$org) { "
    "projectV2(number:$number) { id title number closed } } }"
)
LINK_REPO_MUTATION = (
    "mutation($projectId:ID!, $repositoryId:ID!){ "
    "linkProjectV2ToRepository(input:{projectId:$projectId, repositoryId:$repositoryId}) "
    "{ repository { id } } }"
)
ADD_ITEM_MUTATION = (
    "mutation($projectId:ID!, $contentId:ID!){ "
    "addProjectV2ItemById(input:{projectId:$projectId, contentId:$contentId}) { item { id } } }"
)


def github_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": _API_VERSION,
        "User-Agent": "fleetsync",
    }


def error_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        details = payload.get("errors")
        if isinstance(details, list) and details:
            return f"{payload['message']}: {details}"
        return payload["message"]
    return response.reason_phrase


def _is_object_array(data: Any) -> bool:
    return isinstance(data, list) and all(isinstance(row, dict) for row in data)


class _GitHubHTTPClient:
    """Shared lifecycle for the two clients."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 3,
        timeout: float = 30.0,
    ) -> None:
        self._token = token
        self._base_url = base_url
        self._transport = RetryingTransport(transport=transport, max_retries=max_retries)
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Any:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=github_headers(self._token),
            transport=self._transport,
            timeout=httpx.Timeout(self._timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} is not open. Use 'async with'.")
        return self._client


class GitHubRestClient(_GitHubHTTPClient, RestClient):
    """:class:`RestClient` over the GitHub REST API."""

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            response = await self._http().request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise GitHubApiError(operation, str(exc) or type(exc).__name__) from exc
        if response.status_code >= 400:
            raise GitHubApiError(operation, error_reason(response), status_code=response.status_code)
        return response

    async def _get_json(self, operation: str, path: str, **params: Any) -> Any:
        response = await self._request(operation, "GET", path, params=params or None)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubApiError(operation, "Response body is not JSON") from exc

    async def _paginate(self, operation: str, path: str, **params: Any) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self._get_json(operation, path, per_page=PAGE_SIZE, page=page, **params)
            if not _is_object_array(data):
                raise GitHubApiError(operation, "Expected a JSON array of objects")
            rows.extend(data)
            if len(data) < PAGE_SIZE:
                return rows
            page += 1

    @staticmethod
    def _validate(operation: str, model: Any, payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GitHubApiError(operation, f"Unexpected response shape: {exc}") from exc

    # ------------------------------------------------------------------
    # RestClient contract
    # ------------------------------------------------------------------

    async def list_org_repo_properties(self, org: str) -> list[OrgRepoProperties]:
        operation = "orgs.listCustomPropertiesValuesForRepos"
        rows = await self._paginate(operation, f"/orgs/{org}/properties/values")
        out: list[OrgRepoProperties] = []
        for row in rows:
            # Multi-select properties come back as lists; only plain strings can match a filter.
            properties = [
                {
                    "property_name": prop.get("property_name"),
                    "value": prop["value"] if isinstance(prop.get("value"), str) else None,
                }
                for prop in row.get("properties") or []
                if isinstance(prop, dict)
            ]
            out.append(self._validate(operation, OrgRepoProperties, {**row, "properties": properties}))
        return out

    async def get_repo(self, owner: str, repo: str) -> GitHubRepo:
        data = await self._get_json("repos.get", f"/repos/{owner}/{repo}")
        return self._validate("repos.get", GitHubRepo, data)

    async def list_labels(self, owner: str, repo: str) -> list[GitHubLabel]:
        operation = "issues.listLabelsForRepo"
        rows = await self._paginate(operation, f"/repos/{owner}/{repo}/labels")
        return [self._validate(operation, GitHubLabel, row) for row in rows]

    async def create_label(self, owner: str, repo: str, label: LabelDefinition) -> None:
        await self._request(
            "issues.createLabel",
            "POST",
            f"/repos/{owner}/{repo}/labels",
            json={"name": label.name, "description": label.description, "color": label.color},
        )

    async def update_label(self, owner: str, repo: str, current_name: str, label: LabelDefinition) -> None:
        await self._request(
            "issues.updateLabel",
            "PATCH",
            f"/repos/{owner}/{repo}/labels/{quote(current_name, safe='')}",
            json={"new_name": label.name, "description": label.description, "color": label.color},
        )

    async def delete_label(self, owner: str, repo: str, name: str) -> None:
        await self._request("issues.deleteLabel", "DELETE", f"/repos/{owner}/{repo}/labels/{quote(name, safe='')}")

    async def update_repo(self, owner: str, repo: str, settings: dict[str, Any]) -> None:
        await self._request("repos.update", "PATCH", f"/repos/{owner}/{repo}", json=settings)

    async def list_open_issues(self, owner: str, repo: str, page: int) -> list[GitHubIssue]:
        operation = "issues.listForRepo"
        data = await self._get_json(
            operation, f"/repos/{owner}/{repo}/issues", state="open", per_page=PAGE_SIZE, page=page
        )
        if not _is_object_array(data):
            raise GitHubApiError(operation, "Expected a JSON array of objects")
        return [
            self._validate(
                operation,
                GitHubIssue,
                {
                    "id": row.get("id"),
                    "node_id": row.get("node_id"),
                    "number": row.get("number"),
                    "title": row.get("title") or "",
                    "is_pull_request": "pull_request" in row,
                },
            )
            for row in data
        ]

    async def get_rate_limit(self) -> RateLimitInfo:
        operation = "rateLimit.get"
        data = await self._get_json(operation, "/rate_limit")
        resources = data.get("resources") if isinstance(data, dict) else None
        if not isinstance(resources, dict) or not isinstance(resources.get("core"), dict):
            raise GitHubApiError(operation, "Unexpected rate limit payload")
        return self._validate(
            operation,
            RateLimitInfo,
            {"core": resources["core"], "graphql": resources.get("graphql") or _GRAPHQL_POOL_DEFAULT},
        )

    # ------------------------------------------------------------------
    # Credential lifecycle
    # ------------------------------------------------------------------

    async def revoke_token(self) -> None:
        """Revoke the installation token this client authenticates with."""
        await self._request("apps.revokeInstallationAccessToken", "DELETE", "/installation/token")


class GitHubGraphQLClient(_GitHubHTTPClient, GraphQLClient):
    """:class:`GraphQLClient` over the GitHub GraphQL API."""

    async def _graphql(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http().post("/graphql", json={"query": query, "variables": variables})
        except httpx.HTTPError as exc:
            raise GraphQLError(operation, str(exc) or type(exc).__name__) from exc
        if response.status_code >= 400:
            raise GraphQLError(operation, f"HTTP {response.status_code}: {error_reason(response)}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise GraphQLError(operation, "Response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise GraphQLError(operation, "GraphQL response is not a JSON object")

        errors = payload.get("errors") or []
        if errors:
            messages = [err.get("message", str(err)) if isinstance(err, dict) else str(err) for err in errors]
            raise GraphQLError(operation, "; ".join(messages))

        data = payload.get("data")
        if not isinstance(data, dict):
            raise GraphQLError(operation, "GraphQL response missing data payload")
        return data

    async def resolve_project(self, org: str, number: int) -> ProjectInfo:
        data = await self._graphql("resolveProject", RESOLVE_PROJECT_QUERY, {"org": org, "number": number})
        project = (data.get("organization") or {}).get("projectV2")
        if not isinstance(project, dict):
            raise GraphQLError("resolveProject", f'Project #{number} not found in org "{org}"')
        try:
            return ProjectInfo.model_validate(project)
        except ValidationError as exc:
            raise GraphQLError("resolveProject", f"Unexpected response shape: {exc}") from exc

    async def link_repo_to_project(self, project_id: str, repo_node_id: str) -> None:
        await self._graphql(
            "linkRepoToProject", LINK_REPO_MUTATION, {"projectId": project_id, "repositoryId": repo_node_id}
        )

    async def add_item_to_project(self, project_id: str, content_id: str) -> None:
        await self._graphql("addItemToProject", ADD_ITEM_MUTATION, {"projectId": project_id, "contentId": content_id})
