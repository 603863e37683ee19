"""GitHub App installation tokens.

The app signs a short-lived JWT with its private key, looks up its
installation on the fleet's organization (or on one repository), and
exchanges the JWT for an installation token. The run owns that token and
revokes it when it finishes, unless told to keep it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
import jwt

from fleetsync.auth.base import ResolvedToken, TokenResolver
from fleetsync.exceptions import AuthenticationError
from fleetsync.providers.github._retrying_transport import RetryingTransport
from fleetsync.providers.github.client import API_URL, error_reason, github_headers

logger = logging.getLogger(__name__)

# GitHub rejects app JWTs that live longer than ten minutes.
APP_JWT_TTL = 540
APP_JWT_BACKDATE = 60


def build_app_jwt(app_id: str, private_key: str, *, now: float | None = None) -> str:
    """Sign the RS256 JWT GitHub expects from an app.

    ``iat`` is backdated to absorb clock drift between us and GitHub.

    Raises:
        AuthenticationError: If the key cannot sign.
    """
    issued = int(time.time() if now is None else now)
    claims = {"iat": issued - APP_JWT_BACKDATE, "exp": issued + APP_JWT_TTL, "iss": app_id}
    try:
        return jwt.encode(claims, private_key, algorithm="RS256")
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise AuthenticationError(f"Failed to authenticate as GitHub App {app_id}: {exc}") from exc


@dataclass(frozen=True)
class AppInstallationTokenResolver(TokenResolver):
    """Mints an installation token for a GitHub App.

    Args:
        app_id: Numeric app ID (or client ID) used as the JWT issuer.
        private_key: PEM-encoded app private key.
        org: Organization whose installation is used.
        installation_repo: ``OWNER/NAME`` to look the installation up on
            instead of the organization.
    """

    mode = "app"
    app_id: str
    private_key: str = field(repr=False)
    org: str
    installation_repo: str | None = None
    api_url: str = API_URL
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False, compare=False)
    max_retries: int = 3

    async def resolve(self) -> ResolvedToken:
        logger.info("Generating GitHub App installation token...")
        app_jwt = build_app_jwt(self.app_id, self.private_key)

        async with httpx.AsyncClient(
            base_url=self.api_url,
            headers=github_headers(app_jwt),
            transport=RetryingTransport(transport=self.transport, max_retries=self.max_retries),
            timeout=httpx.Timeout(30.0),
        ) as client:
            installation_id = await self._installation_id(client)
            logger.debug("Installation ID: %s", installation_id)
            grant = await self._call(
                client, "POST", f"/app/installations/{installation_id}/access_tokens", "generate installation token"
            )
            slug = await self._app_slug(client)

        value = grant.get("token")
        if not isinstance(value, str) or not value:
            raise AuthenticationError("Failed to generate installation token: response carried no token")
        expires_at = grant.get("expires_at")
        logger.info('Token generated for app "%s" (expires: %s)', slug, expires_at or "unknown")
        return ResolvedToken(
            value=value,
            source=self.mode,
            revocable=True,
            expires_at=expires_at if isinstance(expires_at, str) else None,
        )

    async def _installation_id(self, client: httpx.AsyncClient) -> int:
        if self.installation_repo:
            target, path = self.installation_repo, f"/repos/{self.installation_repo}/installation"
        else:
            target, path = self.org, f"/orgs/{self.org}/installation"
        try:
            payload = await self._call(client, "GET", path, "get installation ID")
        except AuthenticationError as exc:
            raise AuthenticationError(f"{exc}. Ensure the GitHub App is installed on {target}.") from exc

        installation_id = payload.get("id")
        if not isinstance(installation_id, int):
            raise AuthenticationError(f"Failed to get installation ID for {target}: response carried no id")
        return installation_id

    async def _app_slug(self, client: httpx.AsyncClient) -> str:
        try:
            payload = await self._call(client, "GET", "/app", "get app slug")
        except AuthenticationError as exc:
            logger.debug("%s", exc)
            return "unknown"
        slug = payload.get("slug")
        return slug if isinstance(slug, str) and slug else "unknown"

    @staticmethod
    async def _call(client: httpx.AsyncClient, method: str, path: str, action: str) -> dict[str, Any]:
        try:
            response = await client.request(method, path)
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"Failed to {action}: {str(exc) or type(exc).__name__}") from exc
        if response.status_code >= 400:
            raise AuthenticationError(f"Failed to {action}: HTTP {response.status_code} {error_reason(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError(f"Failed to {action}: response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise AuthenticationError(f"Failed to {action}: expected a JSON object")
        return payload
