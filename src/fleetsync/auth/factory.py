"""Token resolver factory."""

from __future__ import annotations

from fleetsync.auth.base import TokenResolver
from fleetsync.auth.resolvers import (
    AppInstallationTokenResolver,
    EnvTokenResolver,
    GhCliTokenResolver,
    StaticTokenResolver,
)
from fleetsync.exceptions import InvalidInputError

AUTH_MODES = tuple(
    resolver.mode
    for resolver in (EnvTokenResolver, GhCliTokenResolver, StaticTokenResolver, AppInstallationTokenResolver)
)


def create_token_resolver(
    mode: str,
    *,
    token: str | None = None,
    hostname: str = "github.com",
    app_id: str | None = None,
    private_key: str | None = None,
    org: str | None = None,
    installation_repo: str | None = None,
) -> TokenResolver:
    """Build the resolver for auth *mode*.

    ``token`` mode needs *token*; ``app`` mode needs *app_id*, *private_key*
    and *org* (plus *installation_repo* to look the installation up on a
    repository).

    Raises:
        InvalidInputError: On an unknown mode or a missing mode input.
    """
    if mode == "env":
        return EnvTokenResolver()
    if mode == "gh-cli":
        return GhCliTokenResolver(hostname=hostname)
    if mode == "token":
        if not token:
            raise InvalidInputError("token", 'A token is required when auth mode is "token"')
        return StaticTokenResolver(token=token)
    if mode == "app":
        if not app_id:
            raise InvalidInputError("app-id", 'An app ID is required when auth mode is "app"')
        if not private_key or not private_key.strip():
            raise InvalidInputError("app-private-key", 'A private key is required when auth mode is "app"')
        if not org:
            raise InvalidInputError("org", 'An organization is required when auth mode is "app"')
        return AppInstallationTokenResolver(
            app_id=app_id, private_key=private_key, org=org, installation_repo=installation_repo or None
        )
    raise InvalidInputError("auth", f"Unknown auth mode, expected one of {list(AUTH_MODES)}", value=mode)
