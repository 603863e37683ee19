"""Resolvers for tokens the caller already holds."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from fleetsync.auth.base import ResolvedToken, TokenResolver
from fleetsync.exceptions import AuthenticationError

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True)
class EnvTokenResolver(TokenResolver):
    """Reads the first non-empty variable in *names* (``GITHUB_TOKEN`` first)."""

    mode = "env"
    names: tuple[str, ...] = TOKEN_ENV_VARS

    async def resolve(self) -> ResolvedToken:
        for name in self.names:
            value = (os.getenv(name) or "").strip()
            if value:
                return ResolvedToken(value=value, source=self.mode)
        raise AuthenticationError(f"{' / '.join(self.names)} is not set or empty")


@dataclass(frozen=True)
class StaticTokenResolver(TokenResolver):
    """Uses a token passed on the command line.

    The caller owns the token's lifetime, so a run never revokes it.
    """

    mode = "token"
    token: str = field(repr=False)

    async def resolve(self) -> ResolvedToken:
        value = self.token.strip()
        if not value:
            raise AuthenticationError("--token is empty")
        return ResolvedToken(value=value, source=self.mode)
