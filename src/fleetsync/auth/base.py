"""Credential types shared by every auth mode."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(frozen=True)
class ResolvedToken:
    """A GitHub token and how a run must treat it once the run ends.

    Attributes:
        value: Bearer token sent with every API call.
        source: Auth mode that produced the token.
        revocable: True when the run minted the token itself and should
            revoke it afterwards. Tokens supplied by the caller are never
            revoked.
        expires_at: ISO-8601 expiry, when GitHub reported one.
    """

    value: str = field(repr=False)
    source: str
    revocable: bool = False
    expires_at: str | None = None


class TokenResolver(ABC):
    """Produces the credential a fleet run authenticates with."""

    mode: ClassVar[str]

    @abstractmethod
    async def resolve(self) -> ResolvedToken:
        """Resolve the token, raising :class:`AuthenticationError` on failure."""
