"""Auth module public exports."""

from fleetsync.auth.base import ResolvedToken, TokenResolver
from fleetsync.auth.factory import AUTH_MODES, create_token_resolver

__all__ = ["AUTH_MODES", "ResolvedToken", "TokenResolver", "create_token_resolver"]
