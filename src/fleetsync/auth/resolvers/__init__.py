"""Concrete token resolvers."""

from fleetsync.auth.resolvers.app import AppInstallationTokenResolver
from fleetsync.auth.resolvers.gh_cli import GhCliTokenResolver
from fleetsync.auth.resolvers.provided import EnvTokenResolver, StaticTokenResolver

__all__ = ["AppInstallationTokenResolver", "EnvTokenResolver", "GhCliTokenResolver", "StaticTokenResolver"]
