"""GitHub implementation of the remote API interfaces."""

from fleetsync.providers.github.client import GitHubGraphQLClient, GitHubRestClient

__all__ = ["GitHubGraphQLClient", "GitHubRestClient"]
