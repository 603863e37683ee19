"""Remote API interfaces and their GitHub implementation."""

from fleetsync.providers.base import PAGE_SIZE, GraphQLClient, RestClient

__all__ = ["PAGE_SIZE", "GraphQLClient", "RestClient"]
