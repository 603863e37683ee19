"""Repository discovery.

Repositories are selected by organization custom properties, by an explicit
list of names, or by both; the two sources are unioned on the
case-insensitive full name.
"""

from __future__ import annotations

import logging

from fleetsync.config import CustomProperty, SyncOptions
from fleetsync.exceptions import DiscoveryError, GitHubApiError, InvalidInputError, ProviderError
from fleetsync.models.github import DiscoveredRepo
from fleetsync.providers.base import RestClient

logger = logging.getLogger(__name__)


async def discover_by_custom_properties(
    rest: RestClient, org: str, filters: list[CustomProperty]
) -> list[DiscoveredRepo]:
    """Return the repositories of *org* matching every filter.

    Keys and values compare case-insensitively. Properties without a value
    never match and are left out of the repository's attribute map.

    Raises:
        DiscoveryError: If the property listing fails.
    """
    if not filters:
        return []

    logger.debug('Querying custom properties for org "%s"...', org)
    try:
        rows = await rest.list_org_repo_properties(org)
    except ProviderError as exc:
        raise DiscoveryError(f"Failed to query org custom properties: {exc}") from exc
    logger.debug('Found %d repos with custom properties in org "%s"', len(rows), org)

    wanted = [(prop.key.lower(), prop.value.lower()) for prop in filters]
    discovered: list[DiscoveredRepo] = []
    for row in rows:
        values = {prop.property_name: prop.value for prop in row.properties if prop.value is not None}
        lowered = {name.lower(): value.lower() for name, value in values.items()}
        if all(lowered.get(key) == value for key, value in wanted):
            discovered.append(
                DiscoveredRepo(
                    owner=org,
                    name=row.repository_name,
                    full_name=row.repository_full_name,
                    node_id=row.repository_node_id,
                    custom_properties=values,
                )
            )

    logger.debug("%d repos match all custom property filters", len(discovered))
    return discovered


def _split_name(raw: str, default_owner: str) -> tuple[str, str]:
    owner, sep, name = raw.partition("/")
    if not sep:
        return default_owner, raw
    return owner, name


async def discover_by_explicit_list(rest: RestClient, default_owner: str, names: list[str]) -> list[DiscoveredRepo]:
    """Validate ``name`` / ``owner/name`` entries against the API.

    Names that fail validation are skipped and logged.

    Raises:
        DiscoveryError: If none of the names could be validated.
    """
    if not names:
        return []

    logger.debug("Validating %d explicit repos...", len(names))
    discovered: list[DiscoveredRepo] = []
    failures: list[str] = []
    for raw in names:
        owner, name = _split_name(raw, default_owner)
        try:
            repo = await rest.get_repo(owner, name)
        except GitHubApiError as exc:
            failures.append(f"{owner}/{name} (not found)" if exc.is_not_found else f"{owner}/{name} ({exc.reason})")
            continue
        except ProviderError as exc:
            failures.append(f"{owner}/{name} ({exc.reason})")
            continue
        discovered.append(
            DiscoveredRepo(owner=repo.owner.login, name=repo.name, full_name=repo.full_name, node_id=repo.node_id)
        )

    if failures:
        logger.debug("Failed to validate repos: %s", ", ".join(failures))
    if not discovered and failures:
        raise DiscoveryError(f"None of the specified repos could be validated: {', '.join(failures)}")

    logger.debug("Validated %d explicit repos", len(discovered))
    return discovered


async def discover_repos(rest: RestClient, org: str, options: SyncOptions) -> list[DiscoveredRepo]:
    """Run every configured discovery method and merge the results.

    Property-discovered repositories come first. When both methods find the
    same repository the explicit entry's identity is kept and the property
    values found by filter discovery are merged over it.

    Raises:
        InvalidInputError: If no discovery method is configured.
        DiscoveryError: If discovery fails or selects nothing.
    """
    if not options.custom_properties and not options.repos:
        raise InvalidInputError(
            "repos / custom-properties",
            "At least one discovery method must be configured: provide 'repos' and/or 'custom-properties'",
        )

    by_property = await discover_by_custom_properties(rest, org, options.custom_properties)
    explicit = await discover_by_explicit_list(rest, org, options.repos)

    merged: dict[str, DiscoveredRepo] = {repo.full_name.lower(): repo for repo in by_property}
    for repo in explicit:
        key = repo.full_name.lower()
        existing = merged.get(key)
        if existing is None:
            merged[key] = repo
        else:
            merged[key] = repo.model_copy(
                update={"custom_properties": {**repo.custom_properties, **existing.custom_properties}}
            )

    repos = list(merged.values())
    if not repos:
        raise DiscoveryError("No repositories discovered. Check your 'custom-properties' and/or 'repos' inputs.")

    logger.info("Discovered %d repositories:", len(repos))
    if by_property:
        logger.info("  Custom properties: %d repos matched", len(by_property))
    if explicit:
        logger.info("  Explicit list: %d repos specified", len(explicit))
    for repo in repos:
        logger.info("  - %s", repo.full_name)
    logger.debug("Deduplicated from %d to %d repos", len(by_property) + len(explicit), len(repos))
    return repos
