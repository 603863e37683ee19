"""Command-line interface for fleetsync."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from fleetsync.auth import AUTH_MODES, TokenResolver, create_token_resolver
from fleetsync.config import SyncOptions, load_config
from fleetsync.exceptions import (
    AuthenticationError,
    ConfigError,
    DiscoveryError,
    InvalidInputError,
    ProviderError,
)
from fleetsync.inputs import build_options
from fleetsync.models.config import DesiredConfig
from fleetsync.models.enums import LogLevel
from fleetsync.providers.base import GraphQLClient
from fleetsync.providers.github import GitHubGraphQLClient, GitHubRestClient
from fleetsync.reporting import aggregate_stats, format_summary, write_step_summary
from fleetsync.sync import SyncEngine, SyncReport

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".github/fleetsync.json"


def _package_version() -> str:
    try:
        return version("fleetsync")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetsync")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Converge repositories onto the desired state")
    sync_parser.add_argument("--org", required=True, help="Organization owning the fleet")
    sync_parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to the desired-state JSON file")
    sync_parser.add_argument(
        "--property",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Select repositories by custom property (repeatable, all must match)",
    )
    sync_parser.add_argument(
        "--repo",
        dest="repos",
        action="append",
        default=[],
        metavar="[OWNER/]NAME",
        help="Select a repository explicitly (repeatable)",
    )
    sync_parser.add_argument("--dry-run", action="store_true", help="Preview changes without applying them")
    sync_parser.add_argument(
        "--remove-custom-labels", action="store_true", help="Delete labels that are not in the config"
    )
    sync_parser.add_argument(
        "--no-sync-settings", dest="sync_settings", action="store_false", help="Do not enforce repository settings"
    )
    sync_parser.add_argument(
        "--no-sync-projects", dest="sync_projects", action="store_false", help="Do not link repositories to projects"
    )
    sync_parser.add_argument("--skip-backfill", action="store_true", help="Link projects without adding open items")
    sync_parser.add_argument(
        "--skip-token-revoke", action="store_true", help="Keep a minted installation token alive after the run"
    )
    sync_parser.add_argument("--auth", choices=AUTH_MODES, default="env", help="Token source")
    sync_parser.add_argument("--token", default=None, help="GitHub token (with --auth token)")
    sync_parser.add_argument("--app-id", default=None, help="GitHub App ID (with --auth app)")
    sync_parser.add_argument(
        "--app-private-key-file", default=None, metavar="PATH", help="GitHub App private key PEM (with --auth app)"
    )
    sync_parser.add_argument(
        "--app-installation-repo",
        default=None,
        metavar="OWNER/NAME",
        help="Look the app installation up on this repository instead of the organization",
    )
    sync_parser.add_argument("--log-level", default="info", help="info or debug")
    sync_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sync_parser.add_argument("--output", "-o", default=None, help="Write the JSON run result to this path")
    sync_parser.add_argument(
        "--step-summary", default=None, help="Append a markdown summary here (default: $GITHUB_STEP_SUMMARY)"
    )

    return parser


def _options_from_args(args: argparse.Namespace) -> SyncOptions:
    return build_options(
        org=args.org,
        config_path=args.config,
        custom_properties=args.properties,
        repos=args.repos,
        dry_run=args.dry_run,
        remove_custom_labels=args.remove_custom_labels,
        sync_settings=args.sync_settings,
        sync_projects=args.sync_projects,
        skip_backfill=args.skip_backfill,
        skip_token_revoke=args.skip_token_revoke,
        log_level="debug" if args.verbose else args.log_level,
    )


def _read_private_key(path: str | None) -> str | None:
    if path is None:
        return None
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidInputError("app-private-key-file", f"Cannot read private key: {exc.strerror or exc}") from exc


def _token_resolver(args: argparse.Namespace) -> TokenResolver:
    return create_token_resolver(
        args.auth,
        token=args.token,
        app_id=args.app_id,
        private_key=_read_private_key(args.app_private_key_file) if args.auth == "app" else None,
        org=args.org,
        installation_repo=args.app_installation_repo,
    )


async def _revoke_token(rest: GitHubRestClient) -> None:
    logger.info("Revoking installation token...")
    try:
        await rest.revoke_token()
    except ProviderError as exc:
        logger.warning("Failed to revoke token: %s", exc)
        return
    logger.info("Token revoked.")


async def _sync_with_clients(
    rest: GitHubRestClient,
    graphql: GraphQLClient,
    options: SyncOptions,
    config: DesiredConfig,
) -> SyncReport:
    if options.log_level is LogLevel.INFO and sys.stderr.isatty():
        from fleetsync.progress import RichSyncProgress

        with RichSyncProgress() as progress:
            return await SyncEngine(rest, graphql, options, config, progress=progress).sync()
    return await SyncEngine(rest, graphql, options, config).sync()


async def _run_sync(args: argparse.Namespace) -> SyncReport:
    options = _options_from_args(args)
    logger.info("Loading config from %s...", options.config_path)
    config = load_config(options.config_path)
    logger.info("Config loaded: %d labels, %d settings", len(config.labels), len(config.settings.declared()))

    token = await _token_resolver(args).resolve()

    async with GitHubRestClient(token=token.value) as rest, GitHubGraphQLClient(token=token.value) as graphql:
        try:
            report = await _sync_with_clients(rest, graphql, options, config)
        finally:
            if token.revocable and not options.skip_token_revoke:
                await _revoke_token(rest)
            elif token.revocable:
                logger.info("Token revocation skipped (skip-token-revoke=true).")

    stats = aggregate_stats(report.results)
    print(format_summary(report.results, stats, dry_run=options.dry_run))

    if args.output:
        Path(args.output).write_text(report.run_result.to_json(indent=2) + "\n", encoding="utf-8")
        logger.info("Run result written to %s", args.output)

    write_step_summary(report.results, report.projects, options, path=args.step_summary, stats=stats)
    return report


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    debug = args.verbose or str(args.log_level).strip().lower() == LogLevel.DEBUG
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO, format="%(name)s %(message)s", stream=sys.stderr
    )

    try:
        asyncio.run(_run_sync(args))
        return 0
    except (InvalidInputError, ConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except (AuthenticationError, ProviderError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    except DiscoveryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
