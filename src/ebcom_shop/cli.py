"""
Command-line interface for the shop client.

This module provides the main CLI entry point with commands for:
- home: Show the home feed (cached data first, then fresh data)
- search: Search shops by title or tag and record the term in history
- history: List, delete or clear recorded search terms
- config: Show the effective configuration
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import AppConfig, load_app_config
from .context import AppContext
from .enums import HomeSectionType
from .exceptions import StorageError
from .search import MIN_QUERY_LENGTH


def build_config(args: argparse.Namespace) -> AppConfig:
    """Load the configuration from the global CLI options."""
    return load_app_config(
        build_file=Path(args.env_file) if args.env_file else None,
        debug=args.debug,
        data_dir=Path(args.data_dir).expanduser() if args.data_dir else None,
    )


def _create_context(args: argparse.Namespace) -> AppContext:
    return AppContext(build_config(args), observe_connectivity=not args.offline)


def _item_label(item) -> str:
    title = getattr(item, "title", None)
    return f"{title} ({item.id})" if title else item.id


async def show_home(args: argparse.Namespace) -> int:
    """
    Load and print the home feed.

    Returns:
        Exit code (0 when data was shown, 1 otherwise)
    """
    async with _create_context(args) as context:
        feed = context.home_feed()
        outcome = await feed.load()

    if feed.data is None:
        message = outcome.error.message if outcome.error else "No data available"
        print(f"Error: {message}", file=sys.stderr)
        return 1

    if outcome.from_cache:
        print("(showing cached data)")

    for section in feed.sections:
        heading = section.title or section.kind.value.title()
        if section.kind in (HomeSectionType.BANNER, HomeSectionType.FIXED_BANNER):
            heading = f"{heading} [banners]"
        print(f"== {heading} ==")
        for item in section.items:
            print(f"  - {_item_label(item)}")

    if feed.faq is not None:
        print(f"== {feed.faq.title} ==")
        for entry in feed.faq.sections:
            print(f"  ? {entry.title}")
    return 0


async def search_shops(args: argparse.Namespace) -> int:
    """
    Search shops and print the matches.

    Returns:
        Exit code (0 when at least one shop matched, 1 otherwise)
    """
    term = args.term.strip()
    if len(term) < MIN_QUERY_LENGTH:
        print(f"Search terms need at least {MIN_QUERY_LENGTH} characters", file=sys.stderr)
        return 1

    async with _create_context(args) as context:
        session = context.search_session()
        await session.load()
        if session.load_error is not None:
            print(f"Error: {session.load_error.message}", file=sys.stderr)
            return 1
        results = session.search_now(term)

    if not results:
        print(f"No shops found for {term!r}")
        return 1
    for shop in results:
        tags = f" [{', '.join(shop.tags)}]" if shop.tags else ""
        print(f"{shop.title}{tags}")
    return 0


def cmd_home(args: argparse.Namespace) -> int:
    """Handle the 'home' command."""
    return asyncio.run(show_home(args))


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    return asyncio.run(search_shops(args))


def cmd_history(args: argparse.Namespace) -> int:
    """Handle the 'history' command."""
    context = AppContext(build_config(args))
    repository = context.history_repository

    if args.action == "list":
        entries = repository.fetch_entries()
        if not entries:
            print("Search history is empty.")
        for entry in entries:
            print(f"{entry.created_at.isoformat()}  {entry.term}")
        return 0

    elif args.action == "delete":
        if not args.terms:
            print("Error: No terms given to delete", file=sys.stderr)
            return 1
        try:
            deleted = repository.delete(*args.terms)
        except StorageError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        print(f"Deleted {deleted} entr{'y' if deleted == 1 else 'ies'}.")
        return 0

    elif args.action == "clear":
        try:
            repository.clear()
        except StorageError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        print("Search history cleared.")
        return 0

    return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config = build_config(args)

    if args.action == "show":
        print(f"  Base URL: {config.network.base_url}")
        print(f"  Request timeout: {config.network.request_timeout}s")
        print(f"  Max retry attempts: {config.network.max_retry_attempts}")
        print(f"  Logging enabled: {config.network.logging_enabled}")
        print(f"  Environment: {config.network.environment or '-'}")
        print(f"  Data directory: {config.storage.data_dir}")
        print(f"  Storage type: {config.storage.storage_type.value}")
        for warning in config.warnings:
            print(f"  Warning: {warning}")
        return 0

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ebcom-shop",
        description="Shop directory client with offline cache",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Treat the network as unreachable and use cached data only",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable logging and raise the request timeout to at least 60s",
    )
    parser.add_argument(
        "--data-dir", "-d",
        help="Directory for cached data and credentials",
    )
    parser.add_argument(
        "--env-file", "-e",
        help="Build configuration file (dotenv format)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'home' command
    home_parser = subparsers.add_parser(
        "home",
        help="Show the home feed",
    )
    home_parser.set_defaults(func=cmd_home)

    # 'search' command
    search_parser = subparsers.add_parser(
        "search",
        help="Search shops by title or tag",
    )
    search_parser.add_argument(
        "term",
        help=f"Search term (at least {MIN_QUERY_LENGTH} characters)",
    )
    search_parser.set_defaults(func=cmd_search)

    # 'history' command
    history_parser = subparsers.add_parser(
        "history",
        help="Search history management",
    )
    history_parser.add_argument(
        "action",
        choices=["list", "delete", "clear"],
        help="History action",
    )
    history_parser.add_argument(
        "terms",
        nargs="*",
        help="Terms to delete (case-insensitive)",
    )
    history_parser.set_defaults(func=cmd_history)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show"],
        help="Configuration action",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
