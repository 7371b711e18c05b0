"""CLI entry point for Slacktapped.

This module provides the main entry point for running the check-in
poller from the command line.

Usage:
    python -m slacktapped [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import signal
import sys
from contextlib import suppress
from typing import NoReturn

from pydantic import ValidationError
from redis.asyncio import Redis

from slacktapped import __version__
from slacktapped.channels.slack import SlackChannel
from slacktapped.checkins.formatter import CheckinFormatter
from slacktapped.checkins.models import ProcessStatus
from slacktapped.checkins.processor import CheckinProcessor
from slacktapped.checkins.reporter import CheckinReporter
from slacktapped.config import Settings, clear_settings_cache, get_settings
from slacktapped.poller import CheckinPoller
from slacktapped.storage.markers import InMemoryMarkerStore, MarkerStore, RedisMarkerStore
from slacktapped.untappd.client import UntappdClient

# Application info
APP_NAME = "Slacktapped"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="slacktapped",
        description="Post Untappd check-ins from your friends feed to Slack.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m slacktapped                  Poll forever
  python -m slacktapped --once           Poll a single time and exit
  python -m slacktapped --config-check   Validate config and exit
  python -m slacktapped --dry-run        Format check-ins without posting
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without polling",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Format check-ins but don't post them or write markers",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Poll the feed once and exit",
    )

    parser.add_argument(
        "--poll-interval",
        type=int,
        default=None,
        help="Override seconds between polls (default: from settings)",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # Quieter logging for noisy libraries
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "redis": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_banner() -> None:
    """Print the application startup banner."""
    print(f"\n{APP_NAME} v{APP_VERSION}\n")


def print_config_summary(settings: Settings, dry_run: bool) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
        dry_run: Whether dry-run mode is enabled.
    """
    summary = settings.redacted_summary()
    print("Configuration:")
    print(f"  Instance: {summary['instance_name']}")
    print(f"  Store: {summary['store_backend']}")
    print(f"  Redis: {summary['redis_url']}")
    print(f"  Poll Interval: {summary['poll_interval_seconds']}s")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Dry Run: {dry_run}")
    print(f"  Slack: {'enabled' if summary['slack_enabled'] == 'True' else 'disabled'}")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def check_components(settings: Settings, dry_run: bool) -> list[str]:
    """List the settings missing for a run.

    Args:
        settings: Validated settings.
        dry_run: Whether posting is skipped.

    Returns:
        Human-readable problems, empty when ready to run.
    """
    problems = []
    if settings.untappd.access_token is None:
        problems.append("UNTAPPD_ACCESS_TOKEN is not set")
    if not dry_run and not settings.slack.enabled:
        problems.append("SLACK_WEBHOOK_URL is not set")
    return problems


def run_config_check(settings: Settings) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.

    Returns:
        Exit code (0 for success).
    """
    print("Configuration is valid!")
    print()
    print_config_summary(settings, dry_run=settings.dry_run)

    print("Checking component availability...")
    print(f"  Untappd: {'configured' if settings.untappd.access_token else 'not configured'}")
    print(f"  Slack: {'configured' if settings.slack.enabled else 'not configured'}")
    print()

    problems = check_components(settings, settings.dry_run)
    if problems:
        for problem in problems:
            print(f"  {problem}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print("All checks passed. Ready to run.")
    return EXIT_SUCCESS


def build_store(settings: Settings) -> tuple[MarkerStore, Redis | None]:
    """Create the marker store selected by configuration.

    Returns:
        The store and the Redis client to close on exit, if any.
    """
    if settings.store_backend == "memory":
        return InMemoryMarkerStore(), None
    redis = Redis.from_url(settings.redis.url, decode_responses=True)
    return RedisMarkerStore(redis), redis


def build_processor(
    settings: Settings,
    store: MarkerStore,
    dry_run: bool,
) -> CheckinProcessor:
    """Wire the formatter, reporter and Slack channel together."""
    webhook_url = settings.slack.webhook_url.get_secret_value() if settings.slack.webhook_url else ""
    channel = SlackChannel(
        webhook_url,
        channel=settings.slack.channel,
        username=settings.slack.username,
    )
    return CheckinProcessor(
        CheckinFormatter(),
        CheckinReporter(store, settings.instance_name),
        channel,
        dry_run=dry_run,
    )


async def run_poller(
    settings: Settings,
    dry_run: bool,
    *,
    once: bool = False,
    poll_interval: int | None = None,
) -> int:
    """Run the poller until a shutdown signal arrives.

    Args:
        settings: Application settings.
        dry_run: Whether to skip posting.
        once: Poll a single time instead of looping.
        poll_interval: Seconds between polls, overriding settings.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)
    access_token = settings.untappd.access_token
    client = UntappdClient(
        access_token.get_secret_value() if access_token else "",
        api_url=settings.untappd.api_url,
    )

    store, redis = build_store(settings)
    try:
        processor = build_processor(settings, store, dry_run)
        poller = CheckinPoller(
            client,
            processor,
            poll_interval_seconds=poll_interval or settings.poll_interval_seconds,
            page_size=settings.untappd.page_size,
        )

        if once:
            results = await poller.poll_once()
            failed = sum(1 for r in results if r.status is ProcessStatus.FAILED)
            return EXIT_ERROR if failed else EXIT_SUCCESS

        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, poller.request_stop)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning("Could not install handler for %s: %s", sig.name, e)

        logger.info("Poller running. Press Ctrl+C to stop.")
        try:
            await poller.run()
        finally:
            for sig in SHUTDOWN_SIGNALS:
                with suppress(NotImplementedError, RuntimeError, ValueError):
                    loop.remove_signal_handler(sig)
        logger.info("Shutdown signal received, poller stopped")
        return EXIT_SUCCESS
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("Poller failed: %s", e)
        return EXIT_ERROR
    finally:
        if redis is not None:
            await redis.aclose()


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    print_banner()

    if args.config_check:
        sys.exit(run_config_check(settings))

    dry_run = args.dry_run or settings.dry_run

    problems = check_components(settings, dry_run)
    if problems:
        for problem in problems:
            print(f"Configuration incomplete: {problem}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    print_config_summary(settings, dry_run)

    exit_code = asyncio.run(
        run_poller(settings, dry_run, once=args.once, poll_interval=args.poll_interval)
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
