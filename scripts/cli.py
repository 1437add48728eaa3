"""Command-line entry point for the Live Watcher."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from datetime import timedelta

from live_watcher.config.settings import LiveWatcherSettings
from live_watcher.core.auth import authenticate, build_gmail_service
from live_watcher.core.decoder import NotificationDecoder
from live_watcher.core.extractor import VideoIdExtractor
from live_watcher.core.gmail_client import GmailClient
from live_watcher.core.models import PollProgress
from live_watcher.core.scanner import LinkScanner
from live_watcher.pipeline.discovery import DiscoveryPipeline
from live_watcher.pipeline.poller import PollLoop

WATCH_URL = "https://www.youtube.com/watch?v={}"


def setup_logging(level: str) -> None:
    """Configure logging with timestamp and module info."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_client(settings: LiveWatcherSettings) -> GmailClient:
    """Authenticate and wrap the Gmail service."""
    settings.ensure_directories()
    creds = authenticate(settings.credentials_path, settings.token_path)
    return GmailClient(
        build_gmail_service(creds),
        settings.user_id,
        max_results_per_page=settings.max_results_per_page,
        num_retries=settings.num_retries,
    )


def build_pipeline(settings: LiveWatcherSettings) -> DiscoveryPipeline:
    """Assemble the discovery pipeline from settings."""
    return DiscoveryPipeline(
        NotificationDecoder(settings.live_marker),
        LinkScanner(settings.link_marker),
        VideoIdExtractor(settings.redirect_param, settings.video_param),
        stale_after=timedelta(hours=settings.stale_after_hours),
        stop_on_stale=settings.stop_on_stale,
    )


def build_watcher(
    settings: LiveWatcherSettings,
    consumer: Callable[[list[str]], None],
    client: GmailClient | None = None,
    *,
    poll_interval_seconds: float | None = None,
    on_progress: Callable[[PollProgress], None] | None = None,
) -> PollLoop:
    """Wire client, label and pipeline into a PollLoop.

    The label is resolved once here and stays fixed for the life of the loop.
    """
    client = client or build_client(settings)
    label_id = client.resolve_label_id(settings.label)
    logging.getLogger(__name__).info("Resolved label %s -> %s", settings.label, label_id)

    interval = settings.poll_interval_seconds
    if poll_interval_seconds is not None:
        interval = poll_interval_seconds

    return PollLoop(
        client,
        build_pipeline(settings),
        label_id,
        consumer=consumer,
        poll_interval_seconds=interval,
        bootstrap_retry_delay_seconds=settings.bootstrap_retry_delay_seconds,
        on_progress=on_progress,
    )


def make_printer(as_urls: bool = False) -> Callable[[list[str]], None]:
    """Build a consumer that prints each discovered video ID on its own line."""

    def _print(video_ids: list[str]) -> None:
        for video_id in video_ids:
            print(WATCH_URL.format(video_id) if as_urls else video_id, flush=True)

    return _print


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="Live Watcher - Discover live stream video IDs from Gmail notifications"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list-labels command
    subparsers.add_parser("list-labels", help="List all Gmail labels")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Run a single full scan of the label")
    scan_parser.add_argument("--urls", action="store_true", help="Print full watch URLs")

    # watch command
    watch_parser = subparsers.add_parser("watch", help="Poll for new notifications forever")
    watch_parser.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help="Seconds between incremental scans (default: from settings)",
    )
    watch_parser.add_argument(
        "--max-cycles",
        type=_positive_int,
        default=None,
        dest="max_cycles",
        help="Stop after N cycles instead of running forever",
    )
    watch_parser.add_argument("--urls", action="store_true", help="Print full watch URLs")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = LiveWatcherSettings()
    setup_logging(settings.log_level)

    try:
        if args.command == "list-labels":
            labels = build_client(settings).list_labels()
            print(f"\nFound {len(labels)} labels:\n")
            for label in sorted(labels, key=lambda x: x["name"]):
                print(f"  {label['id']:40s} {label['name']}")

        elif args.command == "scan":
            watcher = build_watcher(settings, make_printer(args.urls))
            if not watcher.bootstrap():
                print("\nError: scan failed, see log for details", file=sys.stderr)
                sys.exit(1)
            progress = watcher.progress
            print(
                f"\nScan complete: {progress.videos_discovered} video(s), "
                f"watermark={progress.watermark}",
                file=sys.stderr,
            )

        elif args.command == "watch":
            watcher = build_watcher(
                settings,
                make_printer(args.urls),
                poll_interval_seconds=args.interval,
            )
            watcher.run(max_cycles=args.max_cycles)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
