"""
CLI script for running alert dispatch from a scheduler.

Usage:
    # Send daily digests (run once a day)
    uv run python -m notifications.process_alerts --digest daily

    # Send weekly digests
    uv run python -m notifications.process_alerts --digest weekly

    # Notify instant alerts about a new tournament
    uv run python -m notifications.process_alerts --instant <tournament-id>

    # Dry run (match and render, don't send or record)
    uv run python -m notifications.process_alerts --digest daily --dry-run
"""

import argparse
import sys

from notifications.dispatcher import DispatchResult, run_digest_cycle, run_instant_alerts
from shared.errors import AlertError
from shared.utils import print_summary, to_utc_datetime


def _print_result(title: str, result: DispatchResult) -> None:
    print_summary(title, {"sent": result.sent, "skipped": result.skipped, "failed": result.failed})
    print(f"Cycle ID:          {result.cycle_id}")
    print(f"Alerts processed:  {result.alerts_processed}")
    print(f"Tournaments found: {result.tournaments_found}")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Send tournament alert emails")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--digest", choices=["daily", "weekly"], help="Send digest emails for this frequency"
    )
    mode.add_argument(
        "--instant", metavar="TOURNAMENT_ID", help="Send instant alerts for a tournament"
    )

    parser.add_argument(
        "--action",
        default="created",
        choices=["created", "updated"],
        help="What happened to the tournament (instant mode only)",
    )
    parser.add_argument(
        "--now",
        type=str,
        help="Override the cycle timestamp (any date format, assumed UTC)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )

    args = parser.parse_args(argv)

    try:
        now = to_utc_datetime(args.now) if args.now else None
    except ValueError as e:
        parser.error(str(e))

    try:
        if args.digest:
            result = run_digest_cycle(args.digest, now=now, dry_run=args.dry_run)
            _print_result(f"{args.digest.title()} Digest Complete", result)
        else:
            result = run_instant_alerts(
                args.instant, action=args.action, now=now, dry_run=args.dry_run
            )
            _print_result("Instant Alerts Complete", result)
    except AlertError as e:
        print(f"✗ {e}")
        return 1

    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
