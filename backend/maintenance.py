from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date

from league import lifecycle, reconciler
from league.database import SessionLocal
from league.errors import LeagueError

logger = logging.getLogger("league.maintenance")


def run_reconcile(dry_run: bool) -> int:
    db = SessionLocal()
    try:
        report = reconciler.reconcile_all(db, dry_run=dry_run)
    finally:
        db.close()

    verb = "would correct" if dry_run else "corrected"
    print(f"Checked {report.checked} completed matches, {verb} {len(report.corrected)}.")
    if report.failed:
        print(f"Failed: {', '.join(str(match_id) for match_id in report.failed)}")
        return 1
    return 0


def run_reset(match_id: int | None, from_date: date | None) -> int:
    db = SessionLocal()
    try:
        if match_id is not None:
            try:
                lifecycle.reset_match(db, match_id)
            except LeagueError as exc:
                logger.error("Reset of match %s failed: %s", match_id, exc)
                return 1
            print(f"Match {match_id} reset to scheduled.")
            return 0

        report = lifecycle.reset_completed_matches(db, from_date)
    finally:
        db.close()

    print(f"Reset {len(report.reset)} matches from {from_date} onwards.")
    if report.failed:
        print(f"Failed: {', '.join(str(match_id) for match_id in report.failed)}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="League data repair utilities.")
    commands = parser.add_subparsers(dest="command", required=True)

    reconcile_cmd = commands.add_parser(
        "reconcile",
        help="Rewrite match winners that disagree with the recorded score.",
    )
    reconcile_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report mismatches.",
    )

    reset_cmd = commands.add_parser(
        "reset",
        help="Return completed matches to scheduled, discarding results and frames.",
    )
    target = reset_cmd.add_mutually_exclusive_group(required=True)
    target.add_argument("--match", type=int, dest="match_id", help="Reset a single match.")
    target.add_argument(
        "--from-date",
        type=date.fromisoformat,
        help="Reset every completed match on or after this date (YYYY-MM-DD).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "reconcile":
        return run_reconcile(args.dry_run)
    return run_reset(args.match_id, args.from_date)


if __name__ == "__main__":
    sys.exit(main())
