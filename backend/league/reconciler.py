"""Repairs completed matches whose stored winner disagrees with the score.

Bulk loads and hand edits have left ``matches.winner_team_id`` and
``match_results.winner_team_id`` out of step with the recorded scores. The
score is authoritative: ``reconcile`` rewrites both winner fields from it and
leaves consistent matches untouched, so it can be re-run at any time.
"""

import logging
from collections.abc import Iterator

from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .database import storage_errors, transaction
from .errors import LeagueError
from .lifecycle import COMPLETED, lock_match, score_implied_winner

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 200


def expected_winner(match: models.Match) -> int | None:
    return score_implied_winner(match.home_team_id, match.away_team_id, match.home_score, match.away_score)


def is_consistent(match: models.Match) -> bool:
    if match.status != COMPLETED:
        return True

    expected = expected_winner(match)
    if match.winner_team_id != expected:
        return False
    if match.result is not None and match.result.winner_team_id != expected:
        return False
    return True


def find_inconsistencies(db: Session, batch_size: int = SCAN_BATCH_SIZE) -> Iterator[models.Match]:
    # Keyset pages keep the scan valid while callers commit corrections between items.
    last_id = 0
    while True:
        with storage_errors():
            batch = (
                db.query(models.Match)
                .options(selectinload(models.Match.result))
                .filter(models.Match.status == COMPLETED, models.Match.id > last_id)
                .order_by(models.Match.id.asc())
                .limit(batch_size)
                .all()
            )
        if not batch:
            return

        for match in batch:
            if not is_consistent(match):
                yield match
        last_id = batch[-1].id


def to_inconsistency(match: models.Match) -> schemas.InconsistencyRead:
    return schemas.InconsistencyRead(
        match_id=match.id,
        home_team_id=match.home_team_id,
        away_team_id=match.away_team_id,
        home_score=match.home_score,
        away_score=match.away_score,
        winner_team_id=match.winner_team_id,
        result_winner_team_id=match.result.winner_team_id if match.result else None,
        expected_winner_team_id=expected_winner(match),
    )


def reconcile(db: Session, match: models.Match) -> bool:
    """Return True when a correction was written."""
    if is_consistent(match):
        return False

    with transaction(db):
        locked = lock_match(db, match.id)
        # Re-check under the row lock: a concurrent reset or resubmission wins.
        if is_consistent(locked):
            return False

        previous = locked.winner_team_id
        previous_result = locked.result.winner_team_id if locked.result else None
        correct = expected_winner(locked)

        locked.winner_team_id = correct
        if locked.result is not None:
            locked.result.winner_team_id = correct

    logger.info(
        "Reconciled match %s: score %s-%s, winner %s -> %s (result row %s -> %s)",
        locked.id,
        locked.home_score,
        locked.away_score,
        previous,
        correct,
        previous_result,
        correct if locked.result is not None else None,
    )
    return True


def reconcile_all(db: Session, dry_run: bool = False) -> schemas.ReconcileReport:
    with storage_errors():
        checked = db.query(models.Match).filter(models.Match.status == COMPLETED).count()
    report = schemas.ReconcileReport(dry_run=dry_run, checked=checked)

    for match in find_inconsistencies(db):
        if dry_run:
            logger.info(
                "Match %s: score %s-%s, stored winner %s, expected %s",
                match.id,
                match.home_score,
                match.away_score,
                match.winner_team_id,
                expected_winner(match),
            )
            report.corrected.append(match.id)
            continue

        match_id = match.id
        try:
            changed = reconcile(db, match)
        except LeagueError:
            logger.warning("Reconcile of match %s failed", match_id, exc_info=True)
            report.failed.append(match_id)
            continue
        if changed:
            report.corrected.append(match_id)

    logger.info(
        "Winner scan complete: %s checked, %s corrected, %s failed",
        report.checked,
        len(report.corrected),
        len(report.failed),
    )
    return report
