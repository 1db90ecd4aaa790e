from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from league import lifecycle, models, reconciler
from league.errors import NotFoundError, StorageError


@pytest.fixture()
def corrupted_match(db, schedule, league_data):
    """Home side won 15-10 but both winner columns point at the away team."""
    match = lifecycle.submit_result(db, schedule().id, 15, 10)
    bravo = league_data["teams"]["Bravo"]
    match.winner_team_id = bravo
    match.result.winner_team_id = bravo
    db.commit()
    return match


def test_finds_winner_that_contradicts_score(db, corrupted_match, league_data):
    found = list(reconciler.find_inconsistencies(db))

    assert [match.id for match in found] == [corrupted_match.id]
    row = reconciler.to_inconsistency(found[0])
    assert row.winner_team_id == league_data["teams"]["Bravo"]
    assert row.result_winner_team_id == league_data["teams"]["Bravo"]
    assert row.expected_winner_team_id == league_data["teams"]["Alpha"]


def test_reconcile_corrects_both_winner_columns(db, corrupted_match, league_data):
    assert reconciler.reconcile(db, corrupted_match) is True

    db.expire_all()
    stored = db.get(models.Match, corrupted_match.id)
    assert stored.winner_team_id == league_data["teams"]["Alpha"]
    assert stored.result.winner_team_id == league_data["teams"]["Alpha"]
    assert (stored.home_score, stored.away_score) == (15, 10)
    assert stored.status == "completed"

    assert reconciler.reconcile(db, stored) is False
    assert list(reconciler.find_inconsistencies(db)) == []


def test_result_row_mismatch_alone_is_detected(db, schedule, league_data):
    match = lifecycle.submit_result(db, schedule().id, 4, 13)
    match.result.winner_team_id = league_data["teams"]["Alpha"]
    db.commit()

    found = list(reconciler.find_inconsistencies(db))
    assert [item.id for item in found] == [match.id]

    reconciler.reconcile(db, found[0])
    db.expire_all()
    assert db.get(models.MatchResult, match.result.id).winner_team_id == league_data["teams"]["Bravo"]


def test_drawn_match_with_stale_winner_is_cleared(db, schedule, league_data):
    match = lifecycle.submit_result(db, schedule(max_frames=24).id, 12, 12)
    match.winner_team_id = league_data["teams"]["Alpha"]
    db.commit()

    report = reconciler.reconcile_all(db)

    assert report.corrected == [match.id]
    db.expire_all()
    assert db.get(models.Match, match.id).winner_team_id is None


def test_scheduled_matches_are_not_scanned(db, schedule, league_data):
    match = schedule()
    match.winner_team_id = league_data["teams"]["Bravo"]
    db.commit()

    assert list(reconciler.find_inconsistencies(db)) == []


def test_reconcile_all_dry_run_writes_nothing(db, corrupted_match, schedule, league_data):
    lifecycle.submit_result(db, schedule(home="Bravo", away="Charlie").id, 13, 2)

    report = reconciler.reconcile_all(db, dry_run=True)

    assert report.dry_run is True
    assert report.checked == 2
    assert report.corrected == [corrupted_match.id]
    db.expire_all()
    assert db.get(models.Match, corrupted_match.id).winner_team_id == league_data["teams"]["Bravo"]


@pytest.mark.parametrize(
    "error",
    [StorageError("Database operation failed: OperationalError"), NotFoundError("Match not found.")],
)
def test_reconcile_all_continues_past_failed_match(db, schedule, league_data, monkeypatch, error):
    alpha = league_data["teams"]["Alpha"]
    bravo = league_data["teams"]["Bravo"]
    broken = []
    for home, away in (("Alpha", "Bravo"), ("Alpha", "Charlie")):
        match = lifecycle.submit_result(db, schedule(home=home, away=away).id, 13, 1)
        match.winner_team_id = bravo if away == "Bravo" else league_data["teams"]["Charlie"]
        broken.append(match.id)
    db.commit()

    real_reconcile = reconciler.reconcile

    def flaky_reconcile(session, match):
        if match.id == broken[0]:
            raise error
        return real_reconcile(session, match)

    monkeypatch.setattr(reconciler, "reconcile", flaky_reconcile)

    report = reconciler.reconcile_all(db)

    assert report.failed == [broken[0]]
    assert report.corrected == [broken[1]]
    db.expire_all()
    assert db.get(models.Match, broken[1]).winner_team_id == alpha
    assert db.get(models.Match, broken[0]).winner_team_id == bravo


def test_scan_pages_through_small_batches(db, schedule, league_data):
    charlie = league_data["teams"]["Charlie"]
    expected = []
    for day in range(1, 6):
        match = lifecycle.submit_result(db, schedule(on=date(2026, 3, day)).id, 13, day)
        if day % 2:
            match.winner_team_id = charlie
            expected.append(match.id)
    db.commit()

    found = [match.id for match in reconciler.find_inconsistencies(db, batch_size=2)]

    assert found == expected


def test_scan_reports_driver_failure_as_storage_error(db, corrupted_match, monkeypatch):
    def lost_connection(*args, **kwargs):
        raise OperationalError("SELECT matches", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db, "query", lost_connection)

    with pytest.raises(StorageError):
        list(reconciler.find_inconsistencies(db))
    with pytest.raises(StorageError):
        reconciler.reconcile_all(db)
