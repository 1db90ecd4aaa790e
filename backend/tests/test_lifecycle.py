from datetime import date

import pytest

from league import frames, lifecycle, models, schemas
from league.database import transaction
from league.errors import NotFoundError, StorageError, ValidationError


def test_schedule_match_starts_scheduled(schedule, league_data):
    match = schedule()

    assert match.status == "scheduled"
    assert match.home_team_id == league_data["teams"]["Alpha"]
    assert match.away_team_id == league_data["teams"]["Bravo"]
    assert (match.home_score, match.away_score) == (0, 0)
    assert match.winner_team_id is None
    assert match.max_frames == 25
    assert match.race_to == 13


def test_schedule_match_rejects_same_team(db, league_data):
    alpha = league_data["teams"]["Alpha"]

    with pytest.raises(ValidationError):
        lifecycle.schedule_match(
            db,
            schemas.MatchCreate(home_team_id=alpha, away_team_id=alpha, match_date=date(2026, 2, 1)),
        )

    assert db.query(models.Match).count() == 0


def test_schedule_match_unknown_team(db, league_data):
    with pytest.raises(NotFoundError):
        lifecycle.schedule_match(
            db,
            schemas.MatchCreate(
                home_team_id=league_data["teams"]["Alpha"],
                away_team_id=999,
                match_date=date(2026, 2, 1),
            ),
        )


def test_submit_result_home_win(db, schedule, league_data):
    match = schedule()

    updated = lifecycle.submit_result(db, match.id, 13, 12, submitted_by=7)

    assert updated.status == "completed"
    assert updated.winner_team_id == league_data["teams"]["Alpha"]
    assert (updated.home_score, updated.away_score) == (13, 12)
    assert updated.result is not None
    assert updated.result.winner_team_id == updated.winner_team_id
    assert (updated.result.home_score, updated.result.away_score) == (13, 12)
    assert updated.result.submitted_by == 7
    assert updated.result.is_approved is True


def test_submit_result_away_win_and_level_score(db, schedule, league_data):
    away_win = schedule()
    level = schedule(home="Bravo", away="Charlie", max_frames=24)

    assert lifecycle.submit_result(db, away_win.id, 9, 13).winner_team_id == league_data["teams"]["Bravo"]

    drawn = lifecycle.submit_result(db, level.id, 12, 12)
    assert drawn.status == "completed"
    assert drawn.winner_team_id is None
    assert drawn.result.winner_team_id is None


def test_resubmission_overwrites_single_result(db, schedule, league_data):
    match = schedule()

    lifecycle.submit_result(db, match.id, 13, 5)
    corrected = lifecycle.submit_result(db, match.id, 10, 13)

    assert corrected.winner_team_id == league_data["teams"]["Bravo"]
    assert corrected.result.winner_team_id == league_data["teams"]["Bravo"]
    assert db.query(models.MatchResult).filter(models.MatchResult.match_id == match.id).count() == 1


def test_submit_result_unknown_match(db, league_data):
    with pytest.raises(NotFoundError):
        lifecycle.submit_result(db, 404, 13, 2)


@pytest.mark.parametrize("home_score, away_score", [(-1, 13), (13, 13)])
def test_submit_result_rejects_impossible_scores(db, schedule, home_score, away_score):
    match = schedule()

    with pytest.raises(ValidationError):
        lifecycle.submit_result(db, match.id, home_score, away_score)

    db.expire_all()
    stored = db.get(models.Match, match.id)
    assert stored.status == "scheduled"
    assert stored.result is None


def test_reset_then_resubmit_reproduces_result(db, schedule, league_data):
    match = schedule()
    players = league_data["players"]
    frames.record_frame(db, match.id, 1, players["A1"], players["B1"], players["A1"])
    frames.save_lineup(
        db,
        match.id,
        [
            schemas.LineupEntry(team_id=league_data["teams"]["Alpha"], player_id=players["A1"]),
            schemas.LineupEntry(team_id=league_data["teams"]["Bravo"], player_id=players["B1"]),
        ],
    )
    original = lifecycle.submit_result(db, match.id, 13, 12)
    snapshot = (
        original.status,
        original.home_score,
        original.away_score,
        original.winner_team_id,
        original.result.home_score,
        original.result.away_score,
        original.result.winner_team_id,
    )

    reset = lifecycle.reset_match(db, match.id)

    assert reset.status == "scheduled"
    assert (reset.home_score, reset.away_score) == (0, 0)
    assert reset.winner_team_id is None
    assert reset.result is None
    assert db.query(models.FrameResult).filter(models.FrameResult.match_id == match.id).count() == 0
    assert db.query(models.MatchLineup).filter(models.MatchLineup.match_id == match.id).count() == 0
    assert db.query(models.MatchResult).filter(models.MatchResult.match_id == match.id).count() == 0

    replayed = lifecycle.submit_result(db, match.id, 13, 12)

    assert (
        replayed.status,
        replayed.home_score,
        replayed.away_score,
        replayed.winner_team_id,
        replayed.result.home_score,
        replayed.result.away_score,
        replayed.result.winner_team_id,
    ) == snapshot


def test_reset_unknown_match(db, league_data):
    with pytest.raises(NotFoundError):
        lifecycle.reset_match(db, 404)


def test_reset_completed_matches_from_cutoff(db, schedule):
    early = schedule(on=date(2026, 2, 1))
    late = schedule(home="Charlie", away="Alpha", on=date(2026, 2, 15))
    untouched = schedule(home="Bravo", away="Charlie", on=date(2026, 2, 22))

    lifecycle.submit_result(db, early.id, 13, 4)
    lifecycle.submit_result(db, late.id, 6, 13)

    report = lifecycle.reset_completed_matches(db, date(2026, 2, 8))

    assert report.reset == [late.id]
    assert report.failed == []
    assert db.get(models.Match, early.id).status == "completed"
    assert db.get(models.Match, late.id).status == "scheduled"
    assert db.get(models.Match, untouched.id).status == "scheduled"


def test_transaction_rolls_back_everything_on_storage_failure(db, league_data):
    with pytest.raises(StorageError):
        with transaction(db):
            db.add(models.Team(name="Zeta"))
            db.add(models.Team(name="Alpha"))
            db.flush()

    assert db.query(models.Team).filter(models.Team.name == "Zeta").first() is None
