from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from league import lifecycle, models, schemas, standings
from league.errors import NotFoundError, StorageError


@pytest.fixture()
def tiebreak_division(db):
    """Beta is created before Alpha so ids disagree with name order."""
    division = models.Division(name="First Division")
    db.add(division)
    db.flush()

    teams = {}
    for name in ("Beta", "Alpha", "Gamma", "Delta", "Epsilon"):
        team = models.Team(name=name, division_id=division.id)
        db.add(team)
        db.flush()
        teams[name] = team.id
    db.commit()

    def play(home: str, away: str, home_score: int, away_score: int) -> None:
        match = lifecycle.schedule_match(
            db,
            schemas.MatchCreate(
                home_team_id=teams[home],
                away_team_id=teams[away],
                match_date=date(2026, 3, 1),
                division_id=division.id,
            ),
        )
        lifecycle.submit_result(db, match.id, home_score, away_score)

    return division.id, teams, play


def test_equal_points_and_difference_fall_back_to_team_name(db, tiebreak_division):
    division_id, teams, play = tiebreak_division
    for leader in ("Beta", "Alpha"):
        play(leader, "Gamma", 13, 12)
        play("Delta", leader, 9, 13)
        play(leader, "Epsilon", 13, 8)

    rows = standings.compute_standings(db, division_id)

    assert [row.team for row in rows[:2]] == ["Alpha", "Beta"]
    for row in rows[:2]:
        assert row.wins == 3
        assert row.points == 9
        assert row.frame_difference == 10
        assert row.played == 3
    assert [row.rank for row in rows] == [1, 2, 3, 4, 5]


def test_points_rank_before_frame_difference(db, tiebreak_division):
    division_id, teams, play = tiebreak_division
    play("Gamma", "Delta", 13, 0)
    play("Alpha", "Beta", 13, 12)
    play("Beta", "Epsilon", 13, 12)
    play("Alpha", "Epsilon", 13, 12)

    rows = {row.team: row for row in standings.compute_standings(db, division_id)}
    order = [row.team for row in standings.compute_standings(db, division_id)]

    assert order[0] == "Alpha"
    assert rows["Alpha"].points == 6
    assert rows["Gamma"].points == 3
    assert rows["Gamma"].frame_difference == 13
    assert rows["Beta"].points == 3
    assert rows["Beta"].frame_difference == 0
    # Gamma and Beta share 3 points; Gamma's frame difference is larger.
    assert order.index("Gamma") < order.index("Beta")
    assert rows["Delta"].losses == 1
    assert rows["Delta"].frames_for == 0
    assert rows["Delta"].frames_against == 13


def test_scheduled_matches_are_ignored(db, tiebreak_division):
    division_id, teams, _ = tiebreak_division
    lifecycle.schedule_match(
        db,
        schemas.MatchCreate(
            home_team_id=teams["Alpha"],
            away_team_id=teams["Beta"],
            match_date=date(2026, 3, 8),
            division_id=division_id,
        ),
    )

    rows = standings.compute_standings(db, division_id)

    assert all(row.played == 0 and row.points == 0 for row in rows)
    assert [row.team for row in rows] == ["Alpha", "Beta", "Delta", "Epsilon", "Gamma"]


def test_draw_points_follow_configured_rule(db, tiebreak_division):
    division_id, teams, play = tiebreak_division
    play("Alpha", "Beta", 12, 12)

    default_rows = {row.team: row for row in standings.compute_standings(db, division_id)}
    assert default_rows["Alpha"].draws == 1
    assert default_rows["Alpha"].points == 0

    scored_rows = {row.team: row for row in standings.compute_standings(db, division_id, points_per_draw=1)}
    assert scored_rows["Alpha"].points == 1
    assert scored_rows["Beta"].points == 1
    assert scored_rows["Beta"].frames_per_match == 12.0


def test_unknown_division(db):
    with pytest.raises(NotFoundError):
        standings.compute_standings(db, 404)


def test_season_standings_cover_every_division(db, tiebreak_division):
    division_id, _, play = tiebreak_division
    play("Alpha", "Beta", 13, 3)

    second = models.Division(name="Premier Division")
    db.add(second)
    db.flush()
    db.add_all(
        [
            models.Team(name="Zulu", division_id=second.id),
            models.Team(name="Yankee", division_id=second.id),
        ]
    )
    db.commit()

    season = standings.compute_all_standings(db)

    assert [entry.division for entry in season] == ["First Division", "Premier Division"]
    first = next(entry for entry in season if entry.division_id == division_id)
    assert first.standings[0].team == "Alpha"
    assert first.standings[-1].team == "Beta"
    premier = next(entry for entry in season if entry.division_id == second.id)
    assert [row.team for row in premier.standings] == ["Yankee", "Zulu"]


def test_read_failure_surfaces_as_storage_error(db, tiebreak_division, monkeypatch):
    division_id, _, _ = tiebreak_division

    def lost_connection(*args, **kwargs):
        raise OperationalError("SELECT teams", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db, "query", lost_connection)

    with pytest.raises(StorageError):
        standings.compute_standings(db, division_id)
