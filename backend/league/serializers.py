from . import models, schemas


def match_to_read(match: models.Match) -> schemas.MatchRead:
    home_team = match.home_team.name if match.home_team else "TBD"
    away_team = match.away_team.name if match.away_team else "TBD"
    winner_team = match.winner_team.name if match.winner_team else None

    return schemas.MatchRead(
        id=match.id,
        division_id=match.division_id,
        round=match.round,
        home_team_id=match.home_team_id,
        home_team=home_team,
        away_team_id=match.away_team_id,
        away_team=away_team,
        match_date=match.match_date,
        match_time=match.match_time,
        status=match.status,
        home_score=match.home_score,
        away_score=match.away_score,
        winner_team_id=match.winner_team_id,
        winner_team=winner_team,
        max_frames=match.max_frames,
        race_to=match.race_to,
        result=schemas.MatchResultRead.model_validate(match.result) if match.result else None,
    )
