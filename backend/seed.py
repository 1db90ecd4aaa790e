from __future__ import annotations

import argparse
import logging
import os
from datetime import date

from league import fixtures, frames, models, schemas
from league.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

SEASON = "2026"
SEASON_START = date(2026, 1, 11)

DIVISION_ROSTERS = {
    "Premier Division": {
        "Cue Masters": ["Sipho Ndlovu", "Ryan Adams", "Ethan Pillay", "Zaid Isaacs"],
        "Dragons 1": ["Liam Petersen", "Thabo Mokoena", "Kyle Daniels", "Aiden Jacobs"],
        "Pocket Rockets": ["Jason Meyer", "Luke Botha", "Imraan Salie", "Dean Fortuin"],
        "Break Point": ["Mark Williams", "Neil Hendricks", "Chad Africa", "Brandon Smit"],
    },
    "First Division": {
        "Dragons 2": ["Keegan Arendse", "Nathan Carelse", "Ruan Visser", "Tyrone Jansen"],
        "Side Pocket": ["Craig Lottering", "Shaun Petersen", "Riaan Joubert", "Owen Cupido"],
        "Rack Attack": ["Faiek Davids", "Justin Abrahams", "Marco Adonis", "Ivan Titus"],
        "Chalk Dust": ["Dylan September", "Wade Pietersen", "Lee Ontong", "Gavin Klaasen"],
        "Black Ball": ["Shane Booysen", "Rashaad Samuels", "Curtis Fredericks", "Ashwin Naidoo"],
    },
}

# Frame winners (home=True) for the demo week, cycling through the lineup pairs.
DEMO_FRAME_PATTERNS = [
    [True] * 13 + [False] * 12,
    [False] * 10 + [True] * 3 + [False] * 3,
    [True, False] * 12 + [True],
]


def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def split_name(full_name: str) -> tuple[str, str]:
    first, _, last = full_name.partition(" ")
    return first, last


def demo_frames(
    match: models.Match,
    home_players: list[models.Player],
    away_players: list[models.Player],
    pattern: list[bool],
) -> list[schemas.FrameWrite]:
    payload: list[schemas.FrameWrite] = []
    for index, home_wins in enumerate(pattern[: match.max_frames]):
        home_player = home_players[index % len(home_players)]
        away_player = away_players[index % len(away_players)]
        payload.append(
            schemas.FrameWrite(
                frame_number=index + 1,
                home_player_id=home_player.id,
                away_player_id=away_player.id,
                winner_player_id=home_player.id if home_wins else away_player.id,
            )
        )
    return payload


def seed(*, demo_progress: bool = False) -> None:
    reset_database()

    db = SessionLocal()
    try:
        division_ids: dict[str, int] = {}
        team_ids: dict[str, list[int]] = {}
        players_by_team: dict[int, list[models.Player]] = {}

        for division_name, rosters in DIVISION_ROSTERS.items():
            division = models.Division(name=division_name, season=SEASON)
            db.add(division)
            db.flush()
            division_ids[division_name] = division.id
            team_ids[division_name] = []

            for team_name, names in rosters.items():
                team = models.Team(name=team_name, division_id=division.id)
                db.add(team)
                db.flush()
                team_ids[division_name].append(team.id)

                roster: list[models.Player] = []
                for full_name in names:
                    first_name, last_name = split_name(full_name)
                    player = models.Player(first_name=first_name, last_name=last_name, team_id=team.id)
                    db.add(player)
                    roster.append(player)
                db.flush()
                players_by_team[team.id] = roster

        db.commit()

        for division_name, division_id in division_ids.items():
            matches = fixtures.generate_fixtures(
                db,
                schemas.FixtureRequest(
                    division_id=division_id,
                    team_ids=team_ids[division_name],
                    start_date=SEASON_START,
                    rounds=2,
                ),
            )

            if not demo_progress:
                continue

            opening_day = min(match.match_date for match in matches)
            opening_week = [match for match in matches if match.match_date == opening_day]
            for match, pattern in zip(opening_week, DEMO_FRAME_PATTERNS):
                frames.save_frames(
                    db,
                    match.id,
                    demo_frames(
                        match,
                        players_by_team[match.home_team_id],
                        players_by_team[match.away_team_id],
                        pattern,
                    ),
                )

        logger.info(
            "Seeded %s divisions, %s teams (demo_progress=%s)",
            len(division_ids),
            sum(len(ids) for ids in team_ids.values()),
            demo_progress,
        )
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed league data.")
    parser.add_argument(
        "--demo-progress",
        action="store_true",
        help="Seed with the opening week played through frame scoring.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    seed(demo_progress=args.demo_progress)
    mode = "demo" if args.demo_progress else "fresh"
    print(f"Seed completed ({mode})")
