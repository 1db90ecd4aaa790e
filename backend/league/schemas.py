from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ORMBaseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


MatchStatus = Literal["scheduled", "completed"]


class DivisionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    season: str | None = Field(default=None, max_length=32)


class DivisionRead(ORMBaseModel):
    id: int
    name: str
    season: str | None = None


class TeamCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    division_id: int | None = Field(default=None, gt=0)


class TeamRead(ORMBaseModel):
    id: int
    name: str
    division_id: int | None = None


class PlayerCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    team_id: int | None = Field(default=None, gt=0)


class PlayerRead(ORMBaseModel):
    id: int
    first_name: str
    last_name: str
    team_id: int | None = None
    is_active: bool


class MatchCreate(BaseModel):
    home_team_id: int = Field(gt=0)
    away_team_id: int = Field(gt=0)
    match_date: date
    match_time: str | None = Field(default=None, max_length=16)
    division_id: int | None = Field(default=None, gt=0)
    round: int | None = Field(default=None, ge=1)
    max_frames: int = 25
    race_to: int | None = None


class ResultSubmit(BaseModel):
    home_score: int
    away_score: int
    submitted_by: int | None = None


class MatchResultRead(ORMBaseModel):
    id: int
    match_id: int
    home_score: int
    away_score: int
    winner_team_id: int | None = None
    submitted_by: int | None = None
    submitted_at: datetime
    is_approved: bool


class MatchRead(BaseModel):
    id: int
    division_id: int | None = None
    round: int | None = None

    home_team_id: int
    home_team: str
    away_team_id: int
    away_team: str

    match_date: date
    match_time: str | None = None
    status: MatchStatus

    home_score: int
    away_score: int
    winner_team_id: int | None = None
    winner_team: str | None = None

    max_frames: int
    race_to: int

    result: MatchResultRead | None = None


class FrameWrite(BaseModel):
    frame_number: int
    home_player_id: int = Field(gt=0)
    away_player_id: int = Field(gt=0)
    winner_player_id: int | None = Field(default=None, gt=0)


class FrameUpdate(BaseModel):
    home_player_id: int = Field(gt=0)
    away_player_id: int = Field(gt=0)
    winner_player_id: int | None = Field(default=None, gt=0)
    overwrite: bool = True


class FrameBatch(BaseModel):
    frames: list[FrameWrite] = Field(min_length=1)
    submitted_by: int | None = None


class FrameRead(ORMBaseModel):
    id: int
    match_id: int
    frame_number: int
    home_player_id: int
    away_player_id: int
    winner_player_id: int | None = None


class FrameTally(BaseModel):
    match_id: int
    home_score: int
    away_score: int
    frames_recorded: int
    decided: bool
    status: MatchStatus


class LineupEntry(BaseModel):
    team_id: int = Field(gt=0)
    player_id: int = Field(gt=0)
    is_reserve: bool = False
    lineup_position: int | None = Field(default=None, ge=1)


class LineupRead(ORMBaseModel):
    id: int
    match_id: int
    team_id: int
    player_id: int
    is_reserve: bool
    lineup_position: int | None = None


class FixtureRequest(BaseModel):
    division_id: int = Field(gt=0)
    team_ids: list[int] = Field(min_length=2)
    start_date: date
    rounds: int = Field(default=2, ge=1, le=4)
    match_time: str | None = Field(default="14:00", max_length=16)

    @model_validator(mode="after")
    def _unique_teams(self) -> "FixtureRequest":
        if len(set(self.team_ids)) != len(self.team_ids):
            raise ValueError("team_ids must not contain duplicates")
        return self


class StandingRow(BaseModel):
    rank: int
    team_id: int
    team: str

    played: int
    wins: int
    draws: int
    losses: int

    frames_for: int
    frames_against: int
    frame_difference: int
    frames_per_match: float

    points: int


class PlayerStatRow(BaseModel):
    player_id: int
    first_name: str
    last_name: str
    team_id: int | None = None
    team: str | None = None

    matches_played: int
    frames_played: int
    frames_won: int
    frames_lost: int
    frame_difference: int
    win_percentage: float
    current_streak: int


class DivisionStandings(BaseModel):
    division_id: int
    division: str
    standings: list[StandingRow]
    last_updated: datetime


class ResetReport(BaseModel):
    reset: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)


class InconsistencyRead(BaseModel):
    match_id: int
    home_team_id: int
    away_team_id: int
    home_score: int
    away_score: int
    winner_team_id: int | None = None
    result_winner_team_id: int | None = None
    expected_winner_team_id: int | None = None


class ReconcileReport(BaseModel):
    dry_run: bool = False
    checked: int = 0
    corrected: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)


class NotificationCreate(BaseModel):
    user_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=200)
    message: str = ""


class NotificationRead(ORMBaseModel):
    id: int
    user_id: int
    title: str
    message: str
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime
