from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Division(Base):
    __tablename__ = "divisions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    season = Column(String(32), nullable=True)

    teams = relationship("Team", back_populates="division")
    matches = relationship("Match", back_populates="division")


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    division_id = Column(Integer, ForeignKey("divisions.id"), nullable=True, index=True)

    division = relationship("Division", back_populates="teams")
    players = relationship("Player", back_populates="team")

    home_matches = relationship("Match", foreign_keys="Match.home_team_id", back_populates="home_team")
    away_matches = relationship("Match", foreign_keys="Match.away_team_id", back_populates="away_team")
    won_matches = relationship("Match", foreign_keys="Match.winner_team_id", back_populates="winner_team")


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    team = relationship("Team", back_populates="players")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, index=True)

    division_id = Column(Integer, ForeignKey("divisions.id"), nullable=True, index=True)
    round = Column(Integer, nullable=True)

    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)

    match_date = Column(Date, nullable=False, index=True)
    match_time = Column(String(16), nullable=True)
    status = Column(String(16), default="scheduled", nullable=False, index=True)

    home_score = Column(Integer, default=0, nullable=False)
    away_score = Column(Integer, default=0, nullable=False)
    winner_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)

    # Competition format: frames per match and frames needed to clinch it.
    max_frames = Column(Integer, default=25, nullable=False)
    race_to = Column(Integer, default=13, nullable=False)

    division = relationship("Division", back_populates="matches")
    home_team = relationship("Team", foreign_keys=[home_team_id], back_populates="home_matches")
    away_team = relationship("Team", foreign_keys=[away_team_id], back_populates="away_matches")
    winner_team = relationship("Team", foreign_keys=[winner_team_id], back_populates="won_matches")

    result = relationship(
        "MatchResult",
        back_populates="match",
        uselist=False,
        cascade="all, delete-orphan",
    )
    frames = relationship(
        "FrameResult",
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="FrameResult.frame_number",
    )
    lineup = relationship("MatchLineup", back_populates="match", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("home_team_id <> away_team_id", name="ck_match_distinct_teams"),
        CheckConstraint("home_score >= 0", name="ck_match_home_score_nonnegative"),
        CheckConstraint("away_score >= 0", name="ck_match_away_score_nonnegative"),
        CheckConstraint("status in ('scheduled', 'completed')", name="ck_match_status_valid"),
        CheckConstraint("max_frames >= 1", name="ck_match_max_frames_positive"),
    )


class MatchResult(Base):
    __tablename__ = "match_results"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False)

    home_score = Column(Integer, default=0, nullable=False)
    away_score = Column(Integer, default=0, nullable=False)
    winner_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)

    submitted_by = Column(Integer, nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    is_approved = Column(Boolean, default=True, nullable=False)

    match = relationship("Match", back_populates="result")
    winner_team = relationship("Team", foreign_keys=[winner_team_id])

    __table_args__ = (
        CheckConstraint("home_score >= 0", name="ck_result_home_score_nonnegative"),
        CheckConstraint("away_score >= 0", name="ck_result_away_score_nonnegative"),
    )


class FrameResult(Base):
    __tablename__ = "frame_results"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    frame_number = Column(Integer, nullable=False)

    home_player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    away_player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    winner_player_id = Column(Integer, ForeignKey("players.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    match = relationship("Match", back_populates="frames")
    home_player = relationship("Player", foreign_keys=[home_player_id])
    away_player = relationship("Player", foreign_keys=[away_player_id])
    winner_player = relationship("Player", foreign_keys=[winner_player_id])

    __table_args__ = (
        UniqueConstraint("match_id", "frame_number", name="uq_frame_match_number"),
        CheckConstraint("frame_number >= 1", name="ck_frame_number_positive"),
        CheckConstraint("home_player_id <> away_player_id", name="ck_frame_distinct_players"),
        CheckConstraint(
            "winner_player_id is null or winner_player_id in (home_player_id, away_player_id)",
            name="ck_frame_winner_in_pair",
        ),
    )


class MatchLineup(Base):
    __tablename__ = "match_lineups"

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    is_reserve = Column(Boolean, default=False, nullable=False)
    lineup_position = Column(Integer, nullable=True)

    match = relationship("Match", back_populates="lineup")
    team = relationship("Team")
    player = relationship("Player")

    __table_args__ = (
        UniqueConstraint("match_id", "team_id", "player_id", name="uq_lineup_match_team_player"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False, default="")
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
