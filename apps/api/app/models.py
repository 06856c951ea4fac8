"""
Pitchside Database Models
=========================

Schema layers:
- Entities: players, teams, competitions, venues, seasons (stable identity + slug)
- Affiliation ledger: player_team_history, team_venue_history
  (bitemporal, append-only; closed by setting valid_to, never deleted)
- Competition data: competition_seasons, team_seasons, matches, match_events,
  match_lineups
- Derived aggregates: standings, player_season_stats (upserted on unique keys)
- Accounts: users, sessions, tokens, subscriptions, usage_limits, follows,
  notifications, predictions, badges

Validity intervals are closed dates: [valid_from, valid_to], with
valid_to NULL meaning the affiliation is still open.
"""

import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.database import Base, utcnow
from app.tiers import SubscriptionTier, UsageFeature


def _enum(enum_cls):
    """Store enums by value as portable VARCHARs."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


# =============================================================================
# ENUMS
# =============================================================================

class CompetitionType(str, enum.Enum):
    LEAGUE = "league"
    CUP = "cup"
    INTERNATIONAL = "international"


class PlayerStatus(str, enum.Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class MembershipType(str, enum.Enum):
    """Kind of affiliation; a player may hold one open record per kind."""
    CLUB = "club"
    INTERNATIONAL = "international"


class TransferType(str, enum.Enum):
    PERMANENT = "permanent"
    LOAN = "loan"
    FREE = "free"
    YOUTH = "youth"


class CompetitionSeasonStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    HALF_TIME = "half_time"
    FINISHED = "finished"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class MatchEventType(str, enum.Enum):
    GOAL = "goal"
    OWN_GOAL = "own_goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"
    PENALTY_MISSED = "penalty_missed"


class EntityType(str, enum.Enum):
    """Entities a user can follow or be notified about."""
    PLAYER = "player"
    TEAM = "team"
    COMPETITION = "competition"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class NotificationType(str, enum.Enum):
    MATCH_START = "match_start"
    GOAL = "goal"
    MATCH_END = "match_end"
    TRANSFER = "transfer"
    MILESTONE = "milestone"
    ACHIEVEMENT = "achievement"


class BadgeType(str, enum.Enum):
    FIRST_BLOOD = "first_blood"
    EARLY_BIRD = "early_bird"
    MASTER_PREDICTOR = "master_predictor"


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Season(Base):
    """A calendar season such as 2024/25. At most one is current."""
    __tablename__ = "seasons"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    label: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_season_dates"),
        Index(
            "uq_seasons_single_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current = true"),
            sqlite_where=text("is_current = 1"),
        ),
        Index("ix_seasons_start_date", "start_date"),
    )


class Competition(Base):
    __tablename__ = "competitions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[Optional[str]] = mapped_column(String(100))
    competition_type: Mapped[CompetitionType] = mapped_column(
        _enum(CompetitionType), default=CompetitionType.LEAGUE, nullable=False
    )
    founded_year: Mapped[Optional[int]] = mapped_column(Integer)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_competitions_country", "country"),
    )


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[Optional[str]] = mapped_column(String(50))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    founded_year: Mapped[Optional[int]] = mapped_column(Integer)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500))
    primary_color: Mapped[Optional[str]] = mapped_column(String(7))
    secondary_color: Mapped[Optional[str]] = mapped_column(String(7))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_teams_name", "name"),
        Index("ix_teams_country", "country"),
    )


class Player(Base):
    __tablename__ = "players"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    known_as: Mapped[Optional[str]] = mapped_column(String(255))
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date)
    nationality: Mapped[Optional[str]] = mapped_column(String(100))
    second_nationality: Mapped[Optional[str]] = mapped_column(String(100))
    height_cm: Mapped[Optional[int]] = mapped_column(Integer)
    position: Mapped[Optional[str]] = mapped_column(String(20))
    preferred_foot: Mapped[Optional[str]] = mapped_column(String(10))
    status: Mapped[PlayerStatus] = mapped_column(
        _enum(PlayerStatus), default=PlayerStatus.ACTIVE, nullable=False
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_players_name", "name"),
        Index("ix_players_nationality", "nationality"),
        CheckConstraint("height_cm IS NULL OR height_cm BETWEEN 100 AND 250", name="ck_player_height"),
    )


class Venue(Base):
    __tablename__ = "venues"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    capacity: Mapped[Optional[int]] = mapped_column(Integer)
    opened_year: Mapped[Optional[int]] = mapped_column(Integer)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# =============================================================================
# AFFILIATION LEDGER - append-only, closed by valid_to
# =============================================================================

class PlayerTeamHistory(Base):
    """A player's membership of a club or national team over an interval."""
    __tablename__ = "player_team_history"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    player_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("players.id"), nullable=False)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    shirt_number: Mapped[Optional[int]] = mapped_column(Integer)
    membership_type: Mapped[MembershipType] = mapped_column(
        _enum(MembershipType), default=MembershipType.CLUB, nullable=False
    )
    transfer_type: Mapped[Optional[TransferType]] = mapped_column(_enum(TransferType))
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[Optional[date]] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    player: Mapped["Player"] = relationship()
    team: Mapped["Team"] = relationship()

    __table_args__ = (
        CheckConstraint("valid_to IS NULL OR valid_to >= valid_from", name="ck_pth_interval"),
        Index(
            "uq_pth_open_membership",
            "player_id",
            "membership_type",
            unique=True,
            postgresql_where=text("valid_to IS NULL"),
            sqlite_where=text("valid_to IS NULL"),
        ),
        Index("ix_pth_player_valid", "player_id", "valid_from"),
        Index("ix_pth_team_valid", "team_id", "valid_from"),
    )


class TeamVenueHistory(Base):
    __tablename__ = "team_venue_history"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    venue_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("venues.id"), nullable=False)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[Optional[date]] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    team: Mapped["Team"] = relationship()
    venue: Mapped["Venue"] = relationship()

    __table_args__ = (
        CheckConstraint("valid_to IS NULL OR valid_to >= valid_from", name="ck_tvh_interval"),
        Index(
            "uq_tvh_open_venue",
            "team_id",
            unique=True,
            postgresql_where=text("valid_to IS NULL"),
            sqlite_where=text("valid_to IS NULL"),
        ),
        Index("ix_tvh_venue", "venue_id"),
    )


# =============================================================================
# COMPETITION DATA
# =============================================================================

class CompetitionSeason(Base):
    """A competition's edition in one season; scopes matches and aggregates."""
    __tablename__ = "competition_seasons"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    competition_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("competitions.id"), nullable=False)
    season_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("seasons.id"), nullable=False)
    status: Mapped[CompetitionSeasonStatus] = mapped_column(
        _enum(CompetitionSeasonStatus), default=CompetitionSeasonStatus.SCHEDULED, nullable=False
    )
    champion_team_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("teams.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    competition: Mapped["Competition"] = relationship()
    season: Mapped["Season"] = relationship()

    __table_args__ = (
        UniqueConstraint("competition_id", "season_id", name="uq_competition_season"),
    )


class TeamSeason(Base):
    """Registers a team as a participant in a competition season."""
    __tablename__ = "team_seasons"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    competition_season_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("competition_seasons.id"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("team_id", "competition_season_id", name="uq_team_season"),
    )


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    competition_season_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("competition_seasons.id"), nullable=False
    )
    home_team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    away_team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    venue_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("venues.id"))
    matchday: Mapped[Optional[int]] = mapped_column(Integer)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[MatchStatus] = mapped_column(
        _enum(MatchStatus), default=MatchStatus.SCHEDULED, nullable=False
    )
    home_score: Mapped[Optional[int]] = mapped_column(Integer)
    away_score: Mapped[Optional[int]] = mapped_column(Integer)
    attendance: Mapped[Optional[int]] = mapped_column(Integer)
    referee: Mapped[Optional[str]] = mapped_column(String(255))
    minute: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    home_team: Mapped["Team"] = relationship(foreign_keys=[home_team_id])
    away_team: Mapped["Team"] = relationship(foreign_keys=[away_team_id])

    __table_args__ = (
        CheckConstraint("home_team_id <> away_team_id", name="ck_match_distinct_teams"),
        Index("ix_matches_cs_status", "competition_season_id", "status"),
        Index("ix_matches_scheduled_at", "scheduled_at"),
        Index("ix_matches_home_away", "home_team_id", "away_team_id"),
    )


class MatchEvent(Base):
    """Goal, card or substitution. `secondary_player_id` is the assist or player off."""
    __tablename__ = "match_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    match_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("matches.id"), nullable=False)
    event_type: Mapped[MatchEventType] = mapped_column(_enum(MatchEventType), nullable=False)
    minute: Mapped[int] = mapped_column(Integer, nullable=False)
    added_time: Mapped[Optional[int]] = mapped_column(Integer)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    player_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("players.id"))
    secondary_player_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("players.id"))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_match_events_match", "match_id", "minute"),
        Index("ix_match_events_player", "player_id"),
    )


class MatchLineup(Base):
    __tablename__ = "match_lineups"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    match_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("matches.id"), nullable=False)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    player_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("players.id"), nullable=False)
    shirt_number: Mapped[Optional[int]] = mapped_column(Integer)
    position: Mapped[Optional[str]] = mapped_column(String(20))
    is_starter: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    minutes_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 1))

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_lineup_match_player"),
        Index("ix_lineups_player", "player_id"),
    )


# =============================================================================
# DERIVED AGGREGATES - upserted by the aggregator
# =============================================================================

class Standing(Base):
    __tablename__ = "standings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    competition_season_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("competition_seasons.id"), nullable=False
    )
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    won: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    drawn: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lost: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    goals_for: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    goals_against: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    goal_difference: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    form: Mapped[Optional[str]] = mapped_column(String(5))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    team: Mapped["Team"] = relationship()

    __table_args__ = (
        UniqueConstraint("competition_season_id", "team_id", name="uq_standing_cs_team"),
        Index("ix_standings_cs_position", "competition_season_id", "position"),
    )


class PlayerSeasonStat(Base):
    __tablename__ = "player_season_stats"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    player_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("players.id"), nullable=False)
    team_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("teams.id"), nullable=False)
    competition_season_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("competition_seasons.id"), nullable=False
    )
    appearances: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    goals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    assists: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    yellow_cards: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    red_cards: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    minutes_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clean_sheets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "player_id", "team_id", "competition_season_id", name="uq_player_season_stat"
        ),
        Index("ix_pss_cs_goals", "competition_season_id", "goals"),
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class AuthSession(Base):
    """A login session. Lookups treat an expired row as absent."""
    __tablename__ = "sessions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500))
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_sessions_user", "user_id"),
        Index("ix_sessions_expires_at", "expires_at"),
    )


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class EmailVerificationToken(Base):
    __tablename__ = "email_verification_tokens"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Subscription(Base):
    """Exactly one per user, created lazily on first read."""
    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    tier: Mapped[SubscriptionTier] = mapped_column(
        _enum(SubscriptionTier), default=SubscriptionTier.FREE, nullable=False
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        _enum(SubscriptionStatus), default=SubscriptionStatus.ACTIVE, nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class UsageLimit(Base):
    """Per-user, per-feature, per-UTC-day counter. Only ever incremented."""
    __tablename__ = "usage_limits"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    feature_type: Mapped[UsageFeature] = mapped_column(_enum(UsageFeature), nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "feature_type", "usage_date", name="uq_usage_user_feature_date"),
    )


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    entity_type: Mapped[EntityType] = mapped_column(_enum(EntityType), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_follow"),
        Index("ix_follows_entity", "entity_type", "entity_id"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(_enum(NotificationType), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    entity_type: Mapped[Optional[EntityType]] = mapped_column(_enum(EntityType))
    entity_id: Mapped[Optional[UUID]] = mapped_column(Uuid)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_user_unread", "user_id", "is_read"),
    )


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    goals: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    match_start: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    match_result: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    milestone: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    transfer: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    upcoming_match: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    weekly_digest: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    achievement: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    push_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Prediction(Base):
    __tablename__ = "predictions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    match_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("matches.id"), nullable=False)
    home_score: Mapped[int] = mapped_column(Integer, nullable=False)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[Optional[int]] = mapped_column(Integer)
    is_exact_score: Mapped[Optional[bool]] = mapped_column(Boolean)
    is_correct_result: Mapped[Optional[bool]] = mapped_column(Boolean)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    scored_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("user_id", "match_id", name="uq_prediction_user_match"),
        CheckConstraint("home_score >= 0 AND away_score >= 0", name="ck_prediction_scores"),
        Index("ix_predictions_match", "match_id"),
    )


class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_type: Mapped[BadgeType] = mapped_column(_enum(BadgeType), nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "badge_type", name="uq_badge_user_type"),
    )
