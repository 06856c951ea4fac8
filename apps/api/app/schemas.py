"""
Pitchside API Schemas
=====================

Pydantic schemas for request/response validation:
- Entities (Player, Team, Competition, Venue, Season)
- Affiliation ledger (squads, careers, venue tenancy)
- Aggregates (standings, player stats, head-to-head)
- Accounts (auth, sessions, subscriptions, follows, notifications, predictions)
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Generic, TypeVar, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models import (
    CompetitionSeasonStatus, CompetitionType, EntityType, MatchEventType, MatchStatus, MembershipType,
    NotificationType, PlayerStatus, SubscriptionStatus, TransferType, BadgeType,
)
from app.tiers import SubscriptionTier, UsageFeature


# =============================================================================
# GENERIC TYPES
# =============================================================================

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated response wrapper."""
    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, page_size: int):
        total_pages = (total + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages
        )


# =============================================================================
# BASE SCHEMAS
# =============================================================================

class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


# =============================================================================
# HEALTH & STATUS
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: datetime
    database: str
    environment: str


class ReadyResponse(BaseModel):
    """Readiness probe response."""
    ready: bool
    checks: Dict[str, bool]


# =============================================================================
# ENTITY SCHEMAS
# =============================================================================

class SeasonRead(BaseSchema):
    id: UUID
    label: str
    start_date: date
    end_date: date
    is_current: bool


class SeasonCreate(BaseModel):
    label: str = Field(..., min_length=4, max_length=20, examples=["2025/26"])
    start_date: date
    end_date: date
    is_current: bool = False


class CompetitionBrief(BaseSchema):
    id: UUID
    slug: str
    name: str
    country: Optional[str] = None
    logo_url: Optional[str] = None


class CompetitionRead(CompetitionBrief):
    competition_type: CompetitionType
    founded_year: Optional[int] = None
    description: Optional[str] = None


class CompetitionSeasonRead(BaseSchema):
    id: UUID
    status: CompetitionSeasonStatus
    season: SeasonRead
    champion_team_id: Optional[UUID] = None


class CompetitionDetail(CompetitionRead):
    seasons: List[CompetitionSeasonRead] = []
    follower_count: int = 0


class TeamBrief(BaseSchema):
    id: UUID
    slug: str
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None


class TeamRead(TeamBrief):
    country: Optional[str] = None
    city: Optional[str] = None
    founded_year: Optional[int] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


class VenueRead(BaseSchema):
    id: UUID
    slug: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    capacity: Optional[int] = None
    opened_year: Optional[int] = None
    image_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class TeamDetail(TeamRead):
    current_venue: Optional[VenueRead] = None
    follower_count: int = 0


class PlayerBrief(BaseSchema):
    id: UUID
    slug: str
    name: str
    known_as: Optional[str] = None
    position: Optional[str] = None
    nationality: Optional[str] = None
    image_url: Optional[str] = None


class PlayerRead(PlayerBrief):
    date_of_birth: Optional[date] = None
    second_nationality: Optional[str] = None
    height_cm: Optional[int] = None
    preferred_foot: Optional[str] = None
    status: PlayerStatus


class PlayerDetail(PlayerRead):
    age: Optional[int] = None
    current_team: Optional[TeamBrief] = None
    shirt_number: Optional[int] = None
    national_team: Optional[TeamBrief] = None
    follower_count: int = 0


# =============================================================================
# AFFILIATION LEDGER
# =============================================================================

class AffiliationRead(BaseSchema):
    id: UUID
    team: TeamBrief
    shirt_number: Optional[int] = None
    membership_type: MembershipType
    transfer_type: Optional[TransferType] = None
    valid_from: date
    valid_to: Optional[date] = None
    is_current: bool = False


class TemporalContextRead(BaseModel):
    mode: Literal["now", "season"]
    season: Optional[SeasonRead] = None

    @classmethod
    def from_context(cls, context) -> "TemporalContextRead":
        season = SeasonRead.model_validate(context.season) if context.season is not None else None
        return cls(mode=context.mode.value, season=season)


class AffiliationsResponse(BaseModel):
    player: PlayerBrief
    context: TemporalContextRead
    affiliations: List[AffiliationRead]


class SquadMember(BaseModel):
    affiliation_id: UUID
    player: PlayerBrief
    shirt_number: Optional[int] = None
    valid_from: date
    valid_to: Optional[date] = None


class SquadResponse(BaseModel):
    team: TeamBrief
    context: TemporalContextRead
    players: List[SquadMember]
    total: int


class VenueTenancy(BaseModel):
    id: UUID
    venue: VenueRead
    valid_from: date
    valid_to: Optional[date] = None


class VenueHistoryResponse(BaseModel):
    team: TeamBrief
    context: TemporalContextRead
    venues: List[VenueTenancy]


class TransferCreate(BaseModel):
    player_id: UUID
    team_id: UUID
    valid_from: date
    shirt_number: Optional[int] = Field(None, ge=1, le=99)
    transfer_type: Optional[TransferType] = TransferType.PERMANENT
    membership_type: MembershipType = MembershipType.CLUB


class AffiliationClose(BaseModel):
    valid_to: date


class VenueMoveCreate(BaseModel):
    team_id: UUID
    venue_id: UUID
    valid_from: date


# =============================================================================
# AGGREGATES
# =============================================================================

class StandingRead(BaseModel):
    position: int
    team: TeamBrief
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    form: Optional[str] = None


class StandingsResponse(BaseModel):
    competition: CompetitionBrief
    season: SeasonRead
    competition_season_id: UUID
    standings: List[StandingRead]


class TopScorer(BaseModel):
    rank: int
    player: PlayerBrief
    team: TeamBrief
    goals: int
    assists: int
    appearances: int


class StatTotals(BaseModel):
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    # Advanced fields are null unless the caller's tier includes advanced stats
    minutes_played: Optional[int] = None
    clean_sheets: Optional[int] = None
    goals_per_90: Optional[float] = None


class SeasonStatLine(StatTotals):
    competition: CompetitionBrief
    season: SeasonRead
    team: TeamBrief


class PlayerStatsResponse(BaseModel):
    player: PlayerBrief
    totals: StatTotals
    seasons: List[SeasonStatLine]
    advanced: bool


class RebuildResponse(BaseModel):
    competition_season_id: UUID
    standings_rows: int
    stat_lines: int


class MatchBrief(BaseModel):
    id: UUID
    home_team: TeamBrief
    away_team: TeamBrief
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: MatchStatus
    scheduled_at: datetime
    matchday: Optional[int] = None

    @classmethod
    def from_match(cls, match) -> "MatchBrief":
        return cls(
            id=match.id,
            home_team=TeamBrief.model_validate(match.home_team),
            away_team=TeamBrief.model_validate(match.away_team),
            home_score=match.home_score,
            away_score=match.away_score,
            status=match.status,
            scheduled_at=match.scheduled_at,
            matchday=match.matchday,
        )


class MatchEventRead(BaseSchema):
    id: UUID
    event_type: MatchEventType
    minute: int
    added_time: Optional[int] = None
    team_id: UUID
    player_id: Optional[UUID] = None
    secondary_player_id: Optional[UUID] = None


class MatchDetail(MatchBrief):
    attendance: Optional[int] = None
    referee: Optional[str] = None
    events: List[MatchEventRead] = []


class MatchFinalize(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)


class FinalizeResponse(BaseModel):
    match: MatchBrief
    predictions_scored: int
    standings_rows: int
    stat_lines: int
    notifications_sent: int


class HeadToHeadResponse(BaseModel):
    team1: TeamBrief
    team2: TeamBrief
    played: int
    team1_wins: int
    team2_wins: int
    draws: int
    team1_goals: int
    team2_goals: int
    recent_matches: List[MatchBrief]


class PlayerComparison(BaseModel):
    players: List[PlayerDetail]
    totals: List[StatTotals]
    comparisons_used: int
    comparisons_limit: Optional[int] = None


# =============================================================================
# SEARCH
# =============================================================================

class SearchResultType(str, Enum):
    PLAYER = "player"
    TEAM = "team"
    COMPETITION = "competition"


class SearchResult(BaseModel):
    """Single search result."""
    type: SearchResultType
    id: UUID
    slug: str
    name: str
    subtitle: Optional[str] = None  # e.g. "ST • Norway"
    image_url: Optional[str] = None
    score: float = 0.0


class SearchResponse(BaseModel):
    """Search response with ranked results."""
    query: str
    results: List[SearchResult]
    total: int


# =============================================================================
# AUTH & ACCOUNT
# =============================================================================

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserRead(BaseSchema):
    id: UUID
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    user: UserRead
    token: str
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str
    confirm_password: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1)


class SessionRead(BaseModel):
    id: UUID
    device: str
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: datetime
    is_current: bool


class SessionsResponse(BaseModel):
    sessions: List[SessionRead]


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

FeatureMap = Dict[str, Optional[Union[bool, int]]]


class TierRead(BaseModel):
    tier: SubscriptionTier
    name: str
    description: str
    price: Decimal
    period: str
    features: FeatureMap


class SubscriptionRead(BaseSchema):
    tier: SubscriptionTier
    status: SubscriptionStatus
    start_date: datetime
    end_date: Optional[datetime] = None
    auto_renew: bool
    cancelled_at: Optional[datetime] = None


class UsageRead(BaseModel):
    feature: UsageFeature
    allowed: bool
    used: int
    limit: Optional[int] = None
    unlimited: bool
    remaining: Optional[int] = None


class SubscriptionResponse(BaseModel):
    subscription: SubscriptionRead
    effective_tier: SubscriptionTier
    features: FeatureMap
    follows_used: int
    follows_remaining: Optional[int] = None
    usage: List[UsageRead]


class UpgradeRequest(BaseModel):
    tier: SubscriptionTier


# =============================================================================
# FOLLOWS
# =============================================================================

class FollowRequest(BaseModel):
    entity_type: EntityType
    entity_id: UUID
    action: Literal["follow", "unfollow"] = "follow"


class FollowStateResponse(BaseModel):
    following: bool
    follower_count: Optional[int] = None


class FollowRead(BaseSchema):
    id: UUID
    entity_type: EntityType
    entity_id: UUID
    created_at: Optional[datetime] = None


class FollowsResponse(BaseModel):
    follows: List[FollowRead]
    total: int
    limit: Optional[int] = None


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class NotificationRead(BaseSchema):
    id: UUID
    notification_type: NotificationType
    title: str
    message: str
    entity_type: Optional[EntityType] = None
    entity_id: Optional[UUID] = None
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationsResponse(BaseModel):
    notifications: List[NotificationRead]
    unread_count: int


class MarkReadRequest(BaseModel):
    notification_id: Optional[UUID] = None
    mark_all: bool = False


class NotificationSettingsRead(BaseSchema):
    goals: bool
    match_start: bool
    match_result: bool
    milestone: bool
    transfer: bool
    upcoming_match: bool
    weekly_digest: bool
    achievement: bool
    push_enabled: bool
    email_enabled: bool


class NotificationSettingsUpdate(BaseModel):
    goals: Optional[bool] = None
    match_start: Optional[bool] = None
    match_result: Optional[bool] = None
    milestone: Optional[bool] = None
    transfer: Optional[bool] = None
    upcoming_match: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    achievement: Optional[bool] = None
    push_enabled: Optional[bool] = None
    email_enabled: Optional[bool] = None


# =============================================================================
# PREDICTIONS
# =============================================================================

class PredictionCreate(BaseModel):
    match_id: UUID
    home_score: int = Field(..., ge=0, le=20)
    away_score: int = Field(..., ge=0, le=20)


class PredictionRead(BaseSchema):
    id: UUID
    match_id: UUID
    home_score: int
    away_score: int
    points: Optional[int] = None
    is_exact_score: Optional[bool] = None
    is_correct_result: Optional[bool] = None
    submitted_at: datetime
    scored_at: Optional[datetime] = None


class PredictionWithMatch(PredictionRead):
    match: MatchBrief


class PredictionStats(BaseModel):
    total_predictions: int
    correct_results: int
    exact_scores: int
    total_points: int
    accuracy: float


class BadgeRead(BaseSchema):
    badge_type: BadgeType
    awarded_at: datetime


class PredictionProfile(BaseModel):
    stats: PredictionStats
    badges: List[BadgeRead]


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: UUID
    user_name: str
    total_points: int
    correct_predictions: int
    total_predictions: int
