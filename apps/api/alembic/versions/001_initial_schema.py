"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

Pitchside Database Schema
=========================

Entities: seasons, competitions, teams, players, venues
Ledger: player_team_history, team_venue_history (closed by valid_to, one open row per key)
Competition data: competition_seasons, team_seasons, matches, match_events, match_lineups
Aggregates: standings, player_season_stats
Accounts: users, sessions, tokens, subscriptions, usage_limits, follows,
notifications, notification_settings, predictions, badges

Enums are stored by value as VARCHAR(32).
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _fk(name, target, nullable=False, ondelete=None):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def _enum(name, nullable=False, default=None):
    return sa.Column(name, sa.String(32), nullable=nullable, server_default=default)


def _ts(name='created_at', nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=nullable)


def _flag(name, default):
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.true() if default else sa.false())


def _counter(name):
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')

    # =========================================================================
    # ENTITIES
    # =========================================================================

    op.create_table(
        'seasons',
        _id(),
        sa.Column('label', sa.String(20), nullable=False, unique=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        _flag('is_current', False),
        _ts(),
        sa.CheckConstraint('end_date > start_date', name='ck_season_dates'),
    )
    op.create_index('uq_seasons_single_current', 'seasons', ['is_current'], unique=True,
                    postgresql_where=sa.text('is_current = true'))
    op.create_index('ix_seasons_start_date', 'seasons', ['start_date'])

    op.create_table(
        'competitions',
        _id(),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('country', sa.String(100)),
        _enum('competition_type', default='league'),
        sa.Column('founded_year', sa.Integer()),
        sa.Column('logo_url', sa.String(500)),
        sa.Column('description', sa.Text()),
        _ts(),
        _ts('updated_at'),
    )
    op.create_index('ix_competitions_country', 'competitions', ['country'])

    op.create_table(
        'teams',
        _id(),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('short_name', sa.String(50)),
        sa.Column('country', sa.String(100)),
        sa.Column('city', sa.String(100)),
        sa.Column('founded_year', sa.Integer()),
        sa.Column('logo_url', sa.String(500)),
        sa.Column('primary_color', sa.String(7)),
        sa.Column('secondary_color', sa.String(7)),
        _ts(),
        _ts('updated_at'),
    )
    op.create_index('ix_teams_name', 'teams', ['name'])
    op.create_index('ix_teams_country', 'teams', ['country'])

    op.create_table(
        'players',
        _id(),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('known_as', sa.String(255)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('nationality', sa.String(100)),
        sa.Column('second_nationality', sa.String(100)),
        sa.Column('height_cm', sa.Integer()),
        sa.Column('position', sa.String(20)),
        sa.Column('preferred_foot', sa.String(10)),
        _enum('status', default='active'),
        sa.Column('image_url', sa.String(500)),
        _ts(),
        _ts('updated_at'),
        sa.CheckConstraint('height_cm IS NULL OR height_cm BETWEEN 100 AND 250', name='ck_player_height'),
    )
    op.create_index('ix_players_name', 'players', ['name'])
    op.create_index('ix_players_nationality', 'players', ['nationality'])

    op.create_table(
        'venues',
        _id(),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('city', sa.String(100)),
        sa.Column('country', sa.String(100)),
        sa.Column('capacity', sa.Integer()),
        sa.Column('opened_year', sa.Integer()),
        sa.Column('image_url', sa.String(500)),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        _ts(),
    )

    # =========================================================================
    # AFFILIATION LEDGER
    # =========================================================================

    op.create_table(
        'player_team_history',
        _id(),
        _fk('player_id', 'players.id'),
        _fk('team_id', 'teams.id'),
        sa.Column('shirt_number', sa.Integer()),
        _enum('membership_type', default='club'),
        _enum('transfer_type', nullable=True),
        sa.Column('valid_from', sa.Date(), nullable=False),
        sa.Column('valid_to', sa.Date()),
        _ts(),
        sa.CheckConstraint('valid_to IS NULL OR valid_to >= valid_from', name='ck_pth_interval'),
    )
    op.create_index('uq_pth_open_membership', 'player_team_history', ['player_id', 'membership_type'],
                    unique=True, postgresql_where=sa.text('valid_to IS NULL'))
    op.create_index('ix_pth_player_valid', 'player_team_history', ['player_id', 'valid_from'])
    op.create_index('ix_pth_team_valid', 'player_team_history', ['team_id', 'valid_from'])

    op.create_table(
        'team_venue_history',
        _id(),
        _fk('team_id', 'teams.id'),
        _fk('venue_id', 'venues.id'),
        sa.Column('valid_from', sa.Date(), nullable=False),
        sa.Column('valid_to', sa.Date()),
        _ts(),
        sa.CheckConstraint('valid_to IS NULL OR valid_to >= valid_from', name='ck_tvh_interval'),
    )
    op.create_index('uq_tvh_open_venue', 'team_venue_history', ['team_id'],
                    unique=True, postgresql_where=sa.text('valid_to IS NULL'))
    op.create_index('ix_tvh_venue', 'team_venue_history', ['venue_id'])

    # =========================================================================
    # COMPETITION DATA
    # =========================================================================

    op.create_table(
        'competition_seasons',
        _id(),
        _fk('competition_id', 'competitions.id'),
        _fk('season_id', 'seasons.id'),
        _enum('status', default='scheduled'),
        _fk('champion_team_id', 'teams.id', nullable=True),
        _ts(),
        sa.UniqueConstraint('competition_id', 'season_id', name='uq_competition_season'),
    )

    op.create_table(
        'team_seasons',
        _id(),
        _fk('team_id', 'teams.id'),
        _fk('competition_season_id', 'competition_seasons.id'),
        sa.UniqueConstraint('team_id', 'competition_season_id', name='uq_team_season'),
    )

    op.create_table(
        'matches',
        _id(),
        _fk('competition_season_id', 'competition_seasons.id'),
        _fk('home_team_id', 'teams.id'),
        _fk('away_team_id', 'teams.id'),
        _fk('venue_id', 'venues.id', nullable=True),
        sa.Column('matchday', sa.Integer()),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        _enum('status', default='scheduled'),
        sa.Column('home_score', sa.Integer()),
        sa.Column('away_score', sa.Integer()),
        sa.Column('attendance', sa.Integer()),
        sa.Column('referee', sa.String(255)),
        sa.Column('minute', sa.Integer()),
        _ts(),
        _ts('updated_at'),
        sa.CheckConstraint('home_team_id <> away_team_id', name='ck_match_distinct_teams'),
    )
    op.create_index('ix_matches_cs_status', 'matches', ['competition_season_id', 'status'])
    op.create_index('ix_matches_scheduled_at', 'matches', ['scheduled_at'])
    op.create_index('ix_matches_home_away', 'matches', ['home_team_id', 'away_team_id'])

    op.create_table(
        'match_events',
        _id(),
        _fk('match_id', 'matches.id'),
        _enum('event_type'),
        sa.Column('minute', sa.Integer(), nullable=False),
        sa.Column('added_time', sa.Integer()),
        _fk('team_id', 'teams.id'),
        _fk('player_id', 'players.id', nullable=True),
        _fk('secondary_player_id', 'players.id', nullable=True),
        sa.Column('description', sa.Text()),
        _ts(),
    )
    op.create_index('ix_match_events_match', 'match_events', ['match_id', 'minute'])
    op.create_index('ix_match_events_player', 'match_events', ['player_id'])

    op.create_table(
        'match_lineups',
        _id(),
        _fk('match_id', 'matches.id'),
        _fk('team_id', 'teams.id'),
        _fk('player_id', 'players.id'),
        sa.Column('shirt_number', sa.Integer()),
        sa.Column('position', sa.String(20)),
        _flag('is_starter', True),
        _counter('minutes_played'),
        sa.Column('rating', sa.Numeric(3, 1)),
        sa.UniqueConstraint('match_id', 'player_id', name='uq_lineup_match_player'),
    )
    op.create_index('ix_lineups_player', 'match_lineups', ['player_id'])

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    op.create_table(
        'standings',
        _id(),
        _fk('competition_season_id', 'competition_seasons.id'),
        _fk('team_id', 'teams.id'),
        sa.Column('position', sa.Integer(), nullable=False),
        _counter('played'),
        _counter('won'),
        _counter('drawn'),
        _counter('lost'),
        _counter('goals_for'),
        _counter('goals_against'),
        _counter('goal_difference'),
        _counter('points'),
        sa.Column('form', sa.String(5)),
        _ts('updated_at'),
        sa.UniqueConstraint('competition_season_id', 'team_id', name='uq_standing_cs_team'),
    )
    op.create_index('ix_standings_cs_position', 'standings', ['competition_season_id', 'position'])

    op.create_table(
        'player_season_stats',
        _id(),
        _fk('player_id', 'players.id'),
        _fk('team_id', 'teams.id'),
        _fk('competition_season_id', 'competition_seasons.id'),
        _counter('appearances'),
        _counter('goals'),
        _counter('assists'),
        _counter('yellow_cards'),
        _counter('red_cards'),
        _counter('minutes_played'),
        _counter('clean_sheets'),
        _ts('updated_at'),
        sa.UniqueConstraint('player_id', 'team_id', 'competition_season_id', name='uq_player_season_stat'),
    )
    op.create_index('ix_pss_cs_goals', 'player_season_stats', ['competition_season_id', 'goals'])

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('avatar_url', sa.String(500)),
        _flag('email_verified', False),
        _ts(),
        _ts('updated_at'),
    )

    op.create_table(
        'sessions',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        sa.Column('token', sa.String(64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.String(500)),
        sa.Column('ip_address', sa.String(64)),
        _ts(),
    )
    op.create_index('ix_sessions_user', 'sessions', ['user_id'])
    op.create_index('ix_sessions_expires_at', 'sessions', ['expires_at'])

    for table in ('password_reset_tokens', 'email_verification_tokens'):
        columns = [
            _id(),
            _fk('user_id', 'users.id', ondelete='CASCADE'),
            sa.Column('token', sa.String(64), nullable=False, unique=True),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        ]
        if table == 'password_reset_tokens':
            columns.append(sa.Column('used_at', sa.DateTime(timezone=True)))
        op.create_table(table, *columns, _ts())

    op.create_table(
        'subscriptions',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        _enum('tier', default='free'),
        _enum('status', default='active'),
        _ts('start_date', nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        _flag('auto_renew', True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True)),
        _ts(),
        _ts('updated_at'),
    )

    op.create_table(
        'usage_limits',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        _enum('feature_type'),
        sa.Column('usage_date', sa.Date(), nullable=False),
        _counter('count'),
        sa.UniqueConstraint('user_id', 'feature_type', 'usage_date', name='uq_usage_user_feature_date'),
    )

    op.create_table(
        'follows',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        _enum('entity_type'),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        _ts(),
        sa.UniqueConstraint('user_id', 'entity_type', 'entity_id', name='uq_follow'),
    )
    op.create_index('ix_follows_entity', 'follows', ['entity_type', 'entity_id'])

    op.create_table(
        'notifications',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        _enum('notification_type'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        _enum('entity_type', nullable=True),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True)),
        _flag('is_read', False),
        _ts(),
    )
    op.create_index('ix_notifications_user_created', 'notifications', ['user_id', 'created_at'])
    op.create_index('ix_notifications_user_unread', 'notifications', ['user_id', 'is_read'])

    op.create_table(
        'notification_settings',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  primary_key=True),
        _flag('goals', True),
        _flag('match_start', True),
        _flag('match_result', True),
        _flag('milestone', True),
        _flag('transfer', True),
        _flag('upcoming_match', True),
        _flag('weekly_digest', True),
        _flag('achievement', True),
        _flag('push_enabled', True),
        _flag('email_enabled', False),
        _ts('updated_at'),
    )

    op.create_table(
        'predictions',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        _fk('match_id', 'matches.id'),
        sa.Column('home_score', sa.Integer(), nullable=False),
        sa.Column('away_score', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer()),
        sa.Column('is_exact_score', sa.Boolean()),
        sa.Column('is_correct_result', sa.Boolean()),
        _ts('submitted_at', nullable=False),
        sa.Column('scored_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('user_id', 'match_id', name='uq_prediction_user_match'),
        sa.CheckConstraint('home_score >= 0 AND away_score >= 0', name='ck_prediction_scores'),
    )
    op.create_index('ix_predictions_match', 'predictions', ['match_id'])

    op.create_table(
        'badges',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE'),
        _enum('badge_type'),
        _ts('awarded_at'),
        sa.UniqueConstraint('user_id', 'badge_type', name='uq_badge_user_type'),
    )


def downgrade() -> None:
    for table in (
        'badges', 'predictions', 'notification_settings', 'notifications', 'follows',
        'usage_limits', 'subscriptions', 'email_verification_tokens', 'password_reset_tokens',
        'sessions', 'users', 'player_season_stats', 'standings', 'match_lineups',
        'match_events', 'matches', 'team_seasons', 'competition_seasons',
        'team_venue_history', 'player_team_history', 'venues', 'players', 'teams',
        'competitions', 'seasons',
    ):
        op.drop_table(table)
