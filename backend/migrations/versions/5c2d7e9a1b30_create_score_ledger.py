"""create score ledger, team aggregates, rounds and daily snapshots

Revision ID: 5c2d7e9a1b30
Revises:
Create Date: 2025-09-02 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'team',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('color', sa.String(length=32), nullable=False),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_player_team_id', 'player', ['team_id'])

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'round',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('game_id', 'day', 'round_number', name='uq_round_game_day_number'),
    )
    op.create_index('ix_round_day', 'round', ['day'])

    op.create_table(
        'score_entry',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('round_id', sa.Integer(), sa.ForeignKey('round.id'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reversal_of_id', sa.Integer(),
                  sa.ForeignKey('score_entry.id', name='fk_score_entry_reversal_of_id'),
                  nullable=True, unique=True),
    )
    op.create_index('ix_score_entry_round_id', 'score_entry', ['round_id'])
    op.create_index('ix_score_entry_team_id', 'score_entry', ['team_id'])
    op.create_index('ix_score_entry_created_at', 'score_entry', ['created_at'])

    op.create_table(
        'team_aggregate',
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), primary_key=True),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'daily_snapshot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day', sa.Date(), nullable=False, unique=True),
        sa.Column('snapshot', sa.Text(), nullable=False),
        sa.Column('locked_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade():
    op.drop_table('daily_snapshot')
    op.drop_table('team_aggregate')
    op.drop_index('ix_score_entry_created_at', table_name='score_entry')
    op.drop_index('ix_score_entry_team_id', table_name='score_entry')
    op.drop_index('ix_score_entry_round_id', table_name='score_entry')
    op.drop_table('score_entry')
    op.drop_index('ix_round_day', table_name='round')
    op.drop_table('round')
    op.drop_table('game')
    op.drop_index('ix_player_team_id', table_name='player')
    op.drop_table('player')
    op.drop_table('team')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
