"""create player, track, round, round_player, race and race_result tables

Revision ID: 3b7c9d2e1f40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7c9d2e1f40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_player_name'), 'player', ['name'], unique=True)

    op.create_table(
        'track',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_track_name'), 'track', ['name'], unique=True)

    op.create_table(
        'round',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('winner_player_id', sa.Integer(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['winner_player_id'], ['player.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_round_created_at'), 'round', ['created_at'], unique=False)
    op.create_index(op.f('ix_round_status'), 'round', ['status'], unique=False)

    op.create_table(
        'round_player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('round_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('seat', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['round_id'], ['round.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['player.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('round_id', 'player_id', name='uq_round_player'),
    )
    op.create_index(op.f('ix_round_player_round_id'), 'round_player', ['round_id'], unique=False)
    op.create_index(op.f('ix_round_player_player_id'), 'round_player', ['player_id'], unique=False)

    op.create_table(
        'race',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('round_id', sa.Integer(), nullable=False),
        sa.Column('race_index', sa.Integer(), nullable=False),
        sa.Column('is_overtime', sa.Boolean(), nullable=False),
        sa.Column('track_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['round_id'], ['round.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['track_id'], ['track.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('round_id', 'race_index', name='uq_race_round_index'),
    )
    op.create_index(op.f('ix_race_round_id'), 'race', ['round_id'], unique=False)

    op.create_table(
        'race_result',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('race_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('finish_position', sa.Integer(), nullable=False),
        sa.Column('points_awarded', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['race_id'], ['race.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['player.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('race_id', 'player_id', name='uq_race_result_player'),
        sa.UniqueConstraint('race_id', 'finish_position', name='uq_race_result_position'),
    )
    op.create_index(op.f('ix_race_result_race_id'), 'race_result', ['race_id'], unique=False)
    op.create_index(op.f('ix_race_result_player_id'), 'race_result', ['player_id'], unique=False)


def downgrade():
    op.drop_table('race_result')
    op.drop_table('race')
    op.drop_table('round_player')
    op.drop_table('round')
    op.drop_table('track')
    op.drop_table('player')
