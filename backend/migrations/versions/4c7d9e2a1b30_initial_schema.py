"""initial schema: player, room, scenario, round_state, submission

Revision ID: 4c7d9e2a1b30
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d9e2a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'player',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('current_room_id', sa.Integer(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_player_current_room_id', 'player', ['current_room_id'])

    op.create_table(
        'room',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('join_code', sa.String(length=16), nullable=False),
        sa.Column('host_id', sa.String(length=64), nullable=False),
        sa.Column('current_round', sa.Integer(), nullable=False),
        sa.Column('max_rounds', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['host_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_room_join_code', 'room', ['join_code'], unique=True)

    with op.batch_alter_table('player') as batch_op:
        batch_op.create_foreign_key('fk_player_current_room_id', 'room', ['current_room_id'], ['id'])

    op.create_table(
        'scenario',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'round_state',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('current_round', sa.Integer(), nullable=False),
        sa.Column('current_scenario_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('all_judged', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.ForeignKeyConstraint(['current_scenario_id'], ['scenario.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_round_state_room_id', 'round_state', ['room_id'], unique=True)

    op.create_table(
        'submission',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.String(length=64), nullable=False),
        sa.Column('round', sa.Integer(), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('outcome', sa.Text(), nullable=True),
        sa.Column('is_winner', sa.Boolean(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'player_id', 'round', name='uq_submission_room_player_round'),
    )
    op.create_index('ix_submission_room_round', 'submission', ['room_id', 'round'])


def downgrade():
    op.drop_index('ix_submission_room_round', table_name='submission')
    op.drop_table('submission')
    op.drop_index('ix_round_state_room_id', table_name='round_state')
    op.drop_table('round_state')
    op.drop_table('scenario')
    with op.batch_alter_table('player') as batch_op:
        batch_op.drop_constraint('fk_player_current_room_id', type_='foreignkey')
    op.drop_index('ix_room_join_code', table_name='room')
    op.drop_table('room')
    op.drop_index('ix_player_current_room_id', table_name='player')
    op.drop_table('player')
