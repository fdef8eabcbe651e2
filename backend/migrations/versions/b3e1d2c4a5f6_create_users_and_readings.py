"""create users and blood pressure readings

Revision ID: b3e1d2c4a5f6
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b3e1d2c4a5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(80), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table('blood_pressure_readings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('systolic', sa.Integer(), nullable=False),
        sa.Column('diastolic', sa.Integer(), nullable=False),
        sa.Column('pulse', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_blood_pressure_readings_user_id', 'blood_pressure_readings', ['user_id'])
    op.create_index('ix_blood_pressure_readings_recorded_at', 'blood_pressure_readings', ['recorded_at'])


def downgrade():
    op.drop_index('ix_blood_pressure_readings_recorded_at', table_name='blood_pressure_readings')
    op.drop_index('ix_blood_pressure_readings_user_id', table_name='blood_pressure_readings')
    op.drop_table('blood_pressure_readings')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
