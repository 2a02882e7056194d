"""initial_schema

Revision ID: 3f1c2a9e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id',            sa.String(length=36),       nullable=False),
        sa.Column('username',      sa.String(length=64),       nullable=False),
        sa.Column('password_hash', sa.String(length=255),      nullable=False),
        sa.Column('role',          sa.String(length=16),       nullable=False),
        sa.Column('is_active',     sa.Boolean(),               nullable=False),
        sa.Column('created_at',    sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at',    sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'revoked_tokens',
        sa.Column('id',         sa.String(length=36),       nullable=False),
        sa.Column('jti',        sa.String(length=64),       nullable=False),
        sa.Column('username',   sa.String(length=64),       nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_revoked_tokens_jti',        'revoked_tokens', ['jti'],        unique=True)
    op.create_index('ix_revoked_tokens_expires_at', 'revoked_tokens', ['expires_at'], unique=False)

    op.create_table(
        'page_visits',
        sa.Column('id',     sa.String(length=36),   nullable=False),
        sa.Column('day',    sa.Date(),              nullable=False),
        sa.Column('path',   sa.String(length=1024), nullable=False),
        sa.Column('visits', sa.Integer(),           nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('day', 'path', name='uq_page_visits_day_path'),
    )
    op.create_index('ix_page_visits_day',  'page_visits', ['day'],  unique=False)
    op.create_index('ix_page_visits_path', 'page_visits', ['path'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_page_visits_path',          table_name='page_visits')
    op.drop_index('ix_page_visits_day',           table_name='page_visits')
    op.drop_table('page_visits')
    op.drop_index('ix_revoked_tokens_expires_at', table_name='revoked_tokens')
    op.drop_index('ix_revoked_tokens_jti',        table_name='revoked_tokens')
    op.drop_table('revoked_tokens')
    op.drop_index('ix_users_username',            table_name='users')
    op.drop_table('users')
