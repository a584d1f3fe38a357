"""Initial schema with accounts, api keys and key tokens

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.Text(), nullable=False),
        sa.Column('roles', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_accounts_email'), 'accounts', ['email'], unique=True)

    op.create_table(
        'api_keys',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('status', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_api_keys_key'), 'api_keys', ['key'], unique=True)

    # Session records: one row per signed-in device
    op.create_table(
        'key_tokens',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('public_key', sa.Text(), nullable=False),
        sa.Column('private_key', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('refresh_token_digest', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_key_tokens_owner_id'), 'key_tokens', ['owner_id'], unique=False)
    op.create_index(
        op.f('ix_key_tokens_refresh_token_digest'), 'key_tokens', ['refresh_token_digest'], unique=True
    )

    op.create_table(
        'key_token_used_refresh_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key_token_id', sa.String(length=32), nullable=False),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('token_digest', sa.String(length=64), nullable=False),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['key_token_id'], ['key_tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_key_token_used_refresh_tokens_key_token_id'),
        'key_token_used_refresh_tokens',
        ['key_token_id'],
        unique=False,
    )
    op.create_index(
        op.f('ix_key_token_used_refresh_tokens_token_digest'),
        'key_token_used_refresh_tokens',
        ['token_digest'],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_key_token_used_refresh_tokens_token_digest'), table_name='key_token_used_refresh_tokens')
    op.drop_index(op.f('ix_key_token_used_refresh_tokens_key_token_id'), table_name='key_token_used_refresh_tokens')
    op.drop_table('key_token_used_refresh_tokens')
    op.drop_index(op.f('ix_key_tokens_refresh_token_digest'), table_name='key_tokens')
    op.drop_index(op.f('ix_key_tokens_owner_id'), table_name='key_tokens')
    op.drop_table('key_tokens')
    op.drop_index(op.f('ix_api_keys_key'), table_name='api_keys')
    op.drop_table('api_keys')
    op.drop_index(op.f('ix_accounts_email'), table_name='accounts')
    op.drop_table('accounts')
