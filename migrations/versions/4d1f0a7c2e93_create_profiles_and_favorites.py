"""create_profiles_and_favorites

Revision ID: 4d1f0a7c2e93
Revises:
Create Date: 2026-09-14 10:12:41.508311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4d1f0a7c2e93'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create profiles and favorites tables."""
    op.create_table('profiles',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('bio', sa.Text(), server_default='', nullable=False),
        sa.Column('twitter_link', sa.String(length=255), nullable=True),
        sa.Column('telegram_link', sa.String(length=255), nullable=True),
        sa.Column('wallet_address', sa.String(length=42), nullable=True),
        sa.Column('wallet_linked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='profiles_user_id_key'),
        sa.UniqueConstraint('username', name='profiles_username_key'),
        sa.UniqueConstraint('email', name='profiles_email_key'),
        sa.UniqueConstraint('wallet_address', name='profiles_wallet_address_key'),
    )

    op.create_table('favorites',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('token_id', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.user_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'token_id', name='favorites_user_token_unique'),
    )
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_token_id', 'favorites', ['token_id'])


def downgrade() -> None:
    """Drop profiles and favorites tables."""
    op.drop_index('ix_favorites_token_id', table_name='favorites')
    op.drop_index('ix_favorites_user_id', table_name='favorites')
    op.drop_table('favorites')
    op.drop_table('profiles')
