"""create marketplace tables

Revision ID: 3f1c9a2d7b10
Revises:
Create Date: 2026-10-17 09:12:44.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False, server_default=sa.func.current_timestamp()),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=256), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'spots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('country', sa.String(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_spots_id', 'spots', ['id'])
    op.create_index('ix_spots_owner_id', 'spots', ['owner_id'])
    op.create_index('ix_spots_city', 'spots', ['city'])

    op.create_table(
        'spot_images',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('spot_id', sa.Integer(), sa.ForeignKey('spots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('preview', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_spot_images_id', 'spot_images', ['id'])
    op.create_index('ix_spot_images_spot_id', 'spot_images', ['spot_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('spot_id', sa.Integer(), sa.ForeignKey('spots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('end_date > start_date', name='ck_bookings_end_after_start'),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'])
    op.create_index('ix_bookings_spot_id', 'bookings', ['spot_id'])
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('spot_id', sa.Integer(), sa.ForeignKey('spots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('review', sa.Text(), nullable=False),
        sa.Column('stars', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('spot_id', 'user_id', name='uq_reviews_spot_user'),
        sa.CheckConstraint('stars BETWEEN 1 AND 5', name='ck_reviews_stars_range'),
    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_spot_id', 'reviews', ['spot_id'])
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])

    op.create_table(
        'review_images',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('review_id', sa.Integer(), sa.ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_review_images_id', 'review_images', ['id'])
    op.create_index('ix_review_images_review_id', 'review_images', ['review_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('review_images')
    op.drop_table('reviews')
    op.drop_table('bookings')
    op.drop_table('spot_images')
    op.drop_table('spots')
    op.drop_table('users')
