"""marketplace schema

Revision ID: 3f9a1c7e2b45
Revises: 
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7e2b45'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MARKETPLACE_TABLES = (
    'electronics',
    'cars',
    'house_items',
    'fashion',
    'cosmetics',
    'businesses',
    'properties_for_sale',
)


def _uuid_pk() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False, server_default=sa.text('gen_random_uuid()'))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def _listing_columns() -> list[sa.Column]:
    return [
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(14, 2), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('listing_status', sa.String(length=8), nullable=False, server_default=sa.text("'pending'")),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('views_count', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('whatsapp_clicks', sa.Integer(), nullable=False, server_default=sa.text('0')),
    ]


def _media_table(table: str, parent: str, fk_column: str, order_constraint: str) -> None:
    op.create_table(
        table,
        _uuid_pk(),
        sa.Column(fk_column, postgresql.UUID(as_uuid=True), sa.ForeignKey(f'{parent}.id', ondelete='CASCADE'), nullable=False),
        sa.Column('media_type', sa.String(length=5), nullable=False),
        sa.Column('media_url', sa.Text(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint(fk_column, 'display_order', name=order_constraint),
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('whatsapp_number', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'subscription_plans',
        _uuid_pk(),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('display_name', sa.String(), nullable=False),
        sa.Column('max_posts_per_month', sa.Integer(), nullable=False),
        sa.Column('max_images_per_post', sa.Integer(), nullable=False),
        sa.Column('max_videos_per_post', sa.Integer(), nullable=False),
        sa.Column('has_analytics', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('has_verified_badge', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('grace_period_days', sa.Integer(), nullable=False, server_default=sa.text('7')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        sa.CheckConstraint('max_posts_per_month > 0', name='ck_plan_max_posts_positive'),
        sa.CheckConstraint('max_images_per_post >= 0', name='ck_plan_max_images'),
        sa.CheckConstraint('max_videos_per_post >= 0', name='ck_plan_max_videos'),
    )

    op.create_table(
        'payment_transactions',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_name', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(length=6), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('provider_transaction_id', sa.String(), nullable=True),
        sa.Column('provider_reference', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payment_transactions_user', 'payment_transactions', ['user_id'])

    op.create_table(
        'user_subscriptions',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subscription_plans.id'), nullable=False),
        sa.Column('status', sa.String(length=9), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('posts_used_this_month', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('images_used_this_month', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('videos_used_this_month', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('current_month_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('last_quota_reset', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            'payment_transaction_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('payment_transactions.id', ondelete='SET NULL'),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint('posts_used_this_month >= 0', name='ck_sub_posts_used'),
        sa.CheckConstraint('images_used_this_month >= 0', name='ck_sub_images_used'),
        sa.CheckConstraint('videos_used_this_month >= 0', name='ck_sub_videos_used'),
    )
    op.create_index('ix_user_subscriptions_user', 'user_subscriptions', ['user_id'])

    op.create_table(
        'rental_properties',
        _uuid_pk(),
        sa.Column('landlord_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        *_listing_columns(),
        sa.Column('property_type', sa.String(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Integer(), nullable=True),
        sa.Column('square_meters', sa.Float(), nullable=True),
        sa.Column('amenities', sa.Text(), nullable=True),
        sa.Column('is_furnished', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )
    op.create_index('ix_rental_properties_landlord', 'rental_properties', ['landlord_id'])
    _media_table('rental_property_media', 'rental_properties', 'property_id', 'uq_rental_media_order')

    for table in MARKETPLACE_TABLES:
        op.create_table(
            table,
            _uuid_pk(),
            sa.Column('seller_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
            *_listing_columns(),
            sa.Column('condition', sa.String(length=8), nullable=False),
            sa.Column('is_negotiable', sa.Boolean(), nullable=False, server_default=sa.text('false')),
            sa.Column('attributes', sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index(f'ix_{table}_seller', table, ['seller_id'])
        _media_table(f'{table}_media', table, 'item_id', f'uq_{table}_media_order')

    op.create_table(
        'notifications',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('data', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index(
        'ix_notifications_user_unread',
        'notifications',
        ['user_id'],
        postgresql_where=sa.text('is_read = false'),
    )

    op.create_table(
        'reviews',
        _uuid_pk(),
        sa.Column('reviewer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('listing_domain', sa.String(), nullable=False),
        sa.Column('listing_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('reviewer_id', 'listing_domain', 'listing_id', name='uq_review_reviewer_listing'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_review_rating'),
    )
    op.create_index('ix_reviews_listing', 'reviews', ['listing_domain', 'listing_id'])

    op.create_table(
        'support_messages',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('subject', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default=sa.text("'open'")),
        *_timestamps(),
    )
    op.create_index('ix_support_messages_user', 'support_messages', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_support_messages_user', table_name='support_messages')
    op.drop_table('support_messages')
    op.drop_index('ix_reviews_listing', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('ix_notifications_user_unread', table_name='notifications')
    op.drop_table('notifications')

    for table in reversed(MARKETPLACE_TABLES):
        op.drop_table(f'{table}_media')
        op.drop_index(f'ix_{table}_seller', table_name=table)
        op.drop_table(table)

    op.drop_table('rental_property_media')
    op.drop_index('ix_rental_properties_landlord', table_name='rental_properties')
    op.drop_table('rental_properties')

    op.drop_index('ix_user_subscriptions_user', table_name='user_subscriptions')
    op.drop_table('user_subscriptions')
    op.drop_index('ix_payment_transactions_user', table_name='payment_transactions')
    op.drop_table('payment_transactions')
    op.drop_table('subscription_plans')
    op.drop_table('profiles')
