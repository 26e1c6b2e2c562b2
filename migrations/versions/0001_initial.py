"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    subscription_status = sa.Enum('INACTIVE', 'ACTIVE', 'SUSPENDED', name='subscriptionstatus')
    reservation_status = sa.Enum('PENDING', 'CONFIRMED', 'CANCELLED', name='reservationstatus')

    op.create_table('organization',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('subscription_status', subscription_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table('restaurant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('org_id', sa.Integer(), sa.ForeignKey('organization.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slogan', sa.String(255), nullable=False),
        sa.Column('place', sa.String(255), nullable=False),
        sa.Column('area', sa.String(255), nullable=False),
        sa.Column('genre', sa.String(120), nullable=False),
        sa.Column('budget', sa.String(8), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('capacity >= 1', name='ck_restaurant_capacity_positive'),
    )
    op.create_index('ix_restaurant_org_id', 'restaurant', ['org_id'])
    op.create_index('ix_restaurant_slug', 'restaurant', ['slug'], unique=True)
    op.create_index('ix_restaurant_place', 'restaurant', ['place'])
    op.create_index('ix_restaurant_area', 'restaurant', ['area'])
    op.create_index('ix_restaurant_genre', 'restaurant', ['genre'])

    op.create_table('opening_hour',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.String(5), nullable=False),
        sa.Column('close_time', sa.String(5), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('restaurant_id', 'weekday', name='uq_opening_hour_restaurant_weekday'),
    )
    op.create_index('ix_opening_hour_restaurant_id', 'opening_hour', ['restaurant_id'])

    op.create_table('image',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(500), nullable=False),
        sa.Column('alt', sa.String(255), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
    )
    op.create_index('ix_image_restaurant_id', 'image', ['restaurant_id'])

    op.create_table('customer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_customer_email', 'customer', ['email'])
    op.create_index('ix_customer_phone', 'customer', ['phone'])

    op.create_table('reservation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customer.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('duration_min', sa.Integer(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('status', reservation_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_reservation_customer_id', 'reservation', ['customer_id'])
    op.create_index('ix_reservation_restaurant_starts_at', 'reservation', ['restaurant_id', 'starts_at'])

    op.create_table('review',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customer.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_review_restaurant_id', 'review', ['restaurant_id'])
    op.create_index('ix_review_restaurant_approved', 'review', ['restaurant_id', 'is_approved'])

def downgrade():
    op.drop_index('ix_review_restaurant_approved', table_name='review')
    op.drop_index('ix_review_restaurant_id', table_name='review')
    op.drop_table('review')
    op.drop_index('ix_reservation_restaurant_starts_at', table_name='reservation')
    op.drop_index('ix_reservation_customer_id', table_name='reservation')
    op.drop_table('reservation')
    op.drop_index('ix_customer_phone', table_name='customer')
    op.drop_index('ix_customer_email', table_name='customer')
    op.drop_table('customer')
    op.drop_index('ix_image_restaurant_id', table_name='image')
    op.drop_table('image')
    op.drop_index('ix_opening_hour_restaurant_id', table_name='opening_hour')
    op.drop_table('opening_hour')
    op.drop_index('ix_restaurant_genre', table_name='restaurant')
    op.drop_index('ix_restaurant_area', table_name='restaurant')
    op.drop_index('ix_restaurant_place', table_name='restaurant')
    op.drop_index('ix_restaurant_slug', table_name='restaurant')
    op.drop_index('ix_restaurant_org_id', table_name='restaurant')
    op.drop_table('restaurant')
    op.drop_table('organization')

    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        op.execute('DROP TYPE IF EXISTS reservationstatus')
        op.execute('DROP TYPE IF EXISTS subscriptionstatus')
