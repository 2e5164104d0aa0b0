"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2025-08-02 10:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('company', sa.String(), nullable=True),
        sa.Column('photo_url', sa.String(), nullable=True),
        sa.Column('user_type', sa.String(), nullable=True, server_default='agent'),
        sa.Column('status', sa.String(), nullable=True, server_default='active'),
        sa.Column('email_verified', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('phone_verified', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('stats', sa.JSON(), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=True),
        sa.Column('profile', sa.JSON(), nullable=True),
        sa.Column('subscription', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Create properties table
    op.create_table(
        'properties',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(), nullable=True, server_default='INR'),
        sa.Column('price_per_sqft', sa.Float(), nullable=True),
        sa.Column('negotiable', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True, server_default='India'),
        sa.Column('pincode', sa.String(), nullable=True),
        sa.Column('locality', sa.String(), nullable=True),
        sa.Column('landmark', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Integer(), nullable=True),
        sa.Column('area', sa.Integer(), nullable=True),
        sa.Column('built_up_area', sa.Integer(), nullable=True),
        sa.Column('carpet_area', sa.Integer(), nullable=True),
        sa.Column('balconies', sa.Integer(), nullable=True),
        sa.Column('parking', sa.Integer(), nullable=True),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('total_floors', sa.Integer(), nullable=True),
        sa.Column('age_of_property', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(), nullable=True, server_default='sale'),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('property_type', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=True, server_default='active'),
        sa.Column('availability', sa.String(), nullable=True),
        sa.Column('facing', sa.String(), nullable=True),
        sa.Column('furnishing', sa.String(), nullable=True),
        sa.Column('builder', sa.String(), nullable=True),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('contact_preference', sa.String(), nullable=True),
        sa.Column('best_time_to_call', sa.String(), nullable=True),
        sa.Column('featured', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('premium', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('verified', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('views', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('inquiries', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('favorites', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('shares', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('videos', sa.JSON(), nullable=True),
        sa.Column('amenities', sa.JSON(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('keywords', sa.JSON(), nullable=True),
        sa.Column('virtual_tour', sa.String(), nullable=True),
        sa.Column('floor_plan', sa.String(), nullable=True),
        sa.Column('possession_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Create property_views table
    op.create_table(
        'property_views',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.String(), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('session_id', sa.String(), nullable=True),
        sa.Column('viewed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Create favorites table
    op.create_table(
        'favorites',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('property_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'property_id', name='uq_favorites_user_property')
    )

    # Create leads table
    op.create_table(
        'leads',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('property_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('budget', sa.String(), nullable=True),
        sa.Column('requirements', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=True, server_default='new'),
        sa.Column('priority', sa.String(), nullable=True),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('contact_method', sa.String(), nullable=True),
        sa.Column('preferred_time', sa.String(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('last_contact_at', sa.DateTime(), nullable=True),
        sa.Column('next_follow_up', sa.DateTime(), nullable=True),
        sa.Column('follow_up_count', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('occupation', sa.String(), nullable=True),
        sa.Column('company', sa.String(), nullable=True),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('history', sa.JSON(), nullable=True),
        sa.Column('communications', sa.JSON(), nullable=True),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        sa.Column('conversion_value', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Create revenue table
    op.create_table(
        'revenue',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('property_id', sa.String(), nullable=True),
        sa.Column('lead_id', sa.String(), nullable=True),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(), nullable=True, server_default='INR'),
        sa.Column('type', sa.String(), nullable=True),
        sa.Column('transaction_id', sa.String(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('payment_status', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('recurring', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('tax_amount', sa.Float(), nullable=True),
        sa.Column('tax_rate', sa.Float(), nullable=True),
        sa.Column('net_amount', sa.Float(), nullable=True),
        sa.Column('client_name', sa.String(), nullable=True),
        sa.Column('client_email', sa.String(), nullable=True),
        sa.Column('client_phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Create analytics table
    op.create_table(
        'analytics',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('date', sa.String(), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('views', sa.JSON(), nullable=True),
        sa.Column('leads', sa.JSON(), nullable=True),
        sa.Column('revenue', sa.JSON(), nullable=True),
        sa.Column('properties', sa.JSON(), nullable=True),
        sa.Column('activity', sa.JSON(), nullable=True),
        sa.Column('traffic', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Create indexes
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_user_type', 'users', ['user_type'])
    op.create_index('ix_properties_user_id', 'properties', ['user_id'])
    op.create_index('ix_properties_city', 'properties', ['city'])
    op.create_index('ix_properties_locality', 'properties', ['locality'])
    op.create_index('ix_properties_price', 'properties', ['price'])
    op.create_index('ix_properties_type', 'properties', ['type'])
    op.create_index('ix_properties_property_type', 'properties', ['property_type'])
    op.create_index('ix_properties_status', 'properties', ['status'])
    op.create_index('ix_properties_featured', 'properties', ['featured'])
    op.create_index('ix_properties_created_at', 'properties', ['created_at'])
    op.create_index('ix_property_views_property_id', 'property_views', ['property_id'])
    op.create_index('ix_property_views_user_id', 'property_views', ['user_id'])
    op.create_index('ix_property_views_session_id', 'property_views', ['session_id'])
    op.create_index('ix_property_views_viewed_at', 'property_views', ['viewed_at'])
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_leads_user_id', 'leads', ['user_id'])
    op.create_index('ix_leads_property_id', 'leads', ['property_id'])
    op.create_index('ix_leads_status', 'leads', ['status'])
    op.create_index('ix_leads_created_at', 'leads', ['created_at'])
    op.create_index('ix_revenue_user_id', 'revenue', ['user_id'])
    op.create_index('ix_revenue_created_at', 'revenue', ['created_at'])
    op.create_index('ix_analytics_date', 'analytics', ['date'])
    op.create_index('ix_analytics_user_id', 'analytics', ['user_id'])

def downgrade() -> None:
    # Drop indexes
    op.drop_index('ix_analytics_user_id', table_name='analytics')
    op.drop_index('ix_analytics_date', table_name='analytics')
    op.drop_index('ix_revenue_created_at', table_name='revenue')
    op.drop_index('ix_revenue_user_id', table_name='revenue')
    op.drop_index('ix_leads_created_at', table_name='leads')
    op.drop_index('ix_leads_status', table_name='leads')
    op.drop_index('ix_leads_property_id', table_name='leads')
    op.drop_index('ix_leads_user_id', table_name='leads')
    op.drop_index('ix_favorites_user_id', table_name='favorites')
    op.drop_index('ix_property_views_viewed_at', table_name='property_views')
    op.drop_index('ix_property_views_session_id', table_name='property_views')
    op.drop_index('ix_property_views_user_id', table_name='property_views')
    op.drop_index('ix_property_views_property_id', table_name='property_views')
    op.drop_index('ix_properties_created_at', table_name='properties')
    op.drop_index('ix_properties_featured', table_name='properties')
    op.drop_index('ix_properties_status', table_name='properties')
    op.drop_index('ix_properties_property_type', table_name='properties')
    op.drop_index('ix_properties_type', table_name='properties')
    op.drop_index('ix_properties_price', table_name='properties')
    op.drop_index('ix_properties_locality', table_name='properties')
    op.drop_index('ix_properties_city', table_name='properties')
    op.drop_index('ix_properties_user_id', table_name='properties')
    op.drop_index('ix_users_user_type', table_name='users')
    op.drop_index('ix_users_email', table_name='users')

    # Drop tables
    op.drop_table('analytics')
    op.drop_table('revenue')
    op.drop_table('leads')
    op.drop_table('favorites')
    op.drop_table('property_views')
    op.drop_table('properties')
    op.drop_table('users')
