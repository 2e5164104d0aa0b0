"""Property tours table

Revision ID: 002
Revises: 001
Create Date: 2025-08-20 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        'tours',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('property_id', sa.String(), nullable=True),
        sa.Column('property_owner_id', sa.String(), nullable=True),
        sa.Column('visitor_name', sa.String(), nullable=False),
        sa.Column('visitor_email', sa.String(), nullable=False),
        sa.Column('visitor_phone', sa.String(), nullable=False),
        sa.Column('visitor_message', sa.Text(), nullable=True),
        sa.Column('tour_date', sa.Date(), nullable=False),
        sa.Column('tour_time', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=True, server_default='pending'),
        sa.Column('tour_type', sa.String(), nullable=True, server_default='physical'),
        sa.Column('agent_feedback', sa.Text(), nullable=True),
        sa.Column('agent_rating', sa.Integer(), nullable=True),
        sa.Column('agent_notes', sa.Text(), nullable=True),
        sa.Column('follow_up_required', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('follow_up_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name='ck_tours_status'
        ),
        sa.CheckConstraint("tour_type IN ('physical', 'virtual')", name='ck_tours_type'),
        sa.CheckConstraint(
            'agent_rating IS NULL OR (agent_rating >= 1 AND agent_rating <= 5)',
            name='ck_tours_agent_rating'
        )
    )

    # Lookups by owner, visitor email, date and status
    op.create_index('ix_tours_property_id', 'tours', ['property_id'])
    op.create_index('ix_tours_property_owner_id', 'tours', ['property_owner_id'])
    op.create_index('ix_tours_visitor_email', 'tours', ['visitor_email'])
    op.create_index('ix_tours_tour_date', 'tours', ['tour_date'])
    op.create_index('ix_tours_status', 'tours', ['status'])

def downgrade() -> None:
    op.drop_index('ix_tours_status', table_name='tours')
    op.drop_index('ix_tours_tour_date', table_name='tours')
    op.drop_index('ix_tours_visitor_email', table_name='tours')
    op.drop_index('ix_tours_property_owner_id', table_name='tours')
    op.drop_index('ix_tours_property_id', table_name='tours')
    op.drop_table('tours')
