"""Link tours to the signed-in visitor

Revision ID: 003
Revises: 002
Create Date: 2025-08-27 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.add_column('tours', sa.Column('visitor_user_id', sa.String(), nullable=True))
    op.create_index('ix_tours_visitor_user_id', 'tours', ['visitor_user_id'])

def downgrade() -> None:
    op.drop_index('ix_tours_visitor_user_id', table_name='tours')
    op.drop_column('tours', 'visitor_user_id')
