"""hr approver slot on leave and correction requests

Revision ID: 0003_hr_approver_slot
Revises: 0002_seed_permissions
Create Date: 2026-10-19 14:12:08.331904

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0003_hr_approver_slot'
down_revision: Union[str, Sequence[str], None] = '0002_seed_permissions'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ('hr_leave_requests', 'hr_attendance_correction_requests')


def upgrade() -> None:
    """Upgrade schema."""
    for table in TABLES:
        op.add_column(table, sa.Column('hr_approver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True))
        op.add_column(table, sa.Column('hr_comment', sa.Text(), nullable=True))
        op.add_column(table, sa.Column('hr_action_at', sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    for table in TABLES:
        op.drop_column(table, 'hr_action_at')
        op.drop_column(table, 'hr_comment')
        op.drop_column(table, 'hr_approver_id')
