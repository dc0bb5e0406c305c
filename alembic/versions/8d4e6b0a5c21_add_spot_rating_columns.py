"""add spot rating columns

Revision ID: 8d4e6b0a5c21
Revises: 3f1c9a2d7b10
Create Date: 2026-10-17 11:40:02.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4e6b0a5c21'
down_revision: Union[str, Sequence[str], None] = '3f1c9a2d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column('spots',
        sa.Column('num_reviews',
            sa.Integer(),
            nullable=False,
            server_default='0'
        )
    )
    op.add_column('spots', sa.Column('avg_rating', sa.Float(), nullable=True))

    # Backfill from reviews that predate the columns
    op.execute(
        """
        UPDATE spots SET
            num_reviews = (SELECT COUNT(*) FROM reviews WHERE reviews.spot_id = spots.id),
            avg_rating = (SELECT AVG(stars) FROM reviews WHERE reviews.spot_id = spots.id)
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('spots') as batch_op:
        batch_op.drop_column('avg_rating')
        batch_op.drop_column('num_reviews')
