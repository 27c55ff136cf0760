"""create stored_value table for persisted best times

Revision ID: 5c2a9e7d1b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e7d1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Tables created by `flask init-db` already include everything
    if 'stored_value' in set(insp.get_table_names()):
        return

    op.create_table(
        'stored_value',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('namespace', sa.String(length=64), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('namespace', 'key', name='uq_stored_value_namespace_key'),
    )
    with op.batch_alter_table('stored_value') as batch_op:
        batch_op.create_index('ix_stored_value_namespace', ['namespace'], unique=False)


def downgrade():
    with op.batch_alter_table('stored_value') as batch_op:
        batch_op.drop_index('ix_stored_value_namespace')
    op.drop_table('stored_value')
