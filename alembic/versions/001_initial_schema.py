"""Initial schema: users, certificates and likes

Revision ID: 001
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, certificates and the liked-by membership table."""

    # Create users table
    op.create_table('user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('unit', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=1000), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('social_links', sa.JSON(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('contacts_enabled', sa.Boolean(), nullable=False),
        sa.Column('token_version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_user'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_unit', 'user', ['unit'], unique=False)
    op.create_index('ix_user_role', 'user', ['role'], unique=False)

    # Create certificates table
    op.create_table('certificate',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('unit', sa.String(length=255), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('category', sa.String(length=255), nullable=False),
        sa.Column('subcategory', sa.String(length=255), nullable=True),
        sa.Column('issuer', sa.String(length=255), nullable=False),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('file_url', sa.String(length=1000), nullable=True),
        sa.Column('external_links', sa.JSON(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('visibility', sa.String(length=20), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('like_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['user.id'],
            name='fk_certificate_owner_id_user',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_certificate'),
    )
    op.create_index('ix_certificate_owner_id', 'certificate', ['owner_id'], unique=False)
    op.create_index('ix_certificate_unit', 'certificate', ['unit'], unique=False)
    op.create_index('ix_certificate_category', 'certificate', ['category'], unique=False)
    op.create_index('idx_certificate_visibility_unit', 'certificate', ['visibility', 'unit'], unique=False)
    op.create_index('idx_certificate_created', 'certificate', ['created_at'], unique=False)

    # Create liked-by membership table
    op.create_table('certificate_like',
        sa.Column('certificate_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['certificate_id'], ['certificate.id'],
            name='fk_certificate_like_certificate_id_certificate',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['user.id'],
            name='fk_certificate_like_user_id_user',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('certificate_id', 'user_id', name='pk_certificate_like'),
    )
    op.create_index('ix_certificate_like_user_id', 'certificate_like', ['user_id'], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('certificate_like')
    op.drop_table('certificate')
    op.drop_table('user')
