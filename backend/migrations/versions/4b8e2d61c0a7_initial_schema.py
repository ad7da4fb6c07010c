"""initial schema: users, tokens, organizations, members, projects

Revision ID: 4b8e2d61c0a7
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4b8e2d61c0a7'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=160), nullable=False),
        sa.Column('provider', sa.String(length=32), nullable=True),
        sa.Column('provider_uid', sa.String(length=64), nullable=True),
        sa.Column('avatar', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=120), nullable=True),
        sa.Column('location', sa.String(length=120), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('github_username', sa.String(length=64), nullable=True),
        sa.Column('twitter_username', sa.String(length=64), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False),
        sa.Column('last_signin', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('slug', name='uq_users_slug'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=False)
        batch_op.create_index('ix_users_slug', ['slug'], unique=False)

    op.create_table(
        'user_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.LargeBinary(length=32), nullable=False),
        sa.Column('context', sa.String(length=200), nullable=False),
        sa.Column('sent_to', sa.String(length=160), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_user_tokens_user_id_users'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_tokens')),
        sa.UniqueConstraint('context', 'token_hash', name='uq_user_tokens_context_token'),
    )
    with op.batch_alter_table('user_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_user_tokens_user_id', ['user_id'], unique=False)

    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('logo', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=120), nullable=True),
        sa.Column('github_username', sa.String(length=64), nullable=True),
        sa.Column('twitter_username', sa.String(length=64), nullable=True),
        sa.Column('is_personal', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['created_by_id'], ['users.id'],
            name=op.f('fk_organizations_created_by_id_users'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['updated_by_id'], ['users.id'],
            name=op.f('fk_organizations_updated_by_id_users'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_organizations')),
        sa.UniqueConstraint('slug', name='uq_organizations_slug'),
    )
    with op.batch_alter_table('organizations', schema=None) as batch_op:
        batch_op.create_index('ix_organizations_slug', ['slug'], unique=False)

    op.create_table(
        'organization_members',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column(
            'role',
            sa.Enum('owner', 'member', name='enum_member_role', native_enum=False, create_constraint=True),
            nullable=False,
        ),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_organization_members_user_id_users'), ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name=op.f('fk_organization_members_organization_id_organizations'), ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['created_by_id'], ['users.id'],
            name=op.f('fk_organization_members_created_by_id_users'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('user_id', 'organization_id', name=op.f('pk_organization_members')),
    )
    with op.batch_alter_table('organization_members', schema=None) as batch_op:
        batch_op.create_index('ix_organization_members_organization_id', ['organization_id'], unique=False)

    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'storage_kind',
            sa.Enum('local', 'remote', name='enum_storage_kind', native_enum=False, create_constraint=True),
            nullable=False,
        ),
        sa.Column('encoding_version', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('nb_sources', sa.Integer(), nullable=False),
        sa.Column('nb_tables', sa.Integer(), nullable=False),
        sa.Column('nb_columns', sa.Integer(), nullable=False),
        sa.Column('nb_relations', sa.Integer(), nullable=False),
        sa.Column('nb_types', sa.Integer(), nullable=False),
        sa.Column('nb_comments', sa.Integer(), nullable=False),
        sa.Column('nb_layouts', sa.Integer(), nullable=False),
        sa.Column('nb_notes', sa.Integer(), nullable=False),
        sa.Column('nb_memos', sa.Integer(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(storage_kind = 'remote') OR (content IS NULL)",
            name=op.f('ck_projects_local_without_content'),
        ),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name=op.f('fk_projects_organization_id_organizations'), ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['created_by_id'], ['users.id'],
            name=op.f('fk_projects_created_by_id_users'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['updated_by_id'], ['users.id'],
            name=op.f('fk_projects_updated_by_id_users'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_projects')),
        sa.UniqueConstraint('organization_id', 'slug', name='uq_projects_organization_slug'),
    )
    with op.batch_alter_table('projects', schema=None) as batch_op:
        batch_op.create_index('ix_projects_organization_id', ['organization_id'], unique=False)


def downgrade():
    with op.batch_alter_table('projects', schema=None) as batch_op:
        batch_op.drop_index('ix_projects_organization_id')
    op.drop_table('projects')

    with op.batch_alter_table('organization_members', schema=None) as batch_op:
        batch_op.drop_index('ix_organization_members_organization_id')
    op.drop_table('organization_members')

    with op.batch_alter_table('organizations', schema=None) as batch_op:
        batch_op.drop_index('ix_organizations_slug')
    op.drop_table('organizations')

    with op.batch_alter_table('user_tokens', schema=None) as batch_op:
        batch_op.drop_index('ix_user_tokens_user_id')
    op.drop_table('user_tokens')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index('ix_users_slug')
        batch_op.drop_index('ix_users_email')
    op.drop_table('users')
