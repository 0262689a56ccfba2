"""initial_schema

Creates the users, roles, permissions, teams, email template, notification
and mail settings tables with their association tables.

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-17 09:12:44.201318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', sa.Uuid(), nullable=False, comment='Unique record ID')


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _deleted_at() -> sa.Column:
    return sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('api_token_hash', sa.String(length=64), nullable=True),
        sa.Column('frontend_preferences', sa.JSON(), nullable=False),
        sa.Column('datatable_preferences', sa.JSON(), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        _deleted_at(),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('api_token_hash'),
    )
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'roles',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        *_timestamps(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'permissions',
        _id(),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'teams',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    for name, left, left_table in (
        ('role_user', 'role_id', 'roles'),
        ('permission_role', 'permission_id', 'permissions'),
        ('permission_user', 'permission_id', 'permissions'),
        ('team_user', 'team_id', 'teams'),
    ):
        right, right_table = ('role_id', 'roles') if name == 'permission_role' else ('user_id', 'users')
        op.create_table(
            name,
            sa.Column(left, sa.Uuid(), nullable=False),
            sa.Column(right, sa.Uuid(), nullable=False),
            sa.ForeignKeyConstraint([left], [f'{left_table}.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint([right], [f'{right_table}.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint(left, right),
        )

    op.create_table(
        'email_templates',
        _id(),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_layout', sa.Boolean(), nullable=False),
        sa.Column('layout_id', sa.Uuid(), nullable=True),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('entity_types', sa.JSON(), nullable=False),
        sa.Column('context_variables', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('all_teams', sa.Boolean(), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        _deleted_at(),
        sa.ForeignKeyConstraint(['layout_id'], ['email_templates.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_email_templates_status', 'email_templates', ['status'])
    op.create_index('ix_email_templates_is_layout', 'email_templates', ['is_layout'])

    op.create_table(
        'email_translations',
        _id(),
        sa.Column('template_id', sa.Uuid(), nullable=False),
        sa.Column('locale', sa.String(length=10), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=True),
        sa.Column('html_content', sa.Text(), nullable=True),
        sa.Column('text_content', sa.Text(), nullable=True),
        sa.Column('preheader', sa.String(length=255), nullable=True),
        sa.Column('draft_subject', sa.String(length=255), nullable=True),
        sa.Column('draft_html_content', sa.Text(), nullable=True),
        sa.Column('draft_text_content', sa.Text(), nullable=True),
        sa.Column('draft_preheader', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['template_id'], ['email_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_id', 'locale', name='uq_email_translations_template_locale'),
    )
    op.create_index('ix_email_translations_template_id', 'email_translations', ['template_id'])

    op.create_table(
        'notifications',
        _id(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('subtitle', sa.String(length=255), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('level', sa.String(length=16), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _deleted_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'read_at'])

    op.create_table(
        'mail_settings',
        _id(),
        sa.Column('scope', sa.String(length=16), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=True),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('host', sa.String(length=255), nullable=True),
        sa.Column('port', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('password', sa.String(length=255), nullable=True),
        sa.Column('encryption', sa.String(length=10), nullable=True),
        sa.Column('from_address', sa.String(length=255), nullable=True),
        sa.Column('from_name', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('scope', 'owner_id', name='uq_mail_settings_scope_owner'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('mail_settings')
    op.drop_index('ix_notifications_user_read', table_name='notifications')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_email_translations_template_id', table_name='email_translations')
    op.drop_table('email_translations')
    op.drop_index('ix_email_templates_is_layout', table_name='email_templates')
    op.drop_index('ix_email_templates_status', table_name='email_templates')
    op.drop_table('email_templates')
    for name in ('team_user', 'permission_user', 'permission_role', 'role_user'):
        op.drop_table(name)
    op.drop_table('teams')
    op.drop_table('permissions')
    op.drop_table('roles')
    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_index('ix_users_is_active', table_name='users')
    op.drop_table('users')
